"""Tests for image naming, URLs and the in-memory store."""

import pytest

from storefront.media.image import Image, storage_filename
from storefront.media.store.memory_adapter import InMemoryImageStore
from storefront.media.store.port import StoredFileNotFound


class TestStorageFilename:
    def test_prefixes_timestamp(self):
        assert storage_filename("shirt.png", now_ms=1700000000000) == "1700000000000-shirt.png"

    def test_collapses_whitespace(self):
        assert storage_filename("red  shirt front.png", now_ms=1) == "1-red-shirt-front.png"


class TestImage:
    def test_url_is_resolved_from_site_url(self):
        image = Image.register(
            filename="1-shirt.png", original_name="shirt.png", content_type="image/png", size=3, file_id="f1"
        )
        assert image.url == "http://testserver/api/images/1-shirt.png"

    def test_replace_file_returns_previous_file_id(self):
        image = Image.register(
            filename="1-shirt.png", original_name="shirt.png", content_type="image/png", size=3, file_id="f1"
        )

        previous = image.replace_file(
            filename="2-shirt.jpg", original_name="shirt.jpg", content_type="image/jpeg", size=5, file_id="f2"
        )

        assert previous == "f1"
        assert image.file_id == "f2"
        assert image.content_type == "image/jpeg"


class TestInMemoryImageStore:
    def test_put_then_read(self):
        store = InMemoryImageStore()

        stored = store.put("1-a.png", b"\x89PNG-bytes", "image/png")

        assert stored.size == 10
        assert store.read(stored.file_id) == b"\x89PNG-bytes"

    def test_unknown_file_raises_eagerly(self):
        with pytest.raises(StoredFileNotFound):
            InMemoryImageStore().stream("missing")

    def test_delete_ignores_missing_files(self):
        store = InMemoryImageStore()
        store.delete("missing")
        assert store.files == {}
