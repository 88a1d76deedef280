"""Image aggregate: metadata for a file held in the image store."""

import os
import re
import time
from datetime import UTC, datetime

from protean.fields import DateTime, Integer, String

from storefront.domain import storefront

_WHITESPACE = re.compile(r"\s+")


def storage_filename(original_name: str, now_ms: int | None = None) -> str:
    """``<epoch millis>-<original name>`` with whitespace runs collapsed to ``-``."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{stamp}-{_WHITESPACE.sub('-', original_name.strip())}"


def site_url() -> str:
    return os.environ.get("SITE_URL", "http://localhost:8000").rstrip("/")


def image_url(filename: str) -> str:
    return f"{site_url()}/api/images/{filename}"


@storefront.aggregate
class Image:
    filename = String(required=True, max_length=300)
    original_name = String(max_length=255)
    content_type = String(required=True, max_length=100)
    size = Integer(default=0, min_value=0)
    file_id = String(required=True, max_length=100)
    uploaded_at = DateTime()

    @classmethod
    def register(cls, filename, original_name, content_type, size, file_id):
        return cls(
            filename=filename,
            original_name=original_name,
            content_type=content_type,
            size=size,
            file_id=file_id,
            uploaded_at=datetime.now(UTC),
        )

    @property
    def url(self) -> str:
        return image_url(self.filename)

    def replace_file(self, filename, original_name, content_type, size, file_id) -> str:
        """Point this image at a new stored file and return the previous file id."""
        previous = self.file_id
        self.filename = filename
        self.original_name = original_name
        self.content_type = content_type
        self.size = size
        self.file_id = file_id
        self.uploaded_at = datetime.now(UTC)
        return previous
