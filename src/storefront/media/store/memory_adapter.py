"""In-process image store for development and tests."""

from uuid import uuid4

from storefront.media.store.port import ImageStore, StoredFile, StoredFileNotFound

CHUNK_SIZE = 255 * 1024


class InMemoryImageStore(ImageStore):
    def __init__(self) -> None:
        self.files: dict[str, tuple[StoredFile, bytes]] = {}
        self.closed = False

    def put(self, filename: str, data: bytes, content_type: str) -> StoredFile:
        stored = StoredFile(
            file_id=uuid4().hex,
            filename=filename,
            content_type=content_type,
            size=len(data),
        )
        self.files[stored.file_id] = (stored, bytes(data))
        return stored

    def stream(self, file_id: str):
        try:
            _, data = self.files[file_id]
        except KeyError:
            raise StoredFileNotFound(file_id) from None
        return (data[offset : offset + CHUNK_SIZE] for offset in range(0, len(data), CHUNK_SIZE))

    def delete(self, file_id: str) -> None:
        self.files.pop(file_id, None)

    def close(self) -> None:
        self.closed = True
