"""Image store port (abstract interface).

The store only holds bytes. Metadata lives on the Image aggregate, which
keeps the ``file_id`` handed back by ``put``.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass


class StoredFileNotFound(Exception):
    """Raised when a file id is unknown to the store."""


@dataclass(frozen=True)
class StoredFile:
    file_id: str
    filename: str
    content_type: str
    size: int


class ImageStore(ABC):
    """Abstract binary store for uploaded images."""

    @abstractmethod
    def put(self, filename: str, data: bytes, content_type: str) -> StoredFile:
        """Persist ``data`` and return its handle."""
        ...

    @abstractmethod
    def stream(self, file_id: str) -> Iterator[bytes]:
        """Yield the stored bytes in chunks. Raises StoredFileNotFound."""
        ...

    @abstractmethod
    def delete(self, file_id: str) -> None:
        """Remove a stored file. Missing files are ignored."""
        ...

    def read(self, file_id: str) -> bytes:
        return b"".join(self.stream(file_id))

    def close(self) -> None:  # noqa: B027
        """Release connections held by the store."""
