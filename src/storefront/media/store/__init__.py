"""Image store construction.

``build_image_store()`` picks the adapter from ``IMAGE_STORE``:
- ``memory`` (default): InMemoryImageStore, for development and tests
- ``gridfs``: GridFSImageStore against ``MONGODB_URI``

The application builds one store at startup and hands it to routes through
``get_image_store``.
"""

import os

from fastapi import Request

from storefront.media.store.memory_adapter import InMemoryImageStore
from storefront.media.store.port import ImageStore


def build_image_store() -> ImageStore:
    adapter = os.environ.get("IMAGE_STORE", "memory")
    if adapter == "gridfs":
        from storefront.media.store.gridfs_adapter import GridFSImageStore

        return GridFSImageStore(
            uri=os.environ.get("MONGODB_URI", "mongodb://localhost:27017"),
            database=os.environ.get("MONGODB_DATABASE", "storefront"),
        )
    return InMemoryImageStore()


def get_image_store(request: Request) -> ImageStore:
    """FastAPI dependency returning the store attached to the running app."""
    return request.app.state.image_store
