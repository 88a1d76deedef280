"""GridFS-backed image store.

Files go into the ``uploads`` bucket; the GridFS ObjectId (as a hex string)
is the file id recorded on the Image aggregate.
"""

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from gridfs import GridFSBucket
from gridfs.errors import NoFile
from pymongo import MongoClient

from storefront.media.store.port import ImageStore, StoredFile, StoredFileNotFound

logger = structlog.get_logger(__name__)

BUCKET_NAME = "uploads"


def _object_id(file_id: str) -> ObjectId:
    try:
        return ObjectId(file_id)
    except (InvalidId, TypeError):
        raise StoredFileNotFound(file_id) from None


class GridFSImageStore(ImageStore):
    def __init__(self, uri: str, database: str = "storefront", bucket_name: str = BUCKET_NAME, client=None) -> None:
        self._client = client or MongoClient(uri)
        self._bucket = GridFSBucket(self._client[database], bucket_name=bucket_name)
        logger.info("gridfs_store_opened", database=database, bucket=bucket_name)

    def put(self, filename: str, data: bytes, content_type: str) -> StoredFile:
        file_id = self._bucket.upload_from_stream(
            filename,
            data,
            metadata={"contentType": content_type},
        )
        return StoredFile(
            file_id=str(file_id),
            filename=filename,
            content_type=content_type,
            size=len(data),
        )

    def stream(self, file_id: str):
        try:
            grid_out = self._bucket.open_download_stream(_object_id(file_id))
        except NoFile:
            raise StoredFileNotFound(file_id) from None
        return self._chunks(grid_out)

    @staticmethod
    def _chunks(grid_out):
        try:
            while True:
                chunk = grid_out.readchunk()
                if not chunk:
                    break
                yield chunk
        finally:
            grid_out.close()

    def delete(self, file_id: str) -> None:
        try:
            self._bucket.delete(_object_id(file_id))
        except (NoFile, StoredFileNotFound):
            logger.warning("gridfs_delete_missing_file", file_id=file_id)

    def close(self) -> None:
        self._client.close()
        logger.info("gridfs_store_closed")
