from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from gridfs.errors import NoFile
from pymongo.errors import PyMongoError

from application.ports.blob_store import (
    METADATA_FIELDS,
    BlobDownload,
    BlobMetadata,
    BlobStore,
    StoredBlob,
)
from domain.exceptions import BlobNotFoundError, InfrastructureError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from motor.motor_asyncio import (
        AsyncIOMotorGridFSBucket,
        AsyncIOMotorGridIn,
        AsyncIOMotorGridOut,
    )

logger = structlog.get_logger()


def _to_stored_blob(file_id: ObjectId, grid_out: AsyncIOMotorGridOut) -> StoredBlob:
    return StoredBlob(
        blob_id=str(file_id),
        name=grid_out.filename,
        size_bytes=grid_out.length,
        metadata=BlobMetadata.from_document(grid_out.metadata),
        uploaded_at=grid_out.upload_date,
    )


class GridFsBlobStore(BlobStore):
    """Blob store backed by a MongoDB GridFS bucket.

    GridFS only writes the files document when an upload stream is closed, so
    an aborted upload leaves no retrievable object behind.
    """

    def __init__(self, bucket: AsyncIOMotorGridFSBucket, *, chunk_size: int = 255 * 1024) -> None:
        self.bucket = bucket
        self.chunk_size = chunk_size

    async def _abort(self, grid_in: AsyncIOMotorGridIn, name: str) -> None:
        try:
            await grid_in.abort()
        except PyMongoError:
            logger.exception("gridfs_abort_failed", storage_name=name)

    async def put_stream(
        self,
        name: str,
        chunks: AsyncIterator[bytes],
        *,
        metadata: BlobMetadata,
    ) -> StoredBlob:
        file_id = ObjectId()
        grid_in = self.bucket.open_upload_stream_with_id(
            file_id,
            name,
            chunk_size_bytes=self.chunk_size,
            metadata=metadata.to_document(),
        )
        size = 0
        try:
            async for chunk in chunks:
                await grid_in.write(chunk)
                size += len(chunk)
            await grid_in.close()
        except PyMongoError as e:
            await self._abort(grid_in, name)
            msg = f"GridFS write failed for {name}"
            raise InfrastructureError(msg) from e
        except BaseException:
            await self._abort(grid_in, name)
            raise

        return StoredBlob(blob_id=str(file_id), name=name, size_bytes=size, metadata=metadata)

    async def open_stream(self, blob_id: str) -> BlobDownload:
        try:
            file_id = ObjectId(blob_id)
        except (InvalidId, TypeError) as e:
            msg = f"Invalid file id: {blob_id}"
            raise BlobNotFoundError(msg) from e

        try:
            grid_out = await self.bucket.open_download_stream(file_id)
        except NoFile as e:
            msg = f"File {blob_id} not found"
            raise BlobNotFoundError(msg) from e
        except PyMongoError as e:
            msg = f"GridFS lookup failed for {blob_id}"
            raise InfrastructureError(msg) from e

        return BlobDownload(blob=_to_stored_blob(file_id, grid_out), chunks=self._read(grid_out))

    async def _read(self, grid_out: AsyncIOMotorGridOut) -> AsyncIterator[bytes]:
        while True:
            chunk = await grid_out.readchunk()
            if not chunk:
                return
            yield chunk

    async def find_by_metadata(self, key: str, value: str) -> AsyncIterator[StoredBlob]:
        if key not in METADATA_FIELDS:
            msg = f"Unknown metadata field: {key}"
            raise ValueError(msg)

        cursor = self.bucket.find({f"metadata.{key}": value}).sort("uploadDate", 1)
        async for grid_out in cursor:
            yield _to_stored_blob(grid_out._id, grid_out)  # noqa: SLF001
