from __future__ import annotations

import asyncio
import json
import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import fsspec
import structlog

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

logger = structlog.get_logger()

_BLOB_ID = re.compile(r"[0-9a-f]{32}")


def _to_stored_blob(blob_id: str, doc: dict[str, Any]) -> StoredBlob:
    uploaded_at = doc.get("uploadDate")
    return StoredBlob(
        blob_id=blob_id,
        name=doc.get("filename", ""),
        size_bytes=int(doc.get("length", 0)),
        metadata=BlobMetadata.from_document(doc.get("metadata")),
        uploaded_at=datetime.fromisoformat(uploaded_at) if uploaded_at else None,
    )


class FsspecBlobStore(BlobStore):
    """Blob store on any fsspec filesystem (local disk, memory, S3, ...).

    Layout under ``base_url``::

        partial/<id>      bytes of an upload in progress
        objects/<id>      bytes of a completed upload
        meta/<id>.json    filename, length, upload date and metadata

    The metadata document is written last, so a blob is only visible once its
    bytes are complete. Blocking filesystem calls run in worker threads.
    """

    def __init__(
        self,
        base_url: str,
        *,
        storage_options: dict | None = None,
        chunk_size: int = 255 * 1024,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.storage_options = storage_options or {}
        self.chunk_size = chunk_size
        self.fs, root = fsspec.core.url_to_fs(self.base_url, **self.storage_options)
        self.root = root.rstrip("/")

    def _path(self, area: str, name: str) -> str:
        return f"{self.root}/{area}/{name}"

    def _discard_partial(self, path: str) -> None:
        try:
            self.fs.rm(path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception("partial_blob_cleanup_failed", path=path)

    async def put_stream(
        self,
        name: str,
        chunks: AsyncIterator[bytes],
        *,
        metadata: BlobMetadata,
    ) -> StoredBlob:
        blob_id = uuid4().hex
        partial_path = self._path("partial", blob_id)

        try:
            for area in ("partial", "objects", "meta"):
                await asyncio.to_thread(self.fs.makedirs, f"{self.root}/{area}", exist_ok=True)
            out = await asyncio.to_thread(self.fs.open, partial_path, "wb")
        except OSError as e:
            msg = f"Could not open {partial_path} for writing"
            raise InfrastructureError(msg) from e

        size = 0
        try:
            try:
                async for chunk in chunks:
                    await asyncio.to_thread(out.write, chunk)
                    size += len(chunk)
            finally:
                await asyncio.to_thread(out.close)
            await asyncio.to_thread(self.fs.mv, partial_path, self._path("objects", blob_id))
        except OSError as e:
            await asyncio.to_thread(self._discard_partial, partial_path)
            msg = f"Write failed for {name}"
            raise InfrastructureError(msg) from e
        except BaseException:
            await asyncio.to_thread(self._discard_partial, partial_path)
            raise

        uploaded_at = datetime.now(UTC)
        doc = {
            "filename": name,
            "length": size,
            "uploadDate": uploaded_at.isoformat(),
            "metadata": metadata.to_document(),
        }
        try:
            await asyncio.to_thread(
                self.fs.pipe_file,
                self._path("meta", f"{blob_id}.json"),
                json.dumps(doc).encode("utf-8"),
            )
        except OSError as e:
            await asyncio.to_thread(self._discard_partial, self._path("objects", blob_id))
            msg = f"Metadata write failed for {name}"
            raise InfrastructureError(msg) from e

        return StoredBlob(
            blob_id=blob_id,
            name=name,
            size_bytes=size,
            metadata=metadata,
            uploaded_at=uploaded_at,
        )

    def _read_meta(self, path: str) -> dict[str, Any]:
        return json.loads(self.fs.cat_file(path))

    async def open_stream(self, blob_id: str) -> BlobDownload:
        # Ids are uuid4 hex; anything else could escape the store root
        if not _BLOB_ID.fullmatch(blob_id):
            msg = f"Invalid file id: {blob_id}"
            raise BlobNotFoundError(msg)

        try:
            doc = await asyncio.to_thread(self._read_meta, self._path("meta", f"{blob_id}.json"))
        except FileNotFoundError as e:
            msg = f"File {blob_id} not found"
            raise BlobNotFoundError(msg) from e
        except (OSError, ValueError) as e:
            msg = f"Metadata read failed for {blob_id}"
            raise InfrastructureError(msg) from e

        return BlobDownload(
            blob=_to_stored_blob(blob_id, doc),
            chunks=self._read(self._path("objects", blob_id)),
        )

    async def _read(self, path: str) -> AsyncIterator[bytes]:
        f = await asyncio.to_thread(self.fs.open, path, "rb")
        try:
            while True:
                chunk = await asyncio.to_thread(f.read, self.chunk_size)
                if not chunk:
                    return
                yield chunk
        finally:
            await asyncio.to_thread(f.close)

    async def find_by_metadata(self, key: str, value: str) -> AsyncIterator[StoredBlob]:
        if key not in METADATA_FIELDS:
            msg = f"Unknown metadata field: {key}"
            raise ValueError(msg)

        try:
            paths = await asyncio.to_thread(self.fs.ls, f"{self.root}/meta", detail=False)
        except FileNotFoundError:
            return

        for path in sorted(paths):
            if not path.endswith(".json"):
                continue
            try:
                doc = await asyncio.to_thread(self._read_meta, path)
            except FileNotFoundError:
                continue
            if (doc.get("metadata") or {}).get(key) == value:
                blob_id = path.rsplit("/", 1)[-1].removesuffix(".json")
                yield _to_stored_blob(blob_id, doc)
