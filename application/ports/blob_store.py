from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from datetime import datetime


@dataclass(frozen=True)
class BlobMetadata:
    category: str
    original_name: str
    content_type: str | None = None

    def to_document(self) -> dict[str, Any]:
        """Field names as persisted next to the blob."""
        return {
            "category": self.category,
            "originalName": self.original_name,
            "contentType": self.content_type,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any] | None) -> BlobMetadata:
        doc = doc or {}
        return cls(
            category=doc.get("category", ""),
            original_name=doc.get("originalName", ""),
            content_type=doc.get("contentType"),
        )


@dataclass(frozen=True)
class StoredBlob:
    blob_id: str
    name: str
    size_bytes: int
    metadata: BlobMetadata
    uploaded_at: datetime | None = None


@dataclass(frozen=True)
class BlobDownload:
    """A resolved blob whose bytes have not been read yet."""

    blob: StoredBlob
    chunks: AsyncIterator[bytes] = field(repr=False)


# Persisted metadata field names accepted by find_by_metadata.
METADATA_FIELDS = frozenset({"category", "originalName", "contentType"})


class BlobStore(Protocol):
    async def put_stream(
        self,
        name: str,
        chunks: AsyncIterator[bytes],
        *,
        metadata: BlobMetadata,
    ) -> StoredBlob:
        """Write ``chunks`` under a store-generated id.

        The object only becomes retrievable once every chunk is written. If the
        iterator raises, the partial write is aborted and the exception is
        re-raised unchanged.
        """
        ...

    async def open_stream(self, blob_id: str) -> BlobDownload:
        """Resolve ``blob_id`` before any bytes are read.

        Raises:
            BlobNotFoundError: unknown or malformed identifier.

        """
        ...

    def find_by_metadata(self, key: str, value: str) -> AsyncIterator[StoredBlob]:
        """Lazily yield blobs whose metadata field ``key`` equals ``value``."""
        ...
