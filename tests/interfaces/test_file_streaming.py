"""Tests for relaying stored bytes into a streaming response."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from application.ports.blob_store import BlobDownload, BlobMetadata, StoredBlob
from interfaces.api.routes.file_routes import _relay


def _download(chunks: AsyncIterator[bytes]) -> BlobDownload:
    blob = StoredBlob(
        blob_id="0" * 32,
        name="1-2-abcd-scope.bin",
        size_bytes=2,
        metadata=BlobMetadata(category="Images", original_name="scope.bin"),
    )
    return BlobDownload(blob=blob, chunks=chunks)


@pytest.mark.asyncio
async def test_abandoned_response_closes_store_stream() -> None:
    events: list[str] = []

    async def chunks() -> AsyncIterator[bytes]:
        try:
            yield b"a"
            yield b"b"
        finally:
            events.append("closed")

    relay = _relay(_download(chunks()))
    assert await anext(relay) == b"a"

    # What Starlette does when the client goes away mid-download
    await relay.aclose()

    assert events == ["closed"]


@pytest.mark.asyncio
async def test_store_error_mid_stream_propagates() -> None:
    async def chunks() -> AsyncIterator[bytes]:
        yield b"a"
        msg = "chunk missing"
        raise OSError(msg)

    relay = _relay(_download(chunks()))

    assert await anext(relay) == b"a"
    with pytest.raises(OSError, match="chunk missing"):
        await anext(relay)
