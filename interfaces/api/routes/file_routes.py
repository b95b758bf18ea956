from collections.abc import AsyncIterator, Container
from contextlib import aclosing
from typing import Annotated
from urllib.parse import quote

import structlog
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import StreamingResponse

from application.dtos.file_dtos import FileListItem, UploadFileRequest, UploadFileResponse
from application.ports.blob_store import BlobDownload
from application.use_cases.file_use_cases import (
    DownloadFileUseCase,
    ListCategoriesUseCase,
    ListCategoryFilesUseCase,
    UploadFileUseCase,
)
from interfaces.api.middleware import handle_use_case_errors
from interfaces.dependencies import get_container

logger = structlog.get_logger()

router = APIRouter(tags=["files"])

UPLOAD_READ_SIZE = 64 * 1024


async def _iter_upload(file: UploadFile) -> AsyncIterator[bytes]:
    while True:
        chunk = await file.read(UPLOAD_READ_SIZE)
        if not chunk:
            return
        yield chunk


async def _relay(download: BlobDownload) -> AsyncIterator[bytes]:
    # Headers are already sent once the first chunk goes out; on error the
    # connection is dropped instead of switching to an error status.
    try:
        async with aclosing(download.chunks) as chunks:
            async for chunk in chunks:
                yield chunk
    except Exception:
        logger.exception("file_stream_interrupted", file_id=download.blob.blob_id)
        raise


def _streaming_response(download: BlobDownload) -> StreamingResponse:
    blob = download.blob
    filename = blob.metadata.original_name or blob.name
    return StreamingResponse(
        _relay(download),
        media_type=blob.metadata.content_type or "application/octet-stream",
        headers={
            "Content-Length": str(blob.size_bytes),
            "Content-Disposition": f"inline; filename*=UTF-8''{quote(filename)}",
        },
    )


@router.post("/upload", status_code=status.HTTP_200_OK)
@handle_use_case_errors
async def upload_file(
    container: Annotated[Container, Depends(get_container)],
    file: Annotated[UploadFile | None, File()] = None,
    category: Annotated[str | None, Form()] = None,
) -> UploadFileResponse:
    """Stream an uploaded file into the blob store.

    Returns:
        200 OK: file stored, body carries its retrieval URL
        400 Bad Request: no file in the request
        413 Payload Too Large: file exceeds the configured limit
        500 Internal Server Error: the store failed

    """
    use_case = container[UploadFileUseCase]
    logger.info(
        "upload_received",
        filename=file.filename if file else None,
        category=category,
    )
    if file is None:
        return await use_case.execute(stream=None, cmd=UploadFileRequest(category=category))

    return await use_case.execute(
        stream=_iter_upload(file),
        cmd=UploadFileRequest(
            filename=file.filename,
            category=category,
            content_type=file.content_type,
            size_bytes=file.size,
        ),
    )


@router.get("/file/{file_id}")
@handle_use_case_errors
async def download_file(
    file_id: str,
    container: Annotated[Container, Depends(get_container)],
) -> StreamingResponse:
    """Stream a stored file back as it was uploaded."""
    use_case = container[DownloadFileUseCase]
    result = await use_case.execute(file_id)
    return result.map(_streaming_response)


@router.get("/categories", status_code=status.HTTP_200_OK)
async def list_categories(
    container: Annotated[Container, Depends(get_container)],
) -> list[str]:
    """Return the fixed, ordered list of category names."""
    return container[ListCategoriesUseCase].execute()


@router.get("/files/{category:path}", status_code=status.HTTP_200_OK)
@handle_use_case_errors
async def list_category_files(
    category: str,
    container: Annotated[Container, Depends(get_container)],
) -> list[FileListItem]:
    """List files stored under a category."""
    use_case = container[ListCategoryFilesUseCase]
    return await use_case.execute(category)
