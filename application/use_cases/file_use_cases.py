from collections.abc import AsyncIterator

import structlog
from returns.result import Failure, Result, Success

from application.dtos.errors import AppError
from application.dtos.file_dtos import FileListItem, UploadFileRequest, UploadFileResponse
from application.ports.blob_store import BlobDownload, BlobMetadata, BlobStore
from domain.exceptions import BlobNotFoundError, PayloadTooLargeError
from domain.value_objects.category import Category
from domain.value_objects.storage_name import StorageName

logger = structlog.get_logger()

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "Schematics",
    "BoardViews",
    "SPI Bios",
    "T2 Bios",
    "Usb -C Bios",
    "Impedance DV / G.R Value",
    "Case Study",
    "Digital Oscilloscope",
    "Images",
    "Videos",
)


def build_file_url(base_url: str, blob_id: str) -> str:
    return f"{base_url.rstrip('/')}/file/{blob_id}"


async def limit_stream(chunks: AsyncIterator[bytes], max_bytes: int) -> AsyncIterator[bytes]:
    """Relay ``chunks`` and raise PayloadTooLargeError once more than ``max_bytes`` pass."""
    total = 0
    async for chunk in chunks:
        total += len(chunk)
        if total > max_bytes:
            raise PayloadTooLargeError(max_bytes)
        yield chunk


class UploadFileUseCase:
    """Stream an upload into the blob store.

    The declared size is checked before the store is touched; the byte counter
    wrapped around the stream catches payloads whose size was not declared, in
    which case the store aborts the partial object.
    """

    def __init__(self, blob_store: BlobStore, base_url: str, max_upload_bytes: int) -> None:
        self.blob_store = blob_store
        self.base_url = base_url
        self.max_upload_bytes = max_upload_bytes

    async def execute(
        self,
        stream: AsyncIterator[bytes] | None,
        cmd: UploadFileRequest,
    ) -> Result[UploadFileResponse, AppError]:
        """Execute the upload.

        Args:
            stream: Async iterator over the payload bytes, None if no file was sent
            cmd: Upload request carrying filename, category and declared size

        Returns:
            Result containing the upload response or an error

        """
        if stream is None or not cmd.filename:
            return Failure(AppError("validation", "No file uploaded"))

        if cmd.size_bytes is not None and cmd.size_bytes > self.max_upload_bytes:
            logger.warning(
                "upload_rejected_too_large",
                filename=cmd.filename,
                size_bytes=cmd.size_bytes,
                limit_bytes=self.max_upload_bytes,
            )
            return Failure(
                AppError("payload_too_large", str(PayloadTooLargeError(self.max_upload_bytes))),
            )

        category = Category.from_raw(cmd.category)
        storage_name = StorageName.generate(cmd.filename)
        metadata = BlobMetadata(
            category=category.name,
            original_name=cmd.filename,
            content_type=cmd.content_type,
        )

        try:
            stored = await self.blob_store.put_stream(
                storage_name.value,
                limit_stream(stream, self.max_upload_bytes),
                metadata=metadata,
            )
        except PayloadTooLargeError as e:
            logger.warning("upload_aborted_too_large", filename=cmd.filename, error=str(e))
            return Failure(AppError("payload_too_large", str(e)))
        except Exception:
            logger.exception("upload_failed", filename=cmd.filename, storage_name=storage_name.value)
            return Failure(AppError("storage_error", "Failed to save file"))

        logger.info(
            "file_uploaded",
            blob_id=stored.blob_id,
            storage_name=stored.name,
            category=category.name,
            size_bytes=stored.size_bytes,
        )
        return Success(
            UploadFileResponse(
                id=stored.blob_id,
                name=cmd.filename,
                category=category.name,
                url=build_file_url(self.base_url, stored.blob_id),
            ),
        )


class DownloadFileUseCase:
    """Resolve a file id to a lazily read byte stream."""

    def __init__(self, blob_store: BlobStore) -> None:
        self.blob_store = blob_store

    async def execute(self, file_id: str) -> Result[BlobDownload, AppError]:
        try:
            download = await self.blob_store.open_stream(file_id)
        except BlobNotFoundError:
            logger.info("file_not_found", file_id=file_id)
            return Failure(AppError("not_found", "File not found"))
        except Exception:
            logger.exception("file_open_failed", file_id=file_id)
            return Failure(AppError("storage_error", "Server error"))
        return Success(download)


class ListCategoriesUseCase:
    """Return the fixed, ordered catalogue of category names."""

    def __init__(self, categories: tuple[str, ...] | list[str] = DEFAULT_CATEGORIES) -> None:
        self.categories = list(categories)

    def execute(self) -> list[str]:
        return list(self.categories)


class ListCategoryFilesUseCase:
    """List the files stored under a category.

    The requested name is sanitized the same way uploads are, so listing by a
    catalogue name finds files uploaded under it.
    """

    def __init__(self, blob_store: BlobStore, base_url: str) -> None:
        self.blob_store = blob_store
        self.base_url = base_url

    async def execute(self, category: str) -> Result[list[FileListItem], AppError]:
        stored_category = Category.from_raw(category).name
        try:
            items = [
                FileListItem(
                    id=blob.blob_id,
                    name=blob.metadata.original_name,
                    url=build_file_url(self.base_url, blob.blob_id),
                )
                async for blob in self.blob_store.find_by_metadata("category", stored_category)
            ]
        except Exception:
            logger.exception("list_files_failed", category=category)
            return Failure(AppError("storage_error", "Failed to fetch files"))
        return Success(items)
