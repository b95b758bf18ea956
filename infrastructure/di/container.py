from __future__ import annotations

from datetime import timedelta

from lagom import Container
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorGridFSBucket

from application.ports.approval_registry import ApprovalRegistry
from application.ports.blob_store import BlobStore
from application.ports.notification_sender import NotificationSender
from application.use_cases.approval_use_cases import (
    CheckApprovalUseCase,
    RecordApprovalUseCase,
    RequestAccessUseCase,
)
from application.use_cases.file_use_cases import (
    DownloadFileUseCase,
    ListCategoriesUseCase,
    ListCategoryFilesUseCase,
    UploadFileUseCase,
)
from infrastructure.approvals.in_memory_approval_registry import InMemoryApprovalRegistry
from infrastructure.blob_stores.fsspec_blob_store import FsspecBlobStore
from infrastructure.blob_stores.gridfs_blob_store import GridFsBlobStore
from infrastructure.config import Settings, settings
from infrastructure.notifications.console_notification_sender import ConsoleNotificationSender
from infrastructure.notifications.smtp_notification_sender import SmtpNotificationSender


def _create_blob_store(config: Settings) -> BlobStore:
    if config.blob_backend == "fsspec":
        return FsspecBlobStore(
            base_url=config.blob_base_url,
            storage_options=config.blob_storage_options,
            chunk_size=config.blob_chunk_size,
        )

    client = AsyncIOMotorClient(config.mongo_uri)
    bucket = AsyncIOMotorGridFSBucket(client[config.mongo_db], bucket_name=config.gridfs_bucket)
    return GridFsBlobStore(bucket, chunk_size=config.blob_chunk_size)


def _create_notification_sender(config: Settings) -> NotificationSender:
    if config.notification_backend == "console":
        return ConsoleNotificationSender()
    return SmtpNotificationSender(
        host=config.smtp_host,
        port=config.smtp_port,
        username=config.smtp_username,
        password=config.smtp_password,
        sender=config.smtp_sender,
        use_ssl=config.smtp_use_ssl,
        timeout=config.smtp_timeout_seconds,
    )


def create_container(config: Settings = settings) -> Container:
    container = Container()

    # Singletons: the blob store holds the Mongo client, the registry holds
    # every pending approval for the life of the process.
    container[BlobStore] = _create_blob_store(config)
    container[NotificationSender] = _create_notification_sender(config)
    ttl = timedelta(seconds=config.approval_ttl_seconds) if config.approval_ttl_seconds else None
    container[ApprovalRegistry] = InMemoryApprovalRegistry(ttl=ttl)

    # File Use Cases
    container[UploadFileUseCase] = lambda c: UploadFileUseCase(
        blob_store=c[BlobStore],
        base_url=config.base_url,
        max_upload_bytes=config.max_upload_bytes,
    )
    container[DownloadFileUseCase] = lambda c: DownloadFileUseCase(blob_store=c[BlobStore])
    container[ListCategoryFilesUseCase] = lambda c: ListCategoryFilesUseCase(
        blob_store=c[BlobStore],
        base_url=config.base_url,
    )
    container[ListCategoriesUseCase] = lambda _: ListCategoriesUseCase(config.categories)

    # Approval Use Cases
    container[RequestAccessUseCase] = lambda c: RequestAccessUseCase(
        approval_registry=c[ApprovalRegistry],
        notification_sender=c[NotificationSender],
        access_secret=config.access_secret,
        operator_address=config.operator_address,
        base_url=config.base_url,
    )
    container[RecordApprovalUseCase] = lambda c: RecordApprovalUseCase(
        approval_registry=c[ApprovalRegistry],
    )
    container[CheckApprovalUseCase] = lambda c: CheckApprovalUseCase(
        approval_registry=c[ApprovalRegistry],
    )

    return container
