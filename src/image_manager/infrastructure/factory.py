"""Explicit wiring of services from configuration."""

from aws_lambda_powertools import Logger

from image_manager.infrastructure.adapters.s3_adapter import S3Adapter
from image_manager.infrastructure.aws.s3_blob_store import S3BlobStore
from image_manager.infrastructure.local.local_blob_store import LocalBlobStore
from image_manager.infrastructure.pillow.pillow_codec import PillowImageCodec
from image_manager.models.config import ImageManagerConfig
from image_manager.models.errors import ConfigurationError
from image_manager.repositories.blob_store import BlobStore
from image_manager.repositories.image_codec import ImageCodec
from image_manager.repositories.metadata_store import MetadataStore
from image_manager.services.owner_collection import OwnerCollectionService
from image_manager.services.path_resolver import PathResolver
from image_manager.services.record_manager import ImageRecordManager
from image_manager.services.size_config import SizeConfig
from image_manager.utils.constants import DEFAULT_PAGE_SIZE, ERROR_CODE_UNKNOWN_DISK

logger = Logger(UTC=True)


def build_blob_store(config: ImageManagerConfig, disk: str | None = None) -> BlobStore:
    """Create the blob store for a configured disk (default: `storage_disk`).

    Raises:
        ConfigurationError: If the disk is not configured
    """
    disk_name = disk or config.storage_disk
    disk_config = config.disks.get(disk_name)

    if disk_config is None:
        raise ConfigurationError(
            message=f"Unknown storage disk '{disk_name}'",
            error_code=ERROR_CODE_UNKNOWN_DISK,
            details={"disk": disk_name},
        )

    logger.debug("Building blob store", extra={"disk": disk_name, "driver": disk_config.driver})

    if disk_config.driver == "s3":
        adapter = S3Adapter(
            bucket=disk_config.bucket,
            endpoint_url=disk_config.endpoint_url,
            region=disk_config.region,
        )
        return S3BlobStore(adapter, base_url=disk_config.url, acl_enabled=disk_config.acl_enabled)

    return LocalBlobStore(disk_config.root, base_url=disk_config.url)


def build_record_manager(
    config: ImageManagerConfig,
    *,
    metadata: MetadataStore,
    blob_store: BlobStore | None = None,
    codec: ImageCodec | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> ImageRecordManager:
    """Create an ImageRecordManager; unset collaborators come from `config`."""
    return ImageRecordManager(
        codec=codec or PillowImageCodec(),
        blob_store=blob_store or build_blob_store(config),
        metadata=metadata,
        sizes=SizeConfig(config),
        paths=PathResolver(config.base_path),
        page_size=page_size,
    )


def build_owner_collection(
    config: ImageManagerConfig,
    *,
    metadata: MetadataStore,
    blob_store: BlobStore | None = None,
    codec: ImageCodec | None = None,
) -> OwnerCollectionService:
    return OwnerCollectionService(
        build_record_manager(config, metadata=metadata, blob_store=blob_store, codec=codec)
    )
