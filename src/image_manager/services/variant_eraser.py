"""Deletion of every derivable variant of one image."""

from aws_lambda_powertools import Logger

from image_manager.models.errors import ImageServiceError, StorageDeleteError
from image_manager.repositories.blob_store import BlobStore
from image_manager.services.path_resolver import PathResolver
from image_manager.services.size_config import SizeConfig
from image_manager.utils.constants import ORIGINAL_SIZE_LABEL

logger = Logger(UTC=True)


class VariantEraser:
    """Deletes the 'original' and every currently configured size of a name.

    Sizes are read from the current configuration, so variants of sizes
    removed since the image was written are not found.
    """

    def __init__(self, *, blob_store: BlobStore, paths: PathResolver, sizes: SizeConfig) -> None:
        self.blob_store = blob_store
        self.paths = paths
        self.sizes = sizes

    def paths_for(self, owner_type: str, category: str, name: str) -> list[str]:
        labels = [ORIGINAL_SIZE_LABEL, *self.sizes.sizes_for(owner_type, category)]
        return [self.paths.resolve_path(owner_type, category, label, name) for label in labels]

    def erase(self, owner_type: str, category: str, name: str) -> list[str]:
        """Delete all variants of `name`; absent files count as deleted.

        Every path is attempted even after a failure.

        Returns:
            Paths that existed and were deleted

        Raises:
            ConfigurationError: If the owner type / category is not configured
            StorageDeleteError: If any existing path could not be deleted;
                                `details["failed"]` lists those paths
        """
        deleted: list[str] = []
        failed: list[str] = []

        for path in self.paths_for(owner_type, category, name):
            try:
                if not self.blob_store.exists(path):
                    logger.debug("Variant already absent", extra={"path": path})
                    continue
                self.blob_store.delete(path)
                deleted.append(path)

            except ImageServiceError as exc:
                logger.error(
                    "Variant delete failed",
                    extra={"path": path, "error_code": exc.error_code},
                )
                failed.append(path)

            except Exception:
                logger.exception("Unexpected error deleting variant", extra={"path": path})
                failed.append(path)

        if failed:
            raise StorageDeleteError(
                message="Unable to delete image files",
                details={"name": name, "failed": failed, "deleted": deleted},
            )

        logger.info("Variants erased", extra={"name": name, "count": len(deleted)})
        return deleted
