"""Lifecycle orchestration of image records and their variants.

This module coordinates variant writes and deletes with metadata
transactions, and defines how each operation behaves on partial failure.
"""

import uuid
from collections.abc import Iterator, Sequence

from aws_lambda_powertools import Logger

from image_manager.models.config import SizeDefinition
from image_manager.models.errors import (
    ConfigurationError,
    DuplicateImageError,
    ImageServiceError,
    NotFoundError,
)
from image_manager.models.image import ImageRecord, OwnerLike, OwnerRef, RecordPage, as_owner_ref
from image_manager.repositories.blob_store import BlobStore
from image_manager.repositories.image_codec import ImageCodec
from image_manager.repositories.metadata_store import MetadataStore
from image_manager.services.path_resolver import PathResolver
from image_manager.services.size_config import SizeConfig
from image_manager.services.variant_eraser import VariantEraser
from image_manager.services.variant_writer import VariantWriter
from image_manager.utils.constants import (
    DEFAULT_CATEGORY,
    DEFAULT_PAGE_SIZE,
    ERROR_CODE_IMAGE_NOT_FOUND,
    MAX_NAME_ATTEMPTS,
    MAX_PAGE_SIZE,
    MIN_PAGE_SIZE,
    ORIGINAL_SIZE_LABEL,
)

logger = Logger(UTC=True)


class ImageRecordManager:
    """Application service for creating, replacing and deleting images.

    This service orchestrates:
    - Unique name generation
    - Variant writes and deletes through VariantWriter / VariantEraser
    - Metadata row changes inside MetadataStore transactions
    - URL and path lookups for stored records
    """

    def __init__(
        self,
        *,
        codec: ImageCodec,
        blob_store: BlobStore,
        metadata: MetadataStore,
        sizes: SizeConfig,
        paths: PathResolver,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if not MIN_PAGE_SIZE <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between {MIN_PAGE_SIZE} and {MAX_PAGE_SIZE}")

        self.blob_store = blob_store
        self.metadata = metadata
        self.sizes = sizes
        self.paths = paths
        self.page_size = page_size
        self.writer = VariantWriter(codec=codec, blob_store=blob_store, paths=paths, sizes=sizes)
        self.eraser = VariantEraser(blob_store=blob_store, paths=paths, sizes=sizes)

    # ------------------------------------------------------------------
    # Single-record operations
    # ------------------------------------------------------------------

    def create(
        self,
        source: bytes,
        owner: OwnerLike,
        category: str = DEFAULT_CATEGORY,
    ) -> ImageRecord:
        """Store a new image and its metadata row.

        The create flow is:
        1. Generate a name that is not in use
        2. Write all variants
        3. Create the metadata row
        4. Remove written variants if step 2 or 3 fails

        Args:
            source: Raw uploaded image bytes
            owner: Owner reference or ImageOwner
            category: Image category

        Returns:
            The committed ImageRecord

        Raises:
            ConfigurationError: If the owner type / category is not configured
            ValidationError: If the source cannot be decoded or a variant encoded
            DuplicateImageError: If no unused name could be generated
            StorageWriteError: If a variant write fails (no row is created)
            MetadataOperationFailedError: If the row cannot be committed
        """
        owner_ref = as_owner_ref(owner)
        owner_type = owner_ref.owner_type

        logger.debug("Creating image", extra={"owner_key": owner_ref.key, "category": category})

        name = self.generate_name(source, owner_type, category)
        self._write_variants(source, owner_type, category, name)

        try:
            with self.metadata.transaction() as txn:
                record = txn.create_record(owner=owner_ref, category=category, name=name)

        except Exception:
            logger.error(
                "Image record creation failed, removing written variants",
                extra={"owner_key": owner_ref.key, "name": name},
            )
            self._discard_variants(owner_type, category, name)
            raise

        logger.info(
            "Image created",
            extra={"image_id": record.image_id, "name": name, "owner_key": owner_ref.key},
        )
        return record

    def update_in_place(self, source: bytes, record: ImageRecord) -> ImageRecord:
        """Replace the content of an existing image, keeping its identity.

        New variants are written under a fresh name before the row is
        switched to it; the old variants are erased only afterwards. A
        failure before the switch leaves the record and its old files
        untouched.

        Args:
            source: Raw uploaded image bytes
            record: Existing record to update

        Returns:
            The record with its new name; id, category and owner are unchanged

        Raises:
            ValidationError: If the source cannot be decoded or a variant encoded
            StorageWriteError: If a variant write fails
            NotFoundError: If the record no longer exists
            MetadataOperationFailedError: If the row cannot be updated
        """
        owner_type, category = record.owner_type, record.category

        logger.debug("Updating image", extra={"image_id": record.image_id, "name": record.name})

        new_name = self.generate_name(source, owner_type, category)
        self._write_variants(source, owner_type, category, new_name)

        try:
            with self.metadata.transaction() as txn:
                updated = txn.update_name(record=record, name=new_name)

        except Exception:
            logger.error(
                "Image record update failed, removing new variants",
                extra={"image_id": record.image_id, "name": new_name},
            )
            self._discard_variants(owner_type, category, new_name)
            raise

        try:
            self.eraser.erase(owner_type, category, record.name)
        except ImageServiceError as exc:
            logger.error(
                "Previous variants could not be erased and are orphaned",
                extra={
                    "image_id": record.image_id,
                    "name": record.name,
                    "error_code": exc.error_code,
                    "details": exc.details,
                },
            )

        logger.info(
            "Image updated",
            extra={"image_id": record.image_id, "old_name": record.name, "name": new_name},
        )
        return updated

    def delete(self, record: ImageRecord) -> bool:
        """Erase all variants of a record, then delete its row.

        Both steps run inside one metadata transaction, so a failed erase
        leaves the row in place and the delete can be retried.

        Raises:
            StorageDeleteError: If an existing variant could not be deleted
            NotFoundError: If the row no longer exists
            MetadataOperationFailedError: If the row deletion fails
        """
        logger.debug("Deleting image", extra={"image_id": record.image_id, "name": record.name})

        with self.metadata.transaction() as txn:
            self.eraser.erase(record.owner_type, record.category, record.name)
            txn.delete_record(record=record)

        logger.info("Image deleted", extra={"image_id": record.image_id})
        return True

    # ------------------------------------------------------------------
    # Batch deletes
    # ------------------------------------------------------------------

    def delete_by_category(self, owner: OwnerLike, category: str = DEFAULT_CATEGORY) -> bool:
        return self.delete_by_categories(owner, [category])

    def delete_by_categories(self, owner: OwnerLike, categories: Sequence[str]) -> bool:
        return self._delete_batch(as_owner_ref(owner), list(categories))

    def delete_all(self, owner: OwnerLike) -> bool:
        return self._delete_batch(as_owner_ref(owner), None)

    def delete_by_name(
        self,
        owner: OwnerLike,
        categories: Sequence[str] | None,
        names: Sequence[str],
    ) -> bool:
        """Delete the owner's images whose name is in `names`.

        Records are matched page by page; within a page, names are matched
        before anything is deleted.

        Returns:
            True if every matching record was deleted, False on failure

        Raises:
            NotFoundError: If a fetched page contains none of the names
        """
        owner_ref = as_owner_ref(owner)
        wanted = set(names)
        category_list = list(categories) if categories is not None else None

        try:
            for page in self._iter_pages(owner_ref, category_list):
                matches = [record for record in page.records if record.name in wanted]

                if page.records and not matches:
                    logger.warning(
                        "No images match the given names",
                        extra={"owner_key": owner_ref.key, "names": sorted(wanted)},
                    )
                    raise NotFoundError(
                        message="There are no images with any of these names",
                        error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                        details={"owner_key": owner_ref.key, "names": sorted(wanted)},
                    )

                for record in matches:
                    self.delete(record)

        except NotFoundError:
            raise

        except ImageServiceError as exc:
            logger.error(
                "Batch delete by name failed",
                extra={"owner_key": owner_ref.key, "error_code": exc.error_code},
            )
            return False

        except Exception:
            logger.exception("Unexpected error deleting images by name")
            return False

        return True

    def _delete_batch(self, owner: OwnerRef, categories: list[str] | None) -> bool:
        """Delete every matching record page by page.

        Pages already processed stay deleted when a later one fails.
        """
        logger.debug(
            "Deleting images",
            extra={"owner_key": owner.key, "categories": categories},
        )

        deleted = 0
        try:
            for page in self._iter_pages(owner, categories):
                for record in page.records:
                    self.delete(record)
                    deleted += 1

        except ImageServiceError as exc:
            logger.error(
                "Batch delete failed",
                extra={
                    "owner_key": owner.key,
                    "categories": categories,
                    "deleted": deleted,
                    "error_code": exc.error_code,
                },
            )
            return False

        except Exception:
            logger.exception(
                "Unexpected error in batch delete",
                extra={"owner_key": owner.key, "deleted": deleted},
            )
            return False

        logger.info("Images deleted", extra={"owner_key": owner.key, "deleted": deleted})
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_record(self, image_id: str) -> ImageRecord | None:
        return self.metadata.fetch_record(image_id=image_id)

    def iter_records(
        self,
        owner: OwnerLike,
        categories: Sequence[str] | None = None,
    ) -> Iterator[ImageRecord]:
        for page in self._iter_pages(as_owner_ref(owner), categories):
            yield from page.records

    def list_records(
        self,
        owner: OwnerLike,
        categories: Sequence[str] | None = None,
    ) -> list[ImageRecord]:
        return list(self.iter_records(owner, categories))

    def first_record(self, owner: OwnerLike, category: str = DEFAULT_CATEGORY) -> ImageRecord | None:
        """Return the oldest record of a category, or None."""
        page = self.metadata.fetch_page(owner=as_owner_ref(owner), categories=[category], limit=1)
        return page.records[0] if page.records else None

    def get_sizes(self, record: ImageRecord) -> dict[str, SizeDefinition]:
        return self.sizes.sizes_for(record.owner_type, record.category)

    def get_path(self, record: ImageRecord, size: str = ORIGINAL_SIZE_LABEL) -> str | None:
        """Storage path of one variant, or None if the size is not configured."""
        if size != ORIGINAL_SIZE_LABEL and size not in self.get_sizes(record):
            return None
        return self.paths.resolve_path(record.owner_type, record.category, size, record.name)

    def get_url(self, record: ImageRecord, size: str = ORIGINAL_SIZE_LABEL) -> str | None:
        """URL of one variant, or None if the size is not configured."""
        path = self.get_path(record, size)
        return self.blob_store.url(path) if path is not None else None

    def get_urls(self, record: ImageRecord) -> dict[str, str]:
        """Return `{"name", "original", <size label>...}` for a record."""
        urls = {
            "name": record.name,
            ORIGINAL_SIZE_LABEL: self.blob_store.url(
                self.paths.resolve_path(
                    record.owner_type, record.category, ORIGINAL_SIZE_LABEL, record.name
                )
            ),
        }
        for label in self.get_sizes(record):
            urls[label] = self.blob_store.url(
                self.paths.resolve_path(record.owner_type, record.category, label, record.name)
            )
        return urls

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def generate_name(self, source: bytes, owner_type: str, category: str) -> str:
        """Draw a random `<hex>.<ext>` name whose original path is unused.

        Raises:
            ValidationError: If the extension cannot be determined
            DuplicateImageError: If every attempt hit an existing file
        """
        extension = self.writer.extension_for(source)

        for attempt in range(1, MAX_NAME_ATTEMPTS + 1):
            name = f"{uuid.uuid4().hex}.{extension}"
            path = self.paths.resolve_path(owner_type, category, ORIGINAL_SIZE_LABEL, name)
            if not self.blob_store.exists(path):
                return name

            logger.warning("Generated image name already in use", extra={"path": path, "attempt": attempt})

        raise DuplicateImageError(
            message="Unable to generate a unique image name",
            details={"owner_type": owner_type, "category": category, "attempts": MAX_NAME_ATTEMPTS},
        )

    def _iter_pages(
        self,
        owner: OwnerRef,
        categories: Sequence[str] | None,
    ) -> Iterator[RecordPage]:
        cursor: str | None = None
        while True:
            page = self.metadata.fetch_page(
                owner=owner,
                categories=categories,
                limit=self.page_size,
                cursor=cursor,
            )
            yield page

            if page.next_cursor is None:
                return
            cursor = page.next_cursor

    def _write_variants(self, source: bytes, owner_type: str, category: str, name: str) -> None:
        try:
            self.writer.write(source, owner_type, category, name)
        except ConfigurationError:
            raise
        except Exception:
            self._discard_variants(owner_type, category, name)
            raise

    def _discard_variants(self, owner_type: str, category: str, name: str) -> None:
        """Best-effort removal of variants written for a failed operation."""
        try:
            removed = self.eraser.erase(owner_type, category, name)
            logger.info("Discarded written variants", extra={"name": name, "paths": removed})
        except Exception:
            logger.exception("Failed to discard written variants", extra={"name": name})
