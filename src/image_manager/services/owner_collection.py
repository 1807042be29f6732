"""Owner-level image collection helpers.

Everything here is composed from ImageRecordManager calls. Store
operations propagate errors; delete operations report failure as False
and log the cause.
"""

from collections.abc import Iterable, Sequence
from typing import Any

from aws_lambda_powertools import Logger

from image_manager.models.errors import ImageServiceError, NotFoundError, ValidationError
from image_manager.models.image import ImageRecord, OwnerLike, as_owner_ref
from image_manager.services.record_manager import ImageRecordManager
from image_manager.utils.constants import (
    DEFAULT_CATEGORY,
    ERROR_CODE_INVALID_UPLOAD,
    ORIGINAL_SIZE_LABEL,
)
from image_manager.utils.uploads import read_upload

logger = Logger(UTC=True)


class OwnerCollectionService:
    """Batch and convenience operations over one owner's images."""

    def __init__(self, manager: ImageRecordManager) -> None:
        self.manager = manager

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    def store_image(
        self,
        owner: OwnerLike,
        upload: Any,
        category: str = DEFAULT_CATEGORY,
    ) -> ImageRecord:
        """Store a single upload.

        Raises:
            ValidationError: If the upload is not readable image data
        """
        return self.manager.create(self._require_upload(upload), owner, category)

    def store_many(
        self,
        owner: OwnerLike,
        uploads: Iterable[Any],
        category: str = DEFAULT_CATEGORY,
    ) -> list[ImageRecord]:
        """Create one image per well-formed upload, skipping anything else.

        Returns:
            Created records, in the order of the valid uploads
        """
        records: list[ImageRecord] = []
        for index, upload in enumerate(uploads):
            data = read_upload(upload)
            if data is None:
                logger.debug("Skipping invalid upload", extra={"index": index, "category": category})
                continue
            records.append(self.manager.create(data, owner, category))
        return records

    def replace(
        self,
        owner: OwnerLike,
        uploads: Iterable[Any],
        category: str = DEFAULT_CATEGORY,
    ) -> list[ImageRecord]:
        """Delete every image of the category, then store the uploads.

        Not atomic: if storing fails the category is left without images.
        """
        if not self.manager.delete_by_category(owner, category):
            logger.warning(
                "Existing images could not all be deleted before replace",
                extra={"owner_key": as_owner_ref(owner).key, "category": category},
            )
        return self.store_many(owner, uploads, category)

    def sync(
        self,
        owner: OwnerLike,
        uploads: Sequence[Any],
        category: str = DEFAULT_CATEGORY,
    ) -> list[ImageRecord]:
        """Pair uploads with existing records by position.

        Position i updates the i-th existing record in place, or creates a
        new image when there is none; existing records past the number of
        uploads are deleted. Invalid uploads are skipped but still occupy
        their position.

        Returns:
            Updated and created records, in upload order
        """
        owner_ref = as_owner_ref(owner)
        existing = self.manager.list_records(owner_ref, [category])
        records: list[ImageRecord] = []

        for index, upload in enumerate(uploads):
            data = read_upload(upload)
            if data is None:
                logger.debug("Skipping invalid upload", extra={"index": index, "category": category})
                continue

            if index < len(existing):
                records.append(self.manager.update_in_place(data, existing[index]))
            else:
                records.append(self.manager.create(data, owner_ref, category))

        for record in existing[len(uploads):]:
            self.manager.delete(record)

        logger.info(
            "Images synced",
            extra={
                "owner_key": owner_ref.key,
                "category": category,
                "stored": len(records),
                "removed": max(len(existing) - len(uploads), 0),
            },
        )
        return records

    def store_or_update_image(
        self,
        owner: OwnerLike,
        upload: Any,
        category: str = DEFAULT_CATEGORY,
    ) -> ImageRecord:
        """Replace the first image of the category, or create one if there is none."""
        data = self._require_upload(upload)
        existing = self.manager.first_record(owner, category)

        if existing is not None:
            return self.manager.update_in_place(data, existing)
        return self.manager.create(data, owner, category)

    def update_image_by_id(self, owner: OwnerLike, upload: Any, image_id: str) -> ImageRecord | None:
        """Update one of the owner's images; None if the id is not theirs."""
        owner_ref = as_owner_ref(owner)
        record = self.manager.get_record(image_id)

        if record is None or record.owner.key != owner_ref.key:
            logger.debug("Image not found for owner", extra={"image_id": image_id, "owner_key": owner_ref.key})
            return None

        return self.manager.update_in_place(self._require_upload(upload), record)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_images(self, owner: OwnerLike, category: str = DEFAULT_CATEGORY) -> list[ImageRecord]:
        return self.manager.list_records(owner, [category])

    def get_images_of_categories(self, owner: OwnerLike, categories: Sequence[str]) -> list[ImageRecord]:
        return self.manager.list_records(owner, list(categories))

    def get_image(self, owner: OwnerLike, category: str = DEFAULT_CATEGORY) -> ImageRecord | None:
        return self.manager.first_record(owner, category)

    def get_image_urls(self, owner: OwnerLike, category: str = DEFAULT_CATEGORY) -> dict[str, str]:
        record = self.get_image(owner, category)
        return self.manager.get_urls(record) if record else {}

    def get_image_url(
        self,
        owner: OwnerLike,
        size: str = ORIGINAL_SIZE_LABEL,
        category: str = DEFAULT_CATEGORY,
    ) -> str | None:
        record = self.get_image(owner, category)
        return self.manager.get_url(record, size) if record else None

    def get_all_image_urls(self, owner: OwnerLike, category: str = DEFAULT_CATEGORY) -> list[dict[str, str]]:
        return [self.manager.get_urls(record) for record in self.get_images(owner, category)]

    def get_all_image_urls_for_size(
        self,
        owner: OwnerLike,
        size: str,
        category: str = DEFAULT_CATEGORY,
    ) -> list[str]:
        urls = (self.manager.get_url(record, size) for record in self.get_images(owner, category))
        return [url for url in urls if url is not None]

    # ------------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------------

    def delete_image(self, owner: OwnerLike, category: str = DEFAULT_CATEGORY) -> bool:
        """Delete the first image of the category; False if there is none."""
        try:
            record = self.get_image(owner, category)
            if record is None:
                return False
            return self.manager.delete(record)

        except ImageServiceError as exc:
            logger.error(
                "Image delete failed",
                extra={"owner_key": as_owner_ref(owner).key, "category": category, "error_code": exc.error_code},
            )
            return False

        except Exception:
            logger.exception("Unexpected error deleting image")
            return False

    def delete_images_of_category(self, owner: OwnerLike, category: str = DEFAULT_CATEGORY) -> bool:
        return self.manager.delete_by_category(owner, category)

    def delete_images(self, owner: OwnerLike, categories: Sequence[str]) -> bool:
        return self.manager.delete_by_categories(owner, categories)

    def delete_images_by_name(
        self,
        owner: OwnerLike,
        categories: Sequence[str],
        names: Sequence[str],
    ) -> bool:
        try:
            return self.manager.delete_by_name(owner, categories, names)
        except NotFoundError as exc:
            logger.warning(exc.message, extra={"owner_key": as_owner_ref(owner).key, "names": list(names)})
            return False

    def delete_all_images(self, owner: OwnerLike) -> bool:
        return self.manager.delete_all(owner)

    def owner_deleting(self, owner: OwnerLike, *, soft_delete: bool = False) -> bool:
        """Deletion hook for owners: cascade on hard delete, keep images on soft delete."""
        if soft_delete:
            logger.debug("Soft delete, keeping images", extra={"owner_key": as_owner_ref(owner).key})
            return True
        return self.delete_all_images(owner)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_upload(upload: Any) -> bytes:
        data = read_upload(upload)
        if data is None:
            raise ValidationError(
                message="Invalid upload",
                error_code=ERROR_CODE_INVALID_UPLOAD,
                details={"type": type(upload).__name__},
            )
        return data
