"""Process-local implementation of MetadataStore."""

import itertools
import threading
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Literal

from aws_lambda_powertools import Logger

from image_manager.models.errors import (
    DuplicateImageError,
    MetadataOperationFailedError,
    NotFoundError,
)
from image_manager.models.image import ImageRecord, OwnerRef, RecordPage
from image_manager.repositories.metadata_store import MetadataStore, MetadataTransaction
from image_manager.utils.constants import ERROR_CODE_METADATA_INVALID_CURSOR
from image_manager.utils.time import utc_now_iso

logger = Logger(UTC=True)

_Operation = tuple[Literal["create", "update", "delete"], ImageRecord]


class InMemoryTransaction(MetadataTransaction):
    """Stages operations until the owning store commits them."""

    def __init__(self, store: "InMemoryMetadataStore") -> None:
        self._store = store
        self.operations: list[_Operation] = []

    def create_record(self, *, owner: OwnerRef, category: str, name: str) -> ImageRecord:
        record = ImageRecord(
            image_id=self._store.generate_id(),
            name=name,
            category=category,
            owner_type=owner.owner_type,
            owner_id=owner.owner_id,
            created_at=utc_now_iso(),
        )
        self.operations.append(("create", record))
        return record

    def update_name(self, *, record: ImageRecord, name: str) -> ImageRecord:
        self._require(record)
        updated = record.model_copy(update={"name": name, "updated_at": utc_now_iso()})
        self.operations.append(("update", updated))
        return updated

    def delete_record(self, *, record: ImageRecord) -> None:
        self._require(record)
        self.operations.append(("delete", record))

    def _require(self, record: ImageRecord) -> None:
        staged = {op_record.image_id: kind for kind, op_record in self.operations}
        if staged.get(record.image_id) == "delete":
            exists = False
        elif staged.get(record.image_id) == "create":
            exists = True
        else:
            exists = self._store.fetch_record(image_id=record.image_id) is not None

        if not exists:
            raise NotFoundError(
                message="Image record not found",
                details={"image_id": record.image_id},
            )


class InMemoryMetadataStore(MetadataStore):
    """Dictionary-backed metadata storage.

    Records are kept in insertion order. Transactions stage their writes and
    apply them under a lock, all or nothing.
    """

    def __init__(self) -> None:
        self._records: dict[str, tuple[int, ImageRecord]] = {}
        self._sequence = itertools.count(1)
        self._lock = threading.Lock()

    @staticmethod
    def generate_id() -> str:
        return f"img_{uuid.uuid4().hex}"

    @contextmanager
    def transaction(self) -> Iterator[InMemoryTransaction]:
        txn = InMemoryTransaction(self)
        try:
            yield txn
        except BaseException:
            logger.debug("Transaction discarded", extra={"operations": len(txn.operations)})
            raise
        self._commit(txn.operations)

    def _commit(self, operations: list[_Operation]) -> None:
        with self._lock:
            staged = dict(self._records)

            for kind, record in operations:
                present = record.image_id in staged

                if kind == "create":
                    if present:
                        raise DuplicateImageError(
                            message="Image record already exists",
                            details={"image_id": record.image_id},
                        )
                    staged[record.image_id] = (next(self._sequence), record)
                    continue

                if not present:
                    raise NotFoundError(
                        message="Image record not found",
                        details={"image_id": record.image_id},
                    )

                if kind == "update":
                    position, _ = staged[record.image_id]
                    staged[record.image_id] = (position, record)
                else:
                    del staged[record.image_id]

            self._records = staged

        logger.debug("Transaction committed", extra={"operations": len(operations)})

    def fetch_record(self, *, image_id: str) -> ImageRecord | None:
        entry = self._records.get(image_id)
        return entry[1].model_copy() if entry else None

    def fetch_page(
        self,
        *,
        owner: OwnerRef,
        categories: Sequence[str] | None = None,
        limit: int,
        cursor: str | None = None,
    ) -> RecordPage:
        after = self._decode_cursor(cursor)
        wanted = set(categories) if categories is not None else None

        with self._lock:
            entries = sorted(self._records.values(), key=lambda entry: entry[0])

        matching = [
            (position, record)
            for position, record in entries
            if position > after
            and record.owner.key == owner.key
            and (wanted is None or record.category in wanted)
        ]

        page = matching[:limit]
        has_more = len(matching) > limit

        return RecordPage(
            records=[record.model_copy() for _, record in page],
            next_cursor=str(page[-1][0]) if has_more and page else None,
        )

    @staticmethod
    def _decode_cursor(cursor: str | None) -> int:
        if cursor is None:
            return 0
        try:
            return int(cursor)
        except ValueError as exc:
            raise MetadataOperationFailedError(
                message="Invalid page cursor",
                error_code=ERROR_CODE_METADATA_INVALID_CURSOR,
                details={"cursor": cursor},
            ) from exc
