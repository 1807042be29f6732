"""Abstract contract for image metadata persistence."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Sequence
from contextlib import AbstractContextManager
from typing import TypeVar

from image_manager.models.image import ImageRecord, OwnerRef, RecordPage

ResultT = TypeVar("ResultT")


class MetadataTransaction(ABC):
    """Unit of work over image records.

    Writes staged on a transaction become visible together when the
    surrounding `MetadataStore.transaction()` block exits normally, and are
    discarded when it exits with an exception.
    """

    @abstractmethod
    def create_record(self, *, owner: OwnerRef, category: str, name: str) -> ImageRecord:
        """Stage creation of a record and return it with its assigned id.

        Raises:
            DuplicateImageError: If the id already exists (at commit time for
                                 stores that check on commit)
        """

    @abstractmethod
    def update_name(self, *, record: ImageRecord, name: str) -> ImageRecord:
        """Stage replacing the name of an existing record.

        Identifier, category and owner are left unchanged.

        Raises:
            NotFoundError: If the record does not exist
        """

    @abstractmethod
    def delete_record(self, *, record: ImageRecord) -> None:
        """Stage deletion of a record.

        Raises:
            NotFoundError: If the record does not exist
        """


class MetadataStore(ABC):
    """Contract for storing and paging image records.

    Implementations could be DynamoDB, PostgreSQL, in-memory, etc.
    Services depend on this interface, not the implementation.
    """

    @abstractmethod
    def transaction(self) -> AbstractContextManager[MetadataTransaction]:
        """Open a unit of work; commit on normal exit, discard on exception.

        Raises:
            MetadataOperationFailedError: If the commit fails
        """

    def run_in_transaction(self, fn: Callable[[MetadataTransaction], ResultT]) -> ResultT:
        """Run `fn` inside a transaction and return its result."""
        with self.transaction() as txn:
            return fn(txn)

    @abstractmethod
    def fetch_record(self, *, image_id: str) -> ImageRecord | None:
        """Fetch a single record by id, or None if it does not exist.

        Raises:
            MetadataOperationFailedError: If the fetch fails
        """

    @abstractmethod
    def fetch_page(
        self,
        *,
        owner: OwnerRef,
        categories: Sequence[str] | None = None,
        limit: int,
        cursor: str | None = None,
    ) -> RecordPage:
        """Fetch one page of an owner's records in creation order.

        Args:
            owner: Owner whose records to list
            categories: Only return records in these categories (None = all)
            limit: Maximum records in the page
            cursor: Cursor returned with the previous page

        Returns:
            RecordPage whose `next_cursor` is None on the last page.
            Cursors are keyset positions, so deleting records already
            returned does not shift later pages.

        Raises:
            MetadataOperationFailedError: If the query fails or the cursor is invalid
        """

    def iter_records(
        self,
        *,
        owner: OwnerRef,
        categories: Sequence[str] | None = None,
        page_size: int,
    ) -> Iterator[ImageRecord]:
        """Iterate over all of an owner's records, one page at a time."""
        cursor: str | None = None
        while True:
            page = self.fetch_page(
                owner=owner,
                categories=categories,
                limit=page_size,
                cursor=cursor,
            )
            yield from page.records

            if page.next_cursor is None:
                return
            cursor = page.next_cursor
