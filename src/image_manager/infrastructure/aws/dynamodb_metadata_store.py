"""DynamoDB-backed implementation of MetadataStore."""

import base64
import binascii
import json
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, Literal

from aws_lambda_powertools import Logger
from boto3.dynamodb.conditions import Attr, Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError
from pydantic import ValidationError as PydanticValidationError

from image_manager.infrastructure.adapters.dynamodb_adapter import (
    DynamoDBAdapter,
    DynamoDBAdapterProtocol,
)
from image_manager.models.errors import (
    DuplicateImageError,
    DynamoDBError,
    MetadataOperationFailedError,
    NotFoundError,
)
from image_manager.models.image import ImageRecord, OwnerRef, RecordPage
from image_manager.repositories.metadata_store import MetadataStore, MetadataTransaction
from image_manager.utils.constants import (
    ERROR_CODE_METADATA_COMMIT_FAILED,
    ERROR_CODE_METADATA_FETCH_FAILED,
    ERROR_CODE_METADATA_INVALID_CURSOR,
    ERROR_CODE_METADATA_LIST_FAILED,
    OWNER_INDEX_NAME,
)
from image_manager.utils.time import utc_now_iso

Item = dict[str, Any]
_Kind = Literal["create", "update", "delete"]

logger = Logger(UTC=True)

_serializer = TypeSerializer()


def _serialize(values: Item) -> Item:
    return {key: _serializer.serialize(value) for key, value in values.items()}


def _to_item(record: ImageRecord) -> Item:
    item: Item = record.model_dump(exclude_none=True)
    item["owner_key"] = record.owner.key
    item["sort_key"] = f"{record.created_at}#{record.image_id}"
    return item


def _cursor_key(item: Item) -> Item:
    return {
        "image_id": item["image_id"],
        "owner_key": item["owner_key"],
        "sort_key": item["sort_key"],
    }


class DynamoDBTransaction(MetadataTransaction):
    """Collects TransactWriteItems entries for a single atomic commit."""

    def __init__(self, table_name: str) -> None:
        self._table_name = table_name
        self.items: list[Item] = []
        self.kinds: list[_Kind] = []

    def create_record(self, *, owner: OwnerRef, category: str, name: str) -> ImageRecord:
        record = ImageRecord(
            image_id=f"img_{uuid.uuid4().hex}",
            name=name,
            category=category,
            owner_type=owner.owner_type,
            owner_id=owner.owner_id,
            created_at=utc_now_iso(),
        )
        self._stage(
            "create",
            {
                "Put": {
                    "TableName": self._table_name,
                    "Item": _serialize(_to_item(record)),
                    "ConditionExpression": "attribute_not_exists(image_id)",
                }
            },
        )
        return record

    def update_name(self, *, record: ImageRecord, name: str) -> ImageRecord:
        updated = record.model_copy(update={"name": name, "updated_at": utc_now_iso()})
        self._stage(
            "update",
            {
                "Update": {
                    "TableName": self._table_name,
                    "Key": _serialize({"image_id": record.image_id}),
                    # "name" is a DynamoDB reserved word
                    "UpdateExpression": "SET #name = :name, updated_at = :updated_at",
                    "ConditionExpression": "attribute_exists(image_id)",
                    "ExpressionAttributeNames": {"#name": "name"},
                    "ExpressionAttributeValues": _serialize(
                        {":name": name, ":updated_at": updated.updated_at}
                    ),
                }
            },
        )
        return updated

    def delete_record(self, *, record: ImageRecord) -> None:
        self._stage(
            "delete",
            {
                "Delete": {
                    "TableName": self._table_name,
                    "Key": _serialize({"image_id": record.image_id}),
                    "ConditionExpression": "attribute_exists(image_id)",
                }
            },
        )

    def _stage(self, kind: _Kind, item: Item) -> None:
        self.kinds.append(kind)
        self.items.append(item)


class DynamoDBMetadataStore(MetadataStore):
    """DynamoDB-backed metadata storage with error handling.

    Table layout:
    - partition key `image_id`
    - GSI `owner-sort-index`: hash `owner_key`, range `sort_key`
      (`{created_at}#{image_id}`), giving per-owner creation order

    All boto3 errors are caught and translated into
    domain-specific errors with stable semantics.
    """

    def __init__(self, adapter: DynamoDBAdapterProtocol | None = None) -> None:
        """Initialize with DynamoDB adapter."""
        self._db: DynamoDBAdapterProtocol = adapter or DynamoDBAdapter()

    @contextmanager
    def transaction(self) -> Iterator[DynamoDBTransaction]:
        txn = DynamoDBTransaction(self._db.table_name)
        yield txn
        self._commit(txn)

    def _commit(self, txn: DynamoDBTransaction) -> None:
        if not txn.items:
            return

        logger.debug("Committing transaction", extra={"operations": txn.kinds})

        try:
            self._db.transact_write(items=txn.items)
            logger.info("Transaction committed", extra={"operations": txn.kinds})

        except ClientError as exc:
            logger.error(
                "DynamoDB transact_write_items failed",
                extra={"operations": txn.kinds},
            )
            self._raise_for_cancellation(exc, txn.kinds)

            raise DynamoDBError(
                message="Unable to save image metadata at this time",
                error_code=ERROR_CODE_METADATA_COMMIT_FAILED,
                details={"operations": txn.kinds},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error committing transaction")
            raise DynamoDBError(
                message="Unable to save image metadata at this time",
                error_code=ERROR_CODE_METADATA_COMMIT_FAILED,
                details={"operations": txn.kinds},
            ) from exc

    @staticmethod
    def _raise_for_cancellation(exc: ClientError, kinds: list[_Kind]) -> None:
        """Translate failed condition checks into duplicate / not-found errors."""
        if exc.response.get("Error", {}).get("Code") != "TransactionCanceledException":
            return

        reasons = exc.response.get("CancellationReasons") or []
        for kind, reason in zip(kinds, reasons):
            if reason.get("Code") != "ConditionalCheckFailed":
                continue

            if kind == "create":
                raise DuplicateImageError(
                    message="Image record already exists",
                ) from exc

            raise NotFoundError(
                message="Image record not found",
            ) from exc

    def fetch_record(self, *, image_id: str) -> ImageRecord | None:
        """Fetch metadata for a single image.

        Raises:
            DynamoDBError: If fetch fails
        """
        logger.debug("Fetching record", extra={"image_id": image_id})

        try:
            response = self._db.get_item(key={"image_id": image_id})
            item = response.get("Item")

            if item is None:
                return None

            return self._to_record(item)

        except ClientError as exc:
            logger.error("DynamoDB get_item failed", extra={"image_id": image_id})
            raise DynamoDBError(
                message="Unable to retrieve image metadata",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"image_id": image_id},
            ) from exc

        except DynamoDBError:
            raise

        except Exception as exc:
            logger.exception("Unexpected error fetching record")
            raise DynamoDBError(
                message="Unable to retrieve image metadata",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"image_id": image_id},
            ) from exc

    def fetch_page(
        self,
        *,
        owner: OwnerRef,
        categories: Sequence[str] | None = None,
        limit: int,
        cursor: str | None = None,
    ) -> RecordPage:
        """Fetch one page of an owner's records in creation order.

        NOTE:
        - The category filter runs after DynamoDB's Limit, so several query
          calls may be needed to fill a page.
        - The returned cursor is the key of the last returned item, not
          DynamoDB's LastEvaluatedKey, because the page may be trimmed.
        """
        logger.debug(
            "Fetching record page",
            extra={"owner_key": owner.key, "categories": categories, "limit": limit},
        )

        if categories is not None and not categories:
            return RecordPage()

        query_kwargs: dict[str, Any] = {
            "IndexName": OWNER_INDEX_NAME,
            "KeyConditionExpression": Key("owner_key").eq(owner.key),
            "ScanIndexForward": True,
            "Limit": limit,
        }
        if categories is not None:
            query_kwargs["FilterExpression"] = Attr("category").is_in(list(categories))

        start_key = self._decode_cursor(cursor)
        items: list[Item] = []
        last_evaluated_key: Item | None = None

        try:
            while True:
                if start_key:
                    query_kwargs["ExclusiveStartKey"] = start_key

                response = self._db.query(**query_kwargs)
                page_items = response.get("Items", [])

                if not isinstance(page_items, list):
                    raise DynamoDBError(
                        message="Invalid query response from DynamoDB",
                        error_code=ERROR_CODE_METADATA_LIST_FAILED,
                        details={"owner_key": owner.key},
                    )

                items.extend(page_items)
                last_evaluated_key = response.get("LastEvaluatedKey")

                # Stop once the page is full or the index is exhausted
                if len(items) >= limit or not last_evaluated_key:
                    break

                start_key = last_evaluated_key

            has_more = len(items) > limit or bool(last_evaluated_key)
            items = items[:limit]

            records = [self._to_record(item) for item in items]
            next_cursor = self._encode_cursor(items[-1]) if has_more and items else None

            logger.debug(
                "Record page fetched",
                extra={"owner_key": owner.key, "count": len(records), "has_more": has_more},
            )
            return RecordPage(records=records, next_cursor=next_cursor)

        except ClientError as exc:
            logger.error("DynamoDB query failed", extra={"owner_key": owner.key})
            raise DynamoDBError(
                message="Unable to list images for this owner",
                error_code=ERROR_CODE_METADATA_LIST_FAILED,
                details={"owner_key": owner.key},
            ) from exc

        except DynamoDBError:
            raise

        except Exception as exc:
            logger.exception("Unexpected error listing records")
            raise DynamoDBError(
                message="Unable to list images for this owner",
                error_code=ERROR_CODE_METADATA_LIST_FAILED,
                details={"owner_key": owner.key},
            ) from exc

    @staticmethod
    def _to_record(item: Item) -> ImageRecord:
        try:
            return ImageRecord.model_validate(item)
        except PydanticValidationError as exc:
            raise DynamoDBError(
                message="Invalid image metadata format",
                error_code=ERROR_CODE_METADATA_FETCH_FAILED,
                details={"image_id": item.get("image_id")},
            ) from exc

    @staticmethod
    def _encode_cursor(item: Item) -> str:
        payload = json.dumps(_cursor_key(item), sort_keys=True).encode("utf-8")
        return base64.urlsafe_b64encode(payload).decode("ascii")

    @staticmethod
    def _decode_cursor(cursor: str | None) -> Item | None:
        if cursor is None:
            return None
        try:
            key = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")))
        except (binascii.Error, UnicodeError, ValueError) as exc:
            raise MetadataOperationFailedError(
                message="Invalid page cursor",
                error_code=ERROR_CODE_METADATA_INVALID_CURSOR,
                details={"cursor": cursor},
            ) from exc

        if not isinstance(key, dict):
            raise MetadataOperationFailedError(
                message="Invalid page cursor",
                error_code=ERROR_CODE_METADATA_INVALID_CURSOR,
                details={"cursor": cursor},
            )
        return key
