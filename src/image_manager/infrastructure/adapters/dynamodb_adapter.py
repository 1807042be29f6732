"""Thin DynamoDB adapter wrapping boto3 table operations."""

import os
from typing import Any, Protocol, cast

import boto3

from image_manager.utils.constants import (
    ENV_AWS_ENDPOINT_URL,
    ENV_AWS_REGION,
    ENV_IMAGE_METADATA_TABLE_NAME,
)


class DynamoDBTable(Protocol):
    """Minimal DynamoDB Table protocol."""

    name: str

    def get_item(self, *, Key: dict[str, Any], **kwargs: Any) -> dict[str, Any]: ...
    def query(self, **kwargs: Any) -> dict[str, Any]: ...

    @property
    def meta(self) -> Any: ...


class DynamoDBAdapterProtocol(Protocol):
    """Minimal DynamoDB adapter protocol (repository-facing)."""

    @property
    def table_name(self) -> str: ...

    def get_item(self, *, key: dict[str, Any]) -> dict[str, Any]: ...
    def query(self, **kwargs: Any) -> dict[str, Any]: ...
    def transact_write(self, *, items: list[dict[str, Any]]) -> dict[str, Any]: ...


class DynamoDBAdapter:
    """Low-level DynamoDB operations (mechanical, no error handling).

    This adapter:
    - Wraps boto3 DynamoDB resource
    - Does NOT handle errors (lets them bubble up)
    - Domain implementations catch and translate errors
    """

    def __init__(
        self,
        *,
        table_name: str | None = None,
        endpoint_url: str | None = None,
        region: str | None = None,
    ) -> None:
        """Initialize DynamoDB table from arguments, falling back to environment."""
        table_name = table_name or os.getenv(ENV_IMAGE_METADATA_TABLE_NAME)
        if not table_name:
            raise RuntimeError(
                f"{ENV_IMAGE_METADATA_TABLE_NAME} environment variable is not set"
            )

        dynamodb = boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url or os.getenv(ENV_AWS_ENDPOINT_URL),
            region_name=region or os.getenv(ENV_AWS_REGION),
        )

        self.table: DynamoDBTable = cast(
            DynamoDBTable,
            dynamodb.Table(table_name),
        )

    @property
    def table_name(self) -> str:
        return self.table.name

    def get_item(self, *, key: dict[str, Any]) -> dict[str, Any]:
        """Retrieve item by key (strongly consistent).

        Raises boto3 exceptions - caught by domain implementation.
        """
        return self.table.get_item(Key=key, ConsistentRead=True)

    def query(self, **kwargs: Any) -> dict[str, Any]:
        """Execute DynamoDB query.

        Raises boto3 exceptions - caught by domain implementation.
        """
        return self.table.query(**kwargs)

    def transact_write(self, *, items: list[dict[str, Any]]) -> dict[str, Any]:
        """Apply low-level TransactWriteItems entries atomically.

        Items use the client (typed attribute value) format.
        Raises boto3 exceptions - caught by domain implementation.
        """
        client = self.table.meta.client
        return cast(dict[str, Any], client.transact_write_items(TransactItems=items))
