"""
Pytest configuration and fixtures for image-manager tests.
Provides AWS mocking, S3 and DynamoDB fixtures, generated images and
pre-wired services backed by the local filesystem and in-memory metadata.
"""

import io
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws
from PIL import Image

from image_manager.infrastructure.local.local_blob_store import LocalBlobStore
from image_manager.infrastructure.memory.memory_metadata_store import InMemoryMetadataStore
from image_manager.infrastructure.pillow.pillow_codec import PillowImageCodec
from image_manager.models.config import ImageManagerConfig
from image_manager.models.image import OwnerRef
from image_manager.services.owner_collection import OwnerCollectionService
from image_manager.services.path_resolver import PathResolver
from image_manager.services.record_manager import ImageRecordManager
from image_manager.services.size_config import SizeConfig
from image_manager.utils.constants import OWNER_INDEX_NAME

os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_SECURITY_TOKEN", "testing")
os.environ.setdefault("AWS_SESSION_TOKEN", "testing")
os.environ.setdefault("IMAGE_S3_BUCKET_NAME", "image-manager-test")
os.environ.setdefault("IMAGE_METADATA_TABLE_NAME", "image-manager-records-test")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "image-manager-test")


# ----------------------------------------------------------------------
# AWS
# ----------------------------------------------------------------------


@pytest.fixture(scope="function")
def aws_mock():
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def dynamodb_resource(aws_mock):
    return boto3.resource("dynamodb", region_name=os.getenv("AWS_REGION"))


def _create_dynamodb_table(dynamodb_resource):
    """Helper to create the records table with the owner index."""
    return dynamodb_resource.create_table(
        TableName=os.getenv("IMAGE_METADATA_TABLE_NAME"),
        BillingMode="PAY_PER_REQUEST",
        KeySchema=[{"AttributeName": "image_id", "KeyType": "HASH"}],
        AttributeDefinitions=[
            {"AttributeName": "image_id", "AttributeType": "S"},
            {"AttributeName": "owner_key", "AttributeType": "S"},
            {"AttributeName": "sort_key", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": OWNER_INDEX_NAME,
                "KeySchema": [
                    {"AttributeName": "owner_key", "KeyType": "HASH"},
                    {"AttributeName": "sort_key", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
    )


@pytest.fixture(scope="function")
def dynamodb_table(dynamodb_resource):
    """
    Create the DynamoDB records table for a test.

    The table lives only as long as the moto context of the test.
    """
    table = _create_dynamodb_table(dynamodb_resource)
    table.wait_until_exists()
    return table


@pytest.fixture
def dynamodb_scan(dynamodb_table) -> Callable[[], list[dict[str, Any]]]:
    """Helper returning every item in the records table."""

    def _scan() -> list[dict[str, Any]]:
        response = dynamodb_table.scan()
        items: list[dict[str, Any]] = response.get("Items", [])
        while "LastEvaluatedKey" in response:
            response = dynamodb_table.scan(ExclusiveStartKey=response["LastEvaluatedKey"])
            items.extend(response.get("Items", []))
        return items

    return _scan


@pytest.fixture(scope="function")
def s3_client(aws_mock):
    """S3 client for bucket operations."""
    return boto3.client("s3", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def s3_bucket(s3_client):
    """Create the image bucket for a test."""
    bucket_name = os.getenv("IMAGE_S3_BUCKET_NAME")

    try:
        s3_client.create_bucket(Bucket=bucket_name)
    except ClientError as e:
        if e.response["Error"]["Code"] != "BucketAlreadyOwnedByYou":
            raise

    return s3_client


@pytest.fixture
def s3_keys(s3_bucket) -> Callable[[str], list[str]]:
    """
    Helper listing object keys under a prefix.

    Usage:
        keys = s3_keys("uploads/user/avatar/")
    """

    def _keys(prefix: str = "") -> list[str]:
        bucket_name = os.getenv("IMAGE_S3_BUCKET_NAME")
        paginator = s3_bucket.get_paginator("list_objects_v2")
        keys: list[str] = []
        for page in paginator.paginate(Bucket=bucket_name, Prefix=prefix):
            keys.extend(obj["Key"] for obj in page.get("Contents", []))
        return sorted(keys)

    return _keys


@pytest.fixture
def s3_put_object(s3_bucket) -> Callable[..., dict[str, Any]]:
    """Helper to upload an object to the image bucket."""

    def _put(key: str, body: bytes, content_type: str = "application/octet-stream"):
        bucket_name = os.getenv("IMAGE_S3_BUCKET_NAME")
        return s3_bucket.put_object(Bucket=bucket_name, Key=key, Body=body, ContentType=content_type)

    return _put


# ----------------------------------------------------------------------
# Images
# ----------------------------------------------------------------------


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """
    Factory producing encoded test images.

    Usage:
        data = make_image("JPEG", size=(640, 480), color="blue")
    """

    def _make(
        image_format: str = "PNG",
        *,
        size: tuple[int, int] = (640, 480),
        color: str = "red",
        mode: str = "RGB",
    ) -> bytes:
        buffer = io.BytesIO()
        Image.new(mode, size, color).save(buffer, format=image_format)
        return buffer.getvalue()

    return _make


@pytest.fixture
def sample_png(make_image) -> bytes:
    return make_image("PNG", color="red")


@pytest.fixture
def sample_jpeg(make_image) -> bytes:
    return make_image("JPEG", color="blue")


# ----------------------------------------------------------------------
# Configuration and services
# ----------------------------------------------------------------------


@pytest.fixture
def config_data() -> dict[str, Any]:
    return {
        "format": "webp",
        "models": {
            "app.models.User": {
                "types": {
                    "avatar": {
                        "sizes": {
                            "thumbnail": {"width": 100, "height": 100, "mode": "cover"},
                            "medium": {"width": 300, "height": 300, "mode": "cover"},
                        },
                        "public": True,
                    },
                    "gallery": {
                        "sizes": {
                            "thumbnail": {"width": 100, "height": 100, "mode": "cover"},
                            "large": {"width": 800, "height": 600, "mode": "scale"},
                        },
                    },
                    "default": {"sizes": {}},
                }
            },
        },
    }


@pytest.fixture
def image_config(config_data) -> ImageManagerConfig:
    return ImageManagerConfig.model_validate(config_data)


@pytest.fixture
def size_config(image_config) -> SizeConfig:
    return SizeConfig(image_config)


@pytest.fixture
def path_resolver(image_config) -> PathResolver:
    return PathResolver(image_config.base_path)


@pytest.fixture
def storage_root(tmp_path) -> Path:
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def local_store(storage_root) -> LocalBlobStore:
    return LocalBlobStore(storage_root, base_url="https://cdn.test/storage")


@pytest.fixture
def memory_store() -> InMemoryMetadataStore:
    return InMemoryMetadataStore()


@pytest.fixture
def manager(local_store, memory_store, size_config, path_resolver) -> ImageRecordManager:
    return ImageRecordManager(
        codec=PillowImageCodec(),
        blob_store=local_store,
        metadata=memory_store,
        sizes=size_config,
        paths=path_resolver,
    )


@pytest.fixture
def collection(manager) -> OwnerCollectionService:
    return OwnerCollectionService(manager)


@pytest.fixture
def user() -> OwnerRef:
    return OwnerRef(owner_type="app.models.User", owner_id=1)


@pytest.fixture
def stored_files(storage_root) -> Callable[[str], list[str]]:
    """
    Helper listing stored file paths (relative to the storage root).

    Usage:
        files = stored_files("uploads/user/avatar")
    """

    def _files(prefix: str = "") -> list[str]:
        base = storage_root / prefix if prefix else storage_root
        if not base.exists():
            return []
        return sorted(
            path.relative_to(storage_root).as_posix() for path in base.rglob("*") if path.is_file()
        )

    return _files
