"""S3-backed implementation of BlobStore."""

from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from image_manager.infrastructure.adapters.s3_adapter import S3Adapter, S3AdapterProtocol
from image_manager.models.errors import (
    StorageDeleteError,
    StorageError,
    StorageWriteError,
)
from image_manager.repositories.blob_store import BlobStore
from image_manager.utils.constants import (
    DEFAULT_CONTENT_TYPE,
    ERROR_CODE_IMAGE_PRESIGNED_URL_FAILED,
    PRESIGNED_URL_EXPIRES_IN,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
)

logger = Logger(UTC=True)

_VISIBILITY_ACL = {
    VISIBILITY_PUBLIC: "public-read",
    VISIBILITY_PRIVATE: "private",
}

_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class S3BlobStore(BlobStore):
    """Variant storage backed by Amazon S3.

    Visibility maps to canned ACLs unless `acl_enabled` is False (buckets with
    ACLs disabled). URLs are built from `base_url` when one is configured,
    otherwise they are pre-signed GET URLs.
    """

    def __init__(
        self,
        adapter: S3AdapterProtocol | None = None,
        *,
        base_url: str | None = None,
        acl_enabled: bool = True,
        url_expires_in: int = PRESIGNED_URL_EXPIRES_IN,
    ) -> None:
        """Create storage using the provided S3 adapter."""
        self._s3: S3AdapterProtocol = adapter or S3Adapter()
        self._base_url = base_url.rstrip("/") if base_url else None
        self._acl_enabled = acl_enabled
        self._url_expires_in = url_expires_in

    def put(
        self,
        path: str,
        data: bytes,
        *,
        visibility: str = VISIBILITY_PRIVATE,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> None:
        """Upload variant bytes to S3 under the given key."""
        logger.debug(
            "Uploading object",
            extra={"key": path, "size": len(data), "visibility": visibility},
        )

        acl = _VISIBILITY_ACL.get(visibility, "private") if self._acl_enabled else None

        try:
            self._s3.put_object(
                key=path,
                body=data,
                content_type=content_type,
                acl=acl,
            )
            logger.info("Object uploaded successfully", extra={"key": path})

        except ClientError as exc:
            logger.error("S3 upload failed", extra={"key": path})
            raise StorageWriteError(
                message="Unable to upload image at this time",
                details={"path": path},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error uploading object")
            raise StorageWriteError(
                message="Unable to upload image at this time",
                details={"path": path},
            ) from exc

    def exists(self, path: str) -> bool:
        """Check for an object with a HEAD request."""
        try:
            self._s3.head_object(key=path)
            return True

        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return False

            logger.error("S3 head_object failed", extra={"key": path})
            raise StorageError(
                message="Unable to check image existence",
                details={"path": path},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error checking object")
            raise StorageError(
                message="Unable to check image existence",
                details={"path": path},
            ) from exc

    def delete(self, path: str) -> None:
        """Delete an object from S3."""
        logger.debug("Deleting object", extra={"key": path})

        try:
            self._s3.delete_object(key=path)
            logger.info("Object deleted successfully", extra={"key": path})

        except ClientError as exc:
            logger.error("S3 deletion failed", extra={"key": path})
            raise StorageDeleteError(
                message="Unable to delete image at this time",
                details={"path": path},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error deleting object")
            raise StorageDeleteError(
                message="Unable to delete image at this time",
                details={"path": path},
            ) from exc

    def url(self, path: str) -> str:
        if self._base_url:
            return f"{self._base_url}/{path}"
        return self.generate_presigned_get_url(key=path)

    def generate_presigned_get_url(self, *, key: str, expires_in: int | None = None) -> str:
        """Generate a pre-signed S3 URL for reading an object."""
        logger.debug("Generating pre-signed S3 URL", extra={"key": key})

        try:
            params: dict[str, Any] = {"Key": key}
            url: str = self._s3.generate_presigned_url(
                method="get_object",
                params=params,
                expires_in=expires_in or self._url_expires_in,
            )
            return url

        except Exception as exc:
            logger.exception("Failed to generate pre-signed URL", extra={"key": key})
            raise StorageError(
                message="Unable to generate image access URL",
                error_code=ERROR_CODE_IMAGE_PRESIGNED_URL_FAILED,
                details={"path": key},
            ) from exc
