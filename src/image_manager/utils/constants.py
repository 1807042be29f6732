"""Global constants used throughout the package.

This module centralizes error codes, defaults and environment variable names
that are shared across modules, so they can be changed in one place.
"""

from typing import Final

# ============================================================================
# Error Codes
# ============================================================================

# Validation Errors
ERROR_CODE_VALIDATION_FAILED = "VALIDATION_FAILED"
ERROR_CODE_INVALID_UPLOAD = "INVALID_UPLOAD"
ERROR_CODE_UNSUPPORTED_MIME_TYPE = "UNSUPPORTED_MIME_TYPE"
ERROR_CODE_IMAGE_PROCESSING_FAILED = "IMAGE_PROCESSING_FAILED"

# Configuration Errors
ERROR_CODE_CONFIGURATION = "CONFIGURATION_ERROR"
ERROR_CODE_UNKNOWN_IMAGE_TYPE = "UNKNOWN_IMAGE_TYPE"
ERROR_CODE_UNKNOWN_DISK = "UNKNOWN_DISK"

# Not Found Errors
ERROR_CODE_RESOURCE_NOT_FOUND = "NOT_FOUND"
ERROR_CODE_IMAGE_NOT_FOUND = "IMAGE_NOT_FOUND"

# Storage Errors
ERROR_CODE_STORAGE = "STORAGE_ERROR"
ERROR_CODE_IMAGE_UPLOAD_FAILED = "IMAGE_UPLOAD_FAILED"
ERROR_CODE_IMAGE_DELETE_FAILED = "IMAGE_DELETE_FAILED"
ERROR_CODE_IMAGE_DUPLICATE_IMAGE = "DUPLICATE_IMAGE_ERROR"
ERROR_CODE_IMAGE_PRESIGNED_URL_FAILED = "PRESIGNED_URL_FAILED"

# Metadata / DynamoDB Errors
ERROR_CODE_DYNAMODB = "DYNAMODB_ERROR"
ERROR_CODE_METADATA_OPERATION_FAILED = "METADATA_OPERATION_FAILED"
ERROR_CODE_METADATA_FETCH_FAILED = "METADATA_FETCH_FAILED"
ERROR_CODE_METADATA_LIST_FAILED = "METADATA_LIST_FAILED"
ERROR_CODE_METADATA_COMMIT_FAILED = "METADATA_COMMIT_FAILED"
ERROR_CODE_METADATA_INVALID_CURSOR = "METADATA_INVALID_CURSOR"


# ============================================================================
# Image Defaults
# ============================================================================

DEFAULT_CATEGORY: Final = "default"
ORIGINAL_SIZE_LABEL: Final = "original"

DEFAULT_STORAGE_DISK: Final = "public"
DEFAULT_BASE_PATH: Final = "uploads"
DEFAULT_FORMAT: Final = "webp"
DEFAULT_QUALITY: Final = 90
MIN_QUALITY: Final = 1
MAX_QUALITY: Final = 100

VISIBILITY_PUBLIC: Final = "public"
VISIBILITY_PRIVATE: Final = "private"

LABEL_PATTERN: Final = r"^[A-Za-z0-9_-]+$"

# Attempts at drawing a fresh name before giving up on collisions
MAX_NAME_ATTEMPTS: Final = 3


# ============================================================================
# Pagination Constraints
# ============================================================================

DEFAULT_PAGE_SIZE = 100
MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 1000


# ============================================================================
# Formats
# ============================================================================

MIME_TYPE_EXTENSION_MAP: Final[dict[str, tuple[str, ...]]] = {
    "image/jpeg": ("jpg", "jpeg"),
    "image/png": ("png",),
    "image/gif": ("gif",),
    "image/webp": ("webp",),
}

# Output format name -> (Pillow format, MIME type)
FORMAT_ENCODINGS: Final[dict[str, tuple[str, str]]] = {
    "webp": ("WEBP", "image/webp"),
    "jpeg": ("JPEG", "image/jpeg"),
    "jpg": ("JPEG", "image/jpeg"),
    "png": ("PNG", "image/png"),
    "gif": ("GIF", "image/gif"),
}

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# ============================================================================
# Local Disk Defaults
# ============================================================================

FILE_MODE_PUBLIC: Final = 0o644
FILE_MODE_PRIVATE: Final = 0o600
DEFAULT_LOCAL_ROOT: Final = "storage/app"
DEFAULT_PUBLIC_ROOT: Final = "storage/app/public"
DEFAULT_PUBLIC_URL: Final = "/storage"

PRESIGNED_URL_EXPIRES_IN = 300

# ============================================================================
# DynamoDB Layout
# ============================================================================

OWNER_INDEX_NAME: Final = "owner-sort-index"

# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_AWS_ENDPOINT_URL = "AWS_ENDPOINT_URL"
ENV_AWS_REGION = "AWS_REGION"
ENV_IMAGE_S3_BUCKET_NAME = "IMAGE_S3_BUCKET_NAME"
ENV_IMAGE_METADATA_TABLE_NAME = "IMAGE_METADATA_TABLE_NAME"

ENV_STORAGE_DISK = "IMAGE_MANAGER_STORAGE_DISK"
ENV_BASE_PATH = "IMAGE_MANAGER_BASE_PATH"
ENV_FORMAT = "IMAGE_MANAGER_FORMAT"
ENV_QUALITY = "IMAGE_MANAGER_QUALITY"
