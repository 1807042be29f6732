"""Local filesystem implementation of BlobStore."""

import os
from pathlib import Path

from aws_lambda_powertools import Logger

from image_manager.models.errors import (
    StorageDeleteError,
    StorageError,
    StorageWriteError,
)
from image_manager.repositories.blob_store import BlobStore
from image_manager.utils.constants import (
    DEFAULT_CONTENT_TYPE,
    FILE_MODE_PRIVATE,
    FILE_MODE_PUBLIC,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
)

logger = Logger(UTC=True)


class LocalBlobStore(BlobStore):
    """Variant storage on the local filesystem.

    Visibility is expressed through file permissions: public files are
    world-readable (0644), private files owner-only (0600).
    """

    def __init__(self, root: str | Path, base_url: str | None = None) -> None:
        self.root = Path(root)
        self.base_url = (base_url or "").rstrip("/")

    def _resolve(self, path: str) -> Path:
        root = self.root.resolve()
        target = (root / path.lstrip("/")).resolve()
        if target != root and root not in target.parents:
            raise StorageError(
                message="Path escapes the storage root",
                details={"path": path},
            )
        return target

    def put(
        self,
        path: str,
        data: bytes,
        *,
        visibility: str = VISIBILITY_PRIVATE,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> None:
        target = self._resolve(path)
        mode = FILE_MODE_PUBLIC if visibility == VISIBILITY_PUBLIC else FILE_MODE_PRIVATE

        logger.debug("Writing file", extra={"path": path, "size": len(data)})

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
            os.chmod(target, mode)
        except OSError as exc:
            logger.error("Local write failed", extra={"path": path, "error": str(exc)})
            raise StorageWriteError(
                message="Unable to write image file",
                details={"path": path},
            ) from exc

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def delete(self, path: str) -> None:
        target = self._resolve(path)

        try:
            target.unlink()
        except FileNotFoundError:
            logger.debug("File already absent", extra={"path": path})
        except OSError as exc:
            logger.error("Local delete failed", extra={"path": path, "error": str(exc)})
            raise StorageDeleteError(
                message="Unable to delete image file",
                details={"path": path},
            ) from exc

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"
