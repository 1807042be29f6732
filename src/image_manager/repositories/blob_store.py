"""Abstract contract for variant byte storage."""

from abc import ABC, abstractmethod

from image_manager.utils.constants import DEFAULT_CONTENT_TYPE, VISIBILITY_PRIVATE


class BlobStore(ABC):
    """Contract for storing, probing and deleting variant files.

    Implementations could be local disk, S3, GCS, etc.
    Services depend on this interface, not the implementation.
    """

    @abstractmethod
    def put(
        self,
        path: str,
        data: bytes,
        *,
        visibility: str = VISIBILITY_PRIVATE,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> None:
        """Write bytes to a storage-relative path, replacing any existing file.

        Args:
            path: Storage-relative path
            data: Encoded variant bytes
            visibility: 'public' or 'private'
            content_type: MIME type of the data

        Raises:
            StorageWriteError: If the write fails
        """

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return whether a file exists at the path.

        Raises:
            StorageError: If the backend cannot be queried
        """

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete the file at the path.

        Raises:
            StorageDeleteError: If deletion fails
        """

    @abstractmethod
    def url(self, path: str) -> str:
        """Return a URL under which the file can be fetched."""
