from abc import ABC, abstractmethod


class BaseBlobStore(ABC):
    """Contract for all blob storage adapters."""

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Read the raw bytes stored under ``key``.

        Raises:
            BlobNotFoundError: if no object exists under ``key``.
            BlobStoreError: on any other storage failure.
        """

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> None:
        """Store ``data`` under ``key``.

        Raises:
            BlobStoreError: on any storage failure.
        """

    @abstractmethod
    def presigned_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        """Return a URL a client can upload the object to directly."""
