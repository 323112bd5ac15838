from pathlib import Path

from docflow.config.settings import Settings
from docflow.storage.base import BaseBlobStore
from docflow.storage.local_adapter import LocalBlobStore
from docflow.storage.s3_adapter import S3BlobStore


class BlobStoreFactory:
    """Creates the configured blob store adapter."""

    BACKENDS = ("local", "s3")

    @classmethod
    def create(cls, settings: Settings) -> BaseBlobStore:
        backend = settings.blob_store.lower()
        if backend == "local":
            return LocalBlobStore(Path(settings.blob_root))
        if backend == "s3":
            return S3BlobStore(settings.s3_bucket, region=settings.aws_region)
        raise ValueError(
            f"Unknown blob store '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
