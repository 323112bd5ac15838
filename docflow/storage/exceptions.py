from docflow.processor.exceptions import DependencyError


class BlobStoreError(DependencyError):
    """Raised when the blob store cannot read or write an object."""


class BlobNotFoundError(BlobStoreError):
    """Raised when no object exists under the requested key."""
