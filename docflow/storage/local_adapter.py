from pathlib import Path

from docflow.storage.base import BaseBlobStore
from docflow.storage.exceptions import BlobNotFoundError, BlobStoreError


class LocalBlobStore(BaseBlobStore):
    """Stores blobs as files under a root directory, one file per key."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def get(self, key: str) -> bytes:
        path = self._resolve_path(key)
        if not path.is_file():
            raise BlobNotFoundError(f"Blob not found: {key}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise BlobStoreError(f"Failed to read blob {key}: {exc}") from exc

    def put(self, key: str, data: bytes, content_type: str) -> None:
        _ = content_type
        path = self._resolve_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise BlobStoreError(f"Failed to write blob {key}: {exc}") from exc

    def presigned_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        _ = content_type, expires_in
        return self._resolve_path(key).resolve().as_uri()

    def _resolve_path(self, key: str) -> Path:
        parts = [part for part in key.split("/") if part]
        if not parts or any(part == ".." for part in parts):
            raise BlobStoreError(f"Invalid blob key: {key!r}")
        return self._root.joinpath(*parts)
