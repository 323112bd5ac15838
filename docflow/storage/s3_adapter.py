from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from docflow.storage.base import BaseBlobStore
from docflow.storage.exceptions import BlobNotFoundError, BlobStoreError

_MISSING_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class S3BlobStore(BaseBlobStore):
    """Blob store adapter over a single S3 bucket."""

    def __init__(self, bucket: str, *, client: Any | None = None, region: str | None = None) -> None:
        if not bucket:
            raise ValueError("s3_bucket is required for blob_store=s3")
        self._bucket = bucket
        self._client = client or boto3.client("s3", region_name=region)

    def get(self, key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in _MISSING_CODES:
                raise BlobNotFoundError(f"Blob not found: s3://{self._bucket}/{key}") from exc
            raise BlobStoreError(f"S3 get_object failed for {key}: {exc}") from exc
        except BotoCoreError as exc:
            raise BlobStoreError(f"S3 get_object failed for {key}: {exc}") from exc

        body = response.get("Body")
        if body is None:
            raise BlobStoreError("S3 object body is empty")
        return body.read()

    def put(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as exc:
            raise BlobStoreError(f"S3 put_object failed for {key}: {exc}") from exc

    def presigned_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        try:
            return self._client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self._bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as exc:
            raise BlobStoreError(f"Failed to presign upload for {key}: {exc}") from exc
