import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from docflow.processor.exceptions import ValidationError


@dataclass(frozen=True)
class ProcessingRequest:
    """Payload carried on the dispatch queue: which document, where its bytes live."""

    document_id: str
    source_key: str

    def to_payload(self) -> dict[str, str]:
        return {"documentId": self.document_id, "sourceKey": self.source_key}

    def to_json(self) -> str:
        return json.dumps(self.to_payload())

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ProcessingRequest":
        """Build a request from a decoded payload.

        Raises:
            ValidationError: if documentId or sourceKey is missing or blank.
        """
        document_id = payload.get("documentId")
        source_key = payload.get("sourceKey")
        if not isinstance(document_id, str) or not document_id.strip():
            raise ValidationError("'documentId' must be a non-empty string")
        if not isinstance(source_key, str) or not source_key.strip():
            raise ValidationError("'sourceKey' must be a non-empty string")
        return cls(document_id=document_id, source_key=source_key)

    @classmethod
    def from_json(cls, body: str) -> "ProcessingRequest":
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Invalid JSON message body: {exc}") from exc
        if not isinstance(payload, dict):
            raise ValidationError("Message body must be a JSON object")
        return cls.from_payload(payload)


@dataclass(frozen=True)
class UploadResponse:
    """Returned to the caller of the upload request surface."""

    presigned_upload_url: str
    document_id: str

    def to_payload(self) -> dict[str, str]:
        return {
            "presignedUploadUrl": self.presigned_upload_url,
            "documentId": self.document_id,
        }
