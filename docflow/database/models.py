from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class DocumentStatus(str, Enum):
    UPLOADED = "UPLOADED"
    PROCESSING = "PROCESSING"
    PROCESSED = "PROCESSED"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        return self in (DocumentStatus.PROCESSED, DocumentStatus.ERROR)


# Legal predecessors of each status. PROCESSING may be re-entered only when a
# lease expires, which DocumentRepository.acquire_lease handles separately.
PREDECESSORS: dict[DocumentStatus, frozenset[DocumentStatus]] = {
    DocumentStatus.UPLOADED: frozenset(),
    DocumentStatus.PROCESSING: frozenset({DocumentStatus.UPLOADED}),
    DocumentStatus.PROCESSED: frozenset({DocumentStatus.PROCESSING}),
    DocumentStatus.ERROR: frozenset({DocumentStatus.PROCESSING}),
}

# Columns a transition into each status may set.
TRANSITION_FIELDS: dict[DocumentStatus, frozenset[str]] = {
    DocumentStatus.UPLOADED: frozenset(),
    DocumentStatus.PROCESSING: frozenset(),
    DocumentStatus.PROCESSED: frozenset({"processed_time", "extraction_result", "entities"}),
    DocumentStatus.ERROR: frozenset({"error_message"}),
}

REQUIRED_TRANSITION_FIELDS: dict[DocumentStatus, frozenset[str]] = {
    DocumentStatus.PROCESSED: frozenset({"extraction_result", "entities"}),
    DocumentStatus.ERROR: frozenset({"error_message"}),
}


@dataclass
class DocumentRecord:
    """Represents a row from the documents table."""

    document_id: str
    source_key: str
    status: DocumentStatus
    upload_time: datetime
    processed_time: datetime | None = None
    extraction_result: dict[str, Any] | None = None
    entities: list[dict[str, Any]] | None = None
    error_message: str | None = None
    lease_token: str | None = None
    lease_expires_at: datetime | None = None

    def to_wire(self) -> dict[str, Any]:
        """Render the externally visible record. Absent fields are omitted."""
        payload: dict[str, Any] = {
            "documentId": self.document_id,
            "sourceKey": self.source_key,
            "status": self.status.value,
            "uploadTime": self.upload_time.isoformat(),
        }
        if self.processed_time is not None:
            payload["processedTime"] = self.processed_time.isoformat()
        if self.extraction_result is not None:
            payload["extractionResult"] = self.extraction_result
        if self.entities is not None:
            payload["entities"] = self.entities
        if self.error_message is not None:
            payload["errorMessage"] = self.error_message
        return payload


@dataclass
class MessageRecord:
    """Represents a row from the dispatch_messages table."""

    id: int
    body: str
    status: str
    receive_count: int
    last_error: str | None = None
    available_at: datetime | None = None
    locked_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
