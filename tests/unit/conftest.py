from collections import defaultdict
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import MagicMock

import pytest

from docflow.database.models import PREDECESSORS, DocumentRecord, DocumentStatus
from docflow.database.repositories.document_repository import _validate_fields
from docflow.entities.models import Entity, EntityResult
from docflow.ocr.models import OcrElement, OcrResult
from docflow.processor.exceptions import (
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    TransitionConflictError,
)
from docflow.processor.processor import ExtractionWorker, build_extraction_worker

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryDocumentRepository:
    """Dict-backed stand-in for DocumentRepository with the same conditional-write rules."""

    def __init__(self) -> None:
        self.records: dict[str, DocumentRecord] = {}
        self.history: dict[str, list[DocumentStatus]] = defaultdict(list)
        self.writes: list[tuple[str, DocumentStatus]] = []
        self.now = NOW

    def create(self, record: DocumentRecord) -> None:
        if record.document_id in self.records:
            raise DocumentAlreadyExistsError(f"Document {record.document_id} already exists")
        self.records[record.document_id] = replace(record)
        self.history[record.document_id].append(record.status)

    def find_by_id(self, document_id: str) -> DocumentRecord:
        if document_id not in self.records:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return replace(self.records[document_id])

    def exists(self, document_id: str) -> bool:
        return document_id in self.records

    def transition(
        self,
        document_id: str,
        status: DocumentStatus,
        *,
        expected: DocumentStatus | None = None,
        fields: Mapping[str, Any] | None = None,
        lease_token: str | None = None,
    ) -> None:
        allowed = PREDECESSORS[status]
        if expected is not None:
            if expected not in allowed:
                raise TransitionConflictError(document_id, expected.value)
            allowed = frozenset({expected})
        values = dict(fields or {})
        _validate_fields(status, values)
        record = self.records.get(document_id)
        if record is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        if record.status not in allowed or (
            lease_token is not None and record.lease_token != lease_token
        ):
            raise TransitionConflictError(document_id, record.status.value)
        for name, value in values.items():
            setattr(record, name, value)
        record.status = status
        if status.is_terminal:
            record.lease_token = None
            record.lease_expires_at = None
        self.history[document_id].append(status)
        self.writes.append((document_id, status))

    def acquire_lease(self, document_id: str, lease_token: str, lease_seconds: int) -> DocumentRecord:
        record = self.records.get(document_id)
        if record is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        expired = (
            record.status is DocumentStatus.PROCESSING
            and record.lease_expires_at is not None
            and record.lease_expires_at < self.now
        )
        if record.status is not DocumentStatus.UPLOADED and not expired:
            raise TransitionConflictError(document_id, record.status.value)
        record.status = DocumentStatus.PROCESSING
        record.lease_token = lease_token
        record.lease_expires_at = self.now + timedelta(seconds=lease_seconds)
        self.history[document_id].append(DocumentStatus.PROCESSING)
        self.writes.append((document_id, DocumentStatus.PROCESSING))
        return replace(record)

    def find_stale_processing(self, limit: int) -> list[DocumentRecord]:
        stale = [
            replace(record)
            for record in self.records.values()
            if record.status is DocumentStatus.PROCESSING
            and record.lease_expires_at is not None
            and record.lease_expires_at < self.now
        ]
        return stale[:limit]


def make_record(
    document_id: str = "doc-123",
    status: DocumentStatus = DocumentStatus.UPLOADED,
    source_key: str = "uploads/direct/doc-123/file.pdf",
) -> DocumentRecord:
    return DocumentRecord(
        document_id=document_id,
        source_key=source_key,
        status=status,
        upload_time=NOW,
    )


@pytest.fixture
def doc_repo() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository()


@pytest.fixture
def seed_document(doc_repo: InMemoryDocumentRepository) -> Callable[..., DocumentRecord]:
    """Place a record directly into the in-memory store, bypassing create()."""

    def _seed(
        document_id: str = "doc-123",
        status: DocumentStatus = DocumentStatus.UPLOADED,
        **overrides: Any,
    ) -> DocumentRecord:
        record = replace(make_record(document_id, status), **overrides)
        doc_repo.records[document_id] = record
        doc_repo.history[document_id].append(status)
        return record

    return _seed


@pytest.fixture
def blob_store() -> MagicMock:
    store = MagicMock()
    store.get.return_value = b"%PDF-1.4 fake"
    return store


@pytest.fixture
def ocr_extractor() -> MagicMock:
    extractor = MagicMock()
    extractor.analyze.return_value = OcrResult(
        elements=[
            OcrElement(kind="line", text="Invoice"),
            OcrElement(kind="table", text="ignored"),
            OcrElement(kind="line", text="#42"),
        ],
        raw={"Blocks": [{"BlockType": "LINE", "Text": "Invoice"}]},
    )
    return extractor


@pytest.fixture
def recognizer() -> MagicMock:
    mock = MagicMock()
    mock.detect.return_value = EntityResult(
        entities=[Entity(text="#42", type="QUANTITY", score=0.9, begin_offset=8, end_offset=11)]
    )
    return mock


@pytest.fixture
def extraction_worker(
    doc_repo: InMemoryDocumentRepository,
    blob_store: MagicMock,
    ocr_extractor: MagicMock,
    recognizer: MagicMock,
) -> ExtractionWorker:
    settings = MagicMock(processing_lease_seconds=900, entity_language_code="en")
    return build_extraction_worker(
        settings,
        doc_repo,  # type: ignore[arg-type]
        blob_store=blob_store,
        ocr_extractor=ocr_extractor,
        recognizer=recognizer,
    )
