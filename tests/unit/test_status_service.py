import pytest

from docflow.database.models import DocumentStatus
from docflow.processor.exceptions import DocumentNotFoundError, ValidationError
from docflow.services.status_service import DocumentStatusService


class TestDocumentStatusService:
    def test_returns_wire_record(self, doc_repo, seed_document) -> None:
        seed_document(status=DocumentStatus.ERROR, error_message="textract unavailable")

        record = DocumentStatusService(doc_repo).get("doc-123")

        assert record["documentId"] == "doc-123"
        assert record["status"] == "ERROR"
        assert record["errorMessage"] == "textract unavailable"
        assert "extractionResult" not in record

    def test_unknown_document_raises(self, doc_repo) -> None:
        with pytest.raises(DocumentNotFoundError):
            DocumentStatusService(doc_repo).get("missing")

    @pytest.mark.parametrize("document_id", ["", "   "])
    def test_blank_id_raises(self, doc_repo, document_id: str) -> None:
        with pytest.raises(ValidationError):
            DocumentStatusService(doc_repo).get(document_id)

    def test_read_does_not_mutate(self, doc_repo, seed_document) -> None:
        seed_document()

        DocumentStatusService(doc_repo).get("doc-123")

        assert doc_repo.writes == []
