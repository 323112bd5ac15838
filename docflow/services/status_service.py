from typing import Any

from docflow.database.repositories.document_repository import DocumentRepository
from docflow.processor.exceptions import ValidationError


class DocumentStatusService:
    """Read-only status query surface."""

    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def get(self, document_id: str) -> dict[str, Any]:
        """Return the full externally visible record for ``document_id``.

        Raises:
            ValidationError: if document_id is blank.
            DocumentNotFoundError: if no such document exists.
        """
        if not document_id or not document_id.strip():
            raise ValidationError("documentId is required")
        return self._doc_repo.find_by_id(document_id).to_wire()
