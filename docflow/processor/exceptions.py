class DocflowError(Exception):
    """Base exception for all pipeline-related errors."""


class ValidationError(DocflowError):
    """Raised when an input is missing or malformed. Nothing is mutated."""


class DocumentNotFoundError(DocflowError):
    """Raised when a document record does not exist."""


class DocumentAlreadyExistsError(DocflowError):
    """Raised when creating a record whose identity is already taken."""


class DocumentAlreadyProcessedError(DocflowError):
    """Raised to short-circuit a worker run for a PROCESSED document."""


class TransitionConflictError(DocflowError):
    """Raised when a conditional status write finds an unexpected current status."""

    def __init__(self, document_id: str, current_status: str | None, message: str = "") -> None:
        self.document_id = document_id
        self.current_status = current_status
        super().__init__(
            message
            or f"Document {document_id} cannot transition from status {current_status}"
        )


class DependencyError(DocflowError):
    """Base for failures of external collaborators (blob store, OCR, entities)."""
