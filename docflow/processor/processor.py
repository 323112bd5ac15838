import uuid
from enum import Enum

from docflow.config.settings import Settings
from docflow.database.repositories.document_repository import DocumentRepository
from docflow.entities.base import BaseEntityRecognizer
from docflow.entities.factory import EntityRecognizerFactory
from docflow.logging.logger import Log
from docflow.ocr.base import BaseOcrExtractor
from docflow.ocr.factory import OcrExtractorFactory
from docflow.processor.exceptions import (
    DocumentAlreadyProcessedError,
    TransitionConflictError,
    ValidationError,
)
from docflow.processor.models import ProcessingRequest
from docflow.processor.pipeline import PipelineContext, PipelineStep
from docflow.processor.steps import (
    CheckIdempotencyStep,
    CompleteStep,
    ExtractTextStep,
    FetchBlobStep,
    MarkFailedStep,
    MarkProcessingStep,
    RecognizeEntitiesStep,
)
from docflow.storage.base import BaseBlobStore
from docflow.storage.factory import BlobStoreFactory

UNKNOWN_ERROR_MESSAGE = "Unknown error"


class WorkerOutcome(str, Enum):
    PROCESSED = "processed"
    FAILED = "failed"
    ALREADY_PROCESSED = "already_processed"
    NOT_CLAIMABLE = "not_claimable"
    LEASE_LOST = "lease_lost"


class ExtractionWorker:
    """Runs one document through the extraction state machine.

    Pipeline: check idempotency -> mark processing -> fetch -> extract ->
    recognize -> complete, with any failure after the processing gate
    recorded as a terminal ERROR.

    Only one execution per document can pass the processing gate while its
    lease is live, so duplicate deliveries exit before any external call.
    Store errors before the gate propagate to the caller for redelivery.
    """

    def __init__(
        self,
        *,
        gate_steps: list[PipelineStep],
        work_steps: list[PipelineStep],
        fail_step: PipelineStep,
    ) -> None:
        self._gate_steps = gate_steps
        self._work_steps = work_steps
        self._fail_step = fail_step

    def run(self, request: ProcessingRequest) -> WorkerOutcome:
        """Process a single request. Never raises for dependency failures."""
        if not request.document_id or not request.source_key:
            raise ValidationError("documentId and sourceKey are required")

        context = PipelineContext(request=request, lease_token=uuid.uuid4().hex)
        Log.info(f"Processing document {request.document_id} ({request.source_key})")

        try:
            self._run_steps(self._gate_steps, context)
        except DocumentAlreadyProcessedError:
            Log.info(f"Document {request.document_id} already processed, skipping")
            return WorkerOutcome.ALREADY_PROCESSED
        except TransitionConflictError as exc:
            Log.info(
                f"Document {request.document_id} not claimable "
                f"(status {exc.current_status}), skipping"
            )
            return WorkerOutcome.NOT_CLAIMABLE

        try:
            self._run_steps(self._work_steps, context)
        except TransitionConflictError as exc:
            Log.warning(f"Document {request.document_id} lease lost before completion: {exc}")
            return WorkerOutcome.LEASE_LOST
        except Exception as exc:
            Log.error(f"Error processing document {request.document_id}: {exc}")
            context.error_message = str(exc) or UNKNOWN_ERROR_MESSAGE
            self._record_failure(context)
            return WorkerOutcome.FAILED

        Log.info(f"Document {request.document_id} completed successfully")
        return WorkerOutcome.PROCESSED

    @staticmethod
    def _run_steps(steps: list[PipelineStep], context: PipelineContext) -> None:
        for step in steps:
            context = step.run(context)

    def _record_failure(self, context: PipelineContext) -> None:
        try:
            self._fail_step.run(context)
        except Exception as exc:
            Log.error(
                f"Failed to record ERROR status for document {context.document_id}: {exc}"
            )


def build_extraction_worker(
    settings: Settings,
    doc_repo: DocumentRepository,
    *,
    blob_store: BaseBlobStore | None = None,
    ocr_extractor: BaseOcrExtractor | None = None,
    recognizer: BaseEntityRecognizer | None = None,
) -> ExtractionWorker:
    """Build an ExtractionWorker with all required adapters."""
    blob_store = blob_store or BlobStoreFactory.create(settings)
    ocr_extractor = ocr_extractor or OcrExtractorFactory.create(settings)
    recognizer = recognizer or EntityRecognizerFactory.create(settings)
    return ExtractionWorker(
        gate_steps=[
            CheckIdempotencyStep(doc_repo),
            MarkProcessingStep(doc_repo, settings.processing_lease_seconds),
        ],
        work_steps=[
            FetchBlobStep(blob_store),
            ExtractTextStep(ocr_extractor),
            RecognizeEntitiesStep(recognizer, settings.entity_language_code),
            CompleteStep(doc_repo),
        ],
        fail_step=MarkFailedStep(doc_repo),
    )
