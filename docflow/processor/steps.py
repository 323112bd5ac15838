from collections.abc import Iterable
from datetime import datetime, timezone

from docflow.database.models import DocumentStatus
from docflow.database.repositories.document_repository import DocumentRepository
from docflow.entities.base import BaseEntityRecognizer
from docflow.logging.logger import Log
from docflow.ocr.base import BaseOcrExtractor
from docflow.ocr.models import LINE, OcrElement
from docflow.processor.exceptions import DocumentAlreadyProcessedError
from docflow.processor.pipeline import PipelineContext, PipelineStep
from docflow.storage.base import BaseBlobStore


def flatten_line_text(elements: Iterable[OcrElement]) -> str:
    """Join the text of line elements, in document order, with single spaces."""
    return " ".join(element.text for element in elements if element.kind == LINE)


class CheckIdempotencyStep(PipelineStep):
    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        record = self._doc_repo.find_by_id(context.document_id)
        context.record = record
        if record.status is DocumentStatus.PROCESSED:
            raise DocumentAlreadyProcessedError(
                f"Document {context.document_id} is already processed"
            )
        return context


class MarkProcessingStep(PipelineStep):
    """Takes the processing lease. Losers get TransitionConflictError."""

    def __init__(self, doc_repo: DocumentRepository, lease_seconds: int) -> None:
        self._doc_repo = doc_repo
        self._lease_seconds = lease_seconds

    def run(self, context: PipelineContext) -> PipelineContext:
        context.record = self._doc_repo.acquire_lease(
            context.document_id,
            context.lease_token,
            self._lease_seconds,
        )
        Log.info(f"Document {context.document_id} marked as processing")
        return context


class FetchBlobStep(PipelineStep):
    def __init__(self, blob_store: BaseBlobStore) -> None:
        self._blob_store = blob_store

    def run(self, context: PipelineContext) -> PipelineContext:
        context.raw_bytes = self._blob_store.get(context.request.source_key)
        Log.info(
            f"Loaded {len(context.raw_bytes)} bytes for document {context.document_id}"
        )
        return context


class ExtractTextStep(PipelineStep):
    def __init__(self, ocr_extractor: BaseOcrExtractor) -> None:
        self._ocr_extractor = ocr_extractor

    def run(self, context: PipelineContext) -> PipelineContext:
        result = self._ocr_extractor.analyze(context.raw_bytes)
        context.ocr_result = result
        context.flattened_text = flatten_line_text(result.elements)
        Log.info(
            f"Extracted {len(result.elements)} elements "
            f"({len(context.flattened_text)} chars of line text) "
            f"from document {context.document_id}"
        )
        return context


class RecognizeEntitiesStep(PipelineStep):
    def __init__(self, recognizer: BaseEntityRecognizer, language_code: str = "en") -> None:
        self._recognizer = recognizer
        self._language_code = language_code

    def run(self, context: PipelineContext) -> PipelineContext:
        result = self._recognizer.detect(context.flattened_text, self._language_code)
        context.entity_result = result
        Log.info(
            f"Recognized {len(result.entities)} entities in document {context.document_id}"
        )
        return context


class CompleteStep(PipelineStep):
    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.ocr_result is None or context.entity_result is None:
            raise ValueError("Extraction and recognition must finish before completion")
        self._doc_repo.transition(
            context.document_id,
            DocumentStatus.PROCESSED,
            expected=DocumentStatus.PROCESSING,
            lease_token=context.lease_token,
            fields={
                "processed_time": datetime.now(timezone.utc),
                "extraction_result": context.ocr_result.raw,
                "entities": context.entity_result.to_payload(),
            },
        )
        Log.info(f"Document {context.document_id} marked as processed")
        return context


class MarkFailedStep(PipelineStep):
    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        self._doc_repo.transition(
            context.document_id,
            DocumentStatus.ERROR,
            expected=DocumentStatus.PROCESSING,
            lease_token=context.lease_token,
            fields={"error_message": context.error_message},
        )
        Log.error(f"Document {context.document_id} marked as failed: {context.error_message}")
        return context
