from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from docflow.database.models import DocumentRecord, DocumentStatus
from docflow.database.repositories.dispatch_repository import DispatchQueue
from docflow.database.repositories.document_repository import DocumentRepository
from docflow.ingestion.identity import (
    build_upload_key,
    decode_event_key,
    derive_document_id,
    new_document_id,
)
from docflow.logging.logger import Log
from docflow.processor.exceptions import DocumentAlreadyExistsError, ValidationError
from docflow.processor.models import ProcessingRequest, UploadResponse
from docflow.storage.base import BaseBlobStore


class IngestionGatekeeper:
    """Turns blob-available signals and upload requests into UPLOADED records
    plus processing requests on the dispatch queue.

    The existence check before create is best-effort only; the worker's
    processing gate is what makes duplicate requests harmless.
    """

    def __init__(
        self,
        doc_repo: DocumentRepository,
        queue: DispatchQueue,
        blob_store: BaseBlobStore,
        *,
        presigned_url_expiry_seconds: int = 3600,
        upload_dispatch_delay_seconds: int = 0,
    ) -> None:
        self._doc_repo = doc_repo
        self._queue = queue
        self._blob_store = blob_store
        self._presigned_url_expiry_seconds = presigned_url_expiry_seconds
        self._upload_dispatch_delay_seconds = upload_dispatch_delay_seconds

    def handle_storage_event(self, event: Mapping[str, Any]) -> list[ProcessingRequest]:
        """Ingest every object referenced by an S3-style event notification."""
        enqueued: list[ProcessingRequest] = []
        for record in event.get("Records", []):
            try:
                raw_key = record["s3"]["object"]["key"]
            except (KeyError, TypeError):
                Log.error(f"Storage event record without an object key, dropping: {record!r}")
                continue
            request = self.handle_blob_available(decode_event_key(raw_key))
            if request is not None:
                enqueued.append(request)
        return enqueued

    def handle_blob_available(self, source_key: str) -> ProcessingRequest | None:
        """Register and enqueue the blob at ``source_key``.

        Errors are logged and the signal is dropped; retrying is up to
        whatever delivered the signal.

        Returns:
            The enqueued request, or None if the signal was dropped.
        """
        if not source_key.strip():
            Log.error("Blob signal with empty key, dropping")
            return None

        request = ProcessingRequest(
            document_id=derive_document_id(source_key),
            source_key=source_key,
        )
        try:
            self._register(request)
            self._queue.enqueue(request)
        except Exception as exc:
            Log.error(f"Error ingesting blob {source_key}: {exc}")
            return None

        Log.info(f"Document {request.document_id} enqueued for processing")
        return request

    def request_upload(self, file_name: str, content_type: str) -> UploadResponse:
        """Mint an identity, create its record and enqueue it ahead of the upload.

        Raises:
            ValidationError: if file_name or content_type is missing or invalid.
        """
        _validate_upload(file_name, content_type)

        document_id = new_document_id()
        request = ProcessingRequest(
            document_id=document_id,
            source_key=build_upload_key(document_id, file_name),
        )
        url = self._blob_store.presigned_upload_url(
            request.source_key,
            content_type,
            self._presigned_url_expiry_seconds,
        )
        self._doc_repo.create(_new_record(request))
        self._queue.enqueue(request, delay_seconds=self._upload_dispatch_delay_seconds)

        Log.info(f"Issued upload URL for document {document_id} ({request.source_key})")
        return UploadResponse(presigned_upload_url=url, document_id=document_id)

    def _register(self, request: ProcessingRequest) -> bool:
        if self._doc_repo.exists(request.document_id):
            Log.info(
                f"Document {request.document_id} already exists, skipping record creation"
            )
            return False
        try:
            self._doc_repo.create(_new_record(request))
        except DocumentAlreadyExistsError:
            Log.info(
                f"Document {request.document_id} was created concurrently, "
                "skipping record creation"
            )
            return False
        return True


def _new_record(request: ProcessingRequest) -> DocumentRecord:
    return DocumentRecord(
        document_id=request.document_id,
        source_key=request.source_key,
        status=DocumentStatus.UPLOADED,
        upload_time=datetime.now(timezone.utc),
    )


def _validate_upload(file_name: str, content_type: str) -> None:
    if not file_name or not file_name.strip():
        raise ValidationError("Missing fileName")
    if not content_type or not content_type.strip():
        raise ValidationError("Missing contentType")
    if "/" in file_name or "\\" in file_name or file_name in (".", ".."):
        raise ValidationError(f"fileName must be a plain file name, got {file_name!r}")
