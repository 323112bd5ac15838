from docflow.database.repositories.dispatch_repository import DispatchQueue
from docflow.database.repositories.document_repository import DocumentRepository
from docflow.logging.logger import Log
from docflow.processor.models import ProcessingRequest


class Reconciler:
    """Re-enqueue documents whose processing lease expired mid-flight."""

    def __init__(
        self,
        doc_repo: DocumentRepository,
        queue: DispatchQueue,
        batch_size: int,
    ) -> None:
        self._doc_repo = doc_repo
        self._queue = queue
        self._batch_size = batch_size

    def sweep(self) -> int:
        """Run one sweep. Returns how many documents were re-enqueued."""
        stale = self._doc_repo.find_stale_processing(self._batch_size)
        requeued = 0
        for record in stale:
            request = ProcessingRequest(
                document_id=record.document_id,
                source_key=record.source_key,
            )
            try:
                self._queue.enqueue(request)
            except Exception as exc:
                Log.error(f"Failed to re-enqueue stale document {record.document_id}: {exc}")
                continue
            requeued += 1
            Log.warning(
                f"Document {record.document_id} lease expired at "
                f"{record.lease_expires_at}, re-enqueued"
            )
        Log.info(f"Reconcile sweep re-enqueued {requeued} of {len(stale)} stale documents")
        return requeued
