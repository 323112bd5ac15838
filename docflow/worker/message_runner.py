from docflow.database.models import MessageRecord
from docflow.database.repositories.dispatch_repository import DispatchQueue
from docflow.logging.logger import Log
from docflow.processor.exceptions import ValidationError
from docflow.processor.models import ProcessingRequest
from docflow.processor.processor import ExtractionWorker


class MessageRunner:
    """Run one dispatch message through the extraction worker, then ack or release it.

    Queue bookkeeping failures are logged and left to the visibility timeout:
    an unacknowledged message is redelivered and the worker's lease gate makes
    the repeat run harmless.
    """

    def __init__(self, extraction_worker: ExtractionWorker, queue: DispatchQueue) -> None:
        self._extraction_worker = extraction_worker
        self._queue = queue

    def run(self, message: MessageRecord) -> None:
        """Execute a single message with error handling."""
        Log.info(f"Running message {message.id} (delivery {message.receive_count})")
        try:
            request = ProcessingRequest.from_json(message.body)
        except ValidationError as exc:
            Log.error(f"Message {message.id} rejected: {exc}")
            self._dead_letter(message, str(exc))
            return

        try:
            outcome = self._extraction_worker.run(request)
        except Exception as exc:
            self._handle_failure(message, exc)
            return

        try:
            self._queue.ack(message.id)
        except Exception as exc:
            Log.error(f"Message {message.id} ran but could not be acked: {exc}")
            return
        Log.info(f"Message {message.id} done: {outcome.value}")

    def _dead_letter(self, message: MessageRecord, reason: str) -> None:
        try:
            self._queue.dead_letter(message.id, reason)
        except Exception as exc:
            Log.error(f"Message {message.id} could not be dead-lettered: {exc}")

    def _handle_failure(self, message: MessageRecord, exc: Exception) -> None:
        """Return the message for redelivery, or dead-letter it once exhausted."""
        Log.error(f"Message {message.id} failed: {exc}")
        try:
            status = self._queue.release(message.id, str(exc) or type(exc).__name__)
        except Exception as release_exc:
            Log.error(f"Message {message.id} could not be released: {release_exc}")
            return
        if status == "dead_letter":
            Log.error(
                f"Message {message.id} dead-lettered after {message.receive_count} deliveries"
            )
        else:
            Log.warning(f"Message {message.id} will be redelivered")
