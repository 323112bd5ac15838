import time

from docflow.database.connection import Database
from docflow.database.models import MessageRecord
from docflow.database.repositories.dispatch_repository import DispatchQueue
from docflow.logging.logger import Log
from docflow.worker.message_runner import MessageRunner


class QueueConsumer:
    """Poll loop: claim -> dispatch -> sleep when idle."""

    def __init__(
        self,
        db: Database,
        queue: DispatchQueue,
        message_runner: MessageRunner,
        poll_interval_seconds: int,
    ) -> None:
        self._db = db
        self._queue = queue
        self._message_runner = message_runner
        self._poll_interval_seconds = poll_interval_seconds

    def run(self, max_messages: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_messages is set, stop after handling that many messages (for testing).
        """
        Log.info("Consumer started, polling for messages")
        handled = 0
        try:
            while True:
                if max_messages is not None and handled >= max_messages:
                    break
                message = self._try_claim_message()
                if message:
                    self._run_message(message)
                    handled += 1
                else:
                    Log.debug("No messages available, sleeping")
                    time.sleep(self._poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Consumer shutting down gracefully")

    def _run_message(self, message: MessageRecord) -> None:
        """Run one message; an unexpected error must not stop the poll loop."""
        try:
            self._message_runner.run(message)
        except Exception as exc:
            Log.error(f"Unhandled error on message {message.id}, left for redelivery: {exc}")

    def _try_claim_message(self) -> MessageRecord | None:
        """Attempt to claim the next message. Gracefully handle DB errors."""
        try:
            with self._db.connection() as conn:
                return self._queue.claim_next(conn)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
