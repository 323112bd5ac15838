from unittest.mock import MagicMock, patch

from docflow.database.models import MessageRecord
from docflow.processor.processor import WorkerOutcome
from docflow.worker.consumer import QueueConsumer
from docflow.worker.message_runner import MessageRunner

BODY = '{"documentId": "doc-123", "sourceKey": "uploads/direct/doc-123/file.pdf"}'


def _consumer(queue: MagicMock, runner: MessageRunner | MagicMock) -> QueueConsumer:
    db = MagicMock()
    return QueueConsumer(db, queue, runner, poll_interval_seconds=5)


def _message(message_id: int, body: str = "{}") -> MessageRecord:
    return MessageRecord(id=message_id, body=body, status="in_flight", receive_count=1)


class TestQueueConsumer:
    def test_runs_claimed_messages_until_limit(self) -> None:
        queue = MagicMock()
        queue.claim_next.side_effect = [_message(1), _message(2), _message(3)]
        runner = MagicMock()

        _consumer(queue, runner).run(max_messages=2)

        assert runner.run.call_count == 2
        assert [c.args[0].id for c in runner.run.call_args_list] == [1, 2]

    @patch("docflow.worker.consumer.time.sleep")
    def test_sleeps_when_idle(self, mock_sleep: MagicMock) -> None:
        queue = MagicMock()
        queue.claim_next.side_effect = [None, _message(1)]
        runner = MagicMock()

        _consumer(queue, runner).run(max_messages=1)

        mock_sleep.assert_called_once_with(5)
        runner.run.assert_called_once()

    @patch("docflow.worker.consumer.time.sleep")
    def test_database_errors_are_retried(self, mock_sleep: MagicMock) -> None:
        queue = MagicMock()
        queue.claim_next.side_effect = [ConnectionError("db down"), _message(1)]
        runner = MagicMock()

        _consumer(queue, runner).run(max_messages=1)

        mock_sleep.assert_called_once()
        runner.run.assert_called_once()

    def test_ack_failure_does_not_stop_the_loop(self) -> None:
        queue = MagicMock()
        queue.claim_next.side_effect = [_message(1, BODY), _message(2, BODY)]
        queue.ack.side_effect = ConnectionError("db blip on ack")
        worker = MagicMock()
        worker.run.return_value = WorkerOutcome.PROCESSED
        runner = MessageRunner(worker, queue)

        _consumer(queue, runner).run(max_messages=2)

        assert worker.run.call_count == 2
        assert queue.ack.call_count == 2

    def test_runner_error_moves_on_to_next_message(self) -> None:
        queue = MagicMock()
        queue.claim_next.side_effect = [_message(1), _message(2)]
        runner = MagicMock()
        runner.run.side_effect = [RuntimeError("unexpected"), None]

        _consumer(queue, runner).run(max_messages=2)

        assert [c.args[0].id for c in runner.run.call_args_list] == [1, 2]

    def test_keyboard_interrupt_stops_cleanly(self) -> None:
        queue = MagicMock()
        queue.claim_next.return_value = _message(1)
        runner = MagicMock()
        runner.run.side_effect = KeyboardInterrupt

        _consumer(queue, runner).run()

        runner.run.assert_called_once()
