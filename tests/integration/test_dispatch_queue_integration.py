import pytest

from docflow.database.connection import Database
from docflow.database.repositories.dispatch_repository import DispatchQueue
from docflow.processor.models import ProcessingRequest

REQUEST = ProcessingRequest("doc-123", "uploads/direct/doc-123/file.pdf")


def _expire_visibility(db: Database, message_id: int) -> None:
    with db.connection() as conn:
        conn.execute(
            "UPDATE dispatch_messages SET locked_at = NOW() - INTERVAL '1 hour' WHERE id = %s",
            (message_id,),
        )
        conn.commit()


@pytest.mark.integration
class TestDispatchQueue:
    def test_enqueue_claim_ack(self, db: Database, queue: DispatchQueue) -> None:
        message_id = queue.enqueue(REQUEST)

        with db.connection() as conn:
            message = queue.claim_next(conn)
        assert message is not None
        assert message.id == message_id
        assert ProcessingRequest.from_json(message.body) == REQUEST
        assert message.receive_count == 1

        queue.ack(message_id)

        stored = queue.find_by_id(message_id)
        assert stored is not None
        assert stored.status == "done"
        with db.connection() as conn:
            assert queue.claim_next(conn) is None

    def test_delayed_message_is_not_visible_yet(
        self, db: Database, queue: DispatchQueue
    ) -> None:
        queue.enqueue(REQUEST, delay_seconds=3600)

        with db.connection() as conn:
            assert queue.claim_next(conn) is None

    def test_in_flight_message_is_hidden_until_timeout(
        self, db: Database, queue: DispatchQueue
    ) -> None:
        message_id = queue.enqueue(REQUEST)
        with db.connection() as conn:
            queue.claim_next(conn)
            assert queue.claim_next(conn) is None

        _expire_visibility(db, message_id)

        with db.connection() as conn:
            redelivered = queue.claim_next(conn)
        assert redelivered is not None
        assert redelivered.receive_count == 2

    def test_release_then_dead_letter_after_max_deliveries(
        self, db: Database, queue: DispatchQueue
    ) -> None:
        message_id = queue.enqueue(REQUEST)
        statuses = []
        for _ in range(3):
            with db.connection() as conn:
                message = queue.claim_next(conn)
            assert message is not None
            statuses.append(queue.release(message_id, "boom"))

        assert statuses == ["pending", "pending", "dead_letter"]
        stored = queue.find_by_id(message_id)
        assert stored is not None
        assert stored.last_error == "boom"
        with db.connection() as conn:
            assert queue.claim_next(conn) is None

    def test_exhausted_abandoned_message_is_dead_lettered(
        self, db: Database, queue: DispatchQueue
    ) -> None:
        message_id = queue.enqueue(REQUEST)
        for _ in range(3):
            with db.connection() as conn:
                assert queue.claim_next(conn) is not None
            _expire_visibility(db, message_id)

        with db.connection() as conn:
            assert queue.claim_next(conn) is None
        stored = queue.find_by_id(message_id)
        assert stored is not None
        assert stored.status == "dead_letter"
