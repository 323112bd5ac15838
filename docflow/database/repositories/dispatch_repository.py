from typing import Any

import psycopg
from psycopg.rows import dict_row

from docflow.database.connection import Database
from docflow.database.models import MessageRecord
from docflow.processor.models import ProcessingRequest


class DispatchQueue:
    """At-least-once message queue on the dispatch_messages table.

    A claimed message stays in_flight until it is acked or released. If the
    consumer dies, the message becomes claimable again once the visibility
    timeout passes. After max_receive_count deliveries it is dead-lettered.
    """

    def __init__(
        self,
        db: Database,
        max_receive_count: int,
        visibility_timeout_seconds: int,
    ) -> None:
        self._db = db
        self._max_receive_count = max_receive_count
        self._visibility_timeout_seconds = visibility_timeout_seconds

    def enqueue(self, request: ProcessingRequest, delay_seconds: int = 0) -> int:
        """Append a processing request. Returns the message ID."""
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO dispatch_messages (body, available_at)
                    VALUES (%s, NOW() + %s * INTERVAL '1 second')
                    RETURNING id
                    """,
                    (request.to_json(), delay_seconds),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise RuntimeError("Enqueue returned no message id")
        return int(row[0])

    def claim_next(self, conn: psycopg.Connection[Any]) -> MessageRecord | None:
        """Claim the next visible message using SELECT FOR UPDATE SKIP LOCKED."""
        conn.execute(
            """
            UPDATE dispatch_messages
            SET status = 'dead_letter',
                last_error = 'visibility timeout expired on final delivery',
                locked_at = NULL, updated_at = NOW()
            WHERE status = 'in_flight'
              AND locked_at < NOW() - %s * INTERVAL '1 second'
              AND receive_count >= %s
            """,
            (self._visibility_timeout_seconds, self._max_receive_count),
        )
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id, body, status, receive_count
                FROM dispatch_messages
                WHERE (status = 'pending' AND available_at <= NOW())
                   OR (status = 'in_flight'
                       AND locked_at < NOW() - %s * INTERVAL '1 second')
                ORDER BY available_at, id
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """,
                (self._visibility_timeout_seconds,),
            )
            row = cur.fetchone()

        if row is None:
            conn.commit()
            return None

        conn.execute(
            """
            UPDATE dispatch_messages
            SET status = 'in_flight', receive_count = receive_count + 1,
                locked_at = NOW(), updated_at = NOW()
            WHERE id = %s
            """,
            (row["id"],),
        )
        conn.commit()

        return MessageRecord(
            id=row["id"],
            body=row["body"],
            status="in_flight",
            receive_count=row["receive_count"] + 1,
        )

    def ack(self, message_id: int) -> None:
        """Mark a message as successfully handled."""
        with self._db.connection() as conn:
            conn.execute(
                """
                UPDATE dispatch_messages
                SET status = 'done', locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (message_id,),
            )
            conn.commit()

    def release(self, message_id: int, error: str) -> str:
        """Return a message for redelivery, or dead-letter it when exhausted.

        Returns:
            The message's new status: 'pending' or 'dead_letter'.
        """
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE dispatch_messages
                    SET status = CASE WHEN receive_count >= %s
                                      THEN 'dead_letter' ELSE 'pending' END,
                        last_error = %s, locked_at = NULL,
                        available_at = NOW(), updated_at = NOW()
                    WHERE id = %s
                    RETURNING status
                    """,
                    (self._max_receive_count, error, message_id),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise RuntimeError(f"Message {message_id} not found")
        return str(row[0])

    def dead_letter(self, message_id: int, error: str) -> None:
        """Move a message straight to the dead-letter state."""
        with self._db.connection() as conn:
            conn.execute(
                """
                UPDATE dispatch_messages
                SET status = 'dead_letter', last_error = %s,
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (error, message_id),
            )
            conn.commit()

    def find_by_id(self, message_id: int) -> MessageRecord | None:
        """Find a message by ID. Useful for tests."""
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, body, status, receive_count, last_error,
                           available_at, locked_at, created_at, updated_at
                    FROM dispatch_messages
                    WHERE id = %s
                    """,
                    (message_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        return MessageRecord(
            id=row["id"],
            body=row["body"],
            status=row["status"],
            receive_count=row["receive_count"],
            last_error=row["last_error"],
            available_at=row["available_at"],
            locked_at=row["locked_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
