from collections.abc import Mapping
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from docflow.database.connection import Database
from docflow.database.models import (
    PREDECESSORS,
    REQUIRED_TRANSITION_FIELDS,
    TRANSITION_FIELDS,
    DocumentRecord,
    DocumentStatus,
)
from docflow.processor.exceptions import (
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    TransitionConflictError,
)

_COLUMNS = """
    document_id, source_key, status, upload_time, processed_time,
    extraction_result, entities, error_message, lease_token, lease_expires_at
"""

_JSON_COLUMNS = frozenset({"extraction_result", "entities"})


class DocumentRepository:
    """Database operations for the documents table.

    Every status change is a single conditional UPDATE whose WHERE clause only
    matches legal predecessor statuses, so forward-only ordering holds even
    when several writers race on the same document.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    def create(self, record: DocumentRecord) -> None:
        """Insert a new UPLOADED record.

        Raises:
            DocumentAlreadyExistsError: if the identity is already present.
        """
        if record.status is not DocumentStatus.UPLOADED:
            raise ValueError("New document records must start in UPLOADED")
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO documents (document_id, source_key, status, upload_time)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (document_id) DO NOTHING
                    """,
                    (
                        record.document_id,
                        record.source_key,
                        record.status.value,
                        record.upload_time,
                    ),
                )
                if cur.rowcount == 0:
                    raise DocumentAlreadyExistsError(
                        f"Document {record.document_id} already exists"
                    )
            conn.commit()

    def find_by_id(self, document_id: str) -> DocumentRecord:
        """Find a document record by identity.

        Raises:
            DocumentNotFoundError: if no record with this identity exists.
        """
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM documents WHERE document_id = %s",
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return _row_to_record(row)

    def exists(self, document_id: str) -> bool:
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT 1 FROM documents WHERE document_id = %s",
                    (document_id,),
                )
                return cur.fetchone() is not None

    def transition(
        self,
        document_id: str,
        status: DocumentStatus,
        *,
        expected: DocumentStatus | None = None,
        fields: Mapping[str, Any] | None = None,
        lease_token: str | None = None,
    ) -> None:
        """Atomically move a document to ``status`` and set ``fields``.

        Args:
            document_id: Target document.
            status: New status. Must have a legal predecessor.
            expected: Optional current status the write is conditional on.
            fields: Columns to set alongside the status, validated per status.
            lease_token: When given, the write only applies while the caller
                still holds the processing lease.

        Raises:
            DocumentNotFoundError: if no record with this identity exists.
            TransitionConflictError: if the current status (or lease) does not
                allow this transition.
            ValueError: if ``fields`` are not valid for ``status``.
        """
        allowed = PREDECESSORS[status]
        if expected is not None:
            if expected not in allowed:
                raise TransitionConflictError(
                    document_id,
                    expected.value,
                    f"Illegal transition {expected.value} -> {status.value}",
                )
            allowed = frozenset({expected})
        if not allowed:
            raise ValueError(f"No transition may enter {status.value}")

        values = dict(fields or {})
        _validate_fields(status, values)

        assignments = [
            sql.SQL("status = {}").format(sql.Literal(status.value)),
            sql.SQL("updated_at = NOW()"),
        ]
        params: list[Any] = []
        for column in sorted(values):
            assignments.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
            value = _strip_nul(values[column])
            params.append(Jsonb(value) if column in _JSON_COLUMNS else value)
        if status.is_terminal:
            assignments.append(sql.SQL("lease_token = NULL"))
            assignments.append(sql.SQL("lease_expires_at = NULL"))

        condition = sql.SQL("document_id = %s AND status = ANY(%s)")
        params.extend([document_id, sorted(s.value for s in allowed)])
        if lease_token is not None:
            condition = sql.SQL("{} AND lease_token = %s").format(condition)
            params.append(lease_token)

        query = sql.SQL("UPDATE documents SET {} WHERE {}").format(
            sql.SQL(", ").join(assignments),
            condition,
        )
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                updated = cur.rowcount
            if updated == 0:
                raise self._conflict(conn, document_id)
            conn.commit()

    def acquire_lease(
        self,
        document_id: str,
        lease_token: str,
        lease_seconds: int,
    ) -> DocumentRecord:
        """Compare-and-swap gate into PROCESSING.

        Succeeds when the record is UPLOADED, or PROCESSING with an expired
        lease (an abandoned execution). The winner's token is stamped on the
        row; terminal writes are later made conditional on it.

        Raises:
            DocumentNotFoundError: if no record with this identity exists.
            TransitionConflictError: if another execution holds a live lease or
                the record is already terminal.
        """
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE documents
                    SET status = 'PROCESSING',
                        lease_token = %s,
                        lease_expires_at = NOW() + %s * INTERVAL '1 second',
                        updated_at = NOW()
                    WHERE document_id = %s
                      AND (status = 'UPLOADED'
                           OR (status = 'PROCESSING' AND lease_expires_at < NOW()))
                    RETURNING {_COLUMNS}
                    """,
                    (lease_token, lease_seconds, document_id),
                )
                row = cur.fetchone()
            if row is None:
                raise self._conflict(conn, document_id)
            conn.commit()
        return _row_to_record(row)

    def find_stale_processing(self, limit: int) -> list[DocumentRecord]:
        """Records stuck in PROCESSING whose lease has expired."""
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM documents
                    WHERE status = 'PROCESSING'
                      AND lease_expires_at < NOW()
                    ORDER BY lease_expires_at
                    LIMIT %s
                    """,
                    (limit,),
                )
                rows = cur.fetchall()
        return [_row_to_record(row) for row in rows]

    @staticmethod
    def _conflict(conn: psycopg.Connection[Any], document_id: str) -> Exception:
        conn.rollback()
        with conn.cursor() as cur:
            cur.execute(
                "SELECT status FROM documents WHERE document_id = %s",
                (document_id,),
            )
            row = cur.fetchone()
        conn.rollback()
        if row is None:
            return DocumentNotFoundError(f"Document {document_id} not found")
        return TransitionConflictError(document_id, row[0])


def _strip_nul(value: Any) -> Any:
    """PostgreSQL TEXT and JSONB reject U+0000, so drop it from strings at any depth."""
    if isinstance(value, str):
        return value.replace("\x00", "")
    if isinstance(value, Mapping):
        return {_strip_nul(k): _strip_nul(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_strip_nul(item) for item in value]
    return value


def _validate_fields(status: DocumentStatus, values: Mapping[str, Any]) -> None:
    unknown = set(values) - TRANSITION_FIELDS[status]
    if unknown:
        raise ValueError(
            f"Fields {sorted(unknown)} cannot be set on transition to {status.value}"
        )
    present = {name for name, value in values.items() if value is not None}
    missing = REQUIRED_TRANSITION_FIELDS.get(status, frozenset()) - present
    if missing:
        raise ValueError(
            f"Transition to {status.value} requires fields {sorted(missing)}"
        )


def _row_to_record(row: Mapping[str, Any]) -> DocumentRecord:
    return DocumentRecord(
        document_id=row["document_id"],
        source_key=row["source_key"],
        status=DocumentStatus(row["status"]),
        upload_time=row["upload_time"],
        processed_time=row["processed_time"],
        extraction_result=row["extraction_result"],
        entities=row["entities"],
        error_message=row["error_message"],
        lease_token=row["lease_token"],
        lease_expires_at=row["lease_expires_at"],
    )
