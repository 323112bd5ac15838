from docflow.database.connection import Database

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    document_id       TEXT PRIMARY KEY,
    source_key        TEXT NOT NULL,
    status            TEXT NOT NULL
        CHECK (status IN ('UPLOADED', 'PROCESSING', 'PROCESSED', 'ERROR')),
    upload_time       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    processed_time    TIMESTAMPTZ,
    extraction_result JSONB,
    entities          JSONB,
    error_message     TEXT,
    lease_token       TEXT,
    lease_expires_at  TIMESTAMPTZ,
    updated_at        TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS documents_processing_lease_idx
    ON documents (lease_expires_at)
    WHERE status = 'PROCESSING';

CREATE TABLE IF NOT EXISTS dispatch_messages (
    id            BIGSERIAL PRIMARY KEY,
    body          TEXT NOT NULL,
    status        TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'in_flight', 'done', 'dead_letter')),
    receive_count INTEGER NOT NULL DEFAULT 0,
    available_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    locked_at     TIMESTAMPTZ,
    last_error    TEXT,
    created_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at    TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS dispatch_messages_claim_idx
    ON dispatch_messages (status, available_at);
"""


def apply_schema(db: Database) -> None:
    """Create the documents and dispatch_messages tables if missing."""
    with db.connection() as conn:
        conn.execute(SCHEMA_SQL)
        conn.commit()
