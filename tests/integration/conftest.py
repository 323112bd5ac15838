import os
from collections.abc import Callable, Generator
from datetime import datetime, timezone

import psycopg
import pytest

from docflow.config.settings import Settings
from docflow.database.connection import Database, build_conninfo
from docflow.database.models import DocumentRecord, DocumentStatus
from docflow.database.repositories.dispatch_repository import DispatchQueue
from docflow.database.repositories.document_repository import DocumentRepository
from docflow.database.schema import apply_schema


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "docflow_test")
    return Settings()


def _truncate(db: Database) -> None:
    with db.connection() as conn:
        conn.execute("TRUNCATE documents, dispatch_messages RESTART IDENTITY")
        conn.commit()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_db(test_settings: Settings) -> Generator[Database, None, None]:
    try:
        psycopg.connect(build_conninfo(test_settings), connect_timeout=3).close()
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    db = Database.from_settings(test_settings)
    apply_schema(db)
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db(integration_db: Database) -> Generator[Database, None, None]:
    _truncate(integration_db)
    yield integration_db
    _truncate(integration_db)


@pytest.fixture
def doc_repo(db: Database) -> DocumentRepository:
    return DocumentRepository(db)


@pytest.fixture
def queue(db: Database) -> DispatchQueue:
    return DispatchQueue(db, max_receive_count=3, visibility_timeout_seconds=900)


@pytest.fixture
def uploaded_document(doc_repo: DocumentRepository) -> DocumentRecord:
    record = DocumentRecord(
        document_id="doc-123",
        source_key="uploads/direct/doc-123/file.pdf",
        status=DocumentStatus.UPLOADED,
        upload_time=datetime.now(timezone.utc),
    )
    doc_repo.create(record)
    return record


@pytest.fixture
def expire_lease(db: Database) -> Callable[[str], None]:
    """Push a document's lease into the past."""

    def _expire(document_id: str) -> None:
        with db.connection() as conn:
            conn.execute(
                "UPDATE documents SET lease_expires_at = NOW() - INTERVAL '1 minute' "
                "WHERE document_id = %s",
                (document_id,),
            )
            conn.commit()

    return _expire
