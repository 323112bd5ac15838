import json
import time
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

import typer

from docflow.config.settings import Settings
from docflow.database.connection import Database
from docflow.database.repositories.dispatch_repository import DispatchQueue
from docflow.database.repositories.document_repository import DocumentRepository
from docflow.database.schema import apply_schema
from docflow.ingestion.gatekeeper import IngestionGatekeeper
from docflow.logging.logger import Log
from docflow.processor.exceptions import DocumentNotFoundError, ValidationError
from docflow.processor.processor import build_extraction_worker
from docflow.services.status_service import DocumentStatusService
from docflow.storage.factory import BlobStoreFactory
from docflow.worker.consumer import QueueConsumer
from docflow.worker.message_runner import MessageRunner
from docflow.worker.reconciler import Reconciler

app = typer.Typer(help="docflow document extraction pipeline")


def load_settings() -> Settings:
    settings = Settings()
    Log.configure(settings.log_level)
    return settings


@contextmanager
def open_database(settings: Settings) -> Generator[Database, None, None]:
    db = Database.from_settings(settings)
    try:
        yield db
    finally:
        db.close()


def build_queue(settings: Settings, db: Database) -> DispatchQueue:
    return DispatchQueue(
        db,
        max_receive_count=settings.max_receive_count,
        visibility_timeout_seconds=settings.visibility_timeout_seconds,
    )


def build_gatekeeper(settings: Settings, db: Database) -> IngestionGatekeeper:
    return IngestionGatekeeper(
        DocumentRepository(db),
        build_queue(settings, db),
        BlobStoreFactory.create(settings),
        presigned_url_expiry_seconds=settings.presigned_url_expiry_seconds,
        upload_dispatch_delay_seconds=settings.upload_dispatch_delay_seconds,
    )


def build_consumer(settings: Settings, db: Database) -> QueueConsumer:
    queue = build_queue(settings, db)
    extraction_worker = build_extraction_worker(settings, DocumentRepository(db))
    return QueueConsumer(
        db,
        queue,
        MessageRunner(extraction_worker, queue),
        settings.queue_poll_interval_seconds,
    )


@app.command("init-db")
def init_db() -> None:
    """Create the documents and dispatch_messages tables."""
    settings = load_settings()
    with open_database(settings) as db:
        apply_schema(db)
    Log.info("Schema applied")


@app.command()
def consume(
    max_messages: int | None = typer.Option(None, help="Stop after this many messages"),
) -> None:
    """Consume the dispatch queue and run extractions."""
    settings = load_settings()
    with open_database(settings) as db:
        build_consumer(settings, db).run(max_messages=max_messages)


@app.command()
def ingest(source_key: str) -> None:
    """Signal that a blob is available under SOURCE_KEY."""
    settings = load_settings()
    with open_database(settings) as db:
        request = build_gatekeeper(settings, db).handle_blob_available(source_key)
    if request is None:
        raise typer.Exit(code=1)
    typer.echo(request.to_json())


@app.command("ingest-event")
def ingest_event(event_file: Path) -> None:
    """Ingest every object in an S3-style event notification JSON file."""
    settings = load_settings()
    event = json.loads(event_file.read_text(encoding="utf-8"))
    with open_database(settings) as db:
        requests = build_gatekeeper(settings, db).handle_storage_event(event)
    typer.echo(json.dumps([request.to_payload() for request in requests]))


@app.command()
def upload(file_name: str, content_type: str) -> None:
    """Issue a document identity and an upload URL."""
    settings = load_settings()
    with open_database(settings) as db:
        try:
            response = build_gatekeeper(settings, db).request_upload(file_name, content_type)
        except ValidationError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=2) from exc
    typer.echo(json.dumps(response.to_payload()))


@app.command()
def status(document_id: str) -> None:
    """Print the status record of DOCUMENT_ID."""
    settings = load_settings()
    with open_database(settings) as db:
        try:
            record = DocumentStatusService(DocumentRepository(db)).get(document_id)
        except (DocumentNotFoundError, ValidationError) as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1) from exc
    typer.echo(json.dumps(record, indent=2))


@app.command()
def reconcile(
    loop: bool = typer.Option(False, help="Keep sweeping until interrupted"),
    interval_seconds: int = typer.Option(60, help="Pause between sweeps with --loop"),
) -> None:
    """Re-enqueue documents stuck in PROCESSING past their lease."""
    settings = load_settings()
    with open_database(settings) as db:
        reconciler = Reconciler(
            DocumentRepository(db),
            build_queue(settings, db),
            settings.reconcile_batch_size,
        )
        try:
            reconciler.sweep()
            while loop:
                time.sleep(interval_seconds)
                reconciler.sweep()
        except KeyboardInterrupt:
            Log.info("Reconciler shutting down gracefully")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
