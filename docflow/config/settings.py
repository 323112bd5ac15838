from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "docflow"
    db_username: str = "docflow"
    db_password: str = "secret"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10

    aws_region: str = "us-west-1"

    blob_store: str = "local"
    blob_root: str = "/app/files"
    s3_bucket: str = ""
    presigned_url_expiry_seconds: int = 3600

    ocr_engine: str = "pdfplumber"

    entity_provider: str = "example"
    entity_language_code: str = "en"
    openai_api_key: str = ""
    openai_model_name: str = ""
    openai_base_url: str | None = None
    openai_timeout_seconds: int = 30

    max_receive_count: int = 3
    visibility_timeout_seconds: int = 900
    queue_poll_interval_seconds: int = 5
    upload_dispatch_delay_seconds: int = 60

    processing_lease_seconds: int = 900
    reconcile_batch_size: int = 100
