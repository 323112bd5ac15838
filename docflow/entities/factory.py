from docflow.config.settings import Settings
from docflow.entities.base import BaseEntityRecognizer
from docflow.entities.comprehend_adapter import ComprehendAdapter
from docflow.entities.example_client_adapter import ExampleClientAdapter
from docflow.entities.openai_client_adapter import OpenAIClientAdapter
from docflow.entities.recognizer import LlmEntityRecognizer


class EntityRecognizerFactory:
    """Creates the configured entity recognizer."""

    PROVIDERS = ("example", "comprehend", "openai")

    @classmethod
    def create(cls, settings: Settings) -> BaseEntityRecognizer:
        """Create a configured recognizer from application settings."""
        provider = settings.entity_provider.lower()
        if provider == "example":
            return LlmEntityRecognizer(
                client=ExampleClientAdapter(),
                model="example",
            )
        if provider == "comprehend":
            return ComprehendAdapter(region=settings.aws_region)
        if provider == "openai":
            if not settings.openai_model_name:
                raise ValueError("openai_model_name is required for entity_provider=openai")
            client = OpenAIClientAdapter(
                api_key=settings.openai_api_key,
                timeout_seconds=settings.openai_timeout_seconds,
                base_url=settings.openai_base_url,
            )
            return LlmEntityRecognizer(client=client, model=settings.openai_model_name)
        raise ValueError(
            f"Unknown entity provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
