"""LLM-backed named entity recognizer."""

import json
from pathlib import Path

from docflow.entities.base import BaseEntityRecognizer
from docflow.entities.client_base import BaseEntityClient
from docflow.entities.exceptions import EntityRecognitionError
from docflow.entities.models import EntityResult
from docflow.entities.prompt_loader import load_json_schema, load_prompt_template
from docflow.entities.validator import validate_and_build
from docflow.logging.logger import Log

MAX_TEMPERATURE = 0.2


def _strip_code_fence(reply: str) -> str:
    """Models sometimes wrap JSON in a markdown fence despite the schema."""
    lines = reply.strip().splitlines()
    if lines and lines[0].startswith("```"):
        lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
    return "\n".join(lines)


def parse_reply(reply: str) -> dict[str, object]:
    try:
        payload = json.loads(_strip_code_fence(reply))
    except json.JSONDecodeError as exc:
        raise EntityRecognitionError(f"Invalid JSON response: {exc}") from exc
    if not isinstance(payload, dict):
        raise EntityRecognitionError("JSON response must be an object")
    return payload


class LlmEntityRecognizer(BaseEntityRecognizer):
    """Recognizes entities by prompting a chat model for schema-bound JSON."""

    def __init__(
        self,
        *,
        client: BaseEntityClient,
        model: str,
        temperature: float = 0.0,
        prompt_template_path: Path | None = None,
        json_schema_path: Path | None = None,
        system_prompt: str = "You extract named entities from documents.",
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = min(max(temperature, 0.0), MAX_TEMPERATURE)
        self._system_prompt = system_prompt
        self._template = load_prompt_template(prompt_template_path)
        self._schema_text = load_json_schema(json_schema_path)
        self._schema = json.loads(self._schema_text)

    def detect(self, text: str, language_code: str = "en") -> EntityResult:
        if not text.strip():
            return EntityResult()

        user_prompt = self._template.format(
            text=text, language_code=language_code, json_schema=self._schema_text
        )
        Log.debug(f"Entity prompt ({len(user_prompt)} chars, language={language_code})")

        reply = self._client.complete_json(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=user_prompt,
            json_schema=self._schema,
        )
        Log.debug(f"Entity model reply:\n{reply}")

        result = validate_and_build(parse_reply(reply))
        Log.info(f"Entity recognition complete: {len(result.entities)} entities")
        return result
