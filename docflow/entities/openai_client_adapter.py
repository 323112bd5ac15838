from typing import Any

import httpx
import openai

from docflow.entities.client_base import BaseEntityClient
from docflow.entities.exceptions import EntityNetworkError, EntityRecognitionError

_NETWORK_ERRORS = (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException)


def _schema_response_format(json_schema: dict[str, object]) -> dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {"name": "entity_result", "strict": True, "schema": json_schema},
    }


def _reply_text(response: Any) -> str:
    if not response.choices:
        raise EntityRecognitionError("AI returned no choices")
    content = response.choices[0].message.content
    if content is None:
        raise EntityRecognitionError("AI returned empty response")
    return content


class OpenAIClientAdapter(BaseEntityClient):
    """Entity client for any OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._openai = openai.OpenAI(api_key=api_key, timeout=timeout_seconds, base_url=base_url)

    def complete_json(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        try:
            response = self._openai.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format=_schema_response_format(json_schema),
                messages=messages,
            )
        except _NETWORK_ERRORS as exc:
            raise EntityNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise EntityNetworkError(f"AI provider API error: {exc}") from exc
        return _reply_text(response)
