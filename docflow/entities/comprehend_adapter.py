from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from docflow.entities.base import BaseEntityRecognizer
from docflow.entities.exceptions import EntityNetworkError
from docflow.entities.models import Entity, EntityResult
from docflow.logging.logger import Log

# DetectEntities accepts at most 100 KB of UTF-8 text per call.
MAX_TEXT_BYTES = 100_000


def truncate_utf8(text: str, max_bytes: int = MAX_TEXT_BYTES) -> str:
    """Cut text to at most ``max_bytes`` UTF-8 bytes without splitting a character."""
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


class ComprehendAdapter(BaseEntityRecognizer):
    """Entity recognition through AWS Comprehend DetectEntities."""

    def __init__(self, *, client: Any | None = None, region: str | None = None) -> None:
        self._client = client or boto3.client("comprehend", region_name=region)

    def detect(self, text: str, language_code: str = "en") -> EntityResult:
        if not text.strip():
            return EntityResult()

        payload = truncate_utf8(text)
        if len(payload) < len(text):
            Log.warning(
                f"Entity input truncated from {len(text)} to {len(payload)} chars"
            )

        try:
            response = self._client.detect_entities(Text=payload, LanguageCode=language_code)
        except (ClientError, BotoCoreError) as exc:
            raise EntityNetworkError(f"Comprehend detect_entities failed: {exc}") from exc

        return EntityResult(
            entities=[
                Entity(
                    text=item.get("Text", ""),
                    type=item.get("Type", "OTHER"),
                    score=item.get("Score"),
                    begin_offset=item.get("BeginOffset"),
                    end_offset=item.get("EndOffset"),
                )
                for item in response.get("Entities", [])
            ]
        )
