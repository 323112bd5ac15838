from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from docflow.ocr.base import BaseOcrExtractor
from docflow.ocr.exceptions import OcrError
from docflow.ocr.models import OcrElement, OcrResult


class TextractAdapter(BaseOcrExtractor):
    """Synchronous AWS Textract AnalyzeDocument with table and form features.

    Textract block types are lower-cased into element kinds, so LINE blocks
    become "line" elements.
    """

    FEATURE_TYPES = ["TABLES", "FORMS"]

    def __init__(self, *, client: Any | None = None, region: str | None = None) -> None:
        self._client = client or boto3.client("textract", region_name=region)

    def analyze(self, document_bytes: bytes) -> OcrResult:
        try:
            response = self._client.analyze_document(
                Document={"Bytes": document_bytes},
                FeatureTypes=self.FEATURE_TYPES,
            )
        except (ClientError, BotoCoreError) as exc:
            raise OcrError(f"Textract analyze_document failed: {exc}") from exc

        elements = [
            OcrElement(
                kind=str(block.get("BlockType", "")).lower(),
                text=block.get("Text", ""),
                page=block.get("Page"),
            )
            for block in response.get("Blocks", [])
        ]
        raw = {key: value for key, value in response.items() if key != "ResponseMetadata"}
        return OcrResult(elements=elements, raw=raw)
