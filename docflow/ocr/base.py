from abc import ABC, abstractmethod

from docflow.ocr.models import OcrResult


class BaseOcrExtractor(ABC):
    """Contract for all OCR extraction adapters."""

    @abstractmethod
    def analyze(self, document_bytes: bytes) -> OcrResult:
        """Extract text-bearing elements from raw document bytes.

        Args:
            document_bytes: Raw file content fetched from the blob store.

        Returns:
            OcrResult with elements in document order and the raw response.

        Raises:
            OcrError: if extraction fails for any reason.
        """
