from typing import Any

import pymupdf

from docflow.ocr.base import BaseOcrExtractor
from docflow.ocr.exceptions import OcrError
from docflow.ocr.models import LINE, OcrElement, OcrResult

_TEXT_BLOCK = 0


class PyMuPdfAdapter(BaseOcrExtractor):
    """Extracts text lines from PDF using PyMuPDF's layout dictionary."""

    def analyze(self, document_bytes: bytes) -> OcrResult:
        try:
            elements: list[OcrElement] = []
            with pymupdf.open(stream=document_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                page_count = doc.page_count
                for index, page in enumerate(doc, start=1):
                    layout = page.get_text("dict")
                    elements.extend(self._page_elements(layout, index))
        except OcrError:
            raise
        except Exception as exc:
            raise OcrError(f"pymupdf extraction failed: {exc}") from exc

        result = OcrResult(elements=elements)
        result.raw = {
            "engine": "pymupdf",
            "pages": page_count,
            "elements": result.elements_payload(),
        }
        return result

    @staticmethod
    def _page_elements(layout: dict[str, Any], page_number: int) -> list[OcrElement]:
        elements: list[OcrElement] = []
        for block in layout.get("blocks", []):
            if block.get("type") != _TEXT_BLOCK:
                continue
            for line in block.get("lines", []):
                text = "".join(span.get("text", "") for span in line.get("spans", [])).strip()
                if text:
                    elements.append(OcrElement(kind=LINE, text=text, page=page_number))
        return elements
