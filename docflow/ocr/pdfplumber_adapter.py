import io

import pdfplumber
from pdfplumber.page import Page

from docflow.ocr.base import BaseOcrExtractor
from docflow.ocr.exceptions import OcrError
from docflow.ocr.models import LINE, TABLE, OcrElement, OcrResult


class PdfPlumberAdapter(BaseOcrExtractor):
    """Extracts text lines and table rows from PDF using pdfplumber."""

    def analyze(self, document_bytes: bytes) -> OcrResult:
        try:
            elements: list[OcrElement] = []
            with pdfplumber.open(io.BytesIO(document_bytes)) as pdf:
                page_count = len(pdf.pages)
                for page in pdf.pages:
                    elements.extend(self._page_elements(page))
        except OcrError:
            raise
        except Exception as exc:
            raise OcrError(f"pdfplumber extraction failed: {exc}") from exc

        result = OcrResult(elements=elements)
        result.raw = {
            "engine": "pdfplumber",
            "pages": page_count,
            "elements": result.elements_payload(),
        }
        return result

    @staticmethod
    def _page_elements(page: Page) -> list[OcrElement]:
        number = page.page_number
        text = page.extract_text() or ""
        elements = [
            OcrElement(kind=LINE, text=line.strip(), page=number)
            for line in text.splitlines()
            if line.strip()
        ]
        for table in page.extract_tables():
            for row in table:
                cells = [cell.strip() for cell in row if cell and cell.strip()]
                if cells:
                    elements.append(OcrElement(kind=TABLE, text=" | ".join(cells), page=number))
        return elements
