from docflow.config.settings import Settings
from docflow.ocr.base import BaseOcrExtractor
from docflow.ocr.pdfplumber_adapter import PdfPlumberAdapter
from docflow.ocr.pymupdf_adapter import PyMuPdfAdapter
from docflow.ocr.textract_adapter import TextractAdapter


class OcrExtractorFactory:
    """Creates the correct OCR extractor based on settings."""

    ENGINES = ("pdfplumber", "pymupdf", "textract")

    @classmethod
    def create(cls, settings: Settings) -> BaseOcrExtractor:
        engine = settings.ocr_engine.lower()
        if engine == "pdfplumber":
            return PdfPlumberAdapter()
        if engine == "pymupdf":
            return PyMuPdfAdapter()
        if engine == "textract":
            return TextractAdapter(region=settings.aws_region)
        raise ValueError(
            f"Unknown OCR engine '{engine}'. Choose from: {list(cls.ENGINES)}"
        )
