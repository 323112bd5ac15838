from docflow.processor.exceptions import DependencyError


class OcrError(DependencyError):
    """Raised when OCR extraction fails."""
