from dataclasses import asdict, dataclass, field
from typing import Any

LINE = "line"
TABLE = "table"


@dataclass(frozen=True)
class OcrElement:
    """One extracted element, in document order."""

    kind: str
    text: str
    page: int | None = None


@dataclass
class OcrResult:
    """Output of an OCR adapter.

    ``raw`` is the engine's own response, persisted verbatim as the
    document's extraction result.
    """

    elements: list[OcrElement] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)

    def elements_payload(self) -> list[dict[str, Any]]:
        return [asdict(element) for element in self.elements]
