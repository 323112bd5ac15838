from abc import ABC, abstractmethod
from dataclasses import dataclass

from docflow.database.models import DocumentRecord
from docflow.entities.models import EntityResult
from docflow.ocr.models import OcrResult
from docflow.processor.models import ProcessingRequest


@dataclass(slots=True)
class PipelineContext:
    request: ProcessingRequest
    lease_token: str
    record: DocumentRecord | None = None
    raw_bytes: bytes = b""
    ocr_result: OcrResult | None = None
    flattened_text: str = ""
    entity_result: EntityResult | None = None
    error_message: str = ""

    @property
    def document_id(self) -> str:
        return self.request.document_id


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
