from abc import ABC, abstractmethod

from docflow.entities.models import EntityResult


class BaseEntityRecognizer(ABC):
    """Contract for all entity recognition adapters."""

    @abstractmethod
    def detect(self, text: str, language_code: str = "en") -> EntityResult:
        """Recognize named entities in flattened document text.

        Args:
            text: Line text of the document joined with single spaces.
            language_code: ISO language of the text.

        Returns:
            EntityResult listing entities in the order the provider reports them.

        Raises:
            EntityRecognitionError: on any failure.
        """
