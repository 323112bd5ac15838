from abc import ABC, abstractmethod


class BaseEntityClient(ABC):
    """Chat model client that answers an entity prompt with a JSON document."""

    @abstractmethod
    def complete_json(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        """Return the raw model reply, expected to hold one JSON object."""
