from dataclasses import asdict, dataclass, field
from typing import Any

ENTITY_TYPES = frozenset(
    {
        "PERSON",
        "LOCATION",
        "ORGANIZATION",
        "COMMERCIAL_ITEM",
        "EVENT",
        "DATE",
        "QUANTITY",
        "TITLE",
        "OTHER",
    }
)


@dataclass(frozen=True)
class Entity:
    """A single recognized entity mention."""

    text: str
    type: str
    score: float | None = None
    begin_offset: int | None = None
    end_offset: int | None = None


@dataclass(frozen=True)
class EntityResult:
    """Output of the entity recognition step."""

    entities: list[Entity] = field(default_factory=list)

    def to_payload(self) -> list[dict[str, Any]]:
        return [asdict(entity) for entity in self.entities]
