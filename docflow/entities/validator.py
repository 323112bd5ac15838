"""Validates a provider's parsed JSON and builds an EntityResult."""

from typing import Any

from docflow.entities.exceptions import EntityValidationError
from docflow.entities.models import ENTITY_TYPES, Entity, EntityResult

_MAX_ENTITIES = 500


def validate_and_build(data: dict[str, Any]) -> EntityResult:
    """Validate raw parsed JSON and build an EntityResult.

    Raises:
        EntityValidationError: on any validation failure.
    """
    raw = data.get("entities")
    if not isinstance(raw, list):
        raise EntityValidationError("'entities' must be a list")
    if len(raw) > _MAX_ENTITIES:
        raise EntityValidationError(f"Too many entities: {len(raw)} (max {_MAX_ENTITIES})")
    return EntityResult(entities=[_build_entity(item, i) for i, item in enumerate(raw)])


def _build_entity(raw: Any, index: int) -> Entity:
    if not isinstance(raw, dict):
        raise EntityValidationError(f"Entity at index {index} must be an object")
    text = raw.get("text")
    if not text or not isinstance(text, str):
        raise EntityValidationError(f"Entity at index {index}: 'text' must be a non-empty string")
    entity_type = raw.get("type")
    if entity_type not in ENTITY_TYPES:
        raise EntityValidationError(
            f"Entity at index {index}: 'type' must be one of "
            f"{sorted(ENTITY_TYPES)}, got {entity_type!r}"
        )
    score = raw.get("score")
    if score is not None and (isinstance(score, bool) or not isinstance(score, (int, float))):
        raise EntityValidationError(f"Entity at index {index}: 'score' must be a number or null")
    begin = _optional_offset(raw.get("begin_offset"), "begin_offset", index)
    end = _optional_offset(raw.get("end_offset"), "end_offset", index)
    if begin is not None and end is not None and end < begin:
        raise EntityValidationError(
            f"Entity at index {index}: 'end_offset' precedes 'begin_offset'"
        )
    return Entity(
        text=text,
        type=entity_type,
        score=float(score) if score is not None else None,
        begin_offset=begin,
        end_offset=end,
    )


def _optional_offset(raw: Any, name: str, index: int) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise EntityValidationError(
            f"Entity at index {index}: '{name}' must be a non-negative integer or null"
        )
    return raw
