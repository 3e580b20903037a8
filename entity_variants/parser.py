"""Merged fragment -> variant records.

A merged fragment must map entity keys to lists of definition objects::

    {"rex": [{"variantName": "normal", "hp": "10"}, ...], "dragon": [...]}

Any other shape raises :class:`~entity_variants.errors.MalformedInputError`.
The whole fragment is validated even when only one entity is requested, so a
broken override for another entity is reported by every load that reads it.
"""

import logging
from typing import Any, Dict, List, Mapping

from entity_variants.components import VariantRecord
from entity_variants.errors import InvalidConstructionError, MalformedInputError
from entity_variants.types import EntityKey

logger = logging.getLogger(__name__)


def _parse_definitions(entity_key: EntityKey, definitions: Any) -> List[VariantRecord]:
    if not isinstance(definitions, list):
        raise MalformedInputError(
            f"Expected a list of variant definitions, got {type(definitions).__name__}",
            entity_key=entity_key,
        )
    return [VariantRecord.from_json(entity_key, item) for item in definitions]


def validate_fragment(data: Any) -> None:
    """Check ``data`` maps entity keys to lists of objects, building nothing."""
    if not isinstance(data, Mapping):
        raise MalformedInputError(
            f"Fragment must be a JSON object, got {type(data).__name__}"
        )
    for entity_key, definitions in data.items():
        if not isinstance(definitions, list):
            raise MalformedInputError(
                f"Expected a list of variant definitions, got {type(definitions).__name__}",
                entity_key=entity_key,
            )
        for item in definitions:
            if not isinstance(item, Mapping):
                raise MalformedInputError(
                    f"Variant definition must be a JSON object, got {type(item).__name__}",
                    entity_key=entity_key,
                )


def parse_all(data: Mapping[str, Any]) -> Dict[EntityKey, List[VariantRecord]]:
    """Parse every entity in ``data``, keeping declaration order."""
    if not isinstance(data, Mapping):
        raise MalformedInputError(
            f"Merged variants must be a JSON object, got {type(data).__name__}"
        )
    parsed: Dict[EntityKey, List[VariantRecord]] = {}
    for entity_key, definitions in data.items():
        logger.debug("Parsing variants for entity: %s", entity_key)
        parsed[entity_key] = _parse_definitions(entity_key, definitions)
    return parsed


def parse_variants(entity_key: EntityKey, data: Mapping[str, Any]) -> List[VariantRecord]:
    """Return the records declared for ``entity_key`` in ``data``.

    Args:
        entity_key: Entity whose definitions are wanted.
        data: Merged fragment mapping entity keys to definition lists.

    Returns:
        Records in declaration order; empty if ``entity_key`` is absent.
        Duplicates are kept, deduplication is the registry's job.

    Raises:
        MalformedInputError: If any part of ``data`` has the wrong shape.
        InvalidConstructionError: If ``entity_key`` or ``data`` is missing.
    """
    if not entity_key or data is None:
        raise InvalidConstructionError("JSON key and object must not be null")
    parsed = parse_all(data)
    others = [key for key in parsed if key != entity_key]
    if others:
        logger.debug("Ignoring definitions for %s while loading %s", others, entity_key)
    return parsed.get(entity_key, [])
