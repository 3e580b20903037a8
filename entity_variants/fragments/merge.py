"""Shallow JSON fragment merging.

Fragments are folded left to right: base definitions first, overrides last.
Keys holding lists on both sides accumulate; any other collision is
last-writer-wins and logged as a warning.
"""

import logging
from typing import Any, Iterable, Mapping

from entity_variants.errors import MalformedInputError
from entity_variants.types import JsonObject

logger = logging.getLogger(__name__)


def merge_json(target: JsonObject, source: Mapping[str, Any]) -> JsonObject:
    """Merge ``source`` into ``target`` in place and return ``target``.

    Args:
        target: Object receiving the data. Its lists are extended in place.
        source: Object merged in. Not modified.

    Returns:
        The mutated ``target``.

    Raises:
        MalformedInputError: If either side is not a JSON object.
    """
    if not isinstance(target, dict) or not isinstance(source, Mapping):
        raise MalformedInputError(
            f"Cannot merge {type(source).__name__} into {type(target).__name__}"
        )
    for key, value in source.items():
        if key not in target:
            target[key] = value
            logger.debug("Added new key: %s", key)
            continue
        existing = target[key]
        if isinstance(existing, list) and isinstance(value, list):
            existing.extend(value)
            logger.debug("Merged array for key: %s (%d items)", key, len(existing))
        else:
            target[key] = value
            logger.warning("Overwriting value for key: %s", key)
    return target


def merge_all(fragments: Iterable[Mapping[str, Any]]) -> JsonObject:
    """Fold ``fragments`` left to right into a fresh object.

    Lists are copied when first inserted so no input fragment is mutated.
    """
    merged: JsonObject = {}
    for fragment in fragments:
        if not isinstance(fragment, Mapping):
            raise MalformedInputError(
                f"Fragment must be a JSON object, got {type(fragment).__name__}"
            )
        merge_json(
            merged,
            {k: list(v) if isinstance(v, list) else v for k, v in fragment.items()},
        )
    return merged
