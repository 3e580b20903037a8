"""Common type aliases and enumerations.

``FetchFn`` is the extension point used by the registry to obtain raw JSON
fragments; anything callable as ``fetch(source_id) -> dict`` qualifies.
"""

from enum import StrEnum, auto
from typing import Any, Callable, Dict


EntityKey = str
SourceId = str
VariantName = str

JsonObject = Dict[str, Any]

FetchFn = Callable[[SourceId], JsonObject]

# Parameter holding a definition's variant name.
VARIANT_NAME_KEY = "variantName"


class ParameterKind(StrEnum):
    """JSON type a parameter value was parsed from."""

    STRING = auto()
    NUMBER = auto()
    BOOLEAN = auto()
    LIST = auto()
    OBJECT = auto()
    NULL = auto()


class LoadState(StrEnum):
    """Per-entity registry lifecycle."""

    EMPTY = auto()
    LOADING = auto()
    LOADED = auto()
