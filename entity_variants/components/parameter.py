"""Tagged parameter values.

Every JSON value in a variant definition is kept as a :class:`ParameterValue`
recording the JSON type it came from alongside its legacy string form:

* strings are kept verbatim, booleans become ``"true"`` / ``"false"`` and
  numbers their decimal form;
* lists become their elements' string forms joined by ``","`` (no escaping,
  so an element containing a comma cannot be told apart afterwards);
* nested objects become compact canonical JSON and are not parsed further;
* ``null`` and anything unsupported become the literal ``"null"``.

Two values are equal when both the kind and the string form match, so
``"10"`` and ``10`` are different parameters.
"""

import json
from dataclasses import dataclass, field
from typing import Any

from entity_variants.types import ParameterKind

NULL_TEXT = "null"
LIST_SEPARATOR = ","


def canonical_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _scalar_text(raw: Any) -> str:
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (int, float)):
        return repr(raw)
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (dict, list)):
        return canonical_json(raw)
    return NULL_TEXT


@dataclass(frozen=True)
class ParameterValue:
    """One parsed definition parameter.

    Attributes:
        kind: JSON type the value was parsed from.
        text: Legacy string coercion, used for equality and string access.
        value: Typed payload (``str``, ``int``/``float``, ``bool``, tuple of
            element strings, canonical JSON text, or ``None``).
    """

    kind: ParameterKind
    text: str
    value: Any = field(default=None, compare=False)

    @classmethod
    def from_json(cls, raw: Any) -> "ParameterValue":
        if isinstance(raw, bool):
            return cls(ParameterKind.BOOLEAN, _scalar_text(raw), raw)
        if isinstance(raw, str):
            return cls(ParameterKind.STRING, raw, raw)
        if isinstance(raw, (int, float)):
            return cls(ParameterKind.NUMBER, _scalar_text(raw), raw)
        if isinstance(raw, list):
            items = tuple(_scalar_text(item) for item in raw)
            return cls(ParameterKind.LIST, LIST_SEPARATOR.join(items), items)
        if isinstance(raw, dict):
            text = canonical_json(raw)
            return cls(ParameterKind.OBJECT, text, text)
        return cls(ParameterKind.NULL, NULL_TEXT, None)

    @classmethod
    def of(cls, text: str) -> "ParameterValue":
        """Shorthand for a plain string parameter."""
        return cls(ParameterKind.STRING, text, text)

    def as_string(self) -> str:
        return self.text

    def __str__(self) -> str:
        return self.text
