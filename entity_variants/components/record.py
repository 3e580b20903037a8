"""Variant record value object.

A :class:`VariantRecord` is one entry of an entity's variant list: the entity
key it was declared under plus the parsed parameters of a single definition
object. Records are immutable and compare structurally, which is what the
registry uses to drop duplicate definitions.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from pyrsistent import PMap, pmap

from entity_variants.components.parameter import ParameterValue
from entity_variants.errors import InvalidConstructionError, MalformedInputError
from entity_variants.types import VARIANT_NAME_KEY, EntityKey


@dataclass(frozen=True)
class VariantRecord:
    """Parsed variant definition for one entity.

    Attributes:
        entity_key: Entity the definition was declared under.
        parameters: Parameter name -> tagged value.
        order: Parameter names in definition order. Not part of equality.
    """

    entity_key: EntityKey
    parameters: PMap[str, ParameterValue] = pmap()
    order: Tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def from_json(
        cls, entity_key: Optional[EntityKey], definition: Optional[Mapping[str, Any]]
    ) -> "VariantRecord":
        """Build a record from one definition object.

        Raises:
            InvalidConstructionError: If ``entity_key`` is empty or
                ``definition`` is missing.
            MalformedInputError: If ``definition`` is not a JSON object.
        """
        if not entity_key or definition is None:
            raise InvalidConstructionError("JSON key and object must not be null")
        if not isinstance(definition, Mapping):
            raise MalformedInputError(
                f"Variant definition must be a JSON object, got {type(definition).__name__}",
                entity_key=entity_key,
            )
        params: Dict[str, ParameterValue] = {
            str(key): ParameterValue.from_json(raw) for key, raw in definition.items()
        }
        return cls(
            entity_key=entity_key,
            parameters=pmap(params),
            order=tuple(params.keys()),
        )

    @property
    def variant_name(self) -> Optional[str]:
        return self.get(VARIANT_NAME_KEY)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the string form of parameter ``key``."""
        value = self.parameters.get(key)
        return value.text if value is not None else default

    def value(self, key: str) -> Optional[ParameterValue]:
        return self.parameters.get(key)

    def keys(self) -> Tuple[str, ...]:
        return self.order or tuple(self.parameters.keys())

    def as_dict(self) -> Dict[str, str]:
        """Parameter strings in definition order."""
        return {key: self.parameters[key].text for key in self.keys()}

    def __contains__(self, key: object) -> bool:
        return key in self.parameters

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.parameters)
