"""Per-variant parameter overlay.

An overlay is a curated projection of a loaded variant's parameters, keyed by
variant name. It is built explicitly once a variant is assigned::

    overlay = ParameterOverlay(registry)
    overlay.select("rex", "fire").declare("hp", "speed").commit()
    overlay.get("fire", "hp")  # -> "20"

Bindings are copies: reloading the registry does not touch them, so callers
rebuild the overlay after a reload when they want fresh values.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Mapping

from pyrsistent import PMap, pmap

from entity_variants.components import VariantRecord
from entity_variants.errors import OverlayBindingNotFound
from entity_variants.registry import VariantRegistry
from entity_variants.types import EntityKey, VariantName

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
NULL = "null"

Projector = Callable[[VariantRecord], Mapping[str, str]]


class OverlayBuilder:
    """Staged binding: ``select`` -> ``declare``\\* -> ``commit``."""

    def __init__(
        self, overlay: "ParameterOverlay", entity_key: EntityKey, variant_name: VariantName
    ):
        self._overlay = overlay
        self.entity_key = entity_key
        self.variant_name = variant_name
        self._keys: List[str] = []

    @property
    def declared(self) -> List[str]:
        return list(self._keys)

    def declare(self, *keys: str) -> "OverlayBuilder":
        for key in keys:
            if key not in self._keys:
                self._keys.append(key)
        return self

    def commit(self) -> PMap[str, str]:
        """Copy the declared parameters of the selected variant into the overlay.

        Returns:
            The binding stored for the variant name.

        Raises:
            OverlayBindingNotFound: If the variant is not loaded for the entity.
        """
        record = self._overlay.registry.get_variant_by_name(
            self.entity_key, self.variant_name
        )
        if record is None:
            raise OverlayBindingNotFound(self.entity_key, self.variant_name)
        binding = {key: text for key in self._keys if (text := record.get(key)) is not None}
        missing = [key for key in self._keys if key not in binding]
        if missing:
            logger.debug(
                "Variant %s of %s has no parameter(s) %s",
                self.variant_name,
                self.entity_key,
                missing,
            )
        return self._overlay._bind(self.variant_name, binding)


class ParameterOverlay:
    """Variant name -> parameter key -> string value."""

    def __init__(self, registry: VariantRegistry):
        self.registry = registry
        self._bindings: PMap[VariantName, PMap[str, str]] = pmap()
        self._lock = threading.Lock()

    def _bind(self, variant_name: VariantName, parameters: Mapping[str, str]) -> PMap[str, str]:
        binding = pmap(parameters)
        with self._lock:
            self._bindings = self._bindings.set(variant_name, binding)
        return binding

    def select(self, entity_key: EntityKey, variant_name: VariantName) -> OverlayBuilder:
        return OverlayBuilder(self, entity_key, variant_name)

    def bind_all(self, entity_key: EntityKey, projector: Projector) -> int:
        """Bind every loaded variant of ``entity_key`` to ``projector(record)``.

        Unnamed records are skipped. Returns the number of bindings written.
        """
        count = 0
        for record in self.registry.get_variants_for_entity(entity_key):
            name = record.variant_name
            if name is None:
                continue
            self._bind(name, dict(projector(record)))
            count += 1
        return count

    def get(self, variant_name: VariantName, key: str, default: str = UNKNOWN) -> str:
        """Return the bound value, or ``default`` if the variant or key is absent."""
        return self._bindings.get(variant_name, pmap()).get(key, default)

    def bindings(self, variant_name: VariantName) -> Dict[str, str]:
        return dict(self._bindings.get(variant_name, pmap()))

    def variant_names(self) -> List[VariantName]:
        return sorted(self._bindings.keys())

    def clear(self) -> None:
        with self._lock:
            self._bindings = pmap()

    def __contains__(self, variant_name: object) -> bool:
        return variant_name in self._bindings
