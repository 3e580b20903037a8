"""Error taxonomy for variant loading.

Missing fragments are never an error: fetchers return an empty object for
them. Everything else is raised to the immediate caller with enough context
(entity key, source id, variant name) to diagnose.
"""

from typing import Optional

from entity_variants.types import EntityKey, SourceId, VariantName


class VariantError(Exception):
    """Base class for all errors raised by this package."""


class MalformedInputError(VariantError, ValueError):
    """A fragment is not valid JSON or does not map entity -> list of objects.

    Attributes:
        entity_key: Entity being loaded (or the offending top-level key).
        source_id: Fragment the problem was found in, when known.
    """

    def __init__(
        self,
        message: str,
        entity_key: Optional[EntityKey] = None,
        source_id: Optional[SourceId] = None,
    ):
        super().__init__(message)
        self.entity_key = entity_key
        self.source_id = source_id

    def with_context(
        self,
        entity_key: Optional[EntityKey] = None,
        source_id: Optional[SourceId] = None,
    ) -> "MalformedInputError":
        """Return a copy carrying any context missing from this error."""
        return MalformedInputError(
            self.args[0],
            entity_key=self.entity_key or entity_key,
            source_id=self.source_id or source_id,
        )

    def __str__(self) -> str:
        parts = [str(self.args[0])]
        if self.entity_key is not None:
            parts.append(f"entity={self.entity_key!r}")
        if self.source_id is not None:
            parts.append(f"source={self.source_id!r}")
        return " ".join(parts)


class InvalidConstructionError(VariantError, ValueError):
    """A variant record was built from a missing key or definition."""


class OverlayBindingNotFound(VariantError, LookupError):
    """``commit()`` was called before the variant was loaded."""

    def __init__(self, entity_key: EntityKey, variant_name: VariantName):
        super().__init__(
            f"Variant {variant_name!r} not found for entity {entity_key!r}"
        )
        self.entity_key = entity_key
        self.variant_name = variant_name
