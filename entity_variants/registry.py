"""Per-entity variant registry.

The registry owns the loaded :class:`~entity_variants.components.VariantRecord`
lists, one per entity key. Each entity moves through
``EMPTY -> LOADING -> LOADED``; every new load starts again from a clear.

Concurrency model:

* Loads of the same entity are serialised by a per-entity lock. Loads of
  different entities run independently.
* Published state is a pair of persistent maps (``PMap``) swapped under a
  short lock. Readers grab the current map without locking and only ever see
  complete ``PVector`` snapshots, never a half-built list.
* A load that fails leaves its entity ``EMPTY`` and commits nothing.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Set

from pyrsistent import PMap, PVector, pmap, pvector

from entity_variants.components import VariantRecord
from entity_variants.errors import InvalidConstructionError, MalformedInputError
from entity_variants.fragments.fetch import as_fetch_fn
from entity_variants.fragments.merge import merge_all
from entity_variants.parser import parse_variants, validate_fragment
from entity_variants.types import (
    EntityKey,
    FetchFn,
    JsonObject,
    LoadState,
    SourceId,
    VariantName,
)

logger = logging.getLogger(__name__)

_EMPTY: PVector[VariantRecord] = pvector()


def dedup_records(records: Iterable[VariantRecord]) -> List[VariantRecord]:
    """Drop records structurally equal to an earlier one, keeping first-seen order."""
    seen: Set[VariantRecord] = set()
    unique: List[VariantRecord] = []
    for record in records:
        if record in seen:
            continue
        seen.add(record)
        unique.append(record)
    return unique


class VariantRegistry:
    """Loaded variants keyed by entity.

    Construct one registry and hand it to every consumer; there is no global
    instance.

    Args:
        fetcher: Default fragment source used by :meth:`load_variants`; either
            an object with ``fetch_json(source_id)`` or a plain callable.
    """

    def __init__(self, fetcher: Any = None):
        self._fetch: Optional[FetchFn] = as_fetch_fn(fetcher) if fetcher is not None else None
        self._records: PMap[EntityKey, PVector[VariantRecord]] = pmap()
        self._states: PMap[EntityKey, LoadState] = pmap()
        self._publish_lock = threading.Lock()
        self._locks_guard = threading.Lock()
        self._entity_locks: Dict[EntityKey, threading.Lock] = {}

    # --- writers ---

    def _lock_for(self, entity_key: EntityKey) -> threading.Lock:
        with self._locks_guard:
            lock = self._entity_locks.get(entity_key)
            if lock is None:
                lock = self._entity_locks[entity_key] = threading.Lock()
            return lock

    def _publish(
        self,
        entity_key: EntityKey,
        records: PVector[VariantRecord],
        state: LoadState,
    ) -> None:
        with self._publish_lock:
            self._records = self._records.set(entity_key, records)
            self._states = self._states.set(entity_key, state)

    def _fetch_all(
        self, entity_key: EntityKey, sources: Iterable[SourceId], fetch: FetchFn
    ) -> List[JsonObject]:
        fragments: List[JsonObject] = []
        for source_id in sources:
            logger.debug("Loading JSON data from resource: %s", source_id)
            try:
                fragment = fetch(source_id)
                if fragment is None:
                    fragment = {}
                validate_fragment(fragment)
            except MalformedInputError as exc:
                raise exc.with_context(entity_key, source_id) from exc
            fragments.append(fragment)
        return fragments

    def load_variants(
        self,
        entity_key: EntityKey,
        sources: Iterable[SourceId],
        fetcher: Any = None,
    ) -> PVector[VariantRecord]:
        """Clear and reload every variant of ``entity_key``.

        Sources are fetched in order and merged left to right, so list-valued
        keys accumulate and later fragments win scalar conflicts. A source
        that does not exist contributes nothing.

        Args:
            entity_key: Entity to (re)load.
            sources: Source ids, base definitions first and overrides last.
            fetcher: Overrides the registry's default fetcher for this call.

        Returns:
            The published records, deduplicated, in first-seen order.

        Raises:
            InvalidConstructionError: If ``entity_key`` is empty.
            MalformedInputError: If any fragment is malformed. The entity is
                left empty.
        """
        if not entity_key:
            raise InvalidConstructionError("Entity key must not be empty")
        source_ids = list(sources)
        fetch = as_fetch_fn(fetcher) if fetcher is not None else self._fetch
        if fetch is None and source_ids:
            raise ValueError("No fetcher configured for VariantRegistry")

        with self._lock_for(entity_key):
            self._publish(entity_key, _EMPTY, LoadState.LOADING)
            logger.info(
                "Loading variants for %s from %d source(s)", entity_key, len(source_ids)
            )
            try:
                fragments = self._fetch_all(entity_key, source_ids, fetch) if fetch else []
                try:
                    records = parse_variants(entity_key, merge_all(fragments))
                except MalformedInputError as exc:
                    raise exc.with_context(entity_key) from exc
                unique = pvector(dedup_records(records))
            except Exception:
                self._publish(entity_key, _EMPTY, LoadState.EMPTY)
                raise
            self._publish(entity_key, unique, LoadState.LOADED)

        dropped = len(records) - len(unique)
        logger.info(
            "Loaded %d variant(s) for %s%s",
            len(unique),
            entity_key,
            f" ({dropped} duplicate(s) dropped)" if dropped else "",
        )
        return unique

    def clear(self, entity_key: Optional[EntityKey] = None) -> None:
        """Forget one entity's variants, or every entity's when no key is given."""
        if entity_key is not None:
            with self._lock_for(entity_key):
                self._publish(entity_key, _EMPTY, LoadState.EMPTY)
            return
        with self._publish_lock:
            self._records = pmap()
            self._states = pmap()

    # --- readers ---

    def get_variants_for_entity(self, entity_key: EntityKey) -> PVector[VariantRecord]:
        """Return the current snapshot of ``entity_key``'s variants (never raises)."""
        return self._records.get(entity_key, _EMPTY)

    def get_variant_by_name(
        self, entity_key: EntityKey, variant_name: VariantName
    ) -> Optional[VariantRecord]:
        """Return the first record named ``variant_name``, or ``None``.

        When several records share a name, the first one loaded wins.
        """
        for record in self.get_variants_for_entity(entity_key):
            if record.variant_name == variant_name:
                return record
        logger.debug("Variant %s not found for entity %s", variant_name, entity_key)
        return None

    def variant_names(self, entity_key: EntityKey) -> List[VariantName]:
        """Names of ``entity_key``'s variants in load order (unnamed ones skipped)."""
        return [
            name
            for record in self.get_variants_for_entity(entity_key)
            if (name := record.variant_name) is not None
        ]

    def state(self, entity_key: EntityKey) -> LoadState:
        return self._states.get(entity_key, LoadState.EMPTY)

    def entities(self) -> List[EntityKey]:
        """Sorted keys of every entity currently ``LOADED``."""
        return sorted(k for k, s in self._states.items() if s is LoadState.LOADED)

    def snapshot(self) -> PMap[EntityKey, PVector[VariantRecord]]:
        return self._records

    def __contains__(self, entity_key: object) -> bool:
        return self._states.get(entity_key) is LoadState.LOADED

    def __repr__(self) -> str:
        return f"VariantRegistry(entities={self.entities()!r})"
