"""Reload lifecycle driver.

The host application calls into :class:`VariantReloader` when its resources
change (server start, datapack reload, ...). The reloader derives each
configured entity's sources from :class:`~entity_variants.config.VariantConfig`
and reloads them through the registry.

``reload_all`` is the host-facing boundary: a failing entity is logged and
recorded in the returned :class:`ReloadReport`, it never propagates.
``reload_entity`` is the strict variant and lets errors through.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from pyrsistent import PMap, PVector, pmap

from entity_variants.components import VariantRecord
from entity_variants.config import VariantConfig
from entity_variants.registry import VariantRegistry
from entity_variants.types import EntityKey, SourceId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReloadReport:
    """Outcome of one :meth:`VariantReloader.reload_all` pass.

    Attributes:
        loaded: Entity -> number of variants published.
        failed: Entity -> exception that aborted its load.
    """

    loaded: PMap[EntityKey, int] = pmap()
    failed: PMap[EntityKey, Exception] = pmap()

    @property
    def ok(self) -> bool:
        return not self.failed


class VariantReloader:
    def __init__(
        self,
        registry: VariantRegistry,
        fetcher: Any,
        config: Optional[VariantConfig] = None,
    ):
        self.registry = registry
        self.fetcher = fetcher
        self.config = config or VariantConfig()
        self.last_report: Optional[ReloadReport] = None
        self._timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()

    def sources_for(self, entity_key: EntityKey) -> List[SourceId]:
        """Source ids for ``entity_key``, base definitions first."""
        list_sources = getattr(self.fetcher, "list_sources", None)
        if self.config.folder_mode and callable(list_sources):
            return list(list_sources(self.config.entity_folder(entity_key)))
        return list(self.config.entity_sources(entity_key))

    def reload_entity(self, entity_key: EntityKey) -> PVector[VariantRecord]:
        logger.info("Attempting to register entity variants for %s", entity_key)
        return self.registry.load_variants(
            entity_key, self.sources_for(entity_key), fetcher=self.fetcher
        )

    def reload_all(self, entity_names: Optional[Iterable[EntityKey]] = None) -> ReloadReport:
        """Reload every configured entity, distinct entities in parallel."""
        if entity_names is None:
            entity_names = self.config.entity_names
        names = list(dict.fromkeys(entity_names))
        loaded: Dict[EntityKey, int] = {}
        failed: Dict[EntityKey, Exception] = {}
        if names:
            workers = min(self.config.max_workers, len(names))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="variant-reload") as pool:
                futures = {name: pool.submit(self.reload_entity, name) for name in names}
                for name, future in futures.items():
                    try:
                        loaded[name] = len(future.result())
                    except Exception as exc:
                        logger.error(
                            "Failed to register entity variants for %s", name, exc_info=exc
                        )
                        failed[name] = exc
        report = ReloadReport(loaded=pmap(loaded), failed=pmap(failed))
        self.last_report = report
        logger.info(
            "Reload finished: %d entit(y/ies) loaded, %d failed", len(loaded), len(failed)
        )
        return report

    def schedule_reload(self, delay: Optional[float] = None) -> threading.Timer:
        """Run :meth:`reload_all` after ``delay`` seconds on a daemon timer.

        A reload still pending from an earlier call is cancelled, so a burst
        of reload events results in one reload.
        """
        seconds = self.config.reload_delay if delay is None else delay
        timer = threading.Timer(seconds, self.reload_all)
        timer.daemon = True
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = timer
        timer.start()
        return timer

    def cancel_scheduled(self) -> None:
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
