"""Loader configuration.

:class:`VariantConfig` describes where each entity's fragments live and how
reloads are run. It can be built in code or read from a JSON file whose keys
match the dataclass fields::

    {
      "base_path": "variant/entity/",
      "entity_names": ["dragon", "rex"],
      "reload_delay": 0.5
    }
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Tuple, Union

from entity_variants.errors import MalformedInputError
from entity_variants.fragments.fetch import load_json
from entity_variants.types import EntityKey, SourceId

DEFAULT_BASE_PATH = "variant/entity/"
DEFAULT_MOD_SUFFIX = ".json"
DEFAULT_DATA_SUFFIX = "data.json"
DEFAULT_RELOAD_DELAY = 1.0
DEFAULT_MAX_WORKERS = 4

# JSON types accepted per key when reading a config file
_FIELD_TYPES = {
    "base_path": str,
    "mod_suffix": str,
    "data_suffix": str,
    "folder_mode": bool,
    "reload_delay": (int, float),
    "max_workers": int,
    "log_level": str,
    "library_logging": bool,
}


def _check_type(key: str, value: Any) -> None:
    expected = _FIELD_TYPES[key]
    # bool is an int subclass; only bool fields accept it
    if isinstance(value, bool) and expected is not bool:
        ok = False
    else:
        ok = isinstance(value, expected)
    if not ok:
        raise MalformedInputError(
            f"Configuration key {key!r} has invalid value {value!r}"
        )


@dataclass(frozen=True)
class VariantConfig:
    """Where fragments live and how reloads run.

    Attributes:
        base_path: Folder holding every entity's fragments.
        entity_names: Entities reloaded by :class:`~entity_variants.reload.VariantReloader`.
        mod_suffix: Appended to ``base_path + entity`` for the base definitions.
        data_suffix: Appended to ``base_path + entity`` for the override fragment.
        folder_mode: Load every ``*.json`` under ``base_path + entity + "/"``
            instead of the two fixed files.
        reload_delay: Seconds between a reload request and the reload itself.
        max_workers: Threads used to reload distinct entities in parallel.
        log_level: Level name passed to :func:`~entity_variants.logging_config.configure_logging`.
        library_logging: Emit the library's info/debug chatter.
    """

    base_path: str = DEFAULT_BASE_PATH
    entity_names: Tuple[EntityKey, ...] = ()
    mod_suffix: str = DEFAULT_MOD_SUFFIX
    data_suffix: str = DEFAULT_DATA_SUFFIX
    folder_mode: bool = False
    reload_delay: float = DEFAULT_RELOAD_DELAY
    max_workers: int = DEFAULT_MAX_WORKERS
    log_level: str = "INFO"
    library_logging: bool = True

    def __post_init__(self) -> None:
        if self.reload_delay < 0:
            raise ValueError("reload_delay must be >= 0")
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise ValueError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "VariantConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise MalformedInputError(f"Unknown configuration key(s): {unknown}")
        values = dict(data)
        for key, value in values.items():
            if key == "entity_names":
                if not isinstance(value, (list, tuple)) or not all(
                    isinstance(name, str) for name in value
                ):
                    raise MalformedInputError(
                        f"Configuration key 'entity_names' must be a list of strings, got {value!r}"
                    )
            else:
                _check_type(key, value)
        if "entity_names" in values:
            values["entity_names"] = tuple(values["entity_names"])
        return cls(**values)

    def with_entities(self, *entity_names: EntityKey) -> "VariantConfig":
        return replace(self, entity_names=tuple(entity_names))

    def entity_folder(self, entity_key: EntityKey) -> str:
        return f"{self.base_path}{entity_key}/"

    def entity_sources(self, entity_key: EntityKey) -> Tuple[SourceId, SourceId]:
        """Base definitions first, overrides last."""
        stem = f"{self.base_path}{entity_key}"
        return (stem + self.mod_suffix, stem + self.data_suffix)


def load_config(path: Union[str, "os.PathLike[str]"]) -> VariantConfig:
    """Read a :class:`VariantConfig` from JSON; defaults if the file is missing."""
    return VariantConfig.from_mapping(load_json(path))
