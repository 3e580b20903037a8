"""Fragment fetchers.

A fetcher turns a source id into a JSON object. Both fetchers here follow the
same contract:

* a missing resource yields ``{}`` (logged at debug level, never raised);
* malformed JSON, or a top level that is not an object, raises
  :class:`~entity_variants.errors.MalformedInputError` carrying the source id.

Source ids are ``/``-separated relative paths such as
``"variant/entity/rex.json"``.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from entity_variants.errors import MalformedInputError
from entity_variants.types import FetchFn, JsonObject, SourceId

logger = logging.getLogger(__name__)

JSON_SUFFIX = ".json"


def _as_object(data: Any, source_id: SourceId) -> JsonObject:
    if not isinstance(data, dict):
        raise MalformedInputError(
            f"Top level of fragment must be a JSON object, got {type(data).__name__}",
            source_id=source_id,
        )
    return data


def parse_json_text(text: str, source_id: SourceId) -> JsonObject:
    """Decode ``text`` into a JSON object or raise ``MalformedInputError``."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise MalformedInputError(
            f"Failed to parse JSON: {exc}", source_id=source_id
        ) from exc
    return _as_object(data, source_id)


def parse_json_bytes(raw: bytes, source_id: SourceId) -> JsonObject:
    """Decode UTF-8 ``raw`` into a JSON object or raise ``MalformedInputError``."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedInputError(
            f"Fragment is not valid UTF-8: {exc}", source_id=source_id
        ) from exc
    return parse_json_text(text, source_id)


def load_json(path: Union[str, "os.PathLike[str]"]) -> JsonObject:
    """Read a JSON object from ``path``; ``{}`` when the file does not exist."""
    file_path = Path(path)
    if not file_path.is_file():
        logger.debug("Fragment not found: %s", file_path)
        return {}
    return parse_json_bytes(file_path.read_bytes(), str(path))


class DirectoryFetcher:
    """Fetch fragments from files below a root directory."""

    root: Path

    def __init__(self, root: Union[str, "os.PathLike[str]"]):
        self.root = Path(root)

    def path_for(self, source_id: SourceId) -> Path:
        return self.root.joinpath(*source_id.split("/"))

    def fetch_json(self, source_id: SourceId) -> JsonObject:
        path = self.path_for(source_id)
        if not path.is_file():
            logger.debug("Fragment %s not found under %s", source_id, self.root)
            return {}
        return parse_json_bytes(path.read_bytes(), source_id)

    def list_sources(self, folder: str) -> List[SourceId]:
        """Return ids of every ``*.json`` file below ``folder``, sorted."""
        base = self.path_for(folder.rstrip("/"))
        if not base.is_dir():
            return []
        found = [
            path.relative_to(self.root).as_posix()
            for path in base.rglob(f"*{JSON_SUFFIX}")
            if path.is_file()
        ]
        logger.info("Found resources %s at %s", found, folder)
        return sorted(found)

    def __call__(self, source_id: SourceId) -> JsonObject:
        return self.fetch_json(source_id)

    def __repr__(self) -> str:
        return f"DirectoryFetcher({str(self.root)!r})"


class MemoryFetcher:
    """Fetch fragments from an in-process ``source id -> object`` table.

    Values may be JSON text or already-decoded objects. Decoded objects are
    deep-copied on every fetch so merging never mutates the table.
    """

    def __init__(self, fragments: Optional[Mapping[SourceId, Any]] = None):
        self._fragments: Dict[SourceId, Any] = dict(fragments or {})

    def put(self, source_id: SourceId, fragment: Any) -> None:
        self._fragments[source_id] = fragment

    def remove(self, source_id: SourceId) -> None:
        self._fragments.pop(source_id, None)

    def fetch_json(self, source_id: SourceId) -> JsonObject:
        if source_id not in self._fragments:
            logger.debug("Fragment %s not registered", source_id)
            return {}
        fragment = self._fragments[source_id]
        if isinstance(fragment, str):
            return parse_json_text(fragment, source_id)
        return _as_object(copy.deepcopy(fragment), source_id)

    def list_sources(self, folder: str) -> List[SourceId]:
        prefix = folder if folder.endswith("/") else folder + "/"
        return sorted(
            source_id
            for source_id in self._fragments
            if source_id.startswith(prefix) and source_id.endswith(JSON_SUFFIX)
        )

    def __call__(self, source_id: SourceId) -> JsonObject:
        return self.fetch_json(source_id)


def as_fetch_fn(fetcher: Any) -> FetchFn:
    """Accept a fetcher object (``fetch_json``) or a bare callable."""
    fetch = getattr(fetcher, "fetch_json", None)
    if callable(fetch):
        return fetch
    if callable(fetcher):
        return fetcher
    raise TypeError(f"Not a fetcher: {fetcher!r}")
