"""Key-value backends holding whole serialized collections.

A backend only promises that a single ``put`` is atomic and that a
``get`` returns the last value written for the key. Multi-key atomicity
is provided on top by ``econsim.store.classroom.UnitOfWork``.
"""

import copy
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from econsim.exceptions import StoreError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Minimal persistence surface: JSON-compatible values by string key."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the value stored under ``key`` or None."""

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        """Replace the value stored under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""

    def close(self) -> None:
        """Release backend resources."""


class MemoryStore(KeyValueStore):
    """Dict-backed store for tests and demos.

    Values are deep-copied on the way in and out so callers can never
    mutate stored state by reference.
    """

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        value = self._data.get(key)
        return copy.deepcopy(value)

    def put(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStore(KeyValueStore):
    """One ``<key>.json`` file per key under a directory.

    Writes go to a temporary file in the same directory which is then
    renamed over the target, so a reader sees either the old or the new
    document, never a torn one.
    """

    def __init__(self, directory: str | Path, pretty: bool = False) -> None:
        """Initialize JSON file store.

        Parameters
        ----------
        directory : str | Path
            Directory holding the JSON documents.
        pretty : bool
            Pretty-print JSON documents.
        """
        self.directory = Path(directory)
        self.pretty = pretty
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot create store directory {self.directory}: {exc}") from exc

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Cannot read {path}: {exc}") from exc

    def put(self, key: str, value: Any) -> None:
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                if self.pretty:
                    json.dump(value, f, indent=2, ensure_ascii=False)
                else:
                    json.dump(value, f, ensure_ascii=False)
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreError(f"Cannot write {path}: {exc}") from exc
        logger.debug("Wrote %s", path)

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot delete {self._path(key)}: {exc}") from exc
