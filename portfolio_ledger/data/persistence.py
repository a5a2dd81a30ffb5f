"""
Persistence Module

Key-value stores for saved portfolios and the watchlist. The stores move
plain serialized dictionaries; the domain objects serialize themselves.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Any
import copy

from ..core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

PORTFOLIOS_KEY = "saved_portfolios"
WATCHLIST_KEY = "saved_watchlist"


class PersistenceStore(ABC):
    """Storage contract consumed by the portfolio manager."""

    @abstractmethod
    def load_portfolios(self) -> List[Dict[str, Any]]:
        """Load serialized portfolios, empty when nothing was saved."""

    @abstractmethod
    def save_all(self, portfolios: List[Dict[str, Any]]):
        """Replace every saved portfolio."""

    @abstractmethod
    def load_watchlist(self) -> List[Dict[str, Any]]:
        """Load serialized watchlist items."""

    @abstractmethod
    def save_watchlist(self, items: List[Dict[str, Any]]):
        """Replace the saved watchlist."""


class InMemoryPersistenceStore(PersistenceStore):
    """Store that keeps deep copies of saved data in memory."""

    def __init__(self):
        self._lock = threading.Lock()
        self._data: Dict[str, List[Dict[str, Any]]] = {}
        self.save_count = 0

    def _load(self, key: str) -> List[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._data.get(key, []))

    def _save(self, key: str, items: List[Dict[str, Any]]):
        with self._lock:
            self._data[key] = copy.deepcopy(items)
            self.save_count += 1

    def load_portfolios(self) -> List[Dict[str, Any]]:
        return self._load(PORTFOLIOS_KEY)

    def save_all(self, portfolios: List[Dict[str, Any]]):
        self._save(PORTFOLIOS_KEY, portfolios)

    def load_watchlist(self) -> List[Dict[str, Any]]:
        return self._load(WATCHLIST_KEY)

    def save_watchlist(self, items: List[Dict[str, Any]]):
        self._save(WATCHLIST_KEY, items)


class JsonFilePersistenceStore(PersistenceStore):
    """
    Store writing one JSON document per key into a directory.

    Writes go to a temporary file that is then renamed over the target, so a
    crash mid-write never leaves a truncated document behind. A missing or
    unreadable document loads as empty.
    """

    def __init__(self, directory: str):
        """
        Initialize the store.

        Args:
            directory: Directory holding the JSON documents (created if missing)
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def _load(self, key: str) -> List[Dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return []
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read {path}: {str(e)}")
            return []
        if not isinstance(data, list):
            logger.error(f"Ignoring {path}: expected a list, got {type(data).__name__}")
            return []
        return data

    def _save(self, key: str, items: List[Dict[str, Any]]):
        path = self._path(key)
        with self._lock:
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, 'w') as f:
                    json.dump(items, f, indent=2)
                os.replace(tmp_name, path)
            except (OSError, TypeError) as e:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise PersistenceError(f"Could not write {path}: {str(e)}") from e
        logger.debug(f"Saved {len(items)} records to {path}")

    def load_portfolios(self) -> List[Dict[str, Any]]:
        return self._load(PORTFOLIOS_KEY)

    def save_all(self, portfolios: List[Dict[str, Any]]):
        self._save(PORTFOLIOS_KEY, portfolios)

    def load_watchlist(self) -> List[Dict[str, Any]]:
        return self._load(WATCHLIST_KEY)

    def save_watchlist(self, items: List[Dict[str, Any]]):
        self._save(WATCHLIST_KEY, items)
