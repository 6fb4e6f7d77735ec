"""Durable key-value storage for the auth flag and the diagnosis history.

Everything above this module talks to a ``StoragePort``: ``get``, ``set`` and
``remove`` on string keys and string values. ``JsonFileStorage`` keeps all keys
in one JSON document on disk; ``MemoryStorage`` is the same thing in a dict.
"""
import json
import logging
import os
import tempfile
from typing import Dict, List, Optional, Protocol

from . import config
from .models import HistoryItem
from .serializers import dump_history, load_history

logger = logging.getLogger(__name__)


class StoragePort(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data = dict(initial or {})

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value

    def remove(self, key):
        self._data.pop(key, None)


class JsonFileStorage:
    """All keys in a single JSON object, rewritten in full on every change."""

    def __init__(self, path=config.STORE_PATH):
        self.path = path

    def _read(self) -> Dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except ValueError as e:
            logger.error("Store %s is not valid JSON, starting empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("Store %s does not hold an object, starting empty", self.path)
            return {}
        return data

    def _write(self, data: Dict[str, str]):
        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=folder, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp, self.path)
        except OSError:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    def get(self, key):
        return self._read().get(key)

    def set(self, key, value):
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key):
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class AppStore:
    """Auth flag and history list on top of a StoragePort."""

    def __init__(self, storage: StoragePort):
        self.storage = storage

    def is_authenticated(self) -> bool:
        return self.storage.get(config.AUTH_KEY) == "true"

    def set_authenticated(self, value: bool):
        if value:
            self.storage.set(config.AUTH_KEY, "true")
        else:
            self.storage.remove(config.AUTH_KEY)

    def load_history(self) -> List[HistoryItem]:
        return load_history(self.storage.get(config.HISTORY_KEY))

    def save_history(self, items: List[HistoryItem]):
        self.storage.set(config.HISTORY_KEY, dump_history(items))
