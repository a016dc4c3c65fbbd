"""Key-value persistence for the editable document and transcript history."""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

STORE_FILENAME = "livescribe_store.json"


class StoreError(RuntimeError):
    """Raised when the persistence store cannot be read or written."""


class KeyValueStore(ABC):
    """String key-value store. Missing keys read as None."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove ``key``; a no-op if it is absent."""
        pass


class MemoryStore(KeyValueStore):
    """In-process store, used when nothing should touch the disk."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """Store backed by a single JSON object file in the data directory.

    Every write rewrites the whole file through a temporary file and an
    atomic rename, so readers never observe a partial write.
    """

    def __init__(self, data_dir: str = "./data", filename: str = STORE_FILENAME):
        """Initialize file store.

        Args:
            data_dir: Directory holding the store file (created if missing)
            filename: Name of the store file
        """
        self.data_dir = Path(data_dir)
        self.file_path = self.data_dir / filename
        self._lock = threading.Lock()

        self.data_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"JsonFileStore initialized with file: {self.file_path}")

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)
        logger.debug(f"Stored key '{key}' ({len(value)} chars)")

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key not in data:
                return
            del data[key]
            self._write(data)
        logger.debug(f"Removed key '{key}'")

    def _read(self) -> Dict[str, str]:
        if not self.file_path.exists():
            return {}
        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StoreError(f"Failed to read store {self.file_path}: {e}") from e

        if not isinstance(data, dict):
            raise StoreError(f"Store {self.file_path} does not hold a JSON object")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=".store-", suffix=".tmp")
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.file_path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StoreError(f"Failed to write store {self.file_path}: {e}") from e
