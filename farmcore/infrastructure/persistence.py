"""
Infrastructure layer: key-value persistence backends.
"""
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


class StorageKeys:
    """Keys under which the core entities are persisted."""
    
    FIELD = "field"
    SCAN_RECORD = "scan_record"
    OFFLINE_QUEUE = "offline_queue"
    LAST_SCAN_DATE = "limits.last_scan_date"
    DROPPED_SUBMISSIONS = "dropped_submissions"
    SAVED_LOCATION = "prefs.location"


class InMemoryKeyValueStore:
    """Process-local store. Values are deep-copied in and out."""
    
    def __init__(self, initial: Dict[str, Any] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial or {})
    
    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])
    
    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)
    
    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore(InMemoryKeyValueStore):
    """
    Store backed by a single JSON document.
    
    Every write rewrites the whole document through a temporary file and an
    atomic rename, so a crash never leaves a half-written file behind.
    Values must be JSON-serializable.
    """
    
    def __init__(self, path: str):
        self.path = Path(path)
        super().__init__(self._load())
    
    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"Storage file {self.path} does not contain a JSON object")
        logger.info(f"Loaded {len(data)} keys from {self.path}")
        return data
    
    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
    
    def set(self, key: str, value: Any) -> None:
        super().set(key, value)
        self._flush()
    
    def delete(self, key: str) -> None:
        super().delete(key)
        self._flush()


def build_store(storage_path: str):
    """Create the configured store; an empty path keeps state in memory."""
    if storage_path:
        return JsonFileKeyValueStore(storage_path)
    logger.warning("No storage_path configured; state will not survive a restart")
    return InMemoryKeyValueStore()
