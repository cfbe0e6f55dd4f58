"""
Domain service: single-slot store for the most recent scan result.
"""
import logging
from typing import Optional

from farmcore.domain.models import ScanRecord
from farmcore.domain.ports import KeyValueStore
from farmcore.infrastructure.persistence import InMemoryKeyValueStore, StorageKeys

logger = logging.getLogger(__name__)


class ScanRecordStore:
    """Holds at most one ScanRecord; every write replaces it entirely."""
    
    def __init__(self, store: Optional[KeyValueStore] = None):
        self._store = store if store is not None else InMemoryKeyValueStore()
        raw = self._store.get(StorageKeys.SCAN_RECORD)
        self._record: Optional[ScanRecord] = ScanRecord(**raw) if raw else None
    
    def get(self) -> Optional[ScanRecord]:
        return self._record
    
    def replace(self, record: ScanRecord) -> None:
        self._record = record
        self._store.set(StorageKeys.SCAN_RECORD, record.model_dump(mode="json"))
    
    def reconcile(self, record: ScanRecord) -> bool:
        """
        Store a result delivered from the offline queue.
        
        The result replaces its own placeholder or any older record, but never
        a record created after the submission was queued.
        
        Returns:
            True if the record was stored
        """
        current = self._record
        if (
            current is None
            or current.id == record.id
            or current.created_at_ms <= record.created_at_ms
        ):
            self.replace(record)
            return True
        
        logger.info(f"Keeping newer scan {current.id}; reconciled scan {record.id} not stored")
        return False
