"""
Domain service: one scan per civil day.

The civil date is taken in a fixed reference timezone so that changing the
device clock's timezone cannot reopen the daily quota.
"""
from datetime import datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from farmcore.config import settings
from farmcore.domain.ports import KeyValueStore
from farmcore.infrastructure.persistence import InMemoryKeyValueStore, StorageKeys


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScanQuotaGate:
    """Pure predicate over the last accepted scan date."""
    
    def __init__(self, reference_timezone: Optional[str] = None):
        self.tz = ZoneInfo(reference_timezone or settings.reference_timezone)
    
    def civil_date(self, moment: datetime) -> str:
        """ISO civil date (YYYY-MM-DD) of an instant in the reference timezone."""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.tz).date().isoformat()
    
    def civil_date_from_ms(self, epoch_ms: int) -> str:
        return self.civil_date(datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc))
    
    def can_scan_today(self, last_scan_date: Optional[str], now: datetime) -> bool:
        return last_scan_date != self.civil_date(now)
    
    def record_scan_today(self, now: datetime) -> str:
        return self.civil_date(now)


class QuotaStateStore:
    """Durable holder of the last accepted scan date."""
    
    def __init__(self, store: Optional[KeyValueStore] = None):
        self._store = store if store is not None else InMemoryKeyValueStore()
    
    def get_last_scan_date(self) -> Optional[str]:
        return self._store.get(StorageKeys.LAST_SCAN_DATE)
    
    def set_last_scan_date(self, iso_date: str) -> None:
        self._store.set(StorageKeys.LAST_SCAN_DATE, iso_date)


class DailyQuota:
    """Quota gate bound to its persisted state and a clock."""
    
    def __init__(
        self,
        gate: ScanQuotaGate,
        state: QuotaStateStore,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.gate = gate
        self.state = state
        self.clock = clock
    
    def can_scan_today(self) -> bool:
        return self.gate.can_scan_today(self.state.get_last_scan_date(), self.clock())
    
    def remaining_scans_today(self) -> int:
        return 1 if self.can_scan_today() else 0
    
    def record_scan_today(self) -> str:
        today = self.gate.record_scan_today(self.clock())
        self.state.set_last_scan_date(today)
        return today
    
    def record_scan_on(self, epoch_ms: int) -> str:
        """
        Record the civil date of an earlier instant, never moving the stored
        date backwards.
        """
        day = self.gate.civil_date_from_ms(epoch_ms)
        current = self.state.get_last_scan_date()
        if current is None or day > current:
            self.state.set_last_scan_date(day)
            return day
        return current
