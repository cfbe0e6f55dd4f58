"""
Domain service: single-slot field store with change notification.
"""
import itertools
import logging
import time
from typing import Callable, Dict, Optional, Tuple, Union

from pydantic import ValidationError

from farmcore.domain.errors import FieldValidationError
from farmcore.domain.models import FarmField, FieldUpdate
from farmcore.domain.ports import KeyValueStore
from farmcore.infrastructure.persistence import InMemoryKeyValueStore, StorageKeys
from farmcore.utils.field_geometry import boundary_area_rai, parse_boundary

logger = logging.getLogger(__name__)

FIELD_ID = "field_1"

Listener = Callable[[], None]


def _now_ms() -> int:
    return int(time.time() * 1000)


class FieldStore:
    """
    Holds zero or one field and notifies subscribers on every mutation.
    
    Saving a second field overwrites the first; the identifier never changes.
    Readers receive frozen snapshots. Notification runs synchronously after
    the mutation and before the mutating call returns.
    """
    
    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        """
        Initialize the store, restoring a persisted field if present.
        
        Args:
            store: Durable key-value store (in-memory when omitted)
            clock: Returns the current epoch time in milliseconds
        """
        self._store = store if store is not None else InMemoryKeyValueStore()
        self._clock = clock
        self._listeners: Dict[int, Listener] = {}
        self._handles = itertools.count(1)
        
        raw = self._store.get(StorageKeys.FIELD)
        self._field: Optional[FarmField] = FarmField(**raw) if raw else None
    
    def get_field(self) -> Optional[FarmField]:
        return self._field
    
    def has_field(self) -> bool:
        return self._field is not None
    
    def get_field_location(self) -> Optional[Tuple[float, float]]:
        if self._field is None:
            return None
        return (self._field.latitude, self._field.longitude)
    
    def get_field_place_text(self) -> Optional[str]:
        if self._field is None:
            return None
        return self._field.place_text or None
    
    def create_or_update(self, data: Union[FieldUpdate, dict]) -> FarmField:
        """
        Create the field, or merge data over the existing one.
        
        Args:
            data: Field attributes; unset attributes keep their stored value
            
        Returns:
            The stored field snapshot
            
        Raises:
            FieldValidationError: If the merged record lacks a name,
                coordinates or place text, or the boundary is invalid.
                The store is left unchanged.
        """
        if isinstance(data, dict):
            try:
                data = FieldUpdate(**data)
            except ValidationError as e:
                raise FieldValidationError(str(e))
        
        changes = data.model_dump(exclude_unset=True)
        for key in ("name", "place_text"):
            if isinstance(changes.get(key), str):
                changes[key] = changes[key].strip()
        
        merged = self._field.model_dump() if self._field else {}
        merged.update(changes)
        self._validate(merged)
        
        if "polygon_geojson" in changes and "area_rai" not in changes:
            polygon = merged.get("polygon_geojson")
            merged["area_rai"] = boundary_area_rai(polygon) if polygon else None
        
        merged["id"] = FIELD_ID
        merged["updated_at_ms"] = self._clock()
        merged["dirty"] = True
        
        created = self._field is None
        self._commit(FarmField(**merged))
        logger.info(f"Field {'created' if created else 'updated'}: {self._field.name}")
        return self._field
    
    def delete(self) -> None:
        self._field = None
        self._store.delete(StorageKeys.FIELD)
        logger.info("Field deleted")
        self._notify()
    
    def mark_synced(self) -> None:
        """Clear the dirty flag. No-op when there is no field."""
        if self._field is None:
            return
        self._commit(self._field.model_copy(update={"dirty": False}))
    
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with no arguments after every mutation.
        
        Returns:
            A function removing exactly this registration
        """
        handle = next(self._handles)
        self._listeners[handle] = listener
        
        def unsubscribe() -> None:
            self._listeners.pop(handle, None)
        
        return unsubscribe
    
    def _commit(self, field: FarmField) -> None:
        self._field = field
        self._store.set(StorageKeys.FIELD, field.model_dump(mode="json"))
        self._notify()
    
    def _notify(self) -> None:
        for listener in list(self._listeners.values()):
            listener()
    
    @staticmethod
    def _validate(record: dict) -> None:
        if not record.get("name"):
            raise FieldValidationError("Field name is required")
        
        latitude = record.get("latitude")
        longitude = record.get("longitude")
        if latitude is None or longitude is None:
            raise FieldValidationError("Valid coordinates are required")
        if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            raise FieldValidationError(f"Coordinates out of range: {latitude},{longitude}")
        
        if not record.get("place_text"):
            raise FieldValidationError("Place text is required")
        
        polygon = record.get("polygon_geojson")
        if polygon:
            try:
                parse_boundary(polygon)
            except ValueError as e:
                raise FieldValidationError(f"Invalid field boundary: {e}")
        
        area = record.get("area_rai")
        if area is not None and area < 0:
            raise FieldValidationError("Field area cannot be negative")
