"""
Domain service: active location resolution.

The registered field's location takes precedence over the saved preference
location, which itself falls back to a configured seed location.
"""
import logging
from typing import Optional

from farmcore.config import settings
from farmcore.domain.models import LocationSource, ResolvedLocation, SavedLocation
from farmcore.domain.ports import KeyValueStore
from farmcore.infrastructure.persistence import InMemoryKeyValueStore, StorageKeys
from farmcore.services.domain.field_store import FieldStore

logger = logging.getLogger(__name__)


class PreferencesStore:
    """Saved default location, used while no field is registered."""
    
    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        seed: Optional[SavedLocation] = None,
    ):
        self._store = store if store is not None else InMemoryKeyValueStore()
        self._seed = seed or SavedLocation(
            latitude=settings.default_latitude,
            longitude=settings.default_longitude,
            place_text=settings.default_place_text,
        )
    
    def get_location(self) -> SavedLocation:
        raw = self._store.get(StorageKeys.SAVED_LOCATION)
        return SavedLocation(**raw) if raw else self._seed
    
    def set_location(self, location: SavedLocation) -> None:
        self._store.set(StorageKeys.SAVED_LOCATION, location.model_dump(mode="json"))
        logger.info(f"Saved preference location: {location.place_text}")


class LocationResolver:
    """Derives the active (latitude, longitude, place text) triple."""
    
    def __init__(self, field_store: FieldStore, preferences: PreferencesStore):
        self.field_store = field_store
        self.preferences = preferences
    
    def resolve(self) -> ResolvedLocation:
        field = self.field_store.get_field()
        if field is not None:
            return ResolvedLocation(
                source=LocationSource.FIELD,
                latitude=field.latitude,
                longitude=field.longitude,
                place_text=field.place_text,
            )
        
        saved = self.preferences.get_location()
        return ResolvedLocation(
            source=LocationSource.PREFERENCES,
            latitude=saved.latitude,
            longitude=saved.longitude,
            place_text=saved.place_text,
        )
