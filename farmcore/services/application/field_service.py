"""
Application service: field editing flow.

Validates user input, geocodes location edits and writes through FieldStore
or, when no field is registered, the saved preference location.
"""
import logging
from typing import Optional

from farmcore.domain.errors import FieldValidationError
from farmcore.domain.models import (
    FarmField,
    FieldUpdate,
    GeocodeResult,
    ResolvedLocation,
    SavedLocation,
)
from farmcore.domain.ports import GeocodeProvider
from farmcore.services.domain.field_store import FieldStore
from farmcore.services.domain.location_resolver import LocationResolver, PreferencesStore

logger = logging.getLogger(__name__)


class FieldService:
    """Application service for field and location edits."""
    
    def __init__(
        self,
        field_store: FieldStore,
        preferences: PreferencesStore,
        resolver: LocationResolver,
        geocoder: GeocodeProvider,
    ):
        self.field_store = field_store
        self.preferences = preferences
        self.resolver = resolver
        self.geocoder = geocoder
    
    def get_field(self) -> Optional[FarmField]:
        return self.field_store.get_field()
    
    def save_field(self, data: FieldUpdate) -> FarmField:
        """
        Create or update the single field.
        
        Args:
            data: Field attributes to save
            
        Returns:
            The stored field
            
        Raises:
            FieldValidationError: If the data is incomplete
        """
        # A zero coordinate means the location picker was never used
        if data.latitude == 0 or data.longitude == 0:
            raise FieldValidationError("Valid coordinates are required")
        if data.name is not None and not data.name.strip():
            raise FieldValidationError("Field name is required")
        
        self.field_store.create_or_update(data)
        # No remote field sync exists yet; a saved field counts as synced
        self.field_store.mark_synced()
        return self.field_store.get_field()
    
    def delete_field(self) -> None:
        self.field_store.delete()
    
    async def update_location_from_text(self, text: str) -> ResolvedLocation:
        """
        Geocode a place name and make it the active location.
        
        Raises:
            FieldValidationError: If the text is blank
            LocationNotFoundError: If nothing matches
        """
        if not text or not text.strip():
            raise FieldValidationError("Location text is required")
        result = await self.geocoder.search(text.strip())
        return self._apply_location(result)
    
    async def update_location_from_coordinates(
        self,
        latitude: float,
        longitude: float,
    ) -> ResolvedLocation:
        """Reverse-geocode a map pin and make it the active location."""
        result = await self.geocoder.reverse(latitude, longitude)
        return self._apply_location(
            result.model_copy(update={"latitude": latitude, "longitude": longitude})
        )
    
    def _apply_location(self, result: GeocodeResult) -> ResolvedLocation:
        if self.field_store.has_field():
            self.field_store.create_or_update(FieldUpdate(
                latitude=result.latitude,
                longitude=result.longitude,
                place_text=result.place_text,
            ))
            self.field_store.mark_synced()
        else:
            self.preferences.set_location(SavedLocation(
                latitude=result.latitude,
                longitude=result.longitude,
                place_text=result.place_text,
            ))
        return self.resolver.resolve()
