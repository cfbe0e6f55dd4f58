"""
Unit tests for active location resolution.
"""
import pytest

from farmcore.domain.models import LocationSource, SavedLocation
from farmcore.infrastructure.persistence import StorageKeys
from farmcore.services.domain.location_resolver import LocationResolver, PreferencesStore


def _field(**overrides):
    data = {
        "name": "แปลงนาข้าว",
        "latitude": 14.5,
        "longitude": 101.9,
        "place_text": "ปากช่อง, นครราชสีมา",
    }
    data.update(overrides)
    return data


class TestPreferencesStore:
    
    def test_seed_location_by_default(self, preferences):
        location = preferences.get_location()
        
        assert location.latitude == 14.97
        assert location.longitude == 102.08
        assert location.place_text == "นครราชสีมา"
    
    def test_custom_seed(self, kv_store):
        seed = SavedLocation(latitude=18.79, longitude=98.98, place_text="เชียงใหม่")
        
        assert PreferencesStore(kv_store, seed=seed).get_location() == seed
    
    def test_set_location_persists(self, preferences, kv_store):
        saved = SavedLocation(latitude=13.73, longitude=100.5, place_text="กรุงเทพมหานคร")
        preferences.set_location(saved)
        
        assert kv_store.get(StorageKeys.SAVED_LOCATION)["place_text"] == "กรุงเทพมหานคร"
        assert PreferencesStore(kv_store).get_location() == saved


class TestLocationResolver:
    
    def test_falls_back_to_preferences(self, resolver):
        location = resolver.resolve()
        
        assert location.source == LocationSource.PREFERENCES
        assert (location.latitude, location.longitude) == (14.97, 102.08)
    
    def test_field_takes_precedence(self, resolver, field_store, preferences):
        preferences.set_location(
            SavedLocation(latitude=13.73, longitude=100.5, place_text="กรุงเทพมหานคร")
        )
        field_store.create_or_update(_field())
        
        location = resolver.resolve()
        
        assert location.source == LocationSource.FIELD
        assert (location.latitude, location.longitude) == (14.5, 101.9)
        assert location.place_text == "ปากช่อง, นครราชสีมา"
    
    def test_deleting_field_restores_preferences(self, resolver, field_store):
        field_store.create_or_update(_field())
        field_store.delete()
        
        assert resolver.resolve().source == LocationSource.PREFERENCES
    
    def test_resolves_from_current_state(self, field_store, preferences):
        resolver = LocationResolver(field_store, preferences)
        first = resolver.resolve()
        
        field_store.create_or_update(_field(latitude=15.2))
        
        assert first.source == LocationSource.PREFERENCES
        assert resolver.resolve().latitude == 15.2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
