"""
Unit tests for the spray advisory application service.
"""
import pytest

from farmcore.domain.errors import TransientAPIError
from farmcore.domain.models import LocationSource, ReasonCode, SprayState
from farmcore.services.application.advisory_service import AdvisoryService
from farmcore.services.domain.spray_window_classifier import SprayWindowClassifier
from conftest import make_hours


@pytest.fixture
def advisory_service(resolver, mock_weather) -> AdvisoryService:
    return AdvisoryService(resolver, mock_weather, SprayWindowClassifier(), window_hours=12)


class TestGetAdvisory:
    
    async def test_rain_without_field_uses_seed_location(self, advisory_service, mock_weather):
        mock_weather.get_forecast.return_value = make_hours([(45, 5)])
        
        report = await advisory_service.get_advisory("en")
        
        mock_weather.get_forecast.assert_awaited_once_with(14.97, 102.08)
        assert report.location.source == LocationSource.PREFERENCES
        assert report.advisory.state == SprayState.DO_NOT_SPRAY
        assert report.advisory.reason_code == ReasonCode.RAIN
        assert report.display.text == "Don't spray"
        assert report.display.reason == "Because of expected rain"
    
    async def test_field_location_used(self, advisory_service, field_store, mock_weather):
        field_store.create_or_update({
            "name": "แปลงนา",
            "latitude": 16.4,
            "longitude": 102.8,
            "place_text": "ตำบลในเมือง, จังหวัดขอนแก่น",
        })
        
        report = await advisory_service.get_advisory("th")
        
        mock_weather.get_forecast.assert_awaited_once_with(16.4, 102.8)
        assert report.location_label == "ในเมือง, ขอนแก่น"
    
    async def test_good_weather(self, advisory_service):
        report = await advisory_service.get_advisory("th")
        
        assert report.advisory.state == SprayState.GOOD
        assert report.display.text == "เหมาะสม"
        assert len(report.hours) == 12
    
    async def test_only_near_term_hours_considered(self, advisory_service, mock_weather):
        mock_weather.get_forecast.return_value = make_hours([(0, 0)] * 12 + [(90, 30)] * 12)
        
        report = await advisory_service.get_advisory("en")
        
        assert report.advisory.state == SprayState.GOOD
        assert len(report.hours) == 12
    
    async def test_forecast_failure_propagates(self, advisory_service, mock_weather):
        mock_weather.get_forecast.side_effect = TransientAPIError("timeout")
        
        with pytest.raises(TransientAPIError):
            await advisory_service.get_advisory()


class TestBuildReport:
    
    def test_wind_caution(self, advisory_service):
        report = advisory_service.build_report(make_hours([(0, 14)] * 3), "en")
        
        assert report.advisory.state == SprayState.CAUTION
        assert report.display.text == "Caution"
    
    def test_empty_forecast_is_good(self, advisory_service):
        report = advisory_service.build_report([], "en")
        
        assert report.advisory.state == SprayState.GOOD
        assert report.hours == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
