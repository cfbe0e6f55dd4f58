"""
Unit tests for the external HTTP adapters.

Tests cover:
- Retry logic on 5xx errors and network failures
- No retry on 4xx errors
- Async context manager
- Scan classifier request and response handling
- Open-Meteo forecast parsing
- Forward and reverse geocoding
"""
from datetime import datetime, timezone

import httpx
import pytest
import respx
from tenacity import wait_none
from unittest.mock import AsyncMock

import farmcore.infrastructure.external_api_client as module
from farmcore.domain.errors import ExternalAPIError, LocationNotFoundError, TransientAPIError
from farmcore.infrastructure.external_api_client import (
    BaseAPIClient,
    GeocodeClient,
    ScanClassifierClient,
    WeatherClient,
    get_scan_client,
)

BASE_URL = "https://api.test"
NOW = datetime(2026, 10, 18, 3, 20, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    """Retry immediately instead of backing off."""
    monkeypatch.setattr(BaseAPIClient._send.retry, "wait", wait_none())


# ============================================================
# Base Client Tests
# ============================================================

class TestBaseClient:
    
    async def test_context_manager_closes_client(self):
        client = BaseAPIClient(BASE_URL)
        client.close = AsyncMock()
        
        async with client as ctx_client:
            assert ctx_client is client
        
        client.close.assert_called_once()
    
    def test_singleton_pattern(self, monkeypatch):
        monkeypatch.setattr(module, "_scan_client", None)
        
        assert get_scan_client() is get_scan_client()
    
    @respx.mock
    async def test_4xx_error_no_retry(self):
        client = BaseAPIClient(BASE_URL)
        respx.get(f"{BASE_URL}/test").mock(return_value=httpx.Response(404, text="Not Found"))
        
        with pytest.raises(ExternalAPIError, match="404") as exc_info:
            await client._make_request("GET", "/test")
        
        assert exc_info.value.status_code == 404
        assert respx.calls.call_count == 1
        await client.close()
    
    @respx.mock
    async def test_5xx_error_triggers_retry(self):
        client = BaseAPIClient(BASE_URL)
        route = respx.get(f"{BASE_URL}/test")
        route.side_effect = [
            httpx.Response(500, text="Internal Server Error"),
            httpx.Response(200, json={"result": "success"}),
        ]
        
        result = await client._make_request("GET", "/test")
        
        assert result == {"result": "success"}
        assert respx.calls.call_count == 2
        await client.close()
    
    @respx.mock
    async def test_persistent_5xx_is_transient(self):
        client = BaseAPIClient(BASE_URL)
        respx.get(f"{BASE_URL}/test").mock(return_value=httpx.Response(503))
        
        with pytest.raises(TransientAPIError):
            await client._make_request("GET", "/test")
        
        assert respx.calls.call_count == 3
        await client.close()
    
    @respx.mock
    async def test_network_error_is_transient(self):
        client = BaseAPIClient(BASE_URL)
        respx.get(f"{BASE_URL}/test").mock(side_effect=httpx.ConnectError("offline"))
        
        with pytest.raises(TransientAPIError):
            await client._make_request("GET", "/test")
        await client.close()
    
    @respx.mock
    async def test_invalid_json(self):
        client = BaseAPIClient(BASE_URL)
        respx.get(f"{BASE_URL}/test").mock(return_value=httpx.Response(200, text="<html>"))
        
        with pytest.raises(ExternalAPIError):
            await client._make_request("GET", "/test")
        await client.close()


# ============================================================
# Scan Classifier Tests
# ============================================================

class TestScanClassifierClient:
    
    @respx.mock
    async def test_classify_uploads_local_file(self, tmp_path):
        image = tmp_path / "leaf.jpg"
        image.write_bytes(b"\xff\xd8\xff")
        client = ScanClassifierClient()
        route = respx.post(f"{client.base_url}/api/scan").mock(
            return_value=httpx.Response(200, json={
                "label": "Leaf spot",
                "confidence": 0.92,
                "steps": ["Remove infected leaves"],
            })
        )
        
        result = await client.classify(str(image), "field_1", "durian")
        
        assert result.label == "Leaf spot"
        assert result.confidence_percent == 92.0
        assert result.advisory_steps == ["Remove infected leaves"]
        body = route.calls.last.request.read()
        assert b'name="crop"' in body
        assert b'name="fieldId"' in body
        assert b'filename="leaf.jpg"' in body
        await client.close()
    
    @respx.mock
    async def test_classify_rejected(self):
        client = ScanClassifierClient()
        respx.post(f"{client.base_url}/api/scan").mock(
            return_value=httpx.Response(422, json={"detail": "unsupported crop"})
        )
        
        with pytest.raises(ExternalAPIError):
            await client.classify("remote://leaf", None, "cassava")
        await client.close()
    
    @pytest.mark.parametrize("confidence,expected", [
        (0.87, 87.0),
        (87, 87.0),
        (1, 100.0),
        (150, 100.0),
        (None, 50.0),
    ])
    def test_parse_confidence(self, confidence, expected):
        result = ScanClassifierClient.parse_classification(
            {"label": "Rust", "confidence": confidence}
        )
        
        assert result.confidence_percent == expected
    
    def test_parse_missing_fields(self):
        result = ScanClassifierClient.parse_classification({})
        
        assert result.label == "Unknown"
        assert result.advisory_steps == []
    
    @pytest.mark.parametrize("body", [
        ["Leaf spot", 0.9],
        {"label": "Leaf spot", "confidence": "high"},
        {"label": ["Leaf spot"], "confidence": 0.9},
    ])
    def test_parse_malformed_body(self, body):
        with pytest.raises(ExternalAPIError):
            ScanClassifierClient.parse_classification(body)


# ============================================================
# Weather Client Tests
# ============================================================

HOURLY_BODY = {
    "hourly": {
        "time": ["2026-10-18T02:00", "2026-10-18T03:00", "2026-10-18T04:00"],
        "precipitation_probability": [80, 10, None],
        "wind_speed_10m": [30.0, 5.5, 7.0],
        "temperature_2m": [27.0, 28.1, 29.4],
    }
}


class TestWeatherClient:
    
    def test_parse_skips_past_hours(self):
        samples = WeatherClient.parse_hourly(HOURLY_BODY, NOW)
        
        assert [s.timestamp.hour for s in samples] == [3, 4]
        assert samples[0].rain_probability_percent == 10
        assert samples[0].wind_speed_kph == 5.5
        assert samples[0].timestamp.tzinfo is not None
    
    def test_parse_missing_value_is_zero(self):
        samples = WeatherClient.parse_hourly(HOURLY_BODY, NOW)
        
        assert samples[1].rain_probability_percent == 0
    
    def test_parse_empty_body(self):
        assert WeatherClient.parse_hourly({}, NOW) == []
    
    @respx.mock
    async def test_get_forecast(self):
        client = WeatherClient(clock=lambda: NOW)
        route = respx.get(f"{client.base_url}/v1/forecast").mock(
            return_value=httpx.Response(200, json=HOURLY_BODY)
        )
        
        samples = await client.get_forecast(14.97, 102.08)
        
        assert len(samples) == 2
        params = route.calls.last.request.url.params
        assert params["latitude"] == "14.97"
        assert params["wind_speed_unit"] == "kmh"
        await client.close()


# ============================================================
# Geocode Client Tests
# ============================================================

class TestGeocodeClient:
    
    @respx.mock
    async def test_search(self):
        client = GeocodeClient()
        respx.get(f"{client.search_api.base_url}/v1/search").mock(
            return_value=httpx.Response(200, json={"results": [{
                "name": "ปากช่อง",
                "admin1": "นครราชสีมา",
                "latitude": 14.71,
                "longitude": 101.42,
            }]})
        )
        
        result = await client.search("ปากช่อง")
        
        assert (result.latitude, result.longitude) == (14.71, 101.42)
        assert result.place_text == "ปากช่อง, นครราชสีมา"
        await client.close()
    
    @respx.mock
    async def test_search_no_results(self):
        client = GeocodeClient()
        respx.get(f"{client.search_api.base_url}/v1/search").mock(
            return_value=httpx.Response(200, json={"generationtime_ms": 0.5})
        )
        
        with pytest.raises(LocationNotFoundError) as exc_info:
            await client.search("nowhere")
        
        assert exc_info.value.status_code == 404
        await client.close()
    
    @respx.mock
    async def test_reverse(self):
        client = GeocodeClient()
        route = respx.get(f"{client.reverse_api.base_url}/reverse").mock(
            return_value=httpx.Response(200, json={
                "display_name": "ในเมือง, เมืองนครราชสีมา, นครราชสีมา, 30000, ประเทศไทย",
                "address": {"suburb": "ในเมือง", "state": "นครราชสีมา"},
            })
        )
        
        result = await client.reverse(14.97, 102.1)
        
        assert result.place_text == "ในเมือง, นครราชสีมา"
        assert result.latitude == 14.97
        assert route.calls.last.request.headers["User-Agent"].startswith("farm-advisory-core")
        await client.close()
    
    @respx.mock
    async def test_reverse_error(self):
        client = GeocodeClient()
        respx.get(f"{client.reverse_api.base_url}/reverse").mock(
            return_value=httpx.Response(200, json={"error": "Unable to geocode"})
        )
        
        with pytest.raises(LocationNotFoundError):
            await client.reverse(0.0, -150.0)
        await client.close()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
