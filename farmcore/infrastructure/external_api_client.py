"""
Infrastructure layer: HTTP adapters for the external collaborators, with retry logic.
"""
import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import logging

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from farmcore.config import settings
from farmcore.domain.errors import (
    ExternalAPIError,
    LocationNotFoundError,
    TransientAPIError,
)
from farmcore.domain.models import ClassificationResult, GeocodeResult, HourlySample
from farmcore.infrastructure.api_constants import (
    APIConstants,
    NominatimEndpoints,
    OpenMeteoEndpoints,
    ScanAPIEndpoints,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BaseAPIClient:
    """
    Shared httpx client with retry logic.
    
    Network errors and 5xx responses are retried with exponential backoff and
    surface as TransientAPIError once retries are exhausted; 4xx responses are
    not retried and surface as ExternalAPIError.
    """
    
    def __init__(self, base_url: str, headers: Optional[Dict[str, str]] = None):
        """Initialize the API client with configuration."""
        self.base_url = base_url
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"accept": APIConstants.CONTENT_TYPE_JSON, **(headers or {})},
            timeout=settings.http_timeout_seconds,
        )
    
    async def __aenter__(self):
        return self
    
    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
    
    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
    
    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.RequestError)),
        reraise=True,
    )
    async def _send(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        response = await self.client.request(method, endpoint, **kwargs)
        # Only server errors are retried
        if response.status_code >= 500:
            response.raise_for_status()
        return response
    
    async def _make_request(
        self, 
        method: str, 
        endpoint: str, 
        **kwargs
    ) -> Any:
        """
        Make an HTTP request with retry logic.
        
        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments for the request
            
        Returns:
            Decoded JSON body
            
        Raises:
            TransientAPIError: If the service stays unreachable or failing
            ExternalAPIError: If the service rejects the request
        """
        try:
            response = await self._send(method, endpoint, **kwargs)
        except httpx.HTTPStatusError as e:
            raise TransientAPIError(
                f"API unavailable: {e.response.status_code} - {e.response.text}"
            )
        except httpx.RequestError as e:
            raise TransientAPIError(f"API request error: {str(e)}")
        
        if response.status_code >= 400:
            raise ExternalAPIError(
                f"API request failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        
        try:
            return response.json()
        except ValueError:
            raise ExternalAPIError(f"API returned invalid JSON from {endpoint}")


class ScanClassifierClient(BaseAPIClient):
    """Client for the remote leaf scan classifier."""
    
    def __init__(self):
        headers = {}
        if settings.scan_api_key:
            headers["Authorization"] = f"Bearer {settings.scan_api_key}"
        super().__init__(settings.scan_api_base_url, headers=headers)
    
    async def classify(
        self,
        image_ref: str,
        field_id: Optional[str],
        crop_type: str,
    ) -> ClassificationResult:
        """
        Classify a leaf image.
        
        Args:
            image_ref: Local image path, or a reference the service can resolve
            field_id: Registered field id, if any
            crop_type: Crop the image shows
            
        Returns:
            ClassificationResult with confidence in percent
            
        Raises:
            TransientAPIError: If the service is unreachable
            ExternalAPIError: If the service rejects the request
        """
        data = {"crop": crop_type}
        if field_id:
            data["fieldId"] = field_id
        
        files = None
        image_path = Path(image_ref)
        if await asyncio.to_thread(image_path.is_file):
            content = await asyncio.to_thread(image_path.read_bytes)
            files = {"image": (image_path.name, content)}
        else:
            data["image"] = image_ref
        
        body = await self._make_request(
            "POST",
            ScanAPIEndpoints.SCAN,
            data=data,
            files=files,
        )
        return self.parse_classification(body)
    
    @staticmethod
    def parse_classification(body: Dict[str, Any]) -> ClassificationResult:
        """
        Normalize a classifier response.
        
        Confidence may be a fraction (0-1) or a percentage (0-100).
        """
        if not isinstance(body, dict):
            raise ExternalAPIError(f"Unexpected classifier response: {body!r}")
        
        try:
            confidence = body.get("confidence")
            if confidence is None:
                confidence = APIConstants.DEFAULT_CONFIDENCE_PERCENT
            elif confidence <= 1:
                confidence = confidence * 100
            
            return ClassificationResult(
                label=body.get("label") or APIConstants.UNKNOWN_LABEL,
                confidence_percent=round(min(max(confidence, 0), 100), 1),
                advisory_steps=body.get("steps") or [],
            )
        except (TypeError, ValueError) as e:
            raise ExternalAPIError(f"Malformed classifier response: {e}")


class WeatherClient(BaseAPIClient):
    """Open-Meteo hourly forecast client."""
    
    def __init__(self, clock: Callable[[], datetime] = _utc_now):
        super().__init__(settings.weather_api_base_url)
        self.clock = clock
    
    async def get_forecast(self, latitude: float, longitude: float) -> List[HourlySample]:
        """
        Fetch the hourly forecast from the current hour onwards.
        
        Args:
            latitude: Latitude in degrees
            longitude: Longitude in degrees
            
        Returns:
            Time-ordered list of HourlySample
        """
        body = await self._make_request(
            "GET",
            OpenMeteoEndpoints.FORECAST,
            params={
                "latitude": latitude,
                "longitude": longitude,
                "hourly": OpenMeteoEndpoints.HOURLY_VARIABLES,
                "wind_speed_unit": "kmh",
                "timezone": "UTC",
                "forecast_days": OpenMeteoEndpoints.FORECAST_DAYS,
            },
        )
        return self.parse_hourly(body, self.clock())
    
    @staticmethod
    def parse_hourly(body: Dict[str, Any], now: datetime) -> List[HourlySample]:
        """
        Convert an Open-Meteo hourly block into samples, skipping past hours.
        
        Missing values count as zero rain probability and zero wind.
        """
        hourly = body.get("hourly") or {}
        times = hourly.get("time") or []
        rain = hourly.get("precipitation_probability") or []
        wind = hourly.get("wind_speed_10m") or []
        temp = hourly.get("temperature_2m") or []
        
        def at(values: list, idx: int):
            return values[idx] if idx < len(values) else None
        
        current_hour = now.astimezone(timezone.utc).replace(minute=0, second=0, microsecond=0)
        samples = []
        for idx, raw_time in enumerate(times):
            timestamp = datetime.fromisoformat(raw_time).replace(tzinfo=timezone.utc)
            if timestamp < current_hour:
                continue
            samples.append(HourlySample(
                timestamp=timestamp,
                rain_probability_percent=at(rain, idx) or 0,
                wind_speed_kph=at(wind, idx) or 0,
                temperature_c=at(temp, idx),
            ))
        return samples


class GeocodeClient:
    """Place search via Open-Meteo geocoding, reverse lookup via Nominatim."""
    
    def __init__(self, language: str = APIConstants.DEFAULT_LANGUAGE):
        self.language = language
        self.search_api = BaseAPIClient(settings.geocode_api_base_url)
        self.reverse_api = BaseAPIClient(
            settings.reverse_geocode_api_base_url,
            headers={"User-Agent": NominatimEndpoints.USER_AGENT},
        )
    
    async def close(self):
        await self.search_api.close()
        await self.reverse_api.close()
    
    async def search(self, text: str) -> GeocodeResult:
        """
        Resolve a place name to coordinates.
        
        Raises:
            LocationNotFoundError: If nothing matches
        """
        body = await self.search_api._make_request(
            "GET",
            OpenMeteoEndpoints.GEOCODE_SEARCH,
            params={"name": text, "count": 1, "language": self.language, "format": "json"},
        )
        results = body.get("results") or []
        if not results:
            raise LocationNotFoundError(text)
        
        top = results[0]
        parts = [top.get("name"), top.get("admin1")]
        return GeocodeResult(
            latitude=top["latitude"],
            longitude=top["longitude"],
            place_text=", ".join(p for p in parts if p),
        )
    
    async def reverse(self, latitude: float, longitude: float) -> GeocodeResult:
        """Resolve coordinates to a place text."""
        body = await self.reverse_api._make_request(
            "GET",
            NominatimEndpoints.REVERSE,
            params={
                "lat": latitude,
                "lon": longitude,
                "format": "jsonv2",
                "accept-language": self.language,
            },
        )
        if not body or "error" in body:
            raise LocationNotFoundError(f"{latitude},{longitude}")
        
        address = body.get("address") or {}
        locality = (
            address.get("suburb")
            or address.get("village")
            or address.get("town")
            or address.get("city_district")
            or address.get("city")
        )
        province = address.get("state") or address.get("province")
        place_text = ", ".join(p for p in (locality, province) if p) or body.get("display_name", "")
        
        return GeocodeResult(latitude=latitude, longitude=longitude, place_text=place_text)


# Singleton instances
_scan_client: Optional[ScanClassifierClient] = None
_weather_client: Optional[WeatherClient] = None
_geocode_client: Optional[GeocodeClient] = None


def get_scan_client() -> ScanClassifierClient:
    """
    Get or create the singleton scan classifier client.
    
    Returns:
        ScanClassifierClient instance
    """
    global _scan_client
    if _scan_client is None:
        _scan_client = ScanClassifierClient()
    return _scan_client


def get_weather_client() -> WeatherClient:
    global _weather_client
    if _weather_client is None:
        _weather_client = WeatherClient()
    return _weather_client


def get_geocode_client() -> GeocodeClient:
    global _geocode_client
    if _geocode_client is None:
        _geocode_client = GeocodeClient()
    return _geocode_client


async def close_clients() -> None:
    """Close every client created so far."""
    global _scan_client, _weather_client, _geocode_client
    for client in (_scan_client, _weather_client, _geocode_client):
        if client is not None:
            await client.close()
    _scan_client = _weather_client = _geocode_client = None
