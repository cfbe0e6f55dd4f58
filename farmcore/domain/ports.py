"""
Interfaces of the external collaborators this core depends on.

Concrete adapters live in the infrastructure layer; tests substitute mocks.
"""
from typing import Any, List, Optional, Protocol

from farmcore.domain.models import (
    ClassificationResult,
    GeocodeResult,
    HourlySample,
    QualityReport,
)


class KeyValueStore(Protocol):
    """Durable key-value persistence."""
    
    def get(self, key: str, default: Any = None) -> Any: ...
    
    def set(self, key: str, value: Any) -> None: ...
    
    def delete(self, key: str) -> None: ...


class WeatherProvider(Protocol):
    async def get_forecast(self, latitude: float, longitude: float) -> List[HourlySample]: ...


class GeocodeProvider(Protocol):
    async def search(self, text: str) -> GeocodeResult: ...
    
    async def reverse(self, latitude: float, longitude: float) -> GeocodeResult: ...


class RemoteScanClassifier(Protocol):
    async def classify(
        self,
        image_ref: str,
        field_id: Optional[str],
        crop_type: str,
    ) -> ClassificationResult: ...


class ImageQualityChecker(Protocol):
    async def check(self, image_ref: str) -> QualityReport: ...
