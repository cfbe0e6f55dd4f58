"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- A controllable clock
- In-memory stores and the core services built on them
- Mock external collaborators
- FastAPI test client wired to the mocks
"""
import pytest
from datetime import datetime, timedelta, timezone
from typing import List
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from farmcore.main import app
from farmcore.api.dependencies import ServiceContainer, get_container
from farmcore.domain.models import (
    ClassificationResult,
    GeocodeResult,
    HourlySample,
    QualityReport,
)
from farmcore.infrastructure.persistence import InMemoryKeyValueStore
from farmcore.services.application.offline_submission_queue import OfflineSubmissionQueue
from farmcore.services.application.scan_orchestrator import ScanOrchestrator
from farmcore.services.domain.field_store import FieldStore
from farmcore.services.domain.location_resolver import LocationResolver, PreferencesStore
from farmcore.services.domain.scan_quota_gate import DailyQuota, QuotaStateStore, ScanQuotaGate
from farmcore.services.domain.scan_record_store import ScanRecordStore


class FakeClock:
    """Settable clock; call for a datetime, `ms()` for epoch milliseconds."""
    
    def __init__(self, start: datetime):
        self.now = start
    
    def __call__(self) -> datetime:
        return self.now
    
    def ms(self) -> int:
        return int(self.now.timestamp() * 1000)
    
    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_hours(pairs: List[tuple], start: datetime = None) -> List[HourlySample]:
    """Build hourly samples from (rain %, wind km/h) pairs."""
    start = start or datetime(2026, 10, 18, 3, 0, tzinfo=timezone.utc)
    return [
        HourlySample(
            timestamp=start + timedelta(hours=i),
            rain_probability_percent=rain,
            wind_speed_kph=wind,
            temperature_c=30.0,
        )
        for i, (rain, wind) in enumerate(pairs)
    ]


# ============================================================
# Core Service Fixtures
# ============================================================

@pytest.fixture
def clock() -> FakeClock:
    """10:00 on 2026-10-18 in Bangkok."""
    return FakeClock(datetime(2026, 10, 18, 3, 0, tzinfo=timezone.utc))


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def field_store(kv_store, clock) -> FieldStore:
    return FieldStore(kv_store, clock=clock.ms)


@pytest.fixture
def preferences(kv_store) -> PreferencesStore:
    return PreferencesStore(kv_store)


@pytest.fixture
def resolver(field_store, preferences) -> LocationResolver:
    return LocationResolver(field_store, preferences)


@pytest.fixture
def quota(kv_store, clock) -> DailyQuota:
    return DailyQuota(ScanQuotaGate("Asia/Bangkok"), QuotaStateStore(kv_store), clock=clock)


@pytest.fixture
def record_store(kv_store) -> ScanRecordStore:
    return ScanRecordStore(kv_store)


# ============================================================
# Mock Collaborator Fixtures
# ============================================================

@pytest.fixture
def classification() -> ClassificationResult:
    return ClassificationResult(
        label="Rice blast",
        confidence_percent=87.0,
        advisory_steps=["Apply fungicide", "Spray every 7-10 days", "Monitor results"],
    )


@pytest.fixture
def mock_scan_classifier(classification):
    """Remote classifier that succeeds."""
    classifier = AsyncMock()
    classifier.classify.return_value = classification
    return classifier


@pytest.fixture
def mock_quality_checker():
    """Quality checker that accepts every image."""
    checker = AsyncMock()
    checker.check.return_value = QualityReport(is_valid=True, issues=[])
    return checker


@pytest.fixture
def mock_weather():
    weather = AsyncMock()
    weather.get_forecast.return_value = make_hours([(10, 5)] * 12)
    return weather


@pytest.fixture
def mock_geocoder():
    geocoder = AsyncMock()
    geocoder.search.return_value = GeocodeResult(
        latitude=13.73, longitude=100.50, place_text="เขตบางรัก, กรุงเทพมหานคร"
    )
    geocoder.reverse.return_value = GeocodeResult(
        latitude=15.0, longitude=102.1, place_text="ในเมือง, นครราชสีมา"
    )
    return geocoder


@pytest.fixture
def queue(mock_scan_classifier, record_store, quota, kv_store, clock) -> OfflineSubmissionQueue:
    ids = iter(f"sub_{i}" for i in range(1, 100))
    return OfflineSubmissionQueue(
        classifier=mock_scan_classifier,
        record_store=record_store,
        quota=quota,
        store=kv_store,
        max_retries=3,
        clock=clock.ms,
        id_factory=lambda: next(ids),
    )


@pytest.fixture
def online():
    """Mutable connectivity flag: set `online["value"] = False` to go offline."""
    return {"value": True}


@pytest.fixture
def orchestrator(
    quota, mock_quality_checker, mock_scan_classifier, queue, record_store, online, clock
) -> ScanOrchestrator:
    return ScanOrchestrator(
        quota=quota,
        quality_checker=mock_quality_checker,
        classifier=mock_scan_classifier,
        queue=queue,
        record_store=record_store,
        is_online=lambda: online["value"],
        clock=clock.ms,
    )


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def container(mock_weather, mock_geocoder, mock_scan_classifier, mock_quality_checker):
    return ServiceContainer(
        store=InMemoryKeyValueStore(),
        weather=mock_weather,
        geocoder=mock_geocoder,
        scan_classifier=mock_scan_classifier,
        quality_checker=mock_quality_checker,
    )


@pytest.fixture
def test_client(container) -> TestClient:
    """Synchronous test client with the service container overridden."""
    app.dependency_overrides[get_container] = lambda: container
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
