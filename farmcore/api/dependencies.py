"""
Dependency injection for FastAPI.

The stores are stateful, so the whole object graph is built once per process
and shared by every request.
"""
from typing import Annotated, Optional
from fastapi import Depends

from farmcore.config import settings
from farmcore.domain.ports import (
    GeocodeProvider,
    ImageQualityChecker,
    KeyValueStore,
    RemoteScanClassifier,
    WeatherProvider,
)
from farmcore.infrastructure.external_api_client import (
    get_geocode_client,
    get_scan_client,
    get_weather_client,
)
from farmcore.infrastructure.image_quality import BasicImageQualityChecker
from farmcore.infrastructure.persistence import build_store
from farmcore.services.application.advisory_service import AdvisoryService
from farmcore.services.application.field_service import FieldService
from farmcore.services.application.offline_submission_queue import OfflineSubmissionQueue
from farmcore.services.application.scan_orchestrator import ScanOrchestrator
from farmcore.services.domain.field_store import FieldStore
from farmcore.services.domain.location_resolver import LocationResolver, PreferencesStore
from farmcore.services.domain.scan_quota_gate import DailyQuota, QuotaStateStore, ScanQuotaGate
from farmcore.services.domain.scan_record_store import ScanRecordStore
from farmcore.services.domain.spray_window_classifier import SprayWindowClassifier


class ServiceContainer:
    """Owns the stores and wires the services around them."""
    
    def __init__(
        self,
        store: KeyValueStore,
        weather: WeatherProvider,
        geocoder: GeocodeProvider,
        scan_classifier: RemoteScanClassifier,
        quality_checker: ImageQualityChecker,
    ):
        self.store = store
        self.field_store = FieldStore(store)
        self.preferences = PreferencesStore(store)
        self.resolver = LocationResolver(self.field_store, self.preferences)
        self.quota = DailyQuota(ScanQuotaGate(), QuotaStateStore(store))
        self.record_store = ScanRecordStore(store)
        self.queue = OfflineSubmissionQueue(
            classifier=scan_classifier,
            record_store=self.record_store,
            quota=self.quota,
            store=store,
        )
        self.orchestrator = ScanOrchestrator(
            quota=self.quota,
            quality_checker=quality_checker,
            classifier=scan_classifier,
            queue=self.queue,
            record_store=self.record_store,
        )
        self.advisory_service = AdvisoryService(
            resolver=self.resolver,
            weather=weather,
            classifier=SprayWindowClassifier(),
        )
        self.field_service = FieldService(
            field_store=self.field_store,
            preferences=self.preferences,
            resolver=self.resolver,
            geocoder=geocoder,
        )


# Singleton instance
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get or create the process-wide service container.
    
    Returns:
        ServiceContainer instance
    """
    global _container
    if _container is None:
        _container = ServiceContainer(
            store=build_store(settings.storage_path),
            weather=get_weather_client(),
            geocoder=get_geocode_client(),
            scan_classifier=get_scan_client(),
            quality_checker=BasicImageQualityChecker(),
        )
    return _container


ContainerDep = Annotated[ServiceContainer, Depends(get_container)]


def get_field_service(container: ContainerDep) -> FieldService:
    return container.field_service


def get_advisory_service(container: ContainerDep) -> AdvisoryService:
    return container.advisory_service


def get_scan_orchestrator(container: ContainerDep) -> ScanOrchestrator:
    return container.orchestrator


def get_offline_queue(container: ContainerDep) -> OfflineSubmissionQueue:
    return container.queue


def get_daily_quota(container: ContainerDep) -> DailyQuota:
    return container.quota


def get_location_resolver(container: ContainerDep) -> LocationResolver:
    return container.resolver


# Type aliases for cleaner route signatures
FieldServiceDep = Annotated[FieldService, Depends(get_field_service)]
AdvisoryServiceDep = Annotated[AdvisoryService, Depends(get_advisory_service)]
ScanOrchestratorDep = Annotated[ScanOrchestrator, Depends(get_scan_orchestrator)]
OfflineQueueDep = Annotated[OfflineSubmissionQueue, Depends(get_offline_queue)]
DailyQuotaDep = Annotated[DailyQuota, Depends(get_daily_quota)]
LocationResolverDep = Annotated[LocationResolver, Depends(get_location_resolver)]
