"""
Application service: spray advisory for the active location.
"""
import logging
from typing import List, Optional, Sequence

from pydantic import BaseModel

from farmcore.config import settings
from farmcore.domain.models import HourlySample, ResolvedLocation, SprayAdvisory
from farmcore.domain.ports import WeatherProvider
from farmcore.domain.presentation import (
    AdvisoryText,
    describe_advisory,
    format_location_display,
)
from farmcore.services.domain.location_resolver import LocationResolver
from farmcore.services.domain.spray_window_classifier import SprayWindowClassifier

logger = logging.getLogger(__name__)


class AdvisoryReport(BaseModel):
    """Advisory with the location and text shown on the home surface."""
    location: ResolvedLocation
    location_label: str
    advisory: SprayAdvisory
    display: AdvisoryText
    hours: List[HourlySample]


class AdvisoryService:
    """
    Application service for the spray advisory.
    
    Orchestrates location resolution, forecast fetching and classification;
    the classification rules themselves live in SprayWindowClassifier.
    """
    
    def __init__(
        self,
        resolver: LocationResolver,
        weather: WeatherProvider,
        classifier: SprayWindowClassifier,
        window_hours: Optional[int] = None,
    ):
        self.resolver = resolver
        self.weather = weather
        self.classifier = classifier
        self.window_hours = window_hours or settings.spray_window_hours
    
    def near_term(self, samples: Sequence[HourlySample]) -> List[HourlySample]:
        return list(samples[: self.window_hours])
    
    async def get_advisory(self, lang: Optional[str] = None) -> AdvisoryReport:
        """
        Build the advisory for the active location.
        
        Args:
            lang: Language for display text ("th" or "en")
            
        Returns:
            AdvisoryReport
            
        Raises:
            TransientAPIError: If the forecast could not be fetched
            ExternalAPIError: If the weather provider rejects the request
        """
        location = self.resolver.resolve()
        forecast = await self.weather.get_forecast(location.latitude, location.longitude)
        report = self.build_report(forecast, lang, location)
        
        logger.info(f"Advisory for {location.source.value} location "
                    f"({location.latitude}, {location.longitude}): {report.advisory.state.value}")
        return report
    
    def build_report(
        self,
        samples: Sequence[HourlySample],
        lang: Optional[str] = None,
        location: Optional[ResolvedLocation] = None,
    ) -> AdvisoryReport:
        """Classify the near-term slice of a forecast and attach display text."""
        lang = lang or settings.default_language
        location = location or self.resolver.resolve()
        hours = self.near_term(samples)
        advisory = self.classifier.classify(hours)
        
        return AdvisoryReport(
            location=location,
            location_label=format_location_display(location.place_text, lang),
            advisory=advisory,
            display=describe_advisory(advisory, lang),
            hours=hours,
        )
