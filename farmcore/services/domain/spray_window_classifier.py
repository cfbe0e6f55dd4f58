"""
Domain service: rule-based spray window classification.

Turns an ordered hourly forecast into a spray recommendation:
- DoNotSpray when any hour reaches the rain stop threshold (checked first)
  or the wind stop threshold
- Caution when any hour reaches the rain or wind caution threshold
- Good otherwise, including an empty forecast

It also reports the first contiguous run of "good" hours (rain and wind both
below the caution thresholds) as the next safe window.
"""
from dataclasses import dataclass
from typing import Optional, Sequence
import logging

from farmcore.config import settings
from farmcore.domain.models import (
    HourlySample,
    ReasonCode,
    SprayAdvisory,
    SprayState,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SprayThresholds:
    """Thresholds for spray window classification."""
    
    rain_stop_percent: float = 40
    """Rain probability at or above which spraying is not advised"""
    
    wind_stop_kph: float = 18
    """Wind speed at or above which spraying is not advised"""
    
    rain_caution_percent: float = 20
    wind_caution_kph: float = 12
    
    @classmethod
    def from_settings(cls) -> "SprayThresholds":
        return cls(
            rain_stop_percent=settings.spray_rain_stop_percent,
            wind_stop_kph=settings.spray_wind_stop_kph,
            rain_caution_percent=settings.spray_rain_caution_percent,
            wind_caution_kph=settings.spray_wind_caution_kph,
        )


class SprayWindowClassifier:
    """
    Pure classifier; holds only its thresholds, so identical input always
    yields identical output.
    """
    
    def __init__(self, thresholds: Optional[SprayThresholds] = None):
        self.thresholds = thresholds or SprayThresholds.from_settings()
    
    def is_good_hour(self, sample: HourlySample) -> bool:
        return (
            sample.rain_probability_percent < self.thresholds.rain_caution_percent
            and sample.wind_speed_kph < self.thresholds.wind_caution_kph
        )
    
    def classify(self, samples: Sequence[HourlySample]) -> SprayAdvisory:
        """
        Classify a forecast.
        
        Args:
            samples: Time-ordered hourly samples (may be empty)
            
        Returns:
            SprayAdvisory with state, reason, aggregates and next good window
        """
        t = self.thresholds
        
        max_rain = max((s.rain_probability_percent for s in samples), default=0)
        max_wind = max((s.wind_speed_kph for s in samples), default=0)
        
        if any(s.rain_probability_percent >= t.rain_stop_percent for s in samples):
            state, reason = SprayState.DO_NOT_SPRAY, ReasonCode.RAIN
        elif any(s.wind_speed_kph >= t.wind_stop_kph for s in samples):
            state, reason = SprayState.DO_NOT_SPRAY, ReasonCode.WIND
        elif any(
            s.rain_probability_percent >= t.rain_caution_percent
            or s.wind_speed_kph >= t.wind_caution_kph
            for s in samples
        ):
            state, reason = SprayState.CAUTION, ReasonCode.CAUTION
        else:
            state, reason = SprayState.GOOD, ReasonCode.GOOD
        
        window_start = None
        window_end = None
        for i, sample in enumerate(samples):
            if not self.is_good_hour(sample):
                continue
            j = i
            while j + 1 < len(samples) and self.is_good_hour(samples[j + 1]):
                j += 1
            window_start = sample.timestamp
            window_end = samples[j].timestamp
            break
        
        logger.debug(f"Spray classification over {len(samples)} hours: {state.value}/{reason.value} "
                     f"(max rain {max_rain}%, max wind {max_wind} km/h)")
        
        return SprayAdvisory(
            state=state,
            reason_code=reason,
            max_rain_probability=max_rain,
            max_wind_speed=max_wind,
            next_good_window_start=window_start,
            next_good_window_end=window_end,
        )
