"""
Domain models for the field, spray advisory and scan submission core.

These models represent the core domain entities and should be independent
of any infrastructure concerns (API clients, storage engines, etc.).
Stored entities are frozen: readers get snapshots, writers build new copies.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class FarmField(BaseModel):
    """The user's single registered plot."""
    id: str
    name: str
    latitude: float
    longitude: float
    place_text: str = Field(description="Human-readable location label")
    polygon_geojson: Optional[str] = Field(
        default=None,
        description="Field boundary as a GeoJSON Polygon string"
    )
    area_rai: Optional[float] = Field(default=None, description="Field area in rai")
    updated_at_ms: int
    dirty: bool = Field(description="True until the record is synced remotely")
    
    class Config:
        frozen = True


class FieldUpdate(BaseModel):
    """Partial field data merged over the stored record."""
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    place_text: Optional[str] = None
    polygon_geojson: Optional[str] = None
    area_rai: Optional[float] = None


class LocationSource(str, Enum):
    FIELD = "field"
    PREFERENCES = "preferences"


class ResolvedLocation(BaseModel):
    """Active location used for weather lookups."""
    source: LocationSource
    latitude: float
    longitude: float
    place_text: str


class SavedLocation(BaseModel):
    """Preference location saved by the user when no field exists."""
    latitude: float
    longitude: float
    place_text: str


class GeocodeResult(BaseModel):
    latitude: float
    longitude: float
    place_text: str


class HourlySample(BaseModel):
    """One forecast tick."""
    timestamp: datetime
    rain_probability_percent: float = Field(ge=0, le=100)
    wind_speed_kph: float = Field(ge=0)
    temperature_c: Optional[float] = None
    
    class Config:
        frozen = True


class SprayState(str, Enum):
    GOOD = "good"
    CAUTION = "caution"
    DO_NOT_SPRAY = "dont"


class ReasonCode(str, Enum):
    GOOD = "good"
    RAIN = "rain"
    WIND = "wind"
    CAUTION = "caution"


class SprayAdvisory(BaseModel):
    """Spray recommendation derived from an hourly forecast."""
    state: SprayState
    reason_code: ReasonCode
    max_rain_probability: float = 0
    max_wind_speed: float = 0
    next_good_window_start: Optional[datetime] = None
    next_good_window_end: Optional[datetime] = None


class ClassificationResult(BaseModel):
    """Response of the remote scan classifier."""
    label: str
    confidence_percent: float = Field(ge=0, le=100)
    advisory_steps: List[str] = Field(default_factory=list)


class QualityReport(BaseModel):
    is_valid: bool
    issues: List[str] = Field(default_factory=list)


class ScanRecord(BaseModel):
    """The single most recent scan result."""
    id: str
    field_id: Optional[str] = None
    image_path: str
    label: str
    confidence_percent: float = Field(ge=0, le=100)
    advisory_steps: List[str] = Field(default_factory=list)
    created_at_ms: int
    is_queued: bool = False
    
    class Config:
        frozen = True


class ScanPayload(BaseModel):
    """What gets sent to the remote classifier."""
    image_ref: str
    field_id: Optional[str] = None
    crop_type: str
    
    class Config:
        frozen = True


class QueuedScanSubmission(BaseModel):
    """A durable retry unit; each retry produces a new copy."""
    id: str
    payload: ScanPayload
    enqueued_at_ms: int
    retry_count: int = Field(default=0, ge=0)
    
    class Config:
        frozen = True


class DroppedSubmission(BaseModel):
    """A queued scan that exhausted its retries."""
    submission: QueuedScanSubmission
    dropped_at_ms: int
    last_error: str


class DrainReport(BaseModel):
    """Outcome of a single queue drain pass."""
    delivered: List[str] = Field(default_factory=list)
    requeued: List[str] = Field(default_factory=list)
    dropped: List[str] = Field(default_factory=list)
    skipped: bool = Field(
        default=False,
        description="True when another drain was already running"
    )


class ScanOutcomeStatus(str, Enum):
    COMPLETED = "completed"
    QUEUED = "queued"
    LOW_QUALITY = "low_quality"


class ScanOutcome(BaseModel):
    """Result of a scan submission as shown to the user."""
    status: ScanOutcomeStatus
    record: Optional[ScanRecord] = None
    issues: List[str] = Field(default_factory=list)
