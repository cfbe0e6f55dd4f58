"""
API request models using Pydantic.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator


class FieldSaveRequest(BaseModel):
    """Field attributes to save. Omitted attributes keep their stored value."""
    name: Optional[str] = Field(default=None, examples=["แปลงข้าวหลังบ้าน"])
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    place_text: Optional[str] = Field(default=None, examples=["ตำบลในเมือง, จังหวัดนครราชสีมา"])
    polygon_geojson: Optional[str] = Field(
        default=None,
        description="Field boundary as a GeoJSON Polygon string"
    )
    area_rai: Optional[float] = Field(default=None, ge=0)


class LocationUpdateRequest(BaseModel):
    """Either a place name to search, or a map pin to reverse-geocode."""
    text: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    
    @model_validator(mode="after")
    def check_one_source(self):
        has_coords = self.latitude is not None and self.longitude is not None
        if not self.text and not has_coords:
            raise ValueError("Provide either text or both latitude and longitude")
        return self


class HourlySampleInput(BaseModel):
    timestamp: datetime
    rain_probability_percent: float = Field(ge=0, le=100)
    wind_speed_kph: float = Field(ge=0)
    temperature_c: Optional[float] = None


class ClassifyRequest(BaseModel):
    """Forecast hours to classify directly."""
    hours: List[HourlySampleInput] = Field(default_factory=list)
    lang: Optional[str] = None


class ScanSubmitRequest(BaseModel):
    image_ref: str = Field(description="Path or reference of the captured image")
    crop_type: str = Field(examples=["rice", "durian"])
    field_id: Optional[str] = Field(
        default=None,
        description="Defaults to the registered field, if any"
    )
    force: bool = Field(
        default=False,
        description="Proceed even if the image fails the quality check"
    )
