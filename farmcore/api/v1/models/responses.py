"""
API response models using Pydantic.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from farmcore.domain.models import (
    DroppedSubmission,
    ScanOutcomeStatus,
    ScanRecord,
)


class QuotaStatusResponse(BaseModel):
    """Daily scan quota status."""
    last_scan_date: Optional[str] = Field(
        description="Civil date of the last accepted scan (YYYY-MM-DD)"
    )
    remaining_scans: int = Field(description="Scans still allowed today (0 or 1)")
    pending_submissions: int = Field(description="Scans waiting in the offline queue")


class ScanRecordResponse(BaseModel):
    record: Optional[ScanRecord] = None
    confidence_level: Optional[str] = Field(
        default=None,
        description="high, medium or low"
    )


class ScanOutcomeResponse(BaseModel):
    """Response model for a scan submission."""
    status: ScanOutcomeStatus
    record: Optional[ScanRecord] = None
    confidence_level: Optional[str] = None
    issues: List[str] = Field(default_factory=list)
    
    class Config:
        json_schema_extra = {
            "example": {
                "status": "queued",
                "record": {
                    "id": "6f1c0c7e2b9a4d51",
                    "field_id": "field_1",
                    "image_path": "/data/scans/leaf.jpg",
                    "label": "Pending analysis",
                    "confidence_percent": 50,
                    "advisory_steps": [],
                    "created_at_ms": 1760760000000,
                    "is_queued": True,
                },
                "confidence_level": "low",
                "issues": [],
            }
        }


class DroppedSubmissionsResponse(BaseModel):
    failures: List[DroppedSubmission]


class AcknowledgeResponse(BaseModel):
    cleared: int
