"""
Infrastructure layer: local image quality pre-check.
"""
import asyncio
from pathlib import Path

from farmcore.domain.models import QualityReport

SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".heic"}

# Smaller files are almost always thumbnails or failed captures
MIN_IMAGE_BYTES = 20 * 1024


class BasicImageQualityChecker:
    """File-level checks only; no network access."""
    
    def __init__(self, min_bytes: int = MIN_IMAGE_BYTES):
        self.min_bytes = min_bytes
    
    async def check(self, image_ref: str) -> QualityReport:
        return await asyncio.to_thread(self.inspect, image_ref)
    
    def inspect(self, image_ref: str) -> QualityReport:
        """Blocking file inspection; run off the event loop by `check`."""
        path = Path(image_ref)
        if not path.is_file():
            return QualityReport(is_valid=False, issues=["Image not found"])
        
        issues = []
        if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            issues.append("Unsupported image format")
        if path.stat().st_size < self.min_bytes:
            issues.append("Resolution too low")
        
        return QualityReport(is_valid=not issues, issues=issues)
