"""
Domain and integration error types.
"""
from typing import Optional


class FieldValidationError(ValueError):
    """Field data is incomplete or malformed. Raised before any mutation."""
    pass


class QuotaExceededError(Exception):
    """A scan was already accepted for the current civil day."""
    
    def __init__(self, last_scan_date: str):
        self.last_scan_date = last_scan_date
        super().__init__(f"Daily scan limit reached (last scan on {last_scan_date})")


class TransientAPIError(Exception):
    """Transient failure talking to a remote collaborator."""
    pass


class ExternalAPIError(Exception):
    """Non-retryable error response from an external API."""
    
    def __init__(self, message: str, status_code: Optional[int] = 502):
        self.message = message
        self.status_code = status_code or 502
        super().__init__(message)


class LocationNotFoundError(ExternalAPIError):
    """Geocoding produced no match."""
    
    def __init__(self, query: str):
        super().__init__(f"No location found for '{query}'", status_code=404)
