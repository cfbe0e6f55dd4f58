"""
API endpoint constants and configuration.

This module contains all external API endpoint paths and related constants.
Centralizing these values makes it easy to swap out endpoints or update API versions.
"""


class ScanAPIEndpoints:
    """Scan classification service endpoint paths."""
    
    SCAN = "/api/scan"


class OpenMeteoEndpoints:
    """Open-Meteo endpoint paths."""
    
    FORECAST = "/v1/forecast"
    GEOCODE_SEARCH = "/v1/search"
    
    # Hourly variables requested for the spray advisory
    HOURLY_VARIABLES = "precipitation_probability,wind_speed_10m,temperature_2m"
    FORECAST_DAYS = 2


class NominatimEndpoints:
    """Nominatim (OpenStreetMap) endpoint paths."""
    
    REVERSE = "/reverse"
    USER_AGENT = "farm-advisory-core/1.0"


# API Configuration Constants
class APIConstants:
    """General API configuration constants."""
    
    # HTTP Headers
    CONTENT_TYPE_JSON = "application/json"
    
    DEFAULT_LANGUAGE = "th"
    
    # Used when the classifier omits a field
    UNKNOWN_LABEL = "Unknown"
    DEFAULT_CONFIDENCE_PERCENT = 50.0
