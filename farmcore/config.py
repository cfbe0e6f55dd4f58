"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Civil calendar used by the daily scan quota
    reference_timezone: str = Field(
        default="Asia/Bangkok",
        description="IANA timezone whose civil date drives the daily scan quota"
    )
    
    # Seed preference location (used until the user saves a field or a location)
    default_latitude: float = Field(default=14.97)
    default_longitude: float = Field(default=102.08)
    default_place_text: str = Field(default="นครราชสีมา")
    default_language: str = Field(
        default="th",
        description="Language for advisory text when none is requested"
    )
    
    # Spray window thresholds
    spray_rain_stop_percent: float = Field(
        default=40,
        description="Rain probability at or above which spraying is not advised"
    )
    spray_wind_stop_kph: float = Field(
        default=18,
        description="Wind speed at or above which spraying is not advised"
    )
    spray_rain_caution_percent: float = Field(default=20)
    spray_wind_caution_kph: float = Field(default=12)
    spray_window_hours: int = Field(
        default=12,
        description="Number of forecast hours considered for the advisory"
    )
    
    # Offline submission queue
    max_queue_retries: int = Field(
        default=3,
        description="Retries allowed for a queued scan before it is dropped"
    )
    pending_scan_label: str = Field(default="Pending analysis")
    pending_scan_confidence: int = Field(default=50)
    
    # External services
    scan_api_base_url: str = Field(
        default="https://api.example.com",
        description="Base URL of the scan classification service"
    )
    scan_api_key: str = Field(
        default="",
        description="API key for the scan classification service"
    )
    weather_api_base_url: str = Field(default="https://api.open-meteo.com")
    geocode_api_base_url: str = Field(default="https://geocoding-api.open-meteo.com")
    reverse_geocode_api_base_url: str = Field(default="https://nominatim.openstreetmap.org")
    http_timeout_seconds: float = Field(default=30.0)
    
    # Retry Configuration
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of retry attempts for API calls"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=4,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=10,
        description="Maximum wait time in seconds between retries"
    )
    
    # Persistence
    storage_path: str = Field(
        default="",
        description="JSON file used for durable state (empty keeps state in memory)"
    )
    
    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    
    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )
    
    # Rate Limiting
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client"
    )
    
    # Application Settings
    app_name: str = Field(
        default="Farm Advisory Core",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )
    
    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
