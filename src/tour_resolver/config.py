"""
Configuration settings for the Tour Resolver service.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Tour Resolver"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # === Google Maps Platform ===
    GOOGLE_MAPS_API_KEY: str = ""
    PLACES_BASE_URL: str = "https://places.googleapis.com"
    PLACES_MAX_RESULTS: int = 5
    PLACES_LOCATION_BIAS_RADIUS_M: float = 50000.0  # API maximum
    GEOCODING_BASE_URL: str = "https://maps.googleapis.com"
    HTTP_TIMEOUT: float = 30.0  # seconds, hard ceiling under the degradation budget

    # === Gemini ===
    GOOGLE_AI_API_KEY: str = ""
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com"
    GEMINI_MODEL: str = "gemini-1.5-flash"
    LLM_TEMPERATURE: float = 0.7
    LLM_COORDINATE_TEMPERATURE: float = 0.1
    LLM_MAX_TOKENS: int = 2048

    # === Landmark Suggestions ===
    SUGGESTION_COUNT: int = 10
    PROMPT_TEMPLATES_DIR: str = str(_PACKAGE_DIR / "sources" / "templates")
    SUGGESTION_SCHEMA_PATH: str = str(_PACKAGE_DIR / "schemas" / "landmark_suggestions.json")

    # === Resolution ===
    PLAUSIBILITY_RADIUS_KM: float = 100.0
    PLAUSIBILITY_PENALTY: float = 0.3
    MAX_PHOTO_REFERENCES: int = 3

    # === Degradation & Health ===
    HEALTH_STORE_BACKEND: str = "memory"  # "memory" or "redis"
    HEALTH_KEY_PREFIX: str = "tour:health:"
    HEALTH_RECOVERY_SECONDS: float = 60.0
    CACHE_TTL_SECONDS: float = 3600.0
    CIRCUIT_BREAKERS_ENABLED: bool = True

    # === Redis ===
    REDIS_URL: str = "redis://redis:6379/0"
    REDIS_MAX_CONNECTIONS: int = 50

    # === Persistence ===
    PERSISTENCE_ENABLED: bool = True
    RESULT_TTL_SECONDS: int = 86400  # 24 hours

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
