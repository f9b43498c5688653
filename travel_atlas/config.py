"""
Configuration management for the travel atlas backend.
Holds upstream API keys, proxy URLs and server options.
"""
from pydantic_settings import BaseSettings
from typing import Optional

from .errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Google Places
    google_places_api_key: str = ""
    places_base_url: str = "https://maps.googleapis.com/maps/api/place"
    request_timeout_seconds: float = 10.0

    # OpenStreetMap (Nominatim)
    nominatim_base_url: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = "TravelAtlas/1.0"
    # European country codes searched when the caller gives none
    nominatim_country_codes: str = (
        "fr,de,it,es,uk,at,ch,be,nl,pt,gr,dk,se,no,fi,ie,pl,cz,hu,ro,bg,hr,si,sk,"
        "lt,lv,ee,is,mt,cy,lu,mc,va,sm,ad,li"
    )
    nominatim_result_limit: int = 10

    # LLM Configuration (OpenAI-compatible completion API)
    llm_api_key: str = ""
    llm_base_url: Optional[str] = None
    llm_model: str = "gpt-3.5-turbo"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 2000
    llm_timeout_seconds: float = 60.0

    # Cache
    cache_ttl_seconds: float = 24 * 60 * 60

    # Base URL the front-end uses to reach this server; photo links are built on it.
    # Empty means relative links.
    public_base_url: str = ""

    # Server Configuration
    host: str = "127.0.0.1"
    port: int = 3000
    port_retry_attempts: int = 10
    debug: bool = False
    log_level: str = "INFO"
    frontend_dir: str = "dist"
    cors_origins: list[str] = ["*"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()


def require_places_key(config: Settings) -> str:
    """Return the Places API key or fail with a configuration error."""
    if not config.google_places_api_key:
        raise ConfigurationError("Google Places API key not configured")
    return config.google_places_api_key


def get_llm_config(config: Settings) -> dict:
    """Get LLM client configuration, failing when no API key is set."""
    if not config.llm_api_key:
        raise ConfigurationError("OpenAI API key not configured")

    return {
        "api_key": config.llm_api_key,
        "base_url": config.llm_base_url or "https://api.openai.com/v1",
        "model": config.llm_model,
        "temperature": config.llm_temperature,
        "max_tokens": config.llm_max_tokens,
        "timeout": config.llm_timeout_seconds,
    }
