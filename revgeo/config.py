"""
Configuration Module
------------------
Reads runtime settings for the reverse geocoder from REVGEO_* environment variables.
Every setting has a sensible default so the package works without any configuration.
"""
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

NOMINATIM_BASE_URL = "https://nominatim.openstreetmap.org/reverse"
CONTACT_EMAIL = "revgeo@localhost"
USER_AGENT = "RevGeo/1.0"
REQUEST_TIMEOUT = 10
RATE_LIMIT_DELAY = 1.1
MAX_RETRIES = 3


def default_cache_dir() -> Path:
    xdg = os.getenv("XDG_CACHE_HOME")
    base = Path(xdg) if xdg else Path.home() / ".cache"
    return base / "revgeo"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="REVGEO_",
        extra="ignore",
        case_sensitive=False,
        env_ignore_empty=True,
    )

    base_url: str = Field(default=NOMINATIM_BASE_URL, min_length=1)
    contact_email: str = Field(default=CONTACT_EMAIL, min_length=1)
    user_agent: str = Field(default=USER_AGENT, min_length=1)
    request_timeout: float = Field(default=REQUEST_TIMEOUT, gt=0)
    rate_limit_delay: float = Field(default=RATE_LIMIT_DELAY, ge=0)
    max_retries: int = Field(default=MAX_RETRIES, ge=0, le=10)
    cache_dir: Path = Field(default_factory=default_cache_dir)
    disable_cache: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)

    @property
    def cache_root(self) -> Optional[Path]:
        return None if self.disable_cache else self.cache_dir


@lru_cache()
def get_settings() -> Settings:
    return Settings()
