from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

from revgeo.config import NOMINATIM_BASE_URL, Settings, default_cache_dir


def test_defaults(monkeypatch: Any) -> None:
    for name in ("BASE_URL", "CACHE_DIR", "DISABLE_CACHE", "MAX_RETRIES"):
        monkeypatch.delenv(f"REVGEO_{name}", raising=False)

    settings = Settings()

    assert settings.base_url == NOMINATIM_BASE_URL
    assert settings.cache_root == default_cache_dir()
    assert settings.max_retries == 3


def test_env_overrides(monkeypatch: Any, tmp_path: Path) -> None:
    monkeypatch.setenv("REVGEO_CACHE_DIR", str(tmp_path))
    monkeypatch.setenv("REVGEO_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("REVGEO_CONTACT_EMAIL", "ops@example.org")

    settings = Settings()

    assert settings.cache_dir == tmp_path
    assert settings.request_timeout == 2.5
    assert settings.contact_email == "ops@example.org"


def test_every_field_is_read_from_env(monkeypatch: Any) -> None:
    monkeypatch.setenv("REVGEO_LOG_LEVEL", "debug")
    monkeypatch.setenv("REVGEO_HOST", "127.0.0.1")
    monkeypatch.setenv("REVGEO_PORT", "9001")
    monkeypatch.setenv("REVGEO_RATE_LIMIT_DELAY", "0")

    settings = Settings()

    assert settings.log_level == "debug"
    assert settings.host == "127.0.0.1"
    assert settings.port == 9001
    assert settings.rate_limit_delay == 0


def test_empty_env_values_keep_defaults(monkeypatch: Any) -> None:
    monkeypatch.setenv("REVGEO_BASE_URL", "")

    assert Settings().base_url == NOMINATIM_BASE_URL


@pytest.mark.parametrize("value", ["1", "true", "yes"])
def test_cache_can_be_disabled(monkeypatch: Any, value: str) -> None:
    monkeypatch.setenv("REVGEO_DISABLE_CACHE", value)

    assert Settings().cache_root is None


def test_xdg_cache_home(monkeypatch: Any, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))

    assert default_cache_dir() == tmp_path / "revgeo"


def test_invalid_values_are_rejected(monkeypatch: Any) -> None:
    with pytest.raises(ValidationError):
        Settings(request_timeout=0)
    with pytest.raises(ValidationError):
        Settings(rate_limit_delay=-1)

    monkeypatch.setenv("REVGEO_MAX_RETRIES", "many")
    with pytest.raises(ValidationError):
        Settings()
