"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (SERVERVERSIONS__SCRAPER__MAX_RETRIES=0)
  2. serverversions.yaml    (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; every field has a default matching the
misterlauncher.org listing.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

CONFIG_FILE_NAME = "serverversions.yaml"


def _find_config_file() -> str | None:
    """Return the path of the first serverversions.yaml found, or None."""
    candidates = [
        Path(CONFIG_FILE_NAME),
        Path(platformdirs.user_config_dir("serverversions")) / CONFIG_FILE_NAME,
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "0.0.0.0"
    port: int = 8080
    auth_enabled: bool = False
    auth_key: str = ""


class ScraperSettings(BaseModel):
    base_url: str = "https://misterlauncher.org"
    refresh_interval_minutes: float = Field(default=10, gt=0)
    # None disables the client timeout entirely (reference behaviour)
    request_timeout_seconds: float | None = 30.0
    # 0 disables retries entirely (reference behaviour)
    max_retries: int = Field(default=2, ge=0)
    retry_backoff_seconds: float = Field(default=1.0, ge=0)
    user_agent: str = "serverversions/1.0"
    invalid_entry_policy: Literal["abort_page", "skip_entry"] = "abort_page"

    @property
    def root_url(self) -> str:
        return self.base_url.rstrip("/") + "/servers"


class SelectorSettings(BaseModel):
    """CSS selectors for the listing layout."""

    pagination: str = ".pagination li a"
    entry: str = ".servers-list .server"
    host: str = ".info .ip .back-tooltip span"
    status: str = ".info .block"


class MarkerSettings(BaseModel):
    """Locale tokens delimiting the version inside an entry's status text."""

    online: str = "онлайн"
    offline: str = "оффлайн"
    version: str = "версия"


class CacheSettings(BaseModel):
    # None keeps every host forever (reference behaviour)
    prune_after_cycles: int | None = Field(default=None, ge=1)


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: SERVERVERSIONS__SERVER__PORT=9090
        env_prefix="SERVERVERSIONS__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    scraper: ScraperSettings = ScraperSettings()
    selectors: SelectorSettings = SelectorSettings()
    markers: MarkerSettings = MarkerSettings()
    cache: CacheSettings = CacheSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
        )
