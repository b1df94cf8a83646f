"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (PLUSBLOCKS__SCRAPER__REQUEST_DELAY_SECONDS=5)
  2. plusblocks.yaml        (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional. Every persisted file lives under ``data_dir``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("plusblocks")


def _find_config_file() -> str | None:
    """Return the path of the first plusblocks.yaml found, or None."""
    candidates = [
        Path("plusblocks.yaml"),
        Path(platformdirs.user_config_dir("plusblocks")) / "plusblocks.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 3000
    auth_enabled: bool = False
    auth_key: str = ""


class BrowserSettings(BaseModel):
    executable_path: str | None = None
    headless: bool = True
    viewport_width: int = 1920
    viewport_height: int = 1080
    # Bulk sync closes and relaunches the browser after this many blocks
    recycle_interval: int = 15
    recycle_pause_seconds: float = 5.0


class ScraperSettings(BaseModel):
    base_url: str = "https://tailwindcss.com"
    request_delay_seconds: float = 3.0
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 1.0
    retry_max_delay_seconds: float = 10.0
    navigation_timeout_seconds: float = 30.0
    selector_timeout_seconds: float = 10.0
    code_wait_timeout_seconds: float = 5.0
    format_change_delay_seconds: float = 0.5
    version_change_delay_seconds: float = 0.3
    ui_interaction_delay_seconds: float = 0.2
    login_timeout_seconds: float = 300.0

    @property
    def index_url(self) -> str:
        return f"{self.base_url}/plus/ui-blocks"

    @property
    def login_url(self) -> str:
        return f"{self.base_url}/plus/login"


class CacheSettings(BaseModel):
    ttl_days: int = 7
    manifest_flush_delay_seconds: float = 1.0


class CatalogSettings(BaseModel):
    refresh_hours: int = 24


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: PLUSBLOCKS__SERVER__PORT=9090
        env_prefix="PLUSBLOCKS__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    data_dir: str = _DEFAULT_DATA_DIR
    server: ServerSettings = ServerSettings()
    browser: BrowserSettings = BrowserSettings()
    scraper: ScraperSettings = ScraperSettings()
    cache: CacheSettings = CacheSettings()
    catalog: CatalogSettings = CatalogSettings()
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
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
        )

    @property
    def root(self) -> Path:
        return Path(self.data_dir).expanduser()

    @property
    def cookies_path(self) -> Path:
        return self.root / "cookies.json"

    @property
    def catalog_path(self) -> Path:
        return self.root / "catalog.json"

    @property
    def block_catalog_path(self) -> Path:
        return self.root / "catalog-v3.json"

    @property
    def cache_dir(self) -> Path:
        return self.root / "cache"

    @property
    def cache_manifest_path(self) -> Path:
        return self.cache_dir / "manifest.json"

    @property
    def browsers_dir(self) -> Path:
        return self.root / "browsers"
