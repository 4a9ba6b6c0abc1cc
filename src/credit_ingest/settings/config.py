"""Configuration loader for credit_ingest services using Pydantic settings."""

from __future__ import annotations

import json
import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, List

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, PydanticBaseSettingsSource, SettingsConfigDict

ENV_VAR_NAME = "CREDIT_INGEST_ENV"
DEFAULT_ENV = "local"
PROJECT_ROOT = Path(__file__).resolve().parents[3]
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "settings.default.toml"
LOCAL_CONFIG_FILE = CONFIG_DIR / "settings.local.toml"
SETTINGS_FILE_ENV_VAR = "CREDIT_INGEST_SETTINGS_FILE"

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def _resolve_env(explicit_env: str | None = None) -> str:
    env = explicit_env or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV
    return env.strip()


def _config_file_priority() -> tuple[Path, ...]:
    """Return existing config files in descending precedence order."""

    ordered: list[Path] = []
    raw_override = os.getenv(SETTINGS_FILE_ENV_VAR)
    if raw_override:
        override = Path(raw_override).expanduser()
        ordered.append(override if override.is_absolute() else (PROJECT_ROOT / override).resolve())
    ordered.extend([LOCAL_CONFIG_FILE, DEFAULT_CONFIG_FILE])
    return tuple(path for path in ordered if path.exists())


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Pydantic settings source that loads values from a TOML file."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path) -> None:
        super().__init__(settings_cls)
        self.path = path
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is None:
            try:
                with self.path.open("rb") as handle:
                    self._data = tomllib.load(handle)
            except tomllib.TOMLDecodeError as exc:
                raise ValueError(f"Invalid TOML syntax in {self.path}") from exc
        return self._data

    def __call__(self) -> dict[str, Any]:
        return self._load()

    def get_field_value(self, field_name: str, field):
        data = self._load()
        return data.get(field_name), field_name in data


class RuntimeSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))


class APISettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    key: str = Field(default="dev-analyst-token", validation_alias=AliasChoices("API_KEY", "key"))


class StorageSettings(BaseSettings):
    """Report and audit tables share one SQLite file."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    sqlite_path: Path = Field(default=PROJECT_ROOT / "data" / "credit_reports.db")


class IngestionSettings(BaseSettings):
    """Upload acceptance and background processing configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    max_upload_bytes: int = Field(default=DEFAULT_MAX_UPLOAD_BYTES, gt=0)
    allowed_mime_types: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["text/xml", "application/xml"]
    )
    worker_threads: int = 4
    retain_tree: bool = True

    @field_validator("allowed_mime_types", mode="before")
    @classmethod
    def _split_mime_types(cls, value: Any) -> Any:
        if isinstance(value, str):
            if value.strip().startswith("["):
                return json.loads(value)
            return [chunk.strip() for chunk in value.split(",") if chunk.strip()]
        return value

    @field_validator("worker_threads", mode="after")
    @classmethod
    def _at_least_one_worker(cls, value: int) -> int:
        return max(1, value)


class ObservabilitySettings(BaseSettings):
    """Logging and StatsD configuration. Metrics are off while ``statsd_host`` is unset."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    structured_logging: bool = True
    statsd_host: str | None = None
    statsd_port: int = 8125
    statsd_prefix: str = "credit_ingest"
    service_name: str = "credit-ingest"


class Settings(BaseSettings):
    """Top-level configuration model with nested sections for each subsystem.

    Precedence, highest first: init kwargs, ``CREDIT_INGEST_*`` environment
    variables (``__`` separates sections), ``.env`` files, then TOML files
    (``CREDIT_INGEST_SETTINGS_FILE``, ``settings.local.toml``,
    ``settings.default.toml``).
    """

    env: str = Field(
        default_factory=lambda: _resolve_env(),
        validation_alias=AliasChoices("ENV", "ENVIRONMENT", "RUNTIME__ENV"),
    )
    project_root: Path = Field(default=PROJECT_ROOT)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    api: APISettings = Field(default_factory=APISettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = SettingsConfigDict(
        env_prefix="CREDIT_INGEST_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        config_sources = [TomlConfigSettingsSource(settings_cls, path) for path in _config_file_priority()]
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            *config_sources,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        if not self.storage.sqlite_path.is_absolute():
            resolved = (self.project_root / self.storage.sqlite_path).resolve()
            object.__setattr__(self, "storage", self.storage.model_copy(update={"sqlite_path": resolved}))
        return self

    @model_validator(mode="after")
    def _apply_environment_overrides(self) -> "Settings":
        """Local runs log plain text regardless of configuration."""

        if self.env.lower() == "local":
            observability_update = {"structured_logging": False}
            object.__setattr__(self, "observability", self.observability.model_copy(update=observability_update))
        return self


def _load_settings(env: str | None = None) -> Settings:
    resolved_env = _resolve_env(env)
    env_files = [
        path
        for path in (PROJECT_ROOT / ".env", PROJECT_ROOT / f".env.{resolved_env}", PROJECT_ROOT / ".env.local")
        if path.exists()
    ]
    return Settings(
        _env_file=[str(path) for path in env_files],
        _env_file_encoding="utf-8",
        env=resolved_env,
    )


@lru_cache(maxsize=1)
def get_settings(env: str | None = None) -> Settings:
    """Return cached settings for the requested environment."""

    return _load_settings(env)


def reload_settings(env: str | None = None) -> Settings:
    """Clear the cached settings and reload from disk."""

    get_settings.cache_clear()
    return get_settings(env)


__all__ = [
    "Settings",
    "get_settings",
    "reload_settings",
    "PROJECT_ROOT",
    "ENV_VAR_NAME",
]
