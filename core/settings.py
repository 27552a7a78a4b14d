from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from core.exceptions import ConfigurationError
from core.pipeline_config import AnalysisConfig

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "default.yaml"


class ImageSettings(BaseModel):
    max_bytes: int = Field(10 * 1024 * 1024, ge=1)
    max_width: int = Field(4096, ge=1)
    max_height: int = Field(4096, ge=1)
    supported_formats: list[str] = Field(default_factory=lambda: ["jpg", "jpeg", "png", "webp"])
    fetch_timeout_seconds: float = Field(15.0, gt=0.0)
    # server-side paths and file: URLs in imageUrl are refused unless enabled
    allow_local_paths: bool = False

    @field_validator("supported_formats", mode="before")
    @classmethod
    def _normalize_formats(cls, value: Any) -> list[str]:
        if value is None:
            return ["jpg", "jpeg", "png", "webp"]
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple)):
            raise ValueError("supported_formats must be a list of extensions")
        formats = [str(item).strip().lower().lstrip(".") for item in value]
        return [item for item in formats if item]


class ApiSettings(BaseModel):
    processing_timeout_seconds: float = Field(30.0, gt=0.0)
    rate_limit_enabled: bool = True
    requests_per_minute: int = Field(60, ge=1)
    requests_per_hour: int = Field(1000, ge=1)
    ui_origin: str = "http://localhost:3000"


class Settings(BaseModel):
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    image: ImageSettings = Field(default_factory=ImageSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from YAML configuration file.

        Args:
            path: Optional path to configuration file. If not provided, uses
                WALLVIZ_CONFIG environment variable or config/default.yaml.
                The bundled default file may be absent, in which case the
                built-in defaults apply.

        Returns:
            Settings instance with loaded configuration.

        Raises:
            FileNotFoundError: If an explicitly requested file does not exist.
            ConfigurationError: If configuration is invalid.
        """
        env_path = os.getenv("WALLVIZ_CONFIG")
        config_path = path or (Path(env_path) if env_path else None)
        if config_path is None:
            if not DEFAULT_CONFIG_PATH.exists():
                return cls()
            config_path = DEFAULT_CONFIG_PATH
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        with config_path.open("r", encoding="utf-8") as fp:
            payload = yaml.safe_load(fp) or {}
        if not isinstance(payload, dict):
            raise ConfigurationError(
                "Invalid configuration: top level must be a mapping",
                {"path": str(config_path)},
            )
        try:
            return cls(**payload)
        except Exception as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}", {"path": str(config_path)}) from exc


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "Settings",
    "ImageSettings",
    "ApiSettings",
    "get_settings",
]
