from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

PACKAGE_DIR = Path(__file__).parent
DEFAULT_CATALOG_FILE = PACKAGE_DIR / "data" / "catalog.yaml"
DEFAULT_FRESHNESS_HALF_LIFE_DAYS = 180.0


def _env(name: str, default: str) -> str:
    value = os.getenv(name, "").strip()
    return value or default


def _env_float(name: str, default: float) -> float:
    try:
        return float(_env(name, str(default)))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(_env(name, str(default)))
    except ValueError:
        return default


class Settings(BaseModel):
    catalog_file: Path = Field(
        default_factory=lambda: Path(_env("TEAMFIT_CATALOG_FILE", str(DEFAULT_CATALOG_FILE))).expanduser()
    )
    freshness_half_life_days: float = Field(
        default_factory=lambda: _env_float("TEAMFIT_HALF_LIFE_DAYS", DEFAULT_FRESHNESS_HALF_LIFE_DAYS)
    )

    host: str = Field(default_factory=lambda: _env("TEAMFIT_HOST", "127.0.0.1"))
    port: int = Field(default_factory=lambda: _env_int("TEAMFIT_PORT", 8002))
    log_level: str = Field(default_factory=lambda: _env("TEAMFIT_LOG_LEVEL", "info").lower())

    def load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            return {}
        return data


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
