"""
Library configuration.

Settings come from defaults, optionally overridden by a YAML file whose
top-level mapping uses the field names below.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class LibraryConfig(BaseModel):
    """Tunables for SheetMusicLibrary."""

    max_exercises_per_user: int = Field(100, ge=1)
    exercise_expiration_days: int = Field(30, ge=1)
    recommendation_refresh_interval_days: int = Field(7, ge=1)
    cache_expiration_minutes: int = Field(60, ge=1)
    initial_load_limit: int = Field(50, ge=0, description="Exercises preloaded on initialize")
    enable_imslp_integration: bool = False


def load_config(path: Path | str | None) -> LibraryConfig:
    """
    Load configuration from a YAML file.

    A missing path or file yields the defaults; an empty file likewise.

    Raises:
        ValueError: if the file is not a mapping or holds invalid values
    """
    if path is None:
        return LibraryConfig()
    path = Path(path)
    if not path.exists():
        logger.info("Config file %s not found, using defaults", path)
        return LibraryConfig()

    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return LibraryConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return LibraryConfig.model_validate(data)
