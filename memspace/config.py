"""Configuration helpers for the memspace package."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .telemetrics import LOGGER

LOGGER = LOGGER.getChild('Config')

DEFAULT_CAPACITY = 100
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    root_dir: Path
    traces_dir: Path
    outputs_dir: Path
    default_capacity: int
    log_level: str


def _discover_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _read_capacity(env: Mapping[str, str]) -> int:
    raw = env.get("MEMSPACE_CAPACITY")
    if raw is None:
        return DEFAULT_CAPACITY
    try:
        capacity = int(raw)
    except ValueError:
        capacity = 0
    if capacity <= 0:
        LOGGER.warning(f'MEMSPACE_CAPACITY={raw!r} is not a positive integer, using {DEFAULT_CAPACITY}')
        return DEFAULT_CAPACITY
    return capacity


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    root = _discover_root()
    return Settings(
        root_dir=root,
        traces_dir=root / "traces",
        outputs_dir=root / "outputs",
        default_capacity=_read_capacity(env),
        log_level=env.get("MEMSPACE_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    )


settings = load_settings()

__all__ = ["Settings", "settings", "load_settings"]
