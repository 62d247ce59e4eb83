"""Layout configuration using Pydantic Settings for automatic env var support.

A ``LayoutConfig`` is owned by the caller and passed into the engine; nothing
in transitmap reads or mutates process-wide layout state, so independent
projects can be laid out in parallel with different settings.
"""
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Optional

import orjson
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError
from .types import SlotConflictMode, StrategyName

CONFIG_ENV = "TRANSITMAP_CONFIG"

_HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")

# Slot 0 is reserved for the root branch.
DEFAULT_PALETTE: tuple[str, ...] = (
    "#3b82f6",  # blue-500
    "#ef4444",  # red-500
    "#10b981",  # emerald-500
    "#8b5cf6",  # violet-500
    "#f59e0b",  # amber-500
    "#06b6d4",  # cyan-500
    "#ec4899",  # pink-500
    "#84cc16",  # lime-500
    "#6366f1",  # indigo-500
    "#14b8a6",  # teal-500
    "#f97316",  # orange-500
    "#a855f7",  # purple-500
)

DEFAULT_FALLBACK_COLOR = "#ef4444"


class LayoutConfig(BaseSettings):
    """Spacing constants, palette and strategy selection for one layout run.

    Supports:
    - JSON config files (``load_config``)
    - Environment variables (TRANSITMAP_*)
    - Automatic type validation
    """

    strategy: StrategyName = Field(default=StrategyName.TREE)
    slot_conflict: SlotConflictMode = Field(default=SlotConflictMode.SEARCH)

    node_width: float = Field(default=140, gt=0)
    horizontal_spacing: float = Field(default=200, ge=0)
    vertical_spacing: float = Field(default=150, gt=0)
    origin_x: float = Field(default=600)
    root_y: float = Field(default=20)

    min_branch_height: float = Field(default=100, ge=0)
    message_height: float = Field(default=50, ge=0)

    min_viewport_width: float = Field(default=1200, ge=0)
    min_viewport_height: float = Field(default=600, ge=0)
    viewport_padding: float = Field(default=100, ge=0)

    palette: tuple[str, ...] = Field(default=DEFAULT_PALETTE, min_length=1)
    fallback_color: str = Field(default=DEFAULT_FALLBACK_COLOR)

    max_write_workers: int = Field(default=4, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="TRANSITMAP_",
        frozen=True,
        extra="forbid",
    )

    @field_validator("palette", mode="before")
    @classmethod
    def split_palette(cls, v: Any) -> Any:
        # "#3b82f6, #ef4444" is accepted as well as a list.
        if isinstance(v, str):
            return tuple(part.strip() for part in v.split(",") if part.strip())
        return v

    @field_validator("palette")
    @classmethod
    def validate_palette(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        bad = [color for color in v if not _HEX_COLOR_PATTERN.match(color)]
        if bad:
            raise ValueError(f"palette entries must be #rrggbb hex colors, got {bad}")
        if len(set(color.lower() for color in v)) != len(v):
            raise ValueError("palette entries must be distinct")
        return tuple(color.lower() for color in v)

    @field_validator("fallback_color")
    @classmethod
    def validate_fallback(cls, v: str) -> str:
        if not _HEX_COLOR_PATTERN.match(v):
            raise ValueError(f"fallback_color must be a #rrggbb hex color, got '{v}'")
        return v.lower()

    @model_validator(mode="after")
    def check_spacing_unit(self) -> "LayoutConfig":
        if self.spacing_unit <= 0:
            raise ValueError("node_width + horizontal_spacing must be positive")
        return self

    @property
    def spacing_unit(self) -> float:
        """Minimum horizontal distance between two branches on the same level."""
        return self.node_width + self.horizontal_spacing

    @property
    def root_color(self) -> str:
        return self.palette[0]


def _config_path(explicit: Optional[Path] = None) -> Optional[Path]:
    if explicit:
        return explicit.expanduser()
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return None


def load_config(path: Optional[Path] = None, **overrides: Any) -> LayoutConfig:
    """Build a ``LayoutConfig`` from an optional JSON file plus overrides.

    Precedence: keyword overrides, then file values, then TRANSITMAP_* env
    vars, then defaults. Overrides whose value is None are ignored.
    """
    data: dict[str, Any] = {}
    config_path = _config_path(path)
    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(f"Config not found: {config_path}")
        try:
            raw = orjson.loads(config_path.read_bytes())
        except ValueError as exc:
            raise ConfigError(f"Config {config_path} is not valid JSON: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError("Config payload must be a JSON object")
        data.update(raw)
    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return LayoutConfig(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid layout config: {exc}") from exc
