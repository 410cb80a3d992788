"""Launch configuration for snapshot verification."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_PREFIX = "SNAPSHOT_"

# Environment variable suffix -> settings field
ENV_FIELDS = {
    "REFERENCE_PATH": "reference_path",
    "FAILURE_PATH": "failure_path",
    "RECORD_MODE": "record_mode",
    "TOLERANCE": "tolerance",
    "RENDER_OFFSET_Y": "render_offset_y",
    "RENDER_DELAY": "render_delay",
    "TIMEOUT_FACTOR": "timeout_factor",
}


class SnapshotSettings(BaseModel):
    """Process-wide settings, read once and passed explicitly to the engine."""

    model_config = ConfigDict(frozen=True)

    # Stores. Relative paths are placed beside each test file.
    reference_path: str = "__snapshots__/reference"
    failure_path: str = "__snapshots__/failures"

    # Modes
    record_mode: bool = False

    # Comparison, in differences per million compared pixels
    tolerance: float = Field(default=0.0, ge=0.0)

    # Rendering
    render_offset_y: int = Field(default=0, ge=0)  # rows cropped from the top of every capture
    render_delay: float = Field(default=0.4, ge=0.0)  # seconds

    # Overall timeout = timeout_factor * configuration count * render_delay
    timeout_factor: float = Field(default=10.0, gt=0.0)

    @field_validator("reference_path", "failure_path")
    @classmethod
    def non_empty_path(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Store path must not be empty")
        return v

    def timeout_for(self, configuration_count: int, render_delay: Optional[float] = None) -> Optional[float]:
        """Overall timeout for verifying ``configuration_count`` configurations."""
        delay = self.render_delay if render_delay is None else render_delay
        if delay <= 0:
            return None
        return self.timeout_factor * configuration_count * delay

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SnapshotSettings":
        """Build settings from ``SNAPSHOT_*`` environment variables."""
        return cls(**_env_overrides(environ))

    @classmethod
    def load(cls, path: str | Path) -> "SnapshotSettings":
        """Load settings from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    @classmethod
    def resolve(
        cls,
        path: str | Path | None = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "SnapshotSettings":
        """Combine an optional JSON file with environment overrides (environment wins)."""
        data: dict = {}
        if path is not None and Path(path).exists():
            with open(path) as f:
                data = json.load(f)
        data.update(_env_overrides(environ))
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save settings to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)


def _env_overrides(environ: Optional[Mapping[str, str]]) -> dict[str, str]:
    env = os.environ if environ is None else environ
    overrides = {}
    for suffix, field in ENV_FIELDS.items():
        value = env.get(ENV_PREFIX + suffix)
        if value is not None and value != "":
            overrides[field] = value
    return overrides
