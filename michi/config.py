"""
Michi Configuration
===================
Start-up settings for the world, the console and the window.

Sources are applied in order, later wins:

    1. dataclass defaults
    2. a JSON file            (MichiConfig.load)
    3. environment variables  (MichiConfig.apply_env)
    4. command-line flags     (michi.cli)
"""
import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from .diagnostics import ConfigError

ENV_OVERRIDES = {
    "MICHI_LOG": ("log_file", str),
    "MICHI_LOG_LEVEL": ("log_level", str),
    "MICHI_FPS": ("fps", int),
    "MICHI_WIDTH": ("width", int),
    "MICHI_HEIGHT": ("height", int),
}

DISPLAY_NAMES = ("help", "expr", "position", "rotation", "scale", "color", "speed", "output")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class MichiConfig:
    """Configuration for a Michi session and its window."""

    # World
    world_size: float = 100.0                   # half-height of the view
    actor_position: tuple[float, float] = (0.0, 0.0)
    actor_rotation: float = 0.0                 # radians
    actor_scale: tuple[float, float] = (4.0, 4.0)
    actor_color: tuple[float, float, float, float] = (0.0, 1.0, 1.0, 1.0)
    speed_position: float = 0.25
    speed_rotation: float = 0.25
    speed_scale: float = 0.25
    speed_color: float = 0.25
    follow_rate: float = 0.99
    follow: bool = False
    draw: bool = True
    stroke_threshold: float = 1.0
    output: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    output_dim: int = 4
    displays: list[str] = field(default_factory=lambda: ["output"])

    # Console
    text_capacity: int = 256

    # Window
    width: int = 800
    height: int = 600
    fps: int = 60
    font_name: str = "consolas"
    font_size: int = 16
    title: str = "Michi"

    # Logging
    log_file: str | None = None
    log_level: str = "INFO"

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Raise ConfigError on values the runtime cannot work with."""
        for name in ("speed_position", "speed_rotation", "speed_scale",
                     "speed_color", "follow_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must be within [0, 1], got {value}")
        if self.world_size <= 0:
            raise ConfigError(f"world_size must be positive, got {self.world_size}")
        if not 0 <= self.output_dim <= 4:
            raise ConfigError(f"output_dim must be 0..4, got {self.output_dim}")
        if self.text_capacity < 1:
            raise ConfigError(f"text_capacity must be positive, got {self.text_capacity}")
        if self.fps < 1:
            raise ConfigError(f"fps must be positive, got {self.fps}")
        unknown = [d for d in self.displays if d not in DISPLAY_NAMES]
        if unknown:
            raise ConfigError(f"Unknown displays: {', '.join(unknown)}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {self.log_level}")

    # ─────────────────────────────────────────────────────────
    #  Sources
    # ─────────────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MichiConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

        values = dict(data)
        # JSON has no tuples
        for name in ("actor_position", "actor_scale", "actor_color", "output"):
            if name in values:
                values[name] = tuple(values[name])
        try:
            return cls(**values)
        except TypeError as e:
            raise ConfigError(str(e)) from e

    @classmethod
    def load(cls, path: str | Path) -> "MichiConfig":
        """Read a JSON config file. Missing keys keep their defaults."""
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read config {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must hold a JSON object")
        return cls.from_dict(data)

    def apply_env(self, environ: dict[str, str] | None = None) -> "MichiConfig":
        """Return a copy with MICHI_* environment overrides applied."""
        environ = os.environ if environ is None else environ
        changes: dict[str, Any] = {}
        for var, (name, convert) in ENV_OVERRIDES.items():
            raw = environ.get(var)
            if not raw:
                continue
            try:
                changes[name] = convert(raw)
            except ValueError as e:
                raise ConfigError(f"{var}={raw!r}: {e}") from e
        return replace(self, **changes) if changes else self
