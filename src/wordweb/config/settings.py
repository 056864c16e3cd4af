"""Layout, collision and word-source configuration."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..core.exceptions import ConfigError
from . import defaults


@dataclass
class LayoutConfig:
    """Radial placement parameters."""

    map_size: int = defaults.MAP_SIZE
    reference_angle: float = defaults.REFERENCE_ANGLE
    child_arc: float = defaults.CHILD_ARC
    radius_base: float = defaults.RADIUS_BASE
    radius_depth_offset: float = defaults.RADIUS_DEPTH_OFFSET
    radius_floor: float = defaults.RADIUS_FLOOR

    def validate(self) -> None:
        if self.map_size <= 0:
            raise ConfigError(f"map_size must be positive, got {self.map_size}")
        if not 0 < self.child_arc <= 2 * math.pi:
            raise ConfigError(f"child_arc must be in (0, 2π], got {self.child_arc}")
        if self.radius_floor <= 0:
            raise ConfigError(
                f"radius_floor must be positive, got {self.radius_floor}"
            )
        if self.radius_base <= 0:
            raise ConfigError(f"radius_base must be positive, got {self.radius_base}")
        if self.radius_depth_offset <= 0:
            raise ConfigError(
                "radius_depth_offset must be positive, "
                f"got {self.radius_depth_offset}"
            )


@dataclass
class CollisionConfig:
    """Collision relaxation parameters.

    ``iterations`` and ``padding`` are tuned constants, not invariants.
    """

    iterations: int = defaults.COLLISION_ITERATIONS
    padding: float = defaults.COLLISION_PADDING
    push_factor: float = defaults.COLLISION_PUSH_FACTOR
    node_size_max: float = defaults.NODE_SIZE_MAX
    node_size_min: float = defaults.NODE_SIZE_MIN
    node_size_step: float = defaults.NODE_SIZE_STEP

    def validate(self) -> None:
        if self.iterations < 1:
            raise ConfigError(f"iterations must be >= 1, got {self.iterations}")
        if self.padding < 0:
            raise ConfigError(f"padding must be >= 0, got {self.padding}")
        if not 0 < self.push_factor <= 1:
            raise ConfigError(
                f"push_factor must be in (0, 1], got {self.push_factor}"
            )
        if self.node_size_min <= 0 or self.node_size_max < self.node_size_min:
            raise ConfigError(
                "node sizes must satisfy 0 < node_size_min <= node_size_max"
            )


@dataclass
class WordSourceConfig:
    """Related-word backend parameters."""

    provider: str | None = None  # "openai" | "openrouter" | None (auto-detect)
    model: str | None = None
    timeout: float = defaults.LLM_TIMEOUT_SECONDS
    min_words: int = defaults.MIN_RELATED_WORDS
    max_words: int = defaults.MAX_RELATED_WORDS
    words_file: str | None = None  # YAML mapping for the offline source

    def validate(self) -> None:
        if self.provider not in (None, "openai", "openrouter"):
            raise ConfigError(f"Unknown word source provider '{self.provider}'")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")
        if not 1 <= self.min_words <= self.max_words:
            raise ConfigError(
                "word counts must satisfy 1 <= min_words <= max_words, "
                f"got {self.min_words}..{self.max_words}"
            )


@dataclass
class WordWebConfig:
    """Complete WordWeb configuration."""

    layout: LayoutConfig = field(default_factory=LayoutConfig)
    collision: CollisionConfig = field(default_factory=CollisionConfig)
    word_source: WordSourceConfig = field(default_factory=WordSourceConfig)

    @classmethod
    def load(cls, path: Path) -> WordWebConfig:
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            WordWebConfig instance (defaults when the file does not exist)

        Raises:
            ConfigError: If the file cannot be parsed or holds invalid values
        """
        if not path.exists():
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config root in {path} must be a mapping")

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WordWebConfig:
        """Create config from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            Validated WordWebConfig instance
        """
        try:
            config = cls(
                layout=LayoutConfig(**(data.get("layout") or {})),
                collision=CollisionConfig(**(data.get("collision") or {})),
                word_source=WordSourceConfig(**(data.get("word_source") or {})),
            )
        except TypeError as e:
            raise ConfigError(f"Unknown configuration key: {e}") from e

        try:
            config.validate()
        except TypeError as e:
            raise ConfigError(f"Invalid configuration value type: {e}") from e
        return config

    def validate(self) -> None:
        self.layout.validate()
        self.collision.validate()
        self.word_source.validate()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "layout": asdict(self.layout),
            "collision": asdict(self.collision),
            "word_source": asdict(self.word_source),
        }

    def save(self, path: Path) -> None:
        """Save configuration to YAML file.

        Args:
            path: Path to save configuration
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
