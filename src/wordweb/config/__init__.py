"""Configuration for WordWeb."""

from .settings import CollisionConfig, LayoutConfig, WordSourceConfig, WordWebConfig

__all__ = [
    "CollisionConfig",
    "LayoutConfig",
    "WordSourceConfig",
    "WordWebConfig",
]
