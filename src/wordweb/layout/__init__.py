"""Layout engine: radial placement and collision resolution."""

from .collision import (
    Overlap,
    find_overlaps,
    min_separation,
    node_size,
    resolve_collisions,
)
from .radial import child_angles, expansion_radius, incoming_angle, place_children

__all__ = [
    "Overlap",
    "child_angles",
    "expansion_radius",
    "find_overlaps",
    "incoming_angle",
    "min_separation",
    "node_size",
    "place_children",
    "resolve_collisions",
]
