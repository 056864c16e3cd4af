"""Radial placement of newly revealed children around their parent.

Placement rules:
    - Root: children surround the root over the full circle, the first one
      straight "up" (reference angle), evenly spaced.
    - Non-root: children fan out over a 240° arc centered on the incoming
      direction (grandparent -> parent), leaving the parent-grandparent edge
      clear. The two extreme children sit exactly on the arc ends; a single
      child sits on the arc's midpoint.
    - Radius shrinks with parent depth down to a floor.

Placement is purely geometric and deterministic; overlaps are left for the
collision resolver.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from loguru import logger

from ..config.settings import LayoutConfig
from ..core.models import Node, Position

_DEFAULT_LAYOUT = LayoutConfig()


def incoming_angle(
    parent: Node, grandparent: Node | None, config: LayoutConfig = _DEFAULT_LAYOUT
) -> float:
    """Direction of the edge grandparent -> parent, in radians.

    The root has no incoming edge and uses the reference angle.
    """
    if grandparent is None:
        return config.reference_angle
    return math.atan2(
        parent.position.y - grandparent.position.y,
        parent.position.x - grandparent.position.x,
    )


def expansion_radius(parent_depth: int, config: LayoutConfig = _DEFAULT_LAYOUT) -> float:
    """Distance from a parent at ``parent_depth`` to its new children.

    ``max(floor, base / (depth + offset))``: non-increasing in depth, never
    below the floor.
    """
    return max(
        config.radius_floor,
        config.radius_base / (parent_depth + config.radius_depth_offset),
    )


def child_angles(
    count: int,
    parent: Node,
    grandparent: Node | None,
    config: LayoutConfig = _DEFAULT_LAYOUT,
) -> list[float]:
    """Angles (radians) for ``count`` new children of ``parent``.

    Args:
        count: Number of children (k >= 1)
        parent: Expanding node
        grandparent: Parent's parent, None when ``parent`` is the root
        config: Layout parameters

    Returns:
        List of k angles in child order
    """
    if count < 1:
        raise ValueError(f"child count must be >= 1, got {count}")

    if parent.is_root:
        # Full circle wraps, so divide by k and never land twice on the start
        arc = 2 * math.pi
        start = config.reference_angle
        return [start + (i / count) * arc for i in range(count)]

    arc = config.child_arc
    start = incoming_angle(parent, grandparent, config) - arc / 2

    if count == 1:
        return [start + arc / 2]

    # k - 1 divisor puts the extreme children exactly on the arc ends
    return [start + (i / (count - 1)) * arc for i in range(count)]


def place_children(
    parent: Node,
    grandparent: Node | None,
    words: Sequence[str],
    config: LayoutConfig = _DEFAULT_LAYOUT,
) -> list[Node]:
    """Create child nodes for ``words`` positioned around ``parent``.

    Child ids are ``"{parent.id}-{i}"``; a node gains children only once, so
    the ids are unique for the lifetime of a tree.

    Args:
        parent: Expanding node (with committed position and depth)
        grandparent: Parent's parent, None when ``parent`` is the root
        words: Ordered, non-empty list of child words
        config: Layout parameters

    Returns:
        New collapsed, non-loading nodes at ``parent.depth + 1``

    Example:
        >>> root = Node(id="root", word="Sun", position=Position(x=0, y=0))
        >>> [c.id for c in place_children(root, None, ["Moon", "Sky"])]
        ['root-0', 'root-1']
    """
    if not words:
        raise ValueError("place_children requires at least one word")

    radius = expansion_radius(parent.depth, config)
    angles = child_angles(len(words), parent, grandparent, config)
    parent_x, parent_y = parent.position.as_tuple()

    children = []
    for i, (word, angle) in enumerate(zip(words, angles, strict=True)):
        children.append(
            Node(
                id=f"{parent.id}-{i}",
                word=word,
                parent_id=parent.id,
                position=Position(
                    x=parent_x + radius * math.cos(angle),
                    y=parent_y + radius * math.sin(angle),
                ),
                depth=parent.depth + 1,
                is_expanded=False,
                is_loading=False,
            )
        )

    arc_degrees = 360.0 if parent.is_root else math.degrees(config.child_arc)
    logger.debug(
        f"Radial layout: {len(children)} children of '{parent.id}', "
        f"radius={radius:.1f}px, "
        f"arc={arc_degrees:.0f}°"
    )

    return children
