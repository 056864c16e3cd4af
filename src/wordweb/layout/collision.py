"""Iterative collision resolution for node footprints.

Each node renders as a circle whose diameter depends only on its depth.
Overlapping pairs are pushed apart along the line joining their centers for a
fixed number of passes. This is a best-effort relaxation with bounded cost
(O(iterations × n²)), not a guaranteed fixed point: very crowded inputs, such
as dozens of same-depth siblings on a tight arc, can keep some residual
overlap after the last pass.

Depth-0 nodes are anchored. They repel others but are never moved.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from loguru import logger

from ..config.settings import CollisionConfig
from ..core.models import Node, NodeMap

_DEFAULT_COLLISION = CollisionConfig()


@dataclass
class _Body:
    """Mutable position record owned by a single resolver run."""

    x: float
    y: float
    radius: float
    anchored: bool


@dataclass(frozen=True)
class Overlap:
    """A pair of nodes closer than their required separation."""

    a: str
    b: str
    distance: float
    required: float

    @property
    def depth(self) -> float:
        return self.required - self.distance


def node_size(depth: int, config: CollisionConfig = _DEFAULT_COLLISION) -> float:
    """Footprint diameter for a node at ``depth``; shallower nodes are larger."""
    return max(config.node_size_min, config.node_size_max - config.node_size_step * depth)


def min_separation(
    a: Node, b: Node, config: CollisionConfig = _DEFAULT_COLLISION
) -> float:
    """Required center-to-center distance between ``a`` and ``b``."""
    return node_size(a.depth, config) / 2 + node_size(b.depth, config) / 2 + config.padding


def resolve_collisions(
    nodes: NodeMap, config: CollisionConfig = _DEFAULT_COLLISION
) -> dict[str, Node]:
    """Push overlapping nodes apart.

    Pairs are visited in the mapping's iteration order (j < k), so the result
    is deterministic for a given input.

    Args:
        nodes: Complete node set, typically the snapshot right after a merge
        config: Relaxation parameters

    Returns:
        New id -> node mapping in the same order. ``nodes`` is not modified;
        nodes that did not move are returned as the same objects.
    """
    ids = list(nodes)
    originals = [nodes[node_id] for node_id in ids]
    bodies = [
        _Body(
            x=node.position.x,
            y=node.position.y,
            radius=node_size(node.depth, config) / 2,
            anchored=node.depth == 0,
        )
        for node in originals
    ]
    count = len(bodies)

    for _ in range(config.iterations):
        moved = False
        for j in range(count):
            body_a = bodies[j]
            for k in range(j + 1, count):
                body_b = bodies[k]

                dx = body_b.x - body_a.x
                dy = body_b.y - body_a.y
                # Coincident centers get distance 1; with dx = dy = 0 they stay stuck
                distance = math.sqrt(dx * dx + dy * dy) or 1.0

                required = body_a.radius + body_b.radius + config.padding
                if distance >= required:
                    continue

                overlap = required - distance
                force_x = (dx / distance) * overlap * config.push_factor
                force_y = (dy / distance) * overlap * config.push_factor

                if not body_a.anchored:
                    body_a.x -= force_x
                    body_a.y -= force_y
                if not body_b.anchored:
                    body_b.x += force_x
                    body_b.y += force_y
                moved = True

        if not moved:
            break

    resolved: dict[str, Node] = {}
    for node_id, node, body in zip(ids, originals, bodies, strict=True):
        if body.x == node.position.x and body.y == node.position.y:
            resolved[node_id] = node
        else:
            resolved[node_id] = node.moved_to(body.x, body.y)

    logger.debug(f"Collision pass: {count} nodes, iterations<={config.iterations}")
    return resolved


def find_overlaps(
    nodes: NodeMap,
    config: CollisionConfig = _DEFAULT_COLLISION,
    tolerance: float = 0.0,
) -> list[Overlap]:
    """List node pairs still closer than ``min_separation - tolerance``."""
    values = list(nodes.values())
    overlaps = []
    for j, a in enumerate(values):
        for b in values[j + 1 :]:
            distance = math.hypot(
                b.position.x - a.position.x, b.position.y - a.position.y
            )
            required = min_separation(a, b, config)
            if distance < required - tolerance:
                overlaps.append(Overlap(a.id, b.id, distance, required))
    return overlaps
