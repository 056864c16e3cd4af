"""Authoritative id -> node store with atomic snapshot merges.

Every mutation produces a brand-new dict which replaces the current one in a
single assignment. Published snapshots are never mutated afterwards, so a
reader holding an old snapshot keeps a consistent view.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from loguru import logger

from ..config.defaults import MAP_SIZE, ROOT_NODE_ID
from .exceptions import NodeNotFoundError, TreeIntegrityError
from .models import Node, NodeMap, Position


class TreeStore:
    """Holds the current node snapshot and applies merges to it."""

    def __init__(self, map_size: int = MAP_SIZE) -> None:
        self.map_size = map_size
        self._nodes: dict[str, Node] = {}
        self._revision = 0

    # ── Read side ───────────────────────────────────────────────────────

    @property
    def snapshot(self) -> NodeMap:
        """Read-only view of the current snapshot."""
        return MappingProxyType(self._nodes)

    @property
    def revision(self) -> int:
        """Number of commits applied since construction."""
        return self._revision

    @property
    def root(self) -> Node | None:
        for node in self._nodes.values():
            if node.parent_id is None:
                return node
        return None

    def get(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def require(self, node_id: str) -> Node:
        """Get a node or raise NodeNotFoundError."""
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(
                f"Node '{node_id}' does not exist", context={"node_id": node_id}
            )
        return node

    def words(self) -> list[str]:
        """All words currently in the tree, in insertion order."""
        return [node.word for node in self._nodes.values()]

    def children_of(self, node_id: str) -> list[Node]:
        return [n for n in self._nodes.values() if n.parent_id == node_id]

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    # ── Write side ──────────────────────────────────────────────────────

    def init_root(self, word: str, position: Position | None = None) -> NodeMap:
        """Replace the whole map with a single loading root node.

        Args:
            word: Root concept
            position: Root position (defaults to the canvas center)

        Returns:
            The new snapshot
        """
        if position is None:
            position = Position(x=self.map_size / 2, y=self.map_size / 2)

        root = Node(
            id=ROOT_NODE_ID,
            word=word,
            parent_id=None,
            position=position,
            depth=0,
            is_expanded=False,
            is_loading=True,
        )
        self._commit({root.id: root})
        logger.debug(f"Initialized root '{word}' at ({position.x:.0f}, {position.y:.0f})")
        return self.snapshot

    def merge_snapshot(self, partial: Mapping[str, Node]) -> NodeMap:
        """Overlay node updates/insertions onto the current snapshot.

        Existing ids keep their place in the ordering, new ids are appended in
        the order ``partial`` yields them. Neither the previous snapshot nor
        ``partial`` is mutated.

        Args:
            partial: Mapping of node id -> new node record

        Returns:
            The new snapshot

        Raises:
            TreeIntegrityError: If the merged map would break a tree invariant.
                The current snapshot is left untouched.
        """
        merged = dict(self._nodes)
        for node_id, node in partial.items():
            if node_id != node.id:
                raise TreeIntegrityError(
                    f"Key '{node_id}' does not match node id '{node.id}'",
                    context={"node_id": node.id},
                )
            previous = self._nodes.get(node_id)
            if previous is not None:
                self._check_update(previous, node)
            merged[node_id] = node

        self._validate(merged)
        self._commit(merged)
        return self.snapshot

    def patch(self, node_id: str, **changes: Any) -> Node:
        """Merge a field update for a single node and return the new record."""
        updated = self.require(node_id).model_copy(update=changes)
        self.merge_snapshot({node_id: updated})
        return updated

    def reset(self) -> None:
        """Clear the map entirely."""
        self._commit({})
        logger.debug("Tree store reset")

    # ── Internals ───────────────────────────────────────────────────────

    def _commit(self, nodes: dict[str, Node]) -> None:
        self._nodes = nodes
        self._revision += 1

    @staticmethod
    def _check_update(previous: Node, node: Node) -> None:
        if previous.parent_id != node.parent_id or previous.depth != node.depth:
            raise TreeIntegrityError(
                f"Node '{node.id}' cannot be re-parented",
                context={"node_id": node.id},
            )
        if previous.is_expanded and not node.is_expanded:
            raise TreeIntegrityError(
                f"Node '{node.id}' cannot be collapsed once expanded",
                context={"node_id": node.id},
            )

    @staticmethod
    def _validate(nodes: dict[str, Node]) -> None:
        roots = [n for n in nodes.values() if n.parent_id is None]
        if nodes and len(roots) != 1:
            raise TreeIntegrityError(
                f"Tree must have exactly one root, found {len(roots)}",
                context={"roots": [n.id for n in roots]},
            )

        for node in nodes.values():
            if node.is_loading and node.is_expanded:
                raise TreeIntegrityError(
                    f"Node '{node.id}' cannot be loading and expanded",
                    context={"node_id": node.id},
                )
            if node.parent_id is None:
                if node.depth != 0:
                    raise TreeIntegrityError(
                        f"Root '{node.id}' must have depth 0, got {node.depth}",
                        context={"node_id": node.id},
                    )
                continue

            parent = nodes.get(node.parent_id)
            if parent is None:
                raise TreeIntegrityError(
                    f"Node '{node.id}' references missing parent '{node.parent_id}'",
                    context={"node_id": node.id, "parent_id": node.parent_id},
                )
            # depth == parent.depth + 1 on every edge rules out cycles
            if node.depth != parent.depth + 1:
                raise TreeIntegrityError(
                    f"Node '{node.id}' has depth {node.depth}, "
                    f"expected {parent.depth + 1}",
                    context={"node_id": node.id},
                )
