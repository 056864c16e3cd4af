"""Data models for the mind map tree.

Nodes are immutable. Every change produces a new ``Node`` via
``model_copy(update=...)`` and reaches the store as part of a snapshot merge.
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Position(BaseModel):
    """2D canvas coordinate (pixels, y grows downward)."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


class Node(BaseModel):
    """One concept in the tree."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique, stable node id")
    word: str = Field(..., description="Display label")
    parent_id: str | None = Field(
        default=None, description="Parent node id, None for the root"
    )
    position: Position
    depth: int = Field(default=0, ge=0, description="Edges from the root")
    is_expanded: bool = False
    is_loading: bool = False

    @model_validator(mode="after")
    def _check_flags(self) -> Node:
        if self.is_loading and self.is_expanded:
            raise ValueError(f"Node '{self.id}' cannot be loading and expanded")
        return self

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_collapsed(self) -> bool:
        """True when the node can be expanded (neither expanded nor loading)."""
        return not self.is_expanded and not self.is_loading

    def moved_to(self, x: float, y: float) -> Node:
        return self.model_copy(update={"position": Position(x=x, y=y)})


# Insertion-ordered id -> node mapping; the order is the stable pair order
# used by the collision resolver.
NodeMap = Mapping[str, Node]


class MapView(BaseModel):
    """Immutable payload handed to a rendering adapter."""

    model_config = ConfigDict(frozen=True)

    map_size: int
    nodes: list[Node] = Field(default_factory=list)
    focus_node_id: str | None = Field(
        default=None, description="Node the view should scroll to"
    )
    last_error: str | None = None
