"""Unit tests for radial child placement."""

import math

import pytest

from wordweb.config.settings import LayoutConfig
from wordweb.layout.radial import (
    child_angles,
    expansion_radius,
    incoming_angle,
    place_children,
)


def _angle_of(child, parent) -> float:
    return math.atan2(
        child.position.y - parent.position.y, child.position.x - parent.position.x
    )


def _same_angle(a: float, b: float) -> bool:
    """Compare angles modulo 2π."""
    return math.isclose(math.cos(a), math.cos(b), abs_tol=1e-9) and math.isclose(
        math.sin(a), math.sin(b), abs_tol=1e-9
    )


class TestRootPlacement:
    """Children of the root surround it over the full circle."""

    @pytest.mark.parametrize("count", [1, 2, 5, 6, 10])
    def test_root_children_evenly_spaced_from_up(self, node_factory, count):
        root = node_factory("root", 2000, 2000, depth=0)

        angles = child_angles(count, root, None)

        expected = [-math.pi / 2 + i * 2 * math.pi / count for i in range(count)]
        assert angles == pytest.approx(expected)

    def test_root_children_share_radius(self, node_factory):
        root = node_factory("root", 2000, 2000, depth=0)
        words = ["a", "b", "c", "d", "e", "f"]

        children = place_children(root, None, words)

        expected_radius = max(120, 350 / 1.5)
        for child in children:
            distance = math.hypot(
                child.position.x - root.position.x, child.position.y - root.position.y
            )
            assert distance == pytest.approx(expected_radius)

    def test_first_root_child_points_up(self, node_factory):
        root = node_factory("root", 0, 0, depth=0)

        (first, _) = place_children(root, None, ["up", "down"])

        assert first.position.x == pytest.approx(0, abs=1e-9)
        assert first.position.y == pytest.approx(-350 / 1.5)

    def test_root_incoming_angle_is_reference(self, node_factory):
        root = node_factory("root", 10, 10, depth=0)
        assert incoming_angle(root, None) == pytest.approx(-math.pi / 2)


class TestNonRootPlacement:
    """Children of inner nodes fan out over a 240° arc."""

    @pytest.fixture
    def parent_and_grandparent(self, node_factory):
        grandparent = node_factory("root", 2000, 2000, depth=0)
        # Parent sits up-right of the root
        parent = node_factory("root-1", 2100, 1900, depth=1)
        return parent, grandparent

    def test_incoming_angle_follows_edge(self, parent_and_grandparent):
        parent, grandparent = parent_and_grandparent
        assert incoming_angle(parent, grandparent) == pytest.approx(-math.pi / 4)

    @pytest.mark.parametrize("count", [2, 3, 7])
    def test_extreme_children_on_arc_ends(self, parent_and_grandparent, count):
        parent, grandparent = parent_and_grandparent
        incoming = -math.pi / 4
        half_arc = (4 / 3) * math.pi / 2

        children = place_children(
            parent, grandparent, [f"w{i}" for i in range(count)]
        )

        assert _same_angle(_angle_of(children[0], parent), incoming - half_arc)
        assert _same_angle(_angle_of(children[-1], parent), incoming + half_arc)

    def test_single_child_on_incoming_direction(self, parent_and_grandparent):
        parent, grandparent = parent_and_grandparent

        (child,) = place_children(parent, grandparent, ["only"])

        assert _same_angle(_angle_of(child, parent), -math.pi / 4)

    def test_children_evenly_spaced_across_arc(self, parent_and_grandparent):
        parent, grandparent = parent_and_grandparent

        angles = child_angles(5, parent, grandparent)

        steps = [b - a for a, b in zip(angles, angles[1:])]
        assert steps == pytest.approx([(4 / 3) * math.pi / 4] * 4)

    def test_children_records(self, parent_and_grandparent):
        parent, grandparent = parent_and_grandparent

        children = place_children(parent, grandparent, ["Painting", "Canvas"])

        assert [c.id for c in children] == ["root-1-0", "root-1-1"]
        assert [c.word for c in children] == ["Painting", "Canvas"]
        for child in children:
            assert child.parent_id == "root-1"
            assert child.depth == 2
            assert not child.is_expanded
            assert not child.is_loading

    def test_radius_uses_parent_depth(self, parent_and_grandparent):
        parent, grandparent = parent_and_grandparent

        (child,) = place_children(parent, grandparent, ["only"])

        distance = math.hypot(
            child.position.x - parent.position.x, child.position.y - parent.position.y
        )
        assert distance == pytest.approx(350 / 2.5)

    def test_configurable_arc(self, parent_and_grandparent):
        parent, grandparent = parent_and_grandparent
        config = LayoutConfig(child_arc=math.pi)

        angles = child_angles(3, parent, grandparent, config)

        assert angles == pytest.approx(
            [-math.pi / 4 - math.pi / 2, -math.pi / 4, -math.pi / 4 + math.pi / 2]
        )


class TestRadius:
    def test_radius_values(self):
        assert expansion_radius(0) == pytest.approx(350 / 1.5)
        assert expansion_radius(1) == pytest.approx(140)
        assert expansion_radius(2) == pytest.approx(120)  # 100 clamped to floor

    def test_radius_non_increasing_with_floor(self):
        radii = [expansion_radius(depth) for depth in range(30)]

        assert all(b <= a for a, b in zip(radii, radii[1:]))
        assert min(radii) >= 120

    def test_custom_floor(self):
        config = LayoutConfig(radius_floor=50)
        assert expansion_radius(5, config) == pytest.approx(350 / 6.5)


def test_placement_is_deterministic(node_factory):
    root = node_factory("root", 2000, 2000, depth=0)
    words = ["a", "b", "c"]

    assert place_children(root, None, words) == place_children(root, None, words)


def test_empty_word_list_rejected(node_factory):
    root = node_factory("root", 0, 0, depth=0)

    with pytest.raises(ValueError):
        place_children(root, None, [])
