"""Shared fixtures for WordWeb tests."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pytest

from wordweb.core.expansion import ExpansionController
from wordweb.core.models import Node, Position
from wordweb.core.tree_store import TreeStore
from wordweb.core.word_source import MappingWordSource

CREATIVITY_WORDS = ["Imagination", "Art", "Innovation", "Inspiration", "Design", "Music"]


class FakeWordSource:
    """Scripted word source that ignores the exclusion list.

    Responses map a word to a list of words or to an exception to raise.
    An optional gate holds every call until it is set.
    """

    def __init__(
        self,
        responses: dict[str, list[str] | Exception],
        gate: asyncio.Event | None = None,
    ) -> None:
        self.responses = responses
        self.gate = gate
        self.calls: list[tuple[str, list[str]]] = []

    async def generate_related(
        self, word: str, existing_words: Sequence[str]
    ) -> list[str]:
        self.calls.append((word, list(existing_words)))
        if self.gate is not None:
            await self.gate.wait()
        response = self.responses.get(word, [])
        if isinstance(response, Exception):
            raise response
        return list(response)


@pytest.fixture
def fake_source_cls():
    """The FakeWordSource class, for tests that need custom responses."""
    return FakeWordSource


@pytest.fixture
def store():
    """Empty tree store on the default 4000px canvas."""
    return TreeStore()


@pytest.fixture
def creativity_source():
    """Offline source with six words for 'Creativity' and a few second-level words."""
    return MappingWordSource(
        {
            "Creativity": CREATIVITY_WORDS,
            "Art": ["Painting", "Sculpture", "Canvas"],
            "Music": ["Rhythm", "Melody"],
        }
    )


@pytest.fixture
def controller(store, creativity_source):
    """Controller wired to the offline Creativity vocabulary."""
    return ExpansionController(store, creativity_source)


@pytest.fixture
def words_file(tmp_path):
    """YAML vocabulary file for CLI and server tests."""
    path = tmp_path / "words.yaml"
    path.write_text(
        "Creativity: [Art, Music, Design]\n"
        "Art: [Painting, Canvas]\n"
        "Music: [Rhythm]\n",
        encoding="utf-8",
    )
    return path


def make_node(
    node_id: str,
    x: float,
    y: float,
    depth: int = 1,
    parent_id: str | None = "root",
    word: str | None = None,
    **flags,
) -> Node:
    """Build a node with sensible defaults for geometry tests."""
    return Node(
        id=node_id,
        word=word or node_id,
        parent_id=None if depth == 0 else parent_id,
        position=Position(x=x, y=y),
        depth=depth,
        **flags,
    )


@pytest.fixture
def node_factory():
    return make_node
