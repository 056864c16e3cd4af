"""Expansion state machine.

Per node::

    Collapsed --trigger--> Loading --words--> Expanded (0+ children)
                              |
                              +--failure or cancel--> Collapsed (retryable)

Design Decisions:
    - The guard and the loading flag are applied synchronously before the
      first await, so a second trigger for the same node while its request is
      in flight is a no-op.
    - Every request captures the epoch at trigger time. ``reset()`` bumps the
      epoch, and results that arrive for an older epoch are dropped instead of
      being merged into the new tree.
    - Placement reads parent and grandparent from the snapshot current at
      commit time, so positions moved by a concurrent expansion's collision
      pass are respected.
    - Placement and collision resolution run synchronously between awaits on
      an immutable snapshot; each result is committed as one unit.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum

from loguru import logger

from ..config.defaults import ROOT_NODE_ID
from ..config.settings import CollisionConfig, LayoutConfig
from ..layout.collision import find_overlaps, resolve_collisions
from ..layout.radial import place_children
from .exceptions import ConfigError, ExpansionError, WordSourceError
from .models import MapView
from .tree_store import TreeStore
from .word_source import WordSource, filter_new_words


class ExpansionStatus(StrEnum):
    EXPANDED = "expanded"  # New children attached
    EXHAUSTED = "exhausted"  # Source had nothing new; node is a leaf
    FAILED = "failed"  # Source failed; node collapsed again
    SKIPPED = "skipped"  # Guard rejected the trigger
    STALE = "stale"  # Tree was reset while the request was in flight


@dataclass(frozen=True)
class ExpansionResult:
    """Outcome of one expansion request."""

    node_id: str
    status: ExpansionStatus
    children: tuple[str, ...] = ()
    error: str | None = None


class ExpansionController:
    """Coordinates word generation, placement and collision resolution.

    Usage:
        controller = ExpansionController(TreeStore(), MappingWordSource(...))
        await controller.start("Creativity")
        await controller.expand("root-0")
    """

    def __init__(
        self,
        store: TreeStore,
        word_source: WordSource,
        layout: LayoutConfig | None = None,
        collision: CollisionConfig | None = None,
    ) -> None:
        if layout is not None and layout.map_size != store.map_size:
            raise ConfigError(
                f"Layout map_size {layout.map_size} does not match "
                f"store map_size {store.map_size}"
            )

        self.store = store
        self.word_source = word_source
        self.layout = layout or LayoutConfig(map_size=store.map_size)
        self.collision = collision or CollisionConfig()

        self._epoch = 0
        self._tasks: dict[str, asyncio.Task[ExpansionResult]] = {}
        # Tasks orphaned by reset(), kept referenced until they finish
        self._stale: set[asyncio.Task[ExpansionResult]] = set()
        self._last_triggered_id: str | None = None
        self._last_error: str | None = None

    # ── State ───────────────────────────────────────────────────────────

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def last_triggered_id(self) -> str | None:
        """Node most recently put into loading; the view's focus target."""
        return self._last_triggered_id

    @property
    def last_error(self) -> str | None:
        """User-facing message of the most recent failed expansion."""
        return self._last_error

    @property
    def in_flight(self) -> frozenset[str]:
        """Ids of nodes whose fire-and-forget expansion is still running."""
        return frozenset(
            node_id for node_id, task in self._tasks.items() if not task.done()
        )

    # ── Operations ──────────────────────────────────────────────────────

    async def start(self, word: str) -> ExpansionResult:
        """Start a new session rooted at ``word`` and expand the root.

        The root is created already loading, so its first expansion bypasses
        the guard.

        Raises:
            ExpansionError: If the root's expansion fails
        """
        self.reset()
        self.store.init_root(word)
        root = self.store.require(ROOT_NODE_ID)
        self._last_triggered_id = root.id
        logger.info(f"Started session '{word}' (epoch {self._epoch})")
        return await self._run(root.id, self._epoch)

    async def expand(self, node_id: str) -> ExpansionResult:
        """Expand ``node_id`` if it is collapsed.

        Returns:
            Result with status SKIPPED when the node is already expanded or
            loading

        Raises:
            NodeNotFoundError: If ``node_id`` is not in the tree
            ExpansionError: If the word source fails; the node is left
                collapsed and can be retried
        """
        if not self._begin(node_id):
            return ExpansionResult(node_id, ExpansionStatus.SKIPPED)
        return await self._run(node_id, self._epoch)

    def request_expansion(self, node_id: str) -> asyncio.Task[ExpansionResult] | None:
        """Fire-and-forget expansion for click handlers.

        Must be called from a running event loop. Failures are logged and kept
        in ``last_error``; they are never left as un-retrieved task exceptions.

        Returns:
            The scheduled task, or None when the guard rejected the trigger
        """
        if not self._begin(node_id):
            return None

        task = asyncio.create_task(
            self._run_quietly(node_id, self._epoch), name=f"expand:{node_id}"
        )
        self._tasks[node_id] = task
        task.add_done_callback(lambda t, nid=node_id: self._forget(nid, t))
        return task

    on_node_click = request_expansion

    def view(self) -> MapView:
        """Current snapshot packaged for a rendering adapter."""
        return MapView(
            map_size=self.store.map_size,
            nodes=list(self.store.snapshot.values()),
            focus_node_id=self._last_triggered_id,
            last_error=self._last_error,
        )

    async def wait_idle(self) -> list[ExpansionResult]:
        """Wait for every fire-and-forget expansion currently in flight."""
        results: list[ExpansionResult] = []
        while self._tasks:
            pending = list(self._tasks.values())
            outcomes = await asyncio.gather(*pending, return_exceptions=True)
            for outcome in outcomes:
                if isinstance(outcome, asyncio.CancelledError):
                    continue
                if isinstance(outcome, BaseException):
                    raise outcome
                results.append(outcome)
            for node_id in [k for k, t in self._tasks.items() if t.done()]:
                self._tasks.pop(node_id, None)
        return results

    def reset(self) -> None:
        """Clear the tree and invalidate every in-flight request."""
        self._epoch += 1
        for task in self._tasks.values():
            if not task.done():
                self._stale.add(task)
                task.add_done_callback(self._stale.discard)
        self._tasks.clear()
        self._last_triggered_id = None
        self._last_error = None
        self.store.reset()

    # ── Internals ───────────────────────────────────────────────────────

    def _begin(self, node_id: str) -> bool:
        """Apply the guard and mark the node loading; True if it may proceed."""
        node = self.store.require(node_id)
        if not node.is_collapsed:
            logger.debug(
                f"Ignoring expansion of '{node_id}' "
                f"(expanded={node.is_expanded}, loading={node.is_loading})"
            )
            return False

        self.store.patch(node_id, is_loading=True)
        self._last_triggered_id = node_id
        return True

    async def _run(self, node_id: str, epoch: int) -> ExpansionResult:
        # A task scheduled right before reset() may start on the new tree
        if epoch != self._epoch:
            return self._discard(node_id, epoch)

        node = self.store.require(node_id)
        existing_words = self.store.words()

        try:
            candidates = await self.word_source.generate_related(
                node.word, existing_words
            )
        except asyncio.CancelledError:
            if epoch == self._epoch:
                self.store.patch(node_id, is_loading=False)
                logger.warning(f"Expansion of '{node_id}' cancelled; node left collapsed")
            raise
        except WordSourceError as e:
            return self._fail(node_id, epoch, e)
        except Exception as e:
            return self._fail(
                node_id, epoch, WordSourceError(f"Word source raised {type(e).__name__}: {e}")
            )

        if epoch != self._epoch:
            return self._discard(node_id, epoch)

        # Vocabulary as of commit time, including concurrent expansions
        words = filter_new_words(candidates, self.store.words())
        if len(words) < len(candidates):
            logger.debug(
                f"Dropped {len(candidates) - len(words)} duplicate words for '{node.word}'"
            )

        if not words:
            self.store.patch(node_id, is_expanded=True, is_loading=False)
            logger.info(f"'{node.word}' has no new related words")
            return ExpansionResult(node_id, ExpansionStatus.EXHAUSTED)

        parent = self.store.require(node_id)
        grandparent = (
            self.store.get(parent.parent_id) if parent.parent_id is not None else None
        )
        children = place_children(parent, grandparent, words, self.layout)

        merged = {child.id: child for child in children}
        merged[node_id] = parent.model_copy(
            update={"is_expanded": True, "is_loading": False}
        )
        snapshot = self.store.merge_snapshot(merged)
        self.store.merge_snapshot(resolve_collisions(snapshot, self.collision))

        residual = find_overlaps(self.store.snapshot, self.collision, tolerance=1.0)
        if residual:
            logger.debug(f"{len(residual)} overlapping pairs remain after relaxation")

        logger.info(f"Expanded '{node.word}' with {len(children)} children")
        return ExpansionResult(
            node_id,
            ExpansionStatus.EXPANDED,
            children=tuple(child.id for child in children),
        )

    def _discard(self, node_id: str, epoch: int) -> ExpansionResult:
        logger.warning(
            f"Discarding stale result for '{node_id}' "
            f"(epoch {epoch}, current {self._epoch})"
        )
        return ExpansionResult(node_id, ExpansionStatus.STALE)

    def _fail(self, node_id: str, epoch: int, error: WordSourceError) -> ExpansionResult:
        if epoch != self._epoch:
            logger.warning(f"Ignoring failure for stale request '{node_id}': {error}")
            return ExpansionResult(node_id, ExpansionStatus.STALE)

        self.store.patch(node_id, is_loading=False)
        self._last_error = "Failed to generate words. Please try again."
        logger.error(f"Expansion of '{node_id}' failed: {error}")
        raise ExpansionError(
            f"Expansion of '{node_id}' failed: {error}",
            node_id=node_id,
            context=error.context,
        ) from error

    async def _run_quietly(self, node_id: str, epoch: int) -> ExpansionResult:
        try:
            return await self._run(node_id, epoch)
        except ExpansionError as e:
            return ExpansionResult(node_id, ExpansionStatus.FAILED, error=str(e))

    def _forget(self, node_id: str, task: asyncio.Task[ExpansionResult]) -> None:
        if self._tasks.get(node_id) is task:
            del self._tasks[node_id]
