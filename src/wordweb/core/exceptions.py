"""Typed exception hierarchy for wordweb.

Hierarchy
---------
WordWebError (base)
├── TreeError              – tree store errors
│   ├── NodeNotFoundError
│   └── TreeIntegrityError – a commit would break a tree invariant
├── WordSourceError        – related-word backend failures (network, parsing, schema)
├── ExpansionError         – a node expansion failed; the node stays collapsed
└── ConfigError            – configuration / validation errors

None of these are fatal to a session: a failed expansion degrades to
"this one node stays collapsed", everything else keeps working.
"""

from typing import Any


class WordWebError(Exception):
    """Base exception for wordweb."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


# ── Tree store ──────────────────────────────────────────────────────────


class TreeError(WordWebError):
    """Tree store errors."""

    pass


class NodeNotFoundError(TreeError):
    """Referenced node id does not exist in the current snapshot."""

    pass


class TreeIntegrityError(TreeError):
    """A merge would violate a tree invariant (dangling parent, depth, roots)."""

    pass


# ── Word source ─────────────────────────────────────────────────────────


class WordSourceError(WordWebError):
    """Related-word generation failed.

    Raised by ``WordSource.generate_related()`` on any communication,
    parsing or schema problem instead of returning a partial list.
    """

    pass


# ── Expansion ───────────────────────────────────────────────────────────


class ExpansionError(WordWebError):
    """Expansion of a node failed.

    The node's loading flag has already been cleared when this is raised,
    so the expansion can be retried.
    """

    def __init__(
        self,
        message: str,
        node_id: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.node_id = node_id


# ── Configuration ───────────────────────────────────────────────────────


class ConfigError(WordWebError):
    """Configuration / validation errors."""

    pass
