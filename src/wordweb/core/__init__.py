"""Core functionality for WordWeb."""

from .exceptions import (
    ConfigError,
    ExpansionError,
    NodeNotFoundError,
    TreeError,
    TreeIntegrityError,
    WordSourceError,
    WordWebError,
)
from .models import MapView, Node, NodeMap, Position
from .tree_store import TreeStore
from .word_source import (
    LLMWordSource,
    MappingWordSource,
    WordSource,
    create_word_source,
    filter_new_words,
)
from .expansion import ExpansionController, ExpansionResult, ExpansionStatus

__all__ = [
    # Exceptions
    "ConfigError",
    "ExpansionError",
    "NodeNotFoundError",
    "TreeError",
    "TreeIntegrityError",
    "WordSourceError",
    "WordWebError",
    # Models
    "MapView",
    "Node",
    "NodeMap",
    "Position",
    # Store
    "TreeStore",
    # Word sources
    "LLMWordSource",
    "MappingWordSource",
    "WordSource",
    "create_word_source",
    "filter_new_words",
    # Expansion
    "ExpansionController",
    "ExpansionResult",
    "ExpansionStatus",
]
