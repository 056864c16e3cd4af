"""WordWeb - expandable radial mind maps of related words."""

__version__ = "0.3.0"

from .core.exceptions import WordWebError

__all__ = ["WordWebError", "__version__"]
