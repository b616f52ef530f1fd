"""HTTP front end serving the comparison site from a live repository."""

from .. import __version__

__all__ = ["__version__"]
