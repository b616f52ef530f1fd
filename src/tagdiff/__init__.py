"""tagdiff.

Renders a static comparison site for a tagged git repository: the net
file-level changes between every pair of tags, composed from the diffs of
adjacent tags.
"""

__version__ = "1.0.0"
__author__ = "tagdiff maintainers"

__all__ = ["__version__"]
