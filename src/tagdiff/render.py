"""HTML rendering of tag lists and composed change sets."""

import logging
from typing import Iterable, Optional

from jinja2 import Environment, FileSystemLoader, PackageLoader, select_autoescape

from .compose import ComposedChangeSet
from .versions import Tag

logger = logging.getLogger(__name__)

INDEX_TEMPLATE = "index.html"
FILES_TEMPLATE = "files.html"
DIFF_TEMPLATE = "diff.html"

KIND_LABELS = {
    "A": "added",
    "D": "deleted",
    "M": "modified",
    "R": "renamed",
}


class SiteRenderer:
    """Renders site pages from Jinja2 templates."""

    def __init__(self, templates_dir: Optional[str] = None):
        """Use templates from ``templates_dir`` or the ones shipped with the package."""
        if templates_dir:
            logger.info("Processing templates", extra={"templates_dir": templates_dir})
            loader = FileSystemLoader(templates_dir)
        else:
            logger.debug("Processing packaged templates")
            loader = PackageLoader("tagdiff", "templates")

        self.env = Environment(
            loader=loader,
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.globals["kind_labels"] = KIND_LABELS

    def render_index(
        self,
        tags: Iterable[Tag],
        diff_base_url: str = "",
        content_base_url: str = "",
    ) -> str:
        """Render the index page; ``tags`` are listed in the order given."""
        template = self.env.get_template(INDEX_TEMPLATE)
        return template.render(
            tags=list(tags),
            diff_base_url=diff_base_url,
            content_base_url=content_base_url,
        )

    def render_files(self, change_set: ComposedChangeSet) -> str:
        """Render the list of changed files between two tags."""
        template = self.env.get_template(FILES_TEMPLATE)
        return template.render(
            tag1=change_set.from_tag,
            tag2=change_set.to_tag,
            changes=change_set.changes,
        )

    def render_diff(self, tag1: str, tag2: str, file: str) -> str:
        """Render the single-file diff page."""
        template = self.env.get_template(DIFF_TEMPLATE)
        return template.render(tag1=tag1, tag2=tag2, file=file)
