"""Service layer for the tagdiff API."""

import logging
from contextlib import ExitStack
from typing import Any, Dict, Optional

from ...config import SiteConfig
from ...context import GenerationContext, build_context
from ...errors import NotFoundError, TagNotFoundError
from ...render import SiteRenderer
from ...serialize import DeterministicSerializer
from ...vcs import GitRepository

logger = logging.getLogger(__name__)


class CompareService:
    """Answers page and JSON requests from one generation context."""

    def __init__(
        self,
        context: GenerationContext,
        renderer: Optional[SiteRenderer] = None,
        resources: Optional[ExitStack] = None,
    ):
        """Initialize with a built context; ``resources`` are released by ``close``."""
        self.context = context
        self.renderer = renderer or SiteRenderer(context.config.templates_dir)
        self.serializer = DeterministicSerializer(context.config)
        self._resources = resources

    @classmethod
    def from_config(cls, config: SiteConfig) -> "CompareService":
        """Clone the configured repository and build the context."""
        logger.info("Initializing compare service", extra={"repo": config.repo_url})
        with ExitStack() as stack:
            repository = stack.enter_context(GitRepository(config))
            repository.clone_and_setup()
            context = build_context(config, repository)
            return cls(context, resources=stack.pop_all())

    def close(self) -> None:
        """Remove the clone backing this service, if any."""
        if self._resources is not None:
            self._resources.close()
            self._resources = None

    def list_tags(self) -> Dict[str, Any]:
        """Tags, newest first, in a success envelope."""
        tags = self.serializer.serialize_tags(self.context.catalog.descending)
        return self.serializer.create_success_envelope({"tags": tags})

    def changes(self, tag1: str, tag2: str) -> Dict[str, Any]:
        """Composed changes between two tags in a success envelope."""
        change_set = self.context.composer.compose(tag1, tag2)
        logger.info(
            "Composed changes",
            extra={"from_tag": tag1, "to_tag": tag2, "changes": len(change_set)},
        )
        return self.serializer.create_success_envelope(
            self.serializer.serialize_change_set(change_set)
        )

    def index_html(self) -> str:
        return self.renderer.render_index(
            self.context.catalog.descending,
            diff_base_url="/files/",
            content_base_url="/content/",
        )

    def files_html(self, tag1: str, tag2: str) -> str:
        return self.renderer.render_files(self.context.composer.compose(tag1, tag2))

    def diff_html(self, tag1: str, tag2: str, file: str) -> str:
        return self.renderer.render_diff(tag1, tag2, file)

    def file_content(self, tag: str, path: str) -> bytes:
        """Raw content of ``path`` at ``tag``."""
        commit_id = self.context.catalog.get(tag).commit_id
        return self.context.provider.file_content(commit_id, path)

    def versions(self, tag1: str, tag2: str, file: str) -> Dict[str, str]:
        """Content of ``file`` at both tags; a side is empty where the file is absent.

        Raises:
            NotFoundError: if the file exists at neither tag.
        """
        contents = {}
        found = False
        for key, tag in (("content1", tag1), ("content2", tag2)):
            try:
                data = self.file_content(tag, file)
            except (NotFoundError, TagNotFoundError):
                contents[key] = ""
                continue
            contents[key] = data.decode("utf-8", errors="replace")
            found = True

        if not found:
            raise NotFoundError(f"{tag1}, {tag2}", file)
        return contents
