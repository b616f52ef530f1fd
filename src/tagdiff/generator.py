"""Static site generation."""

import logging
import shutil
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Optional

from .compose import TagPair
from .context import GenerationContext
from .errors import PairCompositionError
from .render import SiteRenderer
from .serialize import DeterministicSerializer

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"


class SiteGenerator:
    """Writes the comparison site for one generation context."""

    def __init__(self, context: GenerationContext, renderer: Optional[SiteRenderer] = None):
        """Initialize with a built context."""
        self.context = context
        self.config = context.config
        self.renderer = renderer or SiteRenderer(self.config.templates_dir)
        self.output_dir = Path(self.config.output_dir)

    def run(self, git_version: Optional[str] = None) -> Dict[str, Any]:
        """Generate the whole site and return the manifest payload.

        Raises:
            PairCompositionError: after everything else was written, if any
                tag pair failed to compose.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)

        self.render_index()
        failed_pairs = self.render_files_changes()

        if self.config.copy_files:
            logger.info("Pulling files")
            self.pull_files()

        self.copy_static_files()

        manifest = self.write_manifest(failed_pairs, git_version)
        if failed_pairs:
            raise PairCompositionError(failed_pairs)
        return manifest

    def render_index(self) -> Path:
        """Render ``index.html``."""
        html = self.renderer.render_index(
            self.context.catalog.descending,
            diff_base_url=self.config.diff_base_url,
            content_base_url=self.config.content_base_url,
        )
        path = self.output_dir / "index.html"
        path.write_text(html, encoding="utf-8")
        logger.info("Rendered index", extra={"path": str(path)})
        return path

    def all_pairs(self) -> List[TagPair]:
        """Every ordered pair of tags, both directions, newest first."""
        names = [tag.name for tag in self.context.catalog.descending]
        return [(tag1, tag2) for tag1 in names for tag2 in names]

    def render_files_changes(self) -> Dict[str, str]:
        """Compose every pair concurrently and write ``files/<tag1>/<tag2>.html``.

        Returns the failed pairs as ``"tag1..tag2" -> message``.
        """
        pairs = self.all_pairs()
        results, failures = self.context.composer.compose_all(pairs, workers=self.config.workers)

        for pair in pairs:
            change_set = results.get(pair)
            if change_set is None:
                continue
            tag1, tag2 = pair
            logger.debug(
                "Rendering files changes",
                extra={"from_tag": tag1, "to_tag": tag2, "changes": len(change_set)},
            )
            target_dir = self.output_dir / "files" / tag1
            target_dir.mkdir(parents=True, exist_ok=True)
            (target_dir / f"{tag2}.html").write_text(
                self.renderer.render_files(change_set), encoding="utf-8"
            )

        logger.info(
            "Rendered files changes",
            extra={"pairs": len(results), "failed": len(failures)},
        )
        return {f"{tag1}..{tag2}": exc.message for (tag1, tag2), exc in failures.items()}

    def pull_files(self) -> int:
        """Write ``content/<tag>/<path>`` for every file of every tag."""
        provider = self.context.provider
        written = 0
        for tag in self.context.catalog.descending:
            tag_root = (self.output_dir / "content" / tag.name).resolve()
            for file_path in provider.list_files(tag.commit_id):
                target = (tag_root / file_path).resolve()
                if tag_root not in target.parents:
                    logger.warning(
                        "Skipping file outside of the content directory",
                        extra={"tag": tag.name, "path": file_path},
                    )
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(provider.file_content(tag.commit_id, file_path))
                written += 1
            logger.debug("Pulled files for tag", extra={"tag": tag.name})

        logger.info("Pulled files", extra={"files": written})
        return written

    def copy_static_files(self) -> None:
        """Copy static assets from the configured directory or the package."""
        if self.config.static_dir:
            logger.info("Copying static files", extra={"static_dir": self.config.static_dir})
            shutil.copytree(self.config.static_dir, self.output_dir, dirs_exist_ok=True)
            return

        logger.info("Copying packaged static files")
        _copy_traversable(resources.files("tagdiff") / "static", self.output_dir)

    def write_manifest(
        self, failed_pairs: Dict[str, str], git_version: Optional[str] = None
    ) -> Dict[str, Any]:
        """Write ``manifest.json`` describing the run."""
        serializer = DeterministicSerializer(self.config)
        payload = serializer.serialize_manifest(
            self.context.catalog.descending,
            pair_count=len(self.context.catalog) ** 2,
            failed_pairs=list(failed_pairs),
            git_version=git_version,
        )
        (self.output_dir / MANIFEST_NAME).write_text(
            serializer.to_json_string(payload), encoding="utf-8"
        )
        return payload


def _copy_traversable(source, destination: Path) -> None:
    destination.mkdir(parents=True, exist_ok=True)
    for entry in source.iterdir():
        if entry.name.startswith((".", "__")):
            continue
        if entry.is_dir():
            _copy_traversable(entry, destination / entry.name)
        else:
            (destination / entry.name).write_bytes(entry.read_bytes())
