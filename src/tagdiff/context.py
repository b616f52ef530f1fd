"""Per-run generation context shared by the generator and the HTTP service."""

import logging
from dataclasses import dataclass

from .catalog import TagCatalog
from .chain import PatchChain
from .compose import DiffComposer
from .config import SiteConfig
from .vcs import GitObjectProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationContext:
    """Everything derived from the repository for one run.

    Built once; read-only afterwards, so it can be shared across worker
    threads and requests.
    """

    config: SiteConfig
    provider: GitObjectProvider
    catalog: TagCatalog
    chain: PatchChain
    composer: DiffComposer


def build_context(config: SiteConfig, provider: GitObjectProvider) -> GenerationContext:
    """Build catalog, adjacent chain and composer for ``provider``.

    Raises:
        EmptyCatalogError, CommitResolutionError, FormatError,
        DiffProviderError: all fatal for the run.
    """
    logger.info("Getting tags", extra={"repo": config.repo_url})
    catalog = TagCatalog.build(
        provider.list_tag_refs(),
        resolve_commit=provider.resolve_commit,
        strict=config.strict_versions,
        repo_url=config.repo_url,
    )

    chain = PatchChain.build(catalog.ascending, provider)
    logger.info(
        "Adjacent diff chain built",
        extra={"repo": config.repo_url, "patches": len(chain)},
    )

    return GenerationContext(
        config=config,
        provider=provider,
        catalog=catalog,
        chain=chain,
        composer=DiffComposer(catalog, chain),
    )
