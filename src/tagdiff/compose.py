"""Diff composition: net changes between any two tags.

The composer never diffs trees itself. It walks the chain of adjacent
patches between the two requested tags and folds their changes into one
record per file, keyed by the file's path at the second tag.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .catalog import TagCatalog
from .chain import AdjacentPatch, ChangeKind, FileChange, PatchChain
from .errors import TagDiffError, TagNotFoundError

logger = logging.getLogger(__name__)

TagPair = Tuple[str, str]


@dataclass(frozen=True)
class ComposedChangeSet:
    """Net file changes from ``from_tag`` to ``to_tag``, sorted by path."""

    from_tag: str
    to_tag: str
    changes: Tuple[FileChange, ...] = ()

    def __len__(self) -> int:
        return len(self.changes)

    def __iter__(self):
        return iter(self.changes)

    def as_dict(self) -> Dict[str, FileChange]:
        """Mapping from current path to change."""
        return {change.path: change for change in self.changes}

    def paths(self) -> List[str]:
        return [change.path for change in self.changes]


class ChangeFolder:
    """Folds single-step changes into the net changes between two endpoints.

    Every touched path remembers whether a file sat there when the range
    started. Every file present now remembers the path it started at, or
    None when it was created inside the range. The result only compares the
    two endpoints, so folding the inverted stream gives the inverted result:

    - a path occupied at both ends is Modified, whatever happened in between;
    - a file that started at O and now sits at a path free at the start is
      Renamed(O->N), unless O is occupied again, which makes N Added;
    - any other new path is Added and any other vacated path Deleted.
    """

    def __init__(self) -> None:
        self._existed: Dict[str, bool] = {}
        self._origins: Dict[str, Optional[str]] = {}

    def _touch(self, path: str, existed: bool) -> None:
        self._existed.setdefault(path, existed)

    def apply(self, change: FileChange) -> None:
        """Fold one single-step change."""
        path = change.path

        if change.kind is ChangeKind.ADDED:
            self._touch(path, False)
            self._origins[path] = None

        elif change.kind is ChangeKind.DELETED:
            self._touch(path, True)
            self._origins.pop(path, None)

        elif change.kind is ChangeKind.MODIFIED:
            self._touch(path, True)
            self._origins.setdefault(path, path)

        elif change.kind is ChangeKind.RENAMED:
            self._touch(change.old_path, True)
            self._touch(path, False)
            # multi-hop renames keep the path the file started at
            self._origins[path] = self._origins.pop(change.old_path, change.old_path)

    def result(self) -> Dict[str, FileChange]:
        """Net change per path at the second endpoint."""
        started = {path for path, existed in self._existed.items() if existed}
        net: Dict[str, FileChange] = {}
        moved: Set[str] = set()

        for path, origin in self._origins.items():
            if path in started:
                net[path] = FileChange.modified(path)
            elif origin is not None and origin not in self._origins:
                net[path] = FileChange.renamed(origin, path)
                moved.add(origin)
            else:
                net[path] = FileChange.added(path)

        for path in started - set(self._origins) - moved:
            net[path] = FileChange.deleted(path)
        return net


def fold_changes(changes: Iterable[FileChange]) -> Dict[str, FileChange]:
    """Fold an ordered stream of single-step changes into net changes."""
    folder = ChangeFolder()
    for change in changes:
        folder.apply(change)
    return folder.result()


def select_patches(
    chain: Sequence[AdjacentPatch], from_tag: str, to_tag: str
) -> List[AdjacentPatch]:
    """Return the patches strictly after ``from_tag`` up to and including ``to_tag``.

    The walk starts accumulating at the first patch that lands on either
    endpoint and stops at the second one.

    Raises:
        TagNotFoundError: if the chain does not bound both endpoints.
    """
    endpoints = {from_tag, to_tag}
    selected: List[AdjacentPatch] = []
    accumulating = False
    boundaries = 0

    for patch in chain:
        if accumulating:
            selected.append(patch)
        if patch.to_tag.name in endpoints:
            boundaries += 1
            accumulating = not accumulating
            if boundaries == 2:
                return selected

    found = {patch.to_tag.name for patch in chain} & endpoints
    raise TagNotFoundError(sorted(endpoints - found))


class DiffComposer:
    """Answers pairwise change queries over an immutable patch chain."""

    def __init__(self, catalog: TagCatalog, chain: PatchChain):
        """Initialize with a built catalog and chain."""
        self.catalog = catalog
        self.chain = chain

    def compose(self, tag1: str, tag2: str) -> ComposedChangeSet:
        """Net changes going from ``tag1`` to ``tag2``.

        Raises:
            TagNotFoundError: if either tag is unknown or not reachable.
        """
        order = self.catalog.compare(tag1, tag2)
        if order == 0:
            return ComposedChangeSet(from_tag=tag1, to_tag=tag2)

        patches = select_patches(self.chain.walk(descending=order > 0), tag1, tag2)
        state = fold_changes(change for patch in patches for change in patch.changes)
        changes = tuple(sorted(state.values(), key=lambda c: (c.path, c.kind.value)))

        logger.debug(
            "Composed change set",
            extra={
                "from_tag": tag1,
                "to_tag": tag2,
                "patches": len(patches),
                "changes": len(changes),
            },
        )
        return ComposedChangeSet(from_tag=tag1, to_tag=tag2, changes=changes)

    def compose_all(
        self, pairs: Iterable[TagPair], workers: int = 4
    ) -> Tuple[Dict[TagPair, ComposedChangeSet], Dict[TagPair, TagDiffError]]:
        """Compose many pairs concurrently.

        Returns the successful change sets and, separately, the error of each
        pair that failed; one failed pair does not affect the others.
        """
        results: Dict[TagPair, ComposedChangeSet] = {}
        failures: Dict[TagPair, TagDiffError] = {}

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(self.compose, *pair): pair for pair in pairs}
            for future in as_completed(futures):
                pair = futures[future]
                try:
                    results[pair] = future.result()
                except TagDiffError as exc:
                    logger.error(
                        "Failed to compose tag pair",
                        extra={"from_tag": pair[0], "to_tag": pair[1], "code": exc.code},
                    )
                    failures[pair] = exc

        return results, failures
