"""Adjacent diff chain: the file changes between consecutive tags."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import DiffProviderError, TagDiffError
from .versions import Tag
from .vcs import GitObjectProvider, RawFilePatch

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    """Classification of a file's change between two snapshots."""

    ADDED = "A"
    DELETED = "D"
    MODIFIED = "M"
    RENAMED = "R"


@dataclass(frozen=True)
class FileChange:
    """A single file-level change.

    ``path`` is the file's path in the later snapshot; for deletions it is the
    path that disappeared. ``old_path`` is only set for renames.
    """

    path: str
    kind: ChangeKind
    old_path: str = ""

    def __post_init__(self) -> None:
        """Validate the rename invariant."""
        if not self.path:
            raise ValueError("path cannot be empty")
        if self.kind is ChangeKind.RENAMED:
            if not self.old_path or self.old_path == self.path:
                raise ValueError("renamed file needs an old_path different from path")
        elif self.old_path:
            raise ValueError(f"old_path is only valid for renames, not {self.kind.name}")

    @classmethod
    def added(cls, path: str) -> "FileChange":
        return cls(path, ChangeKind.ADDED)

    @classmethod
    def deleted(cls, path: str) -> "FileChange":
        return cls(path, ChangeKind.DELETED)

    @classmethod
    def modified(cls, path: str) -> "FileChange":
        return cls(path, ChangeKind.MODIFIED)

    @classmethod
    def renamed(cls, old_path: str, path: str) -> "FileChange":
        return cls(path, ChangeKind.RENAMED, old_path)

    def inverted(self) -> "FileChange":
        """The same change seen from the later snapshot back to the earlier one."""
        if self.kind is ChangeKind.ADDED:
            return FileChange.deleted(self.path)
        if self.kind is ChangeKind.DELETED:
            return FileChange.added(self.path)
        if self.kind is ChangeKind.RENAMED:
            return FileChange.renamed(self.path, self.old_path)
        return self


@dataclass(frozen=True)
class AdjacentPatch:
    """The changes between two ordinally adjacent tags.

    The first patch of a chain has no ``from_tag`` and no changes.
    """

    from_tag: Optional[Tag]
    to_tag: Tag
    changes: Tuple[FileChange, ...] = ()

    def inverted(self) -> "AdjacentPatch":
        """The patch walked in the opposite direction."""
        if self.from_tag is None:
            raise ValueError("the leading patch of a chain cannot be inverted")
        return AdjacentPatch(
            from_tag=self.to_tag,
            to_tag=self.from_tag,
            changes=canonical_order(change.inverted() for change in self.changes),
        )


# Within one step a path vacated by a deletion or rename is freed before an
# addition may reuse it.
_KIND_ORDER = {
    ChangeKind.DELETED: 0,
    ChangeKind.RENAMED: 1,
    ChangeKind.MODIFIED: 2,
    ChangeKind.ADDED: 3,
}


def canonical_order(changes: Iterable[FileChange]) -> Tuple[FileChange, ...]:
    """Sort the changes of a single step deterministically."""
    return tuple(sorted(changes, key=lambda c: (_KIND_ORDER[c.kind], c.path, c.old_path)))


def normalize_patch(raw: RawFilePatch) -> Optional[FileChange]:
    """Turn a raw provider patch into a FileChange, or None when unchanged."""
    old_path = raw.old_path or ""
    new_path = raw.new_path or ""

    if not old_path and not new_path:
        logger.debug("Skipping raw patch without paths")
        return None
    if not old_path:
        return FileChange.added(new_path)
    if not new_path:
        return FileChange.deleted(old_path)
    if old_path != new_path:
        return FileChange.renamed(old_path, new_path)
    if raw.has_content_change:
        return FileChange.modified(new_path)

    logger.debug(
        "Skipping unchanged file",
        extra={"path": new_path, "binary": raw.is_binary},
    )
    return None


class PatchChain:
    """Ascending and descending sequences of adjacent patches."""

    def __init__(self, ascending: Sequence[AdjacentPatch]):
        """Initialize from the ascending patches; the descending view is derived."""
        self.ascending: Tuple[AdjacentPatch, ...] = tuple(ascending)
        self.descending: Tuple[AdjacentPatch, ...] = _derive_descending(self.ascending)

    @classmethod
    def build(cls, ascending_tags: Sequence[Tag], provider: GitObjectProvider) -> "PatchChain":
        """Diff each consecutive pair of tags once.

        Raises:
            DiffProviderError: if the provider cannot diff a pair.
        """
        if not ascending_tags:
            return cls(())

        patches: List[AdjacentPatch] = [AdjacentPatch(from_tag=None, to_tag=ascending_tags[0])]
        for previous, current in zip(ascending_tags, ascending_tags[1:]):
            logger.info(
                "Diffing adjacent tags",
                extra={"from_tag": previous.name, "to_tag": current.name},
            )
            raw_patches = _diff(provider, previous.commit_id, current.commit_id)
            changes = [change for change in map(normalize_patch, raw_patches) if change]
            patches.append(
                AdjacentPatch(
                    from_tag=previous,
                    to_tag=current,
                    changes=canonical_order(changes),
                )
            )
            logger.debug(
                "Adjacent patch built",
                extra={
                    "from_tag": previous.name,
                    "to_tag": current.name,
                    "changes": len(changes),
                },
            )

        return cls(patches)

    def __len__(self) -> int:
        return len(self.ascending)

    def walk(self, descending: bool = False) -> Tuple[AdjacentPatch, ...]:
        """Return the chain in the requested direction."""
        return self.descending if descending else self.ascending


def _diff(provider: GitObjectProvider, commit_a: str, commit_b: str) -> List[RawFilePatch]:
    try:
        return list(provider.diff_commits(commit_a, commit_b))
    except TagDiffError:
        raise
    except Exception as exc:
        raise DiffProviderError(commit_a, commit_b, str(exc)) from exc


def _derive_descending(ascending: Tuple[AdjacentPatch, ...]) -> Tuple[AdjacentPatch, ...]:
    if not ascending:
        return ()
    newest = ascending[-1].to_tag
    inverted = [patch.inverted() for patch in reversed(ascending[1:])]
    return (AdjacentPatch(from_tag=None, to_tag=newest), *inverted)
