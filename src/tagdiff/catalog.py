"""Tag catalog: every repository tag, totally ordered by ordinal."""

import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .errors import CommitResolutionError, EmptyCatalogError, FormatError, TagNotFoundError
from .versions import Tag

logger = logging.getLogger(__name__)

TAG_REF_PREFIX = "refs/tags/"

TagRef = Union[str, Tuple[str, Optional[str]]]


def short_tag_name(ref_name: str) -> str:
    """Strip the ``refs/tags/`` prefix from a full reference name."""
    if ref_name.startswith(TAG_REF_PREFIX):
        return ref_name[len(TAG_REF_PREFIX):]
    return ref_name


class TagCatalog:
    """Immutable, ordinal-sorted view over the repository tags."""

    def __init__(self, tags: Iterable[Tag]):
        """Initialize from already-built tags."""
        self.ascending: Tuple[Tag, ...] = tuple(sorted(tags, key=_sort_key))
        self.descending: Tuple[Tag, ...] = tuple(reversed(self.ascending))
        self._by_name: Dict[str, Tag] = {tag.name: tag for tag in self.ascending}
        self._index: Dict[str, int] = {
            tag.name: position for position, tag in enumerate(self.ascending)
        }

    @classmethod
    def build(
        cls,
        tag_refs: Iterable[TagRef],
        resolve_commit: Optional[Callable[[str], str]] = None,
        strict: bool = False,
        repo_url: str = "",
    ) -> "TagCatalog":
        """Build the catalog from ``(name, commit_id)`` pairs or bare names.

        Bare names (or pairs without a commit) are resolved through
        ``resolve_commit``.

        Raises:
            EmptyCatalogError: if no tags were given.
            CommitResolutionError: if a tag cannot be resolved.
            FormatError: on duplicate names or ordinals, and on malformed
                names when ``strict`` is set.
        """
        tags = []
        seen = set()
        for ref in tag_refs:
            if isinstance(ref, str):
                name, commit_id = ref, None
            else:
                name, commit_id = ref
            name = short_tag_name(name)

            if name in seen:
                raise FormatError(name, "duplicate tag name")
            seen.add(name)

            if not commit_id:
                if resolve_commit is None:
                    raise CommitResolutionError(name, "no commit resolver available")
                commit_id = resolve_commit(name)

            tags.append(Tag.from_ref(name, commit_id, strict=strict))

        if not tags:
            raise EmptyCatalogError(repo_url)

        _check_unique_ordinals(tags)

        catalog = cls(tags)
        logger.info(
            "Tag catalog built",
            extra={
                "tags": len(catalog),
                "oldest": catalog.ascending[0].name,
                "newest": catalog.descending[0].name,
            },
        )
        return catalog

    def __len__(self) -> int:
        return len(self.ascending)

    def __iter__(self) -> Iterator[Tag]:
        return iter(self.descending)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Tag:
        """Return the tag with the given name."""
        try:
            return self._by_name[name]
        except KeyError:
            raise TagNotFoundError([name]) from None

    def index_of(self, name: str) -> int:
        """Position of the tag in ascending order."""
        if name not in self._index:
            raise TagNotFoundError([name])
        return self._index[name]

    def compare(self, first: str, second: str) -> int:
        """Return -1, 0 or 1 as ``first`` is older, equal or newer than ``second``."""
        missing = [name for name in (first, second) if name not in self._index]
        if missing:
            raise TagNotFoundError(sorted(set(missing)))
        delta = self._index[first] - self._index[second]
        return (delta > 0) - (delta < 0)


def _sort_key(tag: Tag) -> Tuple[int, str]:
    return (tag.ordinal, tag.name)


def _check_unique_ordinals(tags: Iterable[Tag]) -> None:
    """Reject duplicate ordinals; only demoted tags may tie, ordered by name."""
    groups: Dict[int, List[Tag]] = defaultdict(list)
    for tag in tags:
        groups[tag.ordinal].append(tag)
    for ordinal, group in groups.items():
        if len(group) < 2:
            continue
        parsed = [tag for tag in group if not tag.demoted]
        if parsed:
            raise FormatError(parsed[0].name, f"ordinal {ordinal} is used by more than one tag")
        logger.warning(
            "Several tags share ordinal 0, ordering them by name",
            extra={"tags": sorted(tag.name for tag in group)},
        )
