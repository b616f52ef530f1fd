"""Tag model and version ordinal parsing."""

import logging
from dataclasses import dataclass
from typing import Tuple

from .errors import FormatError

logger = logging.getLogger(__name__)

ORDINAL_SEPARATOR = "-v"


@dataclass(frozen=True)
class Tag:
    """A named pointer to a snapshot, ordered by the ordinal in its name.

    ``demoted`` marks a malformed name that was given ordinal 0.
    """

    name: str
    commit_id: str
    ordinal: int
    demoted: bool = False

    @classmethod
    def from_ref(cls, name: str, commit_id: str, strict: bool = False) -> "Tag":
        """Create a tag, parsing its ordinal once."""
        ordinal, demoted = _parse_or_demote(name, strict)
        return cls(name=name, commit_id=commit_id, ordinal=ordinal, demoted=demoted)


def parse_ordinal(tag_name: str) -> int:
    """Extract the ordinal from a ``<label>-v<digits>`` tag name.

    Tags look like ``2.10-v3877``; the ordinal is ``3877``. The name is split
    on the last ``-v`` and everything after it must be ASCII digits. A name
    with an empty label (``v3877``) is accepted too.

    Raises:
        FormatError: if the separator is missing or the suffix is not a number.
    """
    _, separator, suffix = tag_name.rpartition(ORDINAL_SEPARATOR)
    if not separator and tag_name.startswith("v"):
        separator, suffix = "v", tag_name[1:]
    if not separator:
        raise FormatError(tag_name, f"missing {ORDINAL_SEPARATOR!r} separator")
    if not suffix or not (suffix.isascii() and suffix.isdigit()):
        raise FormatError(tag_name, f"{suffix!r} is not a version number")
    return int(suffix)


def ordinal_or_default(tag_name: str, strict: bool = False) -> int:
    """Parse the ordinal, demoting malformed names to 0 unless strict."""
    return _parse_or_demote(tag_name, strict)[0]


def _parse_or_demote(tag_name: str, strict: bool) -> Tuple[int, bool]:
    try:
        return parse_ordinal(tag_name), False
    except FormatError as exc:
        if strict:
            raise
        logger.warning(
            "Tag has unexpected format, using ordinal 0",
            extra={"tag": tag_name, "reason": exc.details.get("reason")},
        )
        return 0, True
