"""Tests for version ordinal parsing."""

import logging

import pytest

from tagdiff.errors import FormatError
from tagdiff.versions import Tag, ordinal_or_default, parse_ordinal


class TestParseOrdinal:
    """Test parse_ordinal."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("2.10-v3877", 3877),
            ("release-v12", 12),
            ("a-v1-v2", 2),
            ("v7", 7),
            ("x-v007", 7),
        ],
    )
    def test_valid_names(self, name, expected):
        assert parse_ordinal(name) == expected

    @pytest.mark.parametrize(
        "name",
        ["no-version-here", "release-v", "release-v1a", "1.0", "x-v１２", "version"],
    )
    def test_malformed_names(self, name):
        with pytest.raises(FormatError) as exc_info:
            parse_ordinal(name)

        assert exc_info.value.code == "TAG_FORMAT_INVALID"
        assert exc_info.value.details["tag"] == name

    def test_ordinal_or_default_demotes_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="tagdiff.versions"):
            assert ordinal_or_default("no-version-here") == 0

        assert "unexpected format" in caplog.text

    def test_ordinal_or_default_strict(self):
        with pytest.raises(FormatError):
            ordinal_or_default("no-version-here", strict=True)


class TestTag:
    """Test Tag model."""

    def test_from_ref_parses_once(self):
        tag = Tag.from_ref("2.10-v3877", "abc123")

        assert tag == Tag(name="2.10-v3877", commit_id="abc123", ordinal=3877)

    def test_from_ref_marks_demoted(self):
        assert Tag.from_ref("latest", "abc").demoted
        assert not Tag.from_ref("x-v0", "abc").demoted

    def test_immutable(self):
        tag = Tag.from_ref("x-v1", "abc")

        with pytest.raises(AttributeError):
            tag.ordinal = 2
