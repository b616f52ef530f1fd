"""Pytest configuration and fixtures for tagdiff tests."""

import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, Generator, List, Mapping, Tuple

import pytest

from tagdiff.config import SiteConfig
from tagdiff.context import GenerationContext, build_context
from tagdiff.errors import CommitResolutionError, DiffProviderError, NotFoundError
from tagdiff.vcs import RawFilePatch

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not found")


class FakeGitProvider:
    """In-memory git object provider built from one file snapshot per tag.

    A file deleted and another added with identical content in the same step
    is reported as a rename.
    """

    def __init__(self, snapshots: Mapping[str, Mapping[str, str]]):
        self.snapshots = {name: dict(files) for name, files in snapshots.items()}
        self.commits = {self.commit_for(name): name for name in self.snapshots}
        self.diff_calls: List[Tuple[str, str]] = []

    @staticmethod
    def commit_for(tag_name: str) -> str:
        return f"commit-{tag_name}"

    def _tree(self, commit_id: str) -> Dict[str, str]:
        return self.snapshots[self.commits[commit_id]]

    def list_tag_refs(self) -> List[Tuple[str, str]]:
        return [(name, self.commit_for(name)) for name in self.snapshots]

    def resolve_commit(self, tag_ref: str) -> str:
        if tag_ref not in self.snapshots:
            raise CommitResolutionError(tag_ref, "unknown revision")
        return self.commit_for(tag_ref)

    def diff_commits(self, commit_a: str, commit_b: str) -> List[RawFilePatch]:
        self.diff_calls.append((commit_a, commit_b))
        try:
            old, new = self._tree(commit_a), self._tree(commit_b)
        except KeyError as exc:
            raise DiffProviderError(commit_a, commit_b, f"unknown commit {exc}") from exc

        deleted = sorted(set(old) - set(new))
        added = sorted(set(new) - set(old))
        patches = []
        for path in list(deleted):
            match = next((candidate for candidate in added if new[candidate] == old[path]), None)
            if match is not None:
                patches.append(RawFilePatch(path, match, has_content_change=False))
                added.remove(match)
                deleted.remove(path)

        patches.extend(RawFilePatch(path, None) for path in deleted)
        patches.extend(RawFilePatch(None, path) for path in added)
        patches.extend(
            RawFilePatch(path, path, has_content_change=old[path] != new[path])
            for path in sorted(set(old) & set(new))
        )
        return patches

    def file_content(self, commit_id: str, path: str) -> bytes:
        try:
            return self._tree(commit_id)[path].encode("utf-8")
        except KeyError:
            raise NotFoundError(commit_id, path) from None

    def list_files(self, commit_id: str) -> List[str]:
        return sorted(self._tree(commit_id))


# The concrete three-tag scenario: a.txt added, then modified next to a new b.txt.
SIMPLE_HISTORY = {
    "v1": {},
    "v2": {"a.txt": "1"},
    "v3": {"a.txt": "2", "b.txt": "b"},
}

# old.txt -> new.txt -> newer.txt, tmp.txt born in v2 and gone by v4.
RICH_HISTORY = {
    "app-v1": {"README": "r1", "old.txt": "o", "keep.txt": "k"},
    "app-v2": {"README": "r2", "new.txt": "o", "keep.txt": "k", "tmp.txt": "t"},
    "app-v3": {"README": "r2", "newer.txt": "o", "keep.txt": "k2", "tmp.txt": "t2"},
    "app-v4": {"README": "r2", "newer.txt": "o", "keep.txt": "k2"},
    "app-v5": {"README": "r3", "newer.txt": "o2", "keep.txt": "k2", "extra.txt": "e"},
}


EDGE_HISTORIES = {
    # x removed, then re-created with new content
    "delete_readd": {
        "p-v1": {"x": "1", "y": "y"},
        "p-v2": {"y": "y"},
        "p-v3": {"x": "2", "y": "y2"},
    },
    # a moves to b, then a new file takes the old path
    "rename_reuse": {
        "p-v1": {"a": "A"},
        "p-v2": {"b": "A"},
        "p-v3": {"a": "new", "b": "A"},
    },
    # a deleted, then b moves onto the freed path
    "rename_onto_deleted": {
        "p-v1": {"a": "A", "b": "B"},
        "p-v2": {"b": "B"},
        "p-v3": {"a": "B"},
    },
    # a moves away and back
    "rename_back": {
        "p-v1": {"a": "A", "k": "1"},
        "p-v2": {"b": "A", "k": "2"},
        "p-v3": {"a": "A", "k": "2"},
    },
    # two files swap contents through renames over several steps
    "shuffle": {
        "p-v1": {"a": "A", "b": "B"},
        "p-v2": {"c": "A", "b": "B"},
        "p-v3": {"c": "A", "a": "B"},
        "p-v4": {"b": "A", "a": "B", "d": "D"},
        "p-v5": {"b": "A", "d": "D2"},
    },
    "rich": RICH_HISTORY,
}


def make_context(
    snapshots: Mapping[str, Mapping[str, str]], **config_overrides
) -> GenerationContext:
    """Build a generation context over an in-memory provider."""
    config = SiteConfig(repo_url="fake://repo", **config_overrides)
    return build_context(config, FakeGitProvider(snapshots))


@pytest.fixture
def simple_context() -> GenerationContext:
    return make_context(SIMPLE_HISTORY)


@pytest.fixture
def rich_context() -> GenerationContext:
    return make_context(RICH_HISTORY)


@pytest.fixture(params=sorted(EDGE_HISTORIES))
def edge_context(request) -> GenerationContext:
    """Context over each history that moves, removes and reuses paths."""
    return make_context(EDGE_HISTORIES[request.param])


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp(prefix="tagdiff_test_"))
    try:
        yield temp_path
    finally:
        if temp_path.exists():
            shutil.rmtree(temp_path, ignore_errors=True)


class GitRepoHelper:
    """Helper class for git repository operations in tests."""

    def __init__(self, repo_path: Path):
        self.repo_path = repo_path
        self.env = os.environ.copy()
        self.env.update({
            "GIT_AUTHOR_NAME": "Test User",
            "GIT_AUTHOR_EMAIL": "test@example.com",
            "GIT_COMMITTER_NAME": "Test User",
            "GIT_COMMITTER_EMAIL": "test@example.com",
        })

    def run_git(self, args: list[str]) -> subprocess.CompletedProcess:
        """Run git command in the repository."""
        return subprocess.run(
            ["git"] + args,
            cwd=self.repo_path,
            env=self.env,
            check=True,
            capture_output=True,
            text=True,
        )

    def create_file(self, path: str, content: str) -> None:
        """Create a file with content."""
        file_path = self.repo_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)

    def delete_file(self, path: str) -> None:
        """Delete a file."""
        self.run_git(["rm", "-q", path])

    def rename_file(self, old_path: str, new_path: str) -> None:
        """Rename a tracked file."""
        (self.repo_path / new_path).parent.mkdir(parents=True, exist_ok=True)
        self.run_git(["mv", old_path, new_path])

    def create_binary_file(self, path: str) -> None:
        """Create a binary file (PNG header)."""
        file_path = self.repo_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01")

    def add_and_commit(self, message: str) -> str:
        """Stage everything and commit, return commit SHA."""
        self.run_git(["add", "-A"])
        self.run_git(["commit", "-q", "-m", message])
        return self.run_git(["rev-parse", "HEAD"]).stdout.strip()

    def tag(self, name: str, annotated: bool = False) -> None:
        """Tag HEAD."""
        if annotated:
            self.run_git(["tag", "-a", name, "-m", f"Release {name}"])
        else:
            self.run_git(["tag", name])


@pytest.fixture
def git_repo(temp_dir: Path) -> Path:
    """Create an empty temporary git repository."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()
    helper = GitRepoHelper(repo_path)
    helper.run_git(["init", "-q"])
    helper.run_git(["config", "user.name", "Test User"])
    helper.run_git(["config", "user.email", "test@example.com"])
    return repo_path


@pytest.fixture
def git_helper(git_repo: Path) -> GitRepoHelper:
    """Create a git repository helper."""
    return GitRepoHelper(git_repo)


@pytest.fixture
def tagged_repo(git_helper: GitRepoHelper) -> GitRepoHelper:
    """Repository with three tags.

    1.0-v1: README.md, docs/guide.md
    1.1-v2: guide renamed to docs/manual.md, notes.txt added, logo.png added
    1.2-v3: README.md modified, notes.txt deleted (annotated tag)
    """
    git_helper.create_file("README.md", "# Project\n")
    git_helper.create_file("docs/guide.md", "Guide line one\nGuide line two\nGuide line three\n")
    git_helper.add_and_commit("Initial commit")
    git_helper.tag("1.0-v1")

    git_helper.rename_file("docs/guide.md", "docs/manual.md")
    git_helper.create_file("notes.txt", "temporary notes\n")
    git_helper.create_binary_file("logo.png")
    git_helper.add_and_commit("Rename guide, add notes and logo")
    git_helper.tag("1.1-v2")

    git_helper.create_file("README.md", "# Project\n\nNow with more words.\n")
    git_helper.delete_file("notes.txt")
    git_helper.add_and_commit("Update readme, drop notes")
    git_helper.tag("1.2-v3", annotated=True)

    return git_helper
