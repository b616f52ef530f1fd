"""Version control system operations for tagdiff."""

import logging
import re
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Set, Tuple, runtime_checkable
from urllib.parse import quote, urlsplit, urlunsplit

from .config import SiteConfig
from .errors import (
    CloneFailedError,
    CommitResolutionError,
    DiffProviderError,
    GitVersionUnsupportedError,
    NetworkTimeoutError,
    NotFoundError,
)
from .settings import get_git_credentials

logger = logging.getLogger(__name__)

MIN_GIT_VERSION = "2.30"
_MIN_GIT_VERSION_TUPLE = (2, 30)
_GIT_VERSION_PATTERN = re.compile(r"git version (\d+\.\d+(?:\.\d+)?)")


@dataclass(frozen=True)
class RawFilePatch:
    """One file's entry in the diff between two commits."""

    old_path: Optional[str]
    new_path: Optional[str]
    is_binary: bool = False
    has_content_change: bool = True


@runtime_checkable
class GitObjectProvider(Protocol):
    """Read access to the commits, trees and blobs of a repository."""

    def list_tag_refs(self) -> List[Tuple[str, str]]:
        """All tags as ``(name, commit_id)`` pairs."""
        ...

    def resolve_commit(self, tag_ref: str) -> str:
        """Commit id a tag (or any revision) points to."""
        ...

    def diff_commits(self, commit_a: str, commit_b: str) -> List[RawFilePatch]:
        """File-level patches turning ``commit_a`` into ``commit_b``."""
        ...

    def file_content(self, commit_id: str, path: str) -> bytes:
        """Content of ``path`` at ``commit_id``."""
        ...

    def list_files(self, commit_id: str) -> List[str]:
        """Paths of every file in the commit's tree."""
        ...


class GitRepository:
    """Git repository operations backed by a bare clone in a temporary directory."""

    def __init__(self, config: SiteConfig):
        """Initialize with configuration."""
        self.config = config
        self.workdir: Optional[Path] = None
        self._git_version: Optional[str] = None

    def __enter__(self) -> "GitRepository":
        """Context manager entry."""
        self.workdir = Path(tempfile.mkdtemp(prefix="tagdiff_"))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit with cleanup."""
        if self.workdir and self.workdir.exists():
            if not self.config.keep_workdir and not (
                exc_type and self.config.keep_on_error
            ):
                shutil.rmtree(self.workdir, ignore_errors=True)
            else:
                logger.info("Keeping work directory", extra={"workdir": str(self.workdir)})

    def _run_git(
        self,
        args: List[str],
        timeout: int = 300,
        check: bool = True,
        text: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run git command with proper environment and error handling."""
        # Enforce deterministic git behavior across platforms
        cmd = [
            "git",
            "-c",
            "core.autocrlf=false",
            "-c",
            "color.ui=false",
            "-c",
            "core.quotepath=false",
        ] + args
        try:
            return subprocess.run(
                cmd,
                cwd=self.workdir,
                env=self.config.git_env,
                timeout=timeout,
                check=check,
                capture_output=True,
                text=text,
            )
        except subprocess.TimeoutExpired as e:
            raise NetworkTimeoutError(f"git {args[0]}", timeout) from e

    def validate_git_version(self) -> str:
        """Validate Git version meets minimum requirements."""
        if self._git_version:
            return self._git_version

        version_str = installed_git_version()
        if version_str is None:
            raise GitVersionUnsupportedError("unavailable", MIN_GIT_VERSION)

        major, minor = (int(x) for x in version_str.split(".")[:2])
        if (major, minor) < _MIN_GIT_VERSION_TUPLE:
            raise GitVersionUnsupportedError(version_str, MIN_GIT_VERSION)

        self._git_version = version_str
        return version_str

    def clone_and_setup(self) -> None:
        """Clone the repository (bare, all tags) into the work directory."""
        if not self.workdir:
            raise RuntimeError("Workdir not initialized")

        self.validate_git_version()

        logger.info("Cloning repository", extra={"repo": self.config.repo_url})
        clone_args = [
            "clone",
            "--bare",
            "--quiet",
            _authenticated_url(self.config.repo_url),
            ".",  # clone into the already-created empty workdir
        ]
        try:
            self._run_git(clone_args)
        except subprocess.CalledProcessError as e:
            raise CloneFailedError(self.config.repo_url, (e.stderr or str(e)).strip()) from e
        except OSError as e:
            raise CloneFailedError(self.config.repo_url, str(e)) from e

    def list_tag_refs(self) -> List[Tuple[str, str]]:
        """Return every tag with the commit it points to (annotated tags peeled)."""
        result = self._run_git(
            [
                "for-each-ref",
                "--format=%(refname:strip=2)%09%(objectname)%09%(*objectname)",
                "refs/tags",
            ]
        )
        refs = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            name, object_id, peeled_id = (line.split("\t") + ["", ""])[:3]
            refs.append((name, peeled_id or object_id))

        logger.info("Listed tags", extra={"tags": len(refs)})
        return refs

    def resolve_commit(self, tag_ref: str) -> str:
        """Resolve a tag or revision to a full commit id."""
        try:
            result = self._run_git(["rev-parse", "--verify", "--quiet", f"{tag_ref}^{{commit}}"])
        except subprocess.CalledProcessError as e:
            raise CommitResolutionError(tag_ref, (e.stderr or "unknown revision").strip()) from e
        return result.stdout.strip()

    def diff_commits(self, commit_a: str, commit_b: str) -> List[RawFilePatch]:
        """Return the file patches between two commits with rename detection."""
        renames = f"--find-renames={self.config.find_renames_threshold}%"
        try:
            raw = self._run_git(
                ["diff", "--raw", "-z", "--no-abbrev", renames, commit_a, commit_b]
            )
            numstat = self._run_git(
                ["diff", "--numstat", "-z", renames, commit_a, commit_b]
            )
        except subprocess.CalledProcessError as e:
            raise DiffProviderError(commit_a, commit_b, (e.stderr or str(e)).strip()) from e

        binary_paths = _parse_numstat_binaries(numstat.stdout)
        patches = _parse_raw_diff(raw.stdout, binary_paths)
        logger.debug(
            "Diffed commits",
            extra={"commit_a": commit_a, "commit_b": commit_b, "patches": len(patches)},
        )
        return patches

    def file_content(self, commit_id: str, path: str) -> bytes:
        """Return the bytes of ``path`` at ``commit_id``."""
        try:
            result = self._run_git(["cat-file", "blob", f"{commit_id}:{path}"], text=False)
        except subprocess.CalledProcessError as e:
            raise NotFoundError(commit_id, path) from e
        return result.stdout

    def list_files(self, commit_id: str) -> List[str]:
        """Return the paths of all blobs in the commit's tree, sorted."""
        try:
            result = self._run_git(["ls-tree", "-r", "-z", commit_id])
        except subprocess.CalledProcessError as e:
            raise CommitResolutionError(commit_id, (e.stderr or str(e)).strip()) from e

        files = []
        for entry in result.stdout.split("\0"):
            if not entry:
                continue
            # "<mode> <type> <object>\t<path>"
            meta, _, path = entry.partition("\t")
            parts = meta.split()
            if len(parts) >= 2 and parts[1] == "blob":
                files.append(path)
        return sorted(files)


def installed_git_version(timeout: int = 10) -> Optional[str]:
    """Version of the ``git`` executable on PATH, or None when unusable."""
    try:
        result = subprocess.run(
            ["git", "--version"],
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
        )
    except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired) as exc:
        logger.debug("git --version check failed", exc_info=exc)
        return None

    # "git version 2.34.1", possibly with a vendor suffix
    match = _GIT_VERSION_PATTERN.search(result.stdout)
    return match.group(1) if match else None


def _authenticated_url(repo_url: str) -> str:
    """Inject configured credentials into https URLs."""
    username, token = get_git_credentials()
    if not (username and token) or not repo_url.startswith("https://"):
        return repo_url

    parts = urlsplit(repo_url)
    if "@" in parts.netloc:
        return repo_url
    netloc = f"{quote(username, safe='')}:{quote(token, safe='')}@{parts.netloc}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def _parse_numstat_binaries(output: str) -> Set[str]:
    """Collect paths git reports as binary (``-\\t-``) in ``--numstat -z`` output."""
    binary: Set[str] = set()
    tokens = output.split("\0")
    i = 0
    while i < len(tokens):
        record = tokens[i]
        if not record:
            i += 1
            continue
        added, deleted, path = (record.split("\t", 2) + ["", ""])[:3]
        if path:
            i += 1
        else:
            # rename: "<added>\t<deleted>\t\0<old>\0<new>\0"
            path = tokens[i + 2] if i + 2 < len(tokens) else ""
            i += 3
        if added == "-" and deleted == "-" and path:
            binary.add(path)
    return binary


def _parse_raw_diff(output: str, binary_paths: Set[str]) -> List[RawFilePatch]:
    """Parse ``git diff --raw -z --no-abbrev`` output."""
    patches = []
    tokens = output.split("\0")
    i = 0
    while i < len(tokens):
        header = tokens[i]
        if not header.startswith(":"):
            i += 1
            continue

        # ":<mode_a> <mode_b> <sha_a> <sha_b> <status>"
        fields = header[1:].split()
        if len(fields) < 5:
            i += 1
            continue
        sha_a, sha_b, status = fields[2], fields[3], fields[4]
        letter = status[0]

        if letter in "RC":
            old_path, new_path = tokens[i + 1], tokens[i + 2]
            i += 3
        else:
            old_path = new_path = tokens[i + 1]
            i += 2

        if letter == "A" or letter == "C":
            old_path = None
        elif letter == "D":
            new_path = None

        effective = new_path or old_path
        patches.append(
            RawFilePatch(
                old_path=old_path,
                new_path=new_path,
                is_binary=effective in binary_paths,
                has_content_change=sha_a != sha_b,
            )
        )

    patches.sort(key=lambda p: (p.new_path or p.old_path or "", p.old_path or ""))
    return patches
