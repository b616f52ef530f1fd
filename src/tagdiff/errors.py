"""Error definitions and handling for tagdiff."""

from typing import Any, Dict, List, Optional


class TagDiffError(Exception):
    """Base exception for tagdiff errors."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize error with code, message, and optional details."""
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        result = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class FormatError(TagDiffError):
    """Tag name does not carry a usable version ordinal."""

    def __init__(self, tag_name: str, reason: str):
        super().__init__(
            code="TAG_FORMAT_INVALID",
            message=f"Tag {tag_name!r} has unexpected format: {reason}",
            details={"tag": tag_name, "reason": reason},
        )


class EmptyCatalogError(TagDiffError):
    """Repository has no tags to compare."""

    def __init__(self, repo_url: str = ""):
        super().__init__(
            code="EMPTY_CATALOG",
            message="No tags found in repository",
            details={"repo_url": repo_url} if repo_url else None,
        )


class CommitResolutionError(TagDiffError):
    """A tag reference could not be resolved to a commit."""

    def __init__(self, tag_ref: str, reason: str):
        super().__init__(
            code="COMMIT_RESOLUTION_FAILED",
            message=f"Could not resolve {tag_ref!r} to a commit: {reason}",
            details={"tag_ref": tag_ref, "reason": reason},
        )


class TagNotFoundError(TagDiffError):
    """A requested tag is not part of the catalog or chain."""

    def __init__(self, missing_tags: List[str]):
        super().__init__(
            code="TAG_NOT_FOUND",
            message=f"Tags not found: {', '.join(missing_tags)}",
            details={"missing_tags": missing_tags},
        )


class DiffProviderError(TagDiffError):
    """The git object provider failed to diff two commits."""

    def __init__(self, commit_a: str, commit_b: str, reason: str):
        super().__init__(
            code="DIFF_PROVIDER_FAILED",
            message=f"Failed to diff {commit_a} and {commit_b}: {reason}",
            details={"commit_a": commit_a, "commit_b": commit_b, "reason": reason},
        )


class NotFoundError(TagDiffError):
    """File does not exist at the given commit."""

    def __init__(self, commit_id: str, path: str):
        super().__init__(
            code="FILE_NOT_FOUND",
            message=f"File {path} not found at {commit_id}",
            details={"commit_id": commit_id, "path": path},
        )


class PairCompositionError(TagDiffError):
    """One or more tag pairs could not be composed."""

    def __init__(self, failures: Dict[str, str]):
        super().__init__(
            code="PAIR_COMPOSITION_FAILED",
            message=f"{len(failures)} tag pairs failed to compose",
            details={"failures": failures},
        )


class GitVersionUnsupportedError(TagDiffError):
    """Git version is not supported."""

    def __init__(self, detected_version: str, required_version: str = "2.30"):
        super().__init__(
            code="GIT_VERSION_UNSUPPORTED",
            message=f"Git version {detected_version} is not supported. "
            f"Minimum required: {required_version}",
            details={
                "detected_version": detected_version,
                "required_version": required_version,
            },
        )


class CloneFailedError(TagDiffError):
    """Repository clone operation failed."""

    def __init__(self, repo_url: str, reason: str):
        super().__init__(
            code="CLONE_FAILED",
            message=f"Failed to clone repository: {reason}",
            details={"repo_url": repo_url, "reason": reason},
        )


class NetworkTimeoutError(TagDiffError):
    """Network operation timed out."""

    def __init__(self, operation: str, timeout_seconds: int):
        super().__init__(
            code="NETWORK_TIMEOUT",
            message=f"Network timeout during {operation} after {timeout_seconds}s",
            details={"operation": operation, "timeout_seconds": timeout_seconds},
        )
