"""Configuration management for tagdiff."""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .settings import DEFAULT_REPO_URL


@dataclass(frozen=True)
class SiteConfig:
    """Configuration for a site generation run."""

    # Source repository
    repo_url: str = DEFAULT_REPO_URL

    # Output options
    output_dir: str = "output"
    templates_dir: Optional[str] = None
    static_dir: Optional[str] = None
    copy_files: bool = True
    diff_base_url: str = ""
    content_base_url: str = ""

    # Tag ordering
    strict_versions: bool = False

    # Pairwise composition
    workers: int = 4

    # Rename detection
    find_renames_threshold: int = 50  # percentage

    # Workspace options
    keep_workdir: bool = False
    keep_on_error: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.repo_url or not self.repo_url.strip():
            raise ValueError("repo_url cannot be empty")
        if not self.output_dir:
            raise ValueError("output_dir cannot be empty")
        if self.workers <= 0:
            raise ValueError("workers must be positive")
        if not (0 <= self.find_renames_threshold <= 100):
            raise ValueError("find_renames_threshold must be between 0 and 100")

    @property
    def git_env(self) -> Dict[str, str]:
        """Get Git environment variables for deterministic output."""
        env = os.environ.copy()

        # Use platform-appropriate null device
        null_device = "NUL" if os.name == "nt" else "/dev/null"

        env.update(
            {
                "LC_ALL": "C",
                "GIT_CONFIG_GLOBAL": null_device,
                "GIT_CONFIG_SYSTEM": null_device,
                "GIT_TERMINAL_PROMPT": "0",
                "GIT_ASKPASS": "echo",
                "SSH_ASKPASS": "echo",
                "GCM_INTERACTIVE": "never",
            }
        )
        return env

    def to_provenance_dict(self) -> Dict[str, Any]:
        """Convert config to provenance dictionary for output."""
        return {
            "repo_url": self.repo_url,
            "strict_versions": self.strict_versions,
            "copy_files": self.copy_files,
            "rename_detection": {
                "enabled": True,
                "threshold_pct": self.find_renames_threshold,
            },
            "env_locks": {
                "LC_ALL": "C",
                "color": "off",
                "core.autocrlf": "false",
            },
        }
