"""Main CLI entry point for tagdiff."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import SiteConfig
from .context import build_context
from .errors import TagDiffError
from .generator import SiteGenerator
from .logging_utils import configure_logging
from .serialize import DeterministicSerializer
from .settings import get_default_settings
from .vcs import GitRepository


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    defaults = get_default_settings()
    parser = argparse.ArgumentParser(
        prog="tagdiff",
        description="Render a static site comparing every pair of tags of a git repository",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tagdiff --repo https://github.com/ilyabirman/Aegea-Comparisons
  tagdiff --repo /path/to/repo --output site --workers 8
  tagdiff --repo /path/to/repo --templates ./templates --static ./static \\
          --strict-versions --json run.json
        """,
    )

    parser.add_argument(
        "--repo",
        default=defaults["repo_url"],
        help="Repository URL or local path (default: $REPO_URL or %(default)s)",
    )
    parser.add_argument(
        "--output",
        default=defaults["output_dir"],
        help="Output directory (default: %(default)s)",
    )
    parser.add_argument(
        "--templates",
        default=defaults["templates_dir"],
        help="Directory with templates (default: $TEMPLATES_DIR or packaged templates)",
    )
    parser.add_argument(
        "--static",
        default=defaults["static_dir"],
        help="Directory with static files (default: $STATIC_DIR or packaged files)",
    )
    parser.add_argument(
        "--no-content",
        action="store_true",
        help="Do not write file contents for every tag",
    )
    parser.add_argument(
        "--diff-base-url",
        default="",
        help="Base URL of the pair pages used by the index page",
    )
    parser.add_argument(
        "--content-base-url",
        default="",
        help="Base URL of the file contents used by the diff viewer",
    )
    parser.add_argument(
        "--strict-versions",
        action="store_true",
        default=defaults["strict_versions"],
        help="Fail on tags without a '-v<number>' suffix instead of ordering them first",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=4,
        help="Number of threads composing tag pairs (default: 4)",
    )
    parser.add_argument(
        "--find-renames",
        type=int,
        default=50,
        help="Rename detection threshold percentage (default: 50)",
    )
    parser.add_argument(
        "--json",
        help="Write the result envelope to a file instead of stdout",
    )
    parser.add_argument(
        "--keep-workdir",
        action="store_true",
        help="Keep temporary clone directory for debugging",
    )
    parser.add_argument(
        "--keep-on-error",
        action="store_true",
        help="Keep clone directory on error for debugging",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: $LOG_LEVEL or INFO)",
    )

    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Validate command line arguments."""
    if not args.repo or not args.repo.strip():
        raise ValueError("--repo cannot be empty")
    if args.workers <= 0:
        raise ValueError("--workers must be positive")
    if not (0 <= args.find_renames <= 100):
        raise ValueError("--find-renames must be between 0 and 100")
    for option, value in (("--templates", args.templates), ("--static", args.static)):
        if value and not Path(value).is_dir():
            raise ValueError(f"{option} must be an existing directory")


def create_config(args: argparse.Namespace) -> SiteConfig:
    """Create configuration from command line arguments."""
    return SiteConfig(
        repo_url=args.repo,
        output_dir=args.output,
        templates_dir=args.templates,
        static_dir=args.static,
        copy_files=not args.no_content,
        diff_base_url=args.diff_base_url,
        content_base_url=args.content_base_url,
        strict_versions=args.strict_versions,
        workers=args.workers,
        find_renames_threshold=args.find_renames,
        keep_workdir=args.keep_workdir,
        keep_on_error=args.keep_on_error,
    )


def generate_site(config: SiteConfig) -> dict:
    """Clone the repository, build the context and write the site."""
    with GitRepository(config) as repo:
        repo.clone_and_setup()
        git_version = repo.validate_git_version()

        context = build_context(config, repo)
        generator = SiteGenerator(context)
        return generator.run(git_version=git_version)


def output_result(result: dict, output_path: Optional[str]) -> None:
    """Output result to stdout or file."""
    serializer = DeterministicSerializer(SiteConfig())
    json_str = serializer.to_json_string(result)

    if output_path:
        Path(output_path).write_text(json_str, encoding="utf-8")
    else:
        print(json_str)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    serializer = DeterministicSerializer(SiteConfig())

    try:
        validate_args(args)
        config = create_config(args)
        manifest = generate_site(config)
        output_result(serializer.create_success_envelope(manifest), args.json)
        return 0

    except TagDiffError as e:
        output_result(
            serializer.create_error_envelope(e.code, e.message, e.details), args.json
        )
        return 1

    except ValueError as e:
        output_result(serializer.create_error_envelope("INVALID_ARGUMENT", str(e)), args.json)
        return 1

    except Exception as e:
        output_result(
            serializer.create_error_envelope(
                "INTERNAL_ERROR",
                f"Internal error: {str(e)}",
                {"type": type(e).__name__},
            ),
            args.json,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
