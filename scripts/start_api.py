#!/usr/bin/env python3
"""Run the tagdiff server under uvicorn against one repository."""

import argparse
import os

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Serve tag comparisons for a repository")
    parser.add_argument("--repo", help="repository URL or local path (default: $REPO_URL)")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="restart on source changes")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug", "trace"],
    )
    args = parser.parse_args()

    # read by the app when it builds its context; reload workers inherit it
    if args.repo:
        os.environ["REPO_URL"] = args.repo

    # one process: the clone is held in memory by the app
    uvicorn.run(
        "tagdiff.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
