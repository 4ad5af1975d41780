"""Command-line argument parsing for the PR review lead time report."""

from __future__ import annotations

import argparse
import os
from typing import Optional, Sequence


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for lead time reporting.

    Every repository setting falls back to its environment variable so the
    tool can be driven entirely from a ``.env`` file.

    Returns:
        Parsed CLI arguments containing owner, repository name, date range,
        API base URL and verbosity.
    """
    parser = argparse.ArgumentParser(
        prog="gh-pr-review-lead-time",
        description=(
            "Report review lead times for merged, approved GitHub pull requests "
            "(time to first comment and time to approval)."
        ),
    )

    parser.add_argument(
        "--owner",
        default=os.getenv("OWNER"),
        help="GitHub repository owner (default: $OWNER).",
    )
    parser.add_argument(
        "--repo",
        default=os.getenv("REPO"),
        help="GitHub repository name (default: $REPO).",
    )
    parser.add_argument(
        "--range",
        dest="date_range",
        default=os.getenv("RANGE_OF_DATE"),
        help="Creation date range as YYYY-MM-DD..YYYY-MM-DD (default: $RANGE_OF_DATE).",
    )
    parser.add_argument(
        "--api-url",
        default=os.getenv("GITHUB_API_URL"),
        help="GitHub REST API base URL (default: $GITHUB_API_URL or https://api.github.com).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr.",
    )

    return parser.parse_args(argv)
