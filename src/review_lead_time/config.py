"""Configuration parsing and validation for the PR review lead time report."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from .errors import AuthenticationError, ConfigurationError

DEFAULT_API_URL = "https://api.github.com"
DATE_RANGE_DELIMITER = ".."
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "PERSONAL_ACCESS_TOKEN")


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the fetcher and enricher."""

    owner: str
    repo: str
    date_range: str
    token: str
    api_url: str = DEFAULT_API_URL
    timeout_seconds: int = 30
    release_title_prefix: str = "release"
    excluded_label: str = "案件"


def parse_date_range(date_range: str) -> Tuple[date, date]:
    """Split a ``YYYY-MM-DD..YYYY-MM-DD`` range into its two dates.

    Raises:
        ConfigurationError: If the delimiter is missing, either side is not an
            ISO date, or the start falls after the end.
    """
    start_text, delimiter, end_text = date_range.partition(DATE_RANGE_DELIMITER)
    if not delimiter:
        raise ConfigurationError(
            f"Invalid date range '{date_range}': expected 'YYYY-MM-DD{DATE_RANGE_DELIMITER}YYYY-MM-DD'."
        )

    try:
        start = date.fromisoformat(start_text.strip())
        end = date.fromisoformat(end_text.strip())
    except ValueError as exc:
        raise ConfigurationError(f"Invalid date range '{date_range}': {exc}") from exc

    if start > end:
        raise ConfigurationError(
            f"Invalid date range '{date_range}': start date is after end date."
        )

    return start, end


def _read_token() -> str:
    for name in TOKEN_ENV_VARS:
        token = os.getenv(name, "").strip()
        if token:
            return token
    return ""


def load_config(
    owner: Optional[str],
    repo: Optional[str],
    date_range: Optional[str],
    api_url: Optional[str] = None,
) -> Config:
    """Build and validate application configuration.

    Args:
        owner: GitHub user or organization owning the repository.
        repo: GitHub repository name.
        date_range: Creation date range applied to the search query.
        api_url: Optional GitHub REST API base URL.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If the repository or date range is missing or invalid.
        AuthenticationError: If neither ``GITHUB_TOKEN`` nor
            ``PERSONAL_ACCESS_TOKEN`` is configured.
    """
    owner = (owner or "").strip()
    repo = (repo or "").strip()
    date_range = (date_range or "").strip()

    if not owner or not repo:
        raise ConfigurationError(
            "Repository owner and name are required. "
            "Pass --owner/--repo or set the 'OWNER' and 'REPO' environment variables."
        )
    if not date_range:
        raise ConfigurationError(
            "A date range is required. Pass --range or set the 'RANGE_OF_DATE' environment variable."
        )
    parse_date_range(date_range)

    token = _read_token()
    if not token:
        raise AuthenticationError(
            "Missing required GitHub access token. "
            "Set the 'GITHUB_TOKEN' (or 'PERSONAL_ACCESS_TOKEN') environment variable."
        )

    return Config(
        owner=owner,
        repo=repo,
        date_range=date_range,
        token=token,
        api_url=(api_url or DEFAULT_API_URL).rstrip("/"),
    )
