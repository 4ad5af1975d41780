"""GitHub REST API client for review lead time data retrieval."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .errors import ApiError, AuthenticationError, DataValidationError
from .models import IssueEvent, PullRequest, Review, ReviewComment

logger = logging.getLogger(__name__)


def parse_github_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse GitHub ISO8601 timestamps into timezone-aware datetimes.

    Raises:
        DataValidationError: If ``value`` is present but not a valid timestamp.
    """
    if not value:
        return None

    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise DataValidationError(f"Malformed GitHub timestamp: {value!r}") from exc

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _login(item: Dict[str, Any]) -> Optional[str]:
    return (item.get("user") or {}).get("login")


class GitHubClient:
    """Small, typed client for the GitHub search and pull request APIs."""

    _API_VERSION = "2022-11-28"
    _SEARCH_PAGE_SIZE = 50
    _LIST_PAGE_SIZE = 100

    def __init__(self, config: Config) -> None:
        """Initialize an authenticated GitHub API client.

        Args:
            config: Validated runtime configuration including token and base URL.
        """
        self._config = config
        self._timeout_seconds = config.timeout_seconds
        self._base_url = config.api_url

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {config.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": self._API_VERSION,
            }
        )

    def _build_url(self, path: str) -> str:
        """Build a fully qualified API URL from a path below the API root."""
        return f"{self._base_url}/{path.lstrip('/')}"

    def _request(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Execute a single GET request and map failures onto project errors.

        Raises:
            AuthenticationError: If GitHub rejects the token with HTTP 401.
            ApiError: If the request fails or returns any other HTTP >= 400.
        """
        try:
            response = self._session.get(url, params=params, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise ApiError(f"GitHub request failed: GET {url}") from exc

        status_code = response.status_code
        if status_code == 401:
            raise AuthenticationError(f"GitHub rejected the access token: GET {url} returned 401")
        if status_code >= 400:
            raise ApiError(
                "GitHub API request failed: "
                f"GET {url} returned {status_code} - {response.text}"
            )

        return response

    def _get_pages(self, path: str, params: Dict[str, Any]) -> List[Any]:
        """Fetch every page of a listing by following ``Link: rel="next"`` headers.

        Returns the decoded JSON payload of each page, in request order.
        """
        url: Optional[str] = self._build_url(path)
        query: Optional[Dict[str, Any]] = dict(params)
        pages: List[Any] = []

        while url:
            response = self._request(url, params=query)
            try:
                pages.append(response.json())
            except ValueError as exc:
                raise ApiError(f"GitHub API returned invalid JSON: GET {url}") from exc

            # The next link already carries the full query string.
            url = (response.links or {}).get("next", {}).get("url")
            query = None

        logger.debug("Fetched paginated listing", extra={"path": path, "pages": len(pages)})
        return pages

    def _list(self, path: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        for page in self._get_pages(path, {"per_page": self._LIST_PAGE_SIZE}):
            if not isinstance(page, list):
                raise ApiError(f"GitHub API returned unexpected payload shape: GET {path}")
            items.extend(page)
        return items

    def _repo_path(self, owner: str, repo: str) -> str:
        return f"repos/{owner}/{repo}"

    def search_pull_requests(self, owner: str, repo: str, date_range: str) -> List[PullRequest]:
        """Search merged, approved pull requests created within ``date_range``.

        Results are ordered by creation date ascending and accumulated across
        all search result pages.

        Raises:
            DataValidationError: If a result is missing its number or creation date.
        """
        params = {
            "q": (
                f"repo:{owner}/{repo} created:{date_range} "
                "is:pr is:merged review:approved"
            ),
            "sort": "created",
            "order": "asc",
            "per_page": self._SEARCH_PAGE_SIZE,
        }

        pull_requests: List[PullRequest] = []
        for page in self._get_pages("search/issues", params):
            if not isinstance(page, dict):
                raise ApiError("GitHub search API returned unexpected payload shape")

            for item in page.get("items") or []:
                number = item.get("number")
                created_at = parse_github_datetime(item.get("created_at"))
                if number is None or created_at is None:
                    raise DataValidationError(
                        "GitHub search result is missing required fields: "
                        f"repo={owner}/{repo}, payload={item}"
                    )

                labels = tuple(
                    label["name"] for label in item.get("labels") or [] if label.get("name")
                )
                pull_requests.append(
                    PullRequest(
                        number=int(number),
                        title=str(item.get("title") or ""),
                        author=_login(item),
                        created_at=created_at,
                        labels=labels,
                    )
                )

        logger.info(
            "Fetched pull requests",
            extra={"repo": f"{owner}/{repo}", "date_range": date_range, "count": len(pull_requests)},
        )
        return pull_requests

    def list_review_comments(self, owner: str, repo: str, number: int) -> List[ReviewComment]:
        """List inline review comments for a pull request."""
        return [
            ReviewComment(
                author=_login(item),
                created_at=parse_github_datetime(item.get("created_at")),
            )
            for item in self._list(f"{self._repo_path(owner, repo)}/pulls/{number}/comments")
        ]

    def list_reviews(self, owner: str, repo: str, number: int) -> List[Review]:
        """List formal reviews for a pull request in submission order."""
        return [
            Review(
                author=_login(item),
                state=str(item.get("state") or ""),
                submitted_at=parse_github_datetime(item.get("submitted_at")),
            )
            for item in self._list(f"{self._repo_path(owner, repo)}/pulls/{number}/reviews")
        ]

    def list_issue_events(self, owner: str, repo: str, number: int) -> List[IssueEvent]:
        """List issue events (``review_requested`` and friends) for a pull request."""
        return [
            IssueEvent(
                event=str(item.get("event") or ""),
                created_at=parse_github_datetime(item.get("created_at")),
            )
            for item in self._list(f"{self._repo_path(owner, repo)}/issues/{number}/events")
        ]
