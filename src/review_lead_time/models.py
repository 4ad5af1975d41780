"""Domain models for GitHub pull request review lead time processing.

The API dataclasses intentionally model only the subset of payload fields that
are required for lead time computation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple


@dataclass(slots=True)
class PullRequest:
    """Represents a merged, approved pull request returned by the search API."""

    number: int
    title: str
    author: Optional[str]
    created_at: datetime
    labels: Tuple[str, ...] = ()


@dataclass(slots=True)
class ReviewComment:
    """Represents an inline review comment on a pull request diff."""

    author: Optional[str]
    created_at: Optional[datetime]


@dataclass(slots=True)
class Review:
    """Represents a formal review submission."""

    author: Optional[str]
    state: str
    submitted_at: Optional[datetime]


@dataclass(slots=True)
class IssueEvent:
    """Represents one issue timeline event such as ``review_requested``."""

    event: str
    created_at: Optional[datetime]


@dataclass(frozen=True)
class PullRequestRecord:
    """Per-PR lead time measurements in minutes.

    ``first_comment_lead_time`` is ``None`` when nobody but the author
    responded; ``approved_lead_time`` is ``None`` when the PR was never
    approved.
    """

    number: int
    title: str
    author: Optional[str]
    labels: Tuple[str, ...]
    created_date: str
    review_requested_date: str
    approved_date_time: str
    first_commented_at: Optional[datetime]
    first_comment_lead_time: Optional[int]
    approved_lead_time: Optional[int]
