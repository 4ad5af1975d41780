"""Lead time extraction logic for GitHub pull request review metrics.

This module turns searched pull requests into ``PullRequestRecord`` values for
the two review KPIs:
- time from review start to the first non-author response
- time from review start to the first approval

It also owns the filtering rules applied before aggregation.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .config import Config
from .github_client import GitHubClient
from .models import IssueEvent, PullRequest, PullRequestRecord, Review, ReviewComment
from .stats import format_display_date, lead_time_minutes, min_to_time_string

logger = logging.getLogger(__name__)

SLOW_RESPONSE_THRESHOLD_MINUTES = 60 * 24 * 2
APPROVED_STATE = "APPROVED"
REVIEW_REQUESTED_EVENT = "review_requested"


def find_review_requested_at(events: Iterable[IssueEvent]) -> Optional[datetime]:
    """Return the timestamp of the first ``review_requested`` event, if any."""
    for event in events:
        if event.event == REVIEW_REQUESTED_EVENT:
            return event.created_at
    return None


def find_first_commented_at(
    author: Optional[str],
    comments: Iterable[ReviewComment],
    reviews: Iterable[Review],
) -> Optional[datetime]:
    """Return the earliest review comment or review submitted by someone other than ``author``.

    Items without a timestamp are ignored. Returns ``None`` when nobody but the
    author responded.
    """
    timestamps = [
        comment.created_at
        for comment in comments
        if comment.author != author and comment.created_at is not None
    ]
    timestamps.extend(
        review.submitted_at
        for review in reviews
        if review.author != author and review.submitted_at is not None
    )
    return min(timestamps, default=None)


def find_approved_at(reviews: Iterable[Review]) -> Optional[datetime]:
    """Return the submission time of the first ``APPROVED`` review in API order."""
    for review in reviews:
        if review.state == APPROVED_STATE:
            return review.submitted_at
    return None


def select_review_started_at(
    created_at: datetime,
    review_requested_at: Optional[datetime],
    first_commented_at: Optional[datetime],
) -> datetime:
    """Pick the point lead times are measured from.

    A review request counts only when it came strictly before the first
    response; otherwise the PR creation time is used.
    """
    if (
        review_requested_at is not None
        and first_commented_at is not None
        and review_requested_at < first_commented_at
    ):
        return review_requested_at
    return created_at


def build_record(
    pr: PullRequest,
    comments: List[ReviewComment],
    reviews: List[Review],
    events: List[IssueEvent],
) -> PullRequestRecord:
    """Derive a ``PullRequestRecord`` from a PR and its review activity."""
    review_requested_at = find_review_requested_at(events)
    first_commented_at = find_first_commented_at(pr.author, comments, reviews)
    review_started_at = select_review_started_at(
        pr.created_at, review_requested_at, first_commented_at
    )
    approved_at = find_approved_at(reviews)

    first_comment_lead_time = None
    if first_commented_at is not None:
        first_comment_lead_time = lead_time_minutes(review_started_at, first_commented_at)
    else:
        logger.debug("No non-author response found", extra={"pr_number": pr.number})

    approved_lead_time = None
    if approved_at is not None:
        approved_lead_time = lead_time_minutes(review_started_at, approved_at)

    return PullRequestRecord(
        number=pr.number,
        title=pr.title,
        author=pr.author,
        labels=pr.labels,
        created_date=format_display_date(pr.created_at),
        review_requested_date=format_display_date(review_requested_at, with_time=True),
        approved_date_time=format_display_date(approved_at, with_time=True),
        first_commented_at=first_commented_at,
        first_comment_lead_time=first_comment_lead_time,
        approved_lead_time=approved_lead_time,
    )


def is_slow_response(record: PullRequestRecord) -> bool:
    """Return whether the first response took longer than two days."""
    return (
        record.first_comment_lead_time is not None
        and record.first_comment_lead_time > SLOW_RESPONSE_THRESHOLD_MINUTES
    )


def report_slow_response(record: PullRequestRecord) -> None:
    """Print the flagged-PR notice: title, author and time to approval."""
    print(record.title, record.author, min_to_time_string(record.approved_lead_time))


def enrich_pull_request(
    client: GitHubClient,
    config: Config,
    pr: PullRequest,
    executor: Executor,
) -> PullRequestRecord:
    """Fetch review activity for one PR concurrently and build its record.

    Review comments, reviews and issue events are requested together; the
    first failure among them propagates to the caller. Slow first responses are
    reported immediately.
    """
    comments_future = executor.submit(client.list_review_comments, config.owner, config.repo, pr.number)
    reviews_future = executor.submit(client.list_reviews, config.owner, config.repo, pr.number)
    events_future = executor.submit(client.list_issue_events, config.owner, config.repo, pr.number)

    record = build_record(
        pr,
        comments=comments_future.result(),
        reviews=reviews_future.result(),
        events=events_future.result(),
    )

    if is_slow_response(record):
        report_slow_response(record)

    return record


def collect_records(
    client: GitHubClient,
    config: Config,
    prs: List[PullRequest],
) -> List[PullRequestRecord]:
    """Enrich every PR in order, one PR at a time."""
    records: List[PullRequestRecord] = []

    with ThreadPoolExecutor(max_workers=3) as executor:
        for pr in prs:
            records.append(enrich_pull_request(client, config, pr, executor))

    logger.info(
        "Collected lead time records",
        extra={
            "repo": f"{config.owner}/{config.repo}",
            "prs_total": len(prs),
            "slow_responses": sum(1 for record in records if is_slow_response(record)),
        },
    )
    return records


def is_excluded(
    record: PullRequestRecord,
    release_title_prefix: str = "release",
    excluded_label: str = "案件",
) -> bool:
    """Return whether a record is a release PR or carries the exclusion label."""
    if record.title.lower().startswith(release_title_prefix.lower()):
        return True
    return excluded_label in record.labels


def filter_records(
    records: Iterable[PullRequestRecord],
    release_title_prefix: str = "release",
    excluded_label: str = "案件",
) -> List[PullRequestRecord]:
    """Keep approved records that are neither release PRs nor excluded by label."""
    return [
        record
        for record in records
        if not is_excluded(record, release_title_prefix, excluded_label)
        and record.approved_date_time
    ]


def lead_time_samples(records: Iterable[PullRequestRecord]) -> Tuple[List[float], List[float]]:
    """Split records into ``(first_comment_lead_times, approved_lead_times)``.

    Absent lead times are skipped so they never reach percentile math.
    """
    first_comment_lead_times: List[float] = []
    approved_lead_times: List[float] = []

    for record in records:
        if record.first_comment_lead_time is not None:
            first_comment_lead_times.append(record.first_comment_lead_time)
        if record.approved_lead_time is not None:
            approved_lead_times.append(record.approved_lead_time)

    return first_comment_lead_times, approved_lead_times
