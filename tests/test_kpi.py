"""Tests for lead time extraction and filtering logic."""

import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from review_lead_time.config import Config
from review_lead_time.errors import ApiError
from review_lead_time.kpi import (
    build_record,
    collect_records,
    enrich_pull_request,
    filter_records,
    find_approved_at,
    find_first_commented_at,
    is_excluded,
    lead_time_samples,
    select_review_started_at,
)
from review_lead_time.models import IssueEvent, PullRequest, PullRequestRecord, Review, ReviewComment
from review_lead_time.stats import format_display_date


def _day(day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, minute, tzinfo=timezone.utc)


def _make_pr(number: int = 1, title: str = "Add widget", author: str = "author", labels=()) -> PullRequest:
    return PullRequest(
        number=number,
        title=title,
        author=author,
        created_at=_day(1),
        labels=tuple(labels),
    )


def _make_record(
    title: str = "Add widget",
    labels=(),
    approved_date_time: str = "24/01/02(Tue) 10:00",
    first_comment_lead_time=30,
    approved_lead_time=60,
) -> PullRequestRecord:
    return PullRequestRecord(
        number=1,
        title=title,
        author="author",
        labels=tuple(labels),
        created_date="24/01/01(Mon)",
        review_requested_date="",
        approved_date_time=approved_date_time,
        first_commented_at=None,
        first_comment_lead_time=first_comment_lead_time,
        approved_lead_time=approved_lead_time,
    )


def _config() -> Config:
    return Config(owner="octo", repo="widgets", date_range="2024-01-01..2024-01-31", token="t")


def test_select_review_started_at_uses_request_when_before_first_response():
    """Verify a review request on day 1 wins over a first response on day 3."""
    created = _day(1) - timedelta(days=1)
    assert select_review_started_at(created, _day(1), _day(3)) == _day(1)


def test_select_review_started_at_falls_back_to_creation_when_request_is_later():
    """Verify a review request on day 5 after a first response on day 3 is ignored."""
    created = _day(1)
    assert select_review_started_at(created, _day(5), _day(3)) == created


def test_select_review_started_at_without_request_or_response_uses_creation():
    """Verify creation time is used when either timestamp is absent."""
    created = _day(1)
    assert select_review_started_at(created, None, _day(3)) == created
    assert select_review_started_at(created, _day(2), None) == created


def test_find_first_commented_at_ignores_author_activity():
    """Verify the earliest non-author comment or review is chosen."""
    comments = [
        ReviewComment(author="author", created_at=_day(1, 1)),
        ReviewComment(author="carol", created_at=_day(2, 9)),
    ]
    reviews = [
        Review(author="author", state="COMMENTED", submitted_at=_day(1, 2)),
        Review(author="bob", state="APPROVED", submitted_at=_day(2, 8)),
    ]

    assert find_first_commented_at("author", comments, reviews) == _day(2, 8)


def test_find_first_commented_at_returns_none_when_only_author_responded():
    """Verify no first response is recorded when only the author commented."""
    comments = [ReviewComment(author="author", created_at=_day(1, 1))]
    reviews = [Review(author="reviewer", state="PENDING", submitted_at=None)]

    assert find_first_commented_at("author", comments, reviews) is None


def test_find_approved_at_uses_first_approval_in_api_order():
    """Verify the first APPROVED review in returned order wins, not the earliest one."""
    reviews = [
        Review(author="bob", state="CHANGES_REQUESTED", submitted_at=_day(2)),
        Review(author="carol", state="APPROVED", submitted_at=_day(4)),
        Review(author="dave", state="APPROVED", submitted_at=_day(3)),
    ]

    assert find_approved_at(reviews) == _day(4)
    assert find_approved_at([]) is None


def test_build_record_measures_from_review_request():
    """Verify lead times are measured from a review request that precedes the first response."""
    pr = _make_pr(labels=["bug"])
    events = [
        IssueEvent(event="labeled", created_at=_day(1, 1)),
        IssueEvent(event="review_requested", created_at=_day(1, 2)),
        IssueEvent(event="review_requested", created_at=_day(1, 5)),
    ]
    comments = [ReviewComment(author="bob", created_at=_day(1, 3))]
    reviews = [Review(author="bob", state="APPROVED", submitted_at=_day(1, 4, 30))]

    record = build_record(pr, comments=comments, reviews=reviews, events=events)

    assert record.labels == ("bug",)
    assert record.first_commented_at == _day(1, 3)
    assert record.first_comment_lead_time == 60
    assert record.approved_lead_time == 150
    assert record.created_date == format_display_date(pr.created_at)
    assert record.review_requested_date == format_display_date(_day(1, 2), with_time=True)
    assert record.approved_date_time == format_display_date(_day(1, 4, 30), with_time=True)


def test_build_record_without_approval_has_absent_lead_time():
    """Verify an unapproved PR carries None instead of a numeric sentinel."""
    pr = _make_pr()
    comments = [ReviewComment(author="bob", created_at=_day(1, 0, 45))]

    record = build_record(pr, comments=comments, reviews=[], events=[])

    assert record.first_comment_lead_time == 45
    assert record.approved_lead_time is None
    assert record.approved_date_time == ""
    assert record.review_requested_date == ""


def test_build_record_without_non_author_response_has_absent_first_comment_lead_time():
    """Verify a PR nobody else responded to has no first-comment lead time."""
    pr = _make_pr()
    comments = [ReviewComment(author="author", created_at=_day(1, 1))]

    record = build_record(pr, comments=comments, reviews=[], events=[])

    assert record.first_commented_at is None
    assert record.first_comment_lead_time is None


def test_enrich_pull_request_fetches_all_activity_and_flags_slow_response(capsys):
    """Verify enrichment fetches comments, reviews and events and prints slow PRs."""
    pr = _make_pr(number=42, title="Slow PR", author="alice")
    client = Mock()
    client.list_review_comments.return_value = []
    client.list_reviews.return_value = [
        Review(author="bob", state="APPROVED", submitted_at=pr.created_at + timedelta(minutes=4000)),
    ]
    client.list_issue_events.return_value = []

    with ThreadPoolExecutor(max_workers=3) as executor:
        record = enrich_pull_request(client, _config(), pr, executor)

    client.list_review_comments.assert_called_once_with("octo", "widgets", 42)
    client.list_reviews.assert_called_once_with("octo", "widgets", 42)
    client.list_issue_events.assert_called_once_with("octo", "widgets", 42)
    assert record.first_comment_lead_time == 4000
    assert capsys.readouterr().out == "Slow PR alice 2.8 days\n"


def test_enrich_pull_request_does_not_flag_responses_within_two_days(capsys):
    """Verify a first response exactly at the two-day threshold is not flagged."""
    pr = _make_pr()
    client = Mock()
    client.list_review_comments.return_value = [
        ReviewComment(author="bob", created_at=pr.created_at + timedelta(minutes=2880)),
    ]
    client.list_reviews.return_value = []
    client.list_issue_events.return_value = []

    with ThreadPoolExecutor(max_workers=3) as executor:
        enrich_pull_request(client, _config(), pr, executor)

    assert capsys.readouterr().out == ""


def test_enrich_pull_request_propagates_fetch_failure():
    """Verify a failing sub-fetch aborts the PR's enrichment."""
    client = Mock()
    client.list_review_comments.return_value = []
    client.list_reviews.side_effect = ApiError("boom")
    client.list_issue_events.return_value = []

    with ThreadPoolExecutor(max_workers=3) as executor:
        with pytest.raises(ApiError):
            enrich_pull_request(client, _config(), _make_pr(), executor)


def test_collect_records_keeps_pull_request_order():
    """Verify records come back in the order the PRs were searched."""
    prs = [_make_pr(number=number, title=f"PR {number}") for number in (3, 1, 2)]
    client = Mock()
    client.list_review_comments.return_value = []
    client.list_reviews.return_value = []
    client.list_issue_events.return_value = []

    records = collect_records(client, _config(), prs)

    assert [record.number for record in records] == [3, 1, 2]


@pytest.mark.parametrize("title", ["Release 1.2", "release: v2", "RELEASE candidate"])
def test_is_excluded_release_titles(title):
    """Verify release PRs are excluded whatever their casing."""
    assert is_excluded(_make_record(title=title))


def test_is_excluded_label_and_regular_records():
    """Verify the exclusion label excludes a record and ordinary records are kept."""
    assert is_excluded(_make_record(labels=["bug", "案件"]))
    assert not is_excluded(_make_record(title="Prerelease fixes", labels=["bug"]))


def test_filter_records_drops_excluded_and_unapproved_records():
    """Verify filtering keeps only approved records that are not excluded."""
    kept = _make_record(title="Add widget")
    records = [
        kept,
        _make_record(title="Release 1.2"),
        _make_record(labels=["案件"]),
        _make_record(approved_date_time="", approved_lead_time=None),
    ]

    assert filter_records(records) == [kept]


def test_filter_records_honors_custom_rules():
    """Verify the release prefix and exclusion label can be overridden."""
    records = [_make_record(title="Hotfix 1"), _make_record(labels=["skip-metrics"])]

    assert filter_records(records, release_title_prefix="hotfix", excluded_label="skip-metrics") == []


def test_lead_time_samples_skips_absent_values():
    """Verify absent lead times never reach the sample lists."""
    records = [
        _make_record(first_comment_lead_time=10, approved_lead_time=20),
        _make_record(first_comment_lead_time=None, approved_lead_time=40),
    ]

    assert lead_time_samples(records) == ([10], [20, 40])
