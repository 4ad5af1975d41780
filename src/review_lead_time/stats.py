"""Statistics and formatting helpers for PR review lead time reporting.

This module provides utilities for:
- Converting datetime deltas into rounded lead times in minutes.
- Computing linear-interpolation percentiles from pre-sorted samples.
- Aggregating P50/P90 summary statistics.
- Formatting minute-based durations and display dates for humans.
- Building the final summary report for both lead time metrics.
"""

from __future__ import annotations

import math
from datetime import datetime, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence

from .config import DATE_RANGE_DELIMITER

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

NO_RESULTS_MESSAGE = "No results were found."


def _round_half_up(value: float, places: int = 0) -> Decimal:
    """Round ``value`` with ties going away from zero."""
    return Decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def lead_time_minutes(start: datetime, end: datetime) -> int:
    """Return the elapsed time between two datetimes in whole minutes.

    Half minutes round up, so 90 seconds is two minutes.
    """
    return int(_round_half_up((end - start).total_seconds() / 60))


def min_to_time_string(minutes: Optional[float]) -> str:
    """Format a minute count as a human-readable duration.

    Values above one day are shown in days, values above one hour in hours,
    both with one decimal place. Anything else is shown in whole minutes.
    ``None`` and NaN render as ``"n/a"``.
    """
    if minutes is None or math.isnan(minutes):
        return "n/a"

    if minutes > 60:
        hours = minutes / 60
        if hours > 24:
            return f"{_round_half_up(hours / 24, 1)} days"
        return f"{_round_half_up(hours, 1)} hours"
    return f"{_round_half_up(minutes)} minutes"


def format_display_date(
    value: Optional[datetime],
    with_time: bool = False,
    tz: Optional[tzinfo] = None,
) -> str:
    """Format a timestamp as ``YY/MM/DD(ddd)``, optionally followed by ``HH:MM``.

    Weekday names are always English regardless of the process locale. The
    value is converted to ``tz``, or to the local timezone when omitted.
    Missing values produce an empty string.
    """
    if value is None:
        return ""

    local = value.astimezone(tz)
    text = f"{local:%y/%m/%d}({_WEEKDAYS[local.weekday()]})"
    if with_time:
        text += f" {local:%H:%M}"
    return text


def calculate_percentile(sorted_values: Sequence[float], p: float) -> Optional[float]:
    """Calculate a percentile using linear interpolation.

    The input sequence is expected to already be sorted in ascending order.
    - Empty input returns ``None``.
    - ``p <= 0`` returns the first value.
    - ``p >= 100`` returns the last value.
    - Otherwise, percentile is linearly interpolated between adjacent ranks.

    Args:
        sorted_values: Sorted numeric samples.
        p: Percentile in the inclusive range ``[0, 100]``.

    Returns:
        Percentile value or ``None`` when input is empty.

    Raises:
        ValueError: If ``p`` is outside ``[0, 100]``.
    """
    if not 0 <= p <= 100:
        raise ValueError("Percentile 'p' must be in the range [0, 100].")

    if not sorted_values:
        return None

    if p <= 0:
        return sorted_values[0]

    if p >= 100:
        return sorted_values[-1]

    position = (len(sorted_values) - 1) * (p / 100.0)
    lower_index = math.floor(position)
    upper_index = math.ceil(position)

    if lower_index == upper_index:
        return sorted_values[int(position)]

    lower_value = sorted_values[lower_index]
    upper_value = sorted_values[upper_index]
    return lower_value + (upper_value - lower_value) * (position - lower_index)


def compute_statistics(samples: Sequence[Optional[float]]) -> Dict[str, Optional[float]]:
    """Compute P50, P90, and sample count for lead time samples.

    ``None`` and NaN samples are dropped before sorting.

    Returns:
        Dictionary with keys ``p50``, ``p90`` and ``count``. Percentiles are
        ``None`` when no valid samples exist.
    """
    clean_samples = sorted(
        sample for sample in samples if sample is not None and not math.isnan(sample)
    )

    return {
        "p50": calculate_percentile(clean_samples, 50),
        "p90": calculate_percentile(clean_samples, 90),
        "count": len(clean_samples),
    }


def _metric_lines(title: str, samples: List[float]) -> List[str]:
    stats = compute_statistics(samples)
    return [
        title,
        f"   50th percentile: {min_to_time_string(stats['p50'])}",
        f"   90th percentile: {min_to_time_string(stats['p90'])}",
    ]


def generate_report(
    repo_name: str,
    date_range: str,
    record_count: int,
    first_comment_lead_times: List[float],
    approved_lead_times: List[float],
) -> str:
    """Generate the human-readable lead time summary for a repository.

    The report starts with a blank line and a header naming the repository,
    the date range and the number of pull requests kept. Each metric with at
    least one sample contributes its P50/P90 lines; when neither has samples
    the report ends with :data:`NO_RESULTS_MESSAGE` instead.

    Args:
        repo_name: Repository display name.
        date_range: Raw ``start..end`` date range.
        record_count: Number of pull requests that survived filtering.
        first_comment_lead_times: Minutes from review start to first response.
        approved_lead_times: Minutes from review start to approval.

    Returns:
        Formatted multi-line text report.
    """
    display_range = date_range.replace(DATE_RANGE_DELIMITER, "~", 1)
    lines = ["", f"{repo_name}: {display_range} ({record_count} PRs)"]

    if first_comment_lead_times:
        lines.extend(_metric_lines("Time to first comment", first_comment_lead_times))
    if approved_lead_times:
        lines.extend(_metric_lines("Time to approval", approved_lead_times))
    if not first_comment_lead_times and not approved_lead_times:
        lines.append(NO_RESULTS_MESSAGE)

    return "\n".join(lines)
