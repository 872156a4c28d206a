"""Historical look-back windows."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Iterable

from .config import DEFAULT_POLICY, Policy, parse_int
from .dates import as_utc, resolve_now
from .models import DateWindow, Release


def coerce_weeks_back(value: Any, policy: Policy = DEFAULT_POLICY) -> int:
    weeks = parse_int(value)
    if weeks is None or weeks < 1:
        return policy.default_weeks_back
    return min(weeks, policy.max_weeks_back)


def compute_window(
    weeks_back: Any,
    now: datetime | None = None,
    policy: Policy = DEFAULT_POLICY,
) -> DateWindow:
    """Window from the start of the day ``weeks_back`` weeks ago to the end of today (UTC)."""
    weeks = coerce_weeks_back(weeks_back, policy)
    reference = resolve_now(now)
    end = reference.replace(hour=23, minute=59, second=59, microsecond=999999)
    start = (reference - timedelta(days=weeks * 7)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    return DateWindow(start=start, end=end, weeks_back=weeks)


def is_within_range(
    instant: datetime | None, start: datetime | None, end: datetime | None
) -> bool:
    if instant is None or start is None or end is None:
        return False
    return as_utc(start) <= as_utc(instant) <= as_utc(end)


def is_historical(instant: datetime | None, now: datetime | None = None) -> bool:
    if instant is None:
        return False
    return as_utc(instant) < resolve_now(now)


def filter_by_window(
    releases: Iterable[Release],
    window: DateWindow,
    now: datetime | None = None,
) -> list[Release]:
    reference = resolve_now(now)
    return [
        release
        for release in releases
        if is_historical(release.release_instant, reference)
        and is_within_range(release.release_instant, window.start, window.end)
    ]


def describe_window(window: DateWindow) -> str:
    span = f"{window.start.strftime('%Y-%m-%d')} - {window.end.strftime('%Y-%m-%d')}"
    if window.weeks_back == 1:
        return f"Past week ({span})"
    return f"Past {window.weeks_back} weeks ({span})"
