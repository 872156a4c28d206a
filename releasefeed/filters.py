"""Brand and time-of-release filtering."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta
from typing import Iterable

from .dates import as_utc, infer_year, month_number, resolve_now
from .models import Release

_SPECIFIC_DATE_RE = re.compile(r"^([a-z]+)\.?\s+(\d{1,2})$")

_WEEK_FILTERS = {"week", "this week", "this-week"}
_WEEKEND_FILTERS = {"weekend", "this weekend", "this-weekend"}

_LOGGER = logging.getLogger(__name__)


def filter_by_brand(releases: Iterable[Release], brand: str | None) -> list[Release]:
    if not brand or not brand.strip():
        return list(releases)
    needle = brand.strip().lower()
    return [r for r in releases if needle in (r.brand or "").lower()]


def _week_bounds(today: date) -> tuple[date, date]:
    # Weeks run Sunday through Saturday.
    sunday = today - timedelta(days=(today.weekday() + 1) % 7)
    return sunday, sunday + timedelta(days=6)


def _weekend_bounds(today: date) -> tuple[date, date]:
    if today.weekday() == 6:
        return today - timedelta(days=1), today
    saturday = today + timedelta(days=5 - today.weekday())
    return saturday, saturday + timedelta(days=1)


def parse_specific_date(query: str, now: datetime | None = None) -> date | None:
    """Resolve "yesterday", "today", "tomorrow" or "<month> <day>" to a date.

    Month/day queries without a year resolve forward, like upcoming listings.
    """
    reference = resolve_now(now)
    today = reference.date()
    lowered = query.lower().strip()
    if lowered == "yesterday":
        return today - timedelta(days=1)
    if lowered == "today":
        return today
    if lowered == "tomorrow":
        return today + timedelta(days=1)
    match = _SPECIFIC_DATE_RE.match(lowered)
    if not match:
        return None
    month = month_number(match.group(1))
    day = int(match.group(2))
    if month is None or not 1 <= day <= 31:
        return None
    year = infer_year(month, day, reference, allow_historical=False)
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _release_day(release: Release) -> date | None:
    if release.release_instant is None:
        return None
    return as_utc(release.release_instant).date()


def _between(releases: Iterable[Release], first: date, last: date) -> list[Release]:
    selected: list[Release] = []
    for release in releases:
        day = _release_day(release)
        if day is not None and first <= day <= last:
            selected.append(release)
    return selected


def filter_by_time(
    releases: Iterable[Release],
    time_filter: str | None,
    now: datetime | None = None,
) -> list[Release]:
    items = list(releases)
    if not time_filter or not time_filter.strip():
        return items
    key = time_filter.strip().lower()
    today = resolve_now(now).date()

    if key in _WEEK_FILTERS:
        first, last = _week_bounds(today)
    elif key in _WEEKEND_FILTERS:
        first, last = _weekend_bounds(today)
    else:
        target = parse_specific_date(key, now)
        if target is None:
            _LOGGER.warning("Unknown time filter '%s', ignoring.", time_filter)
            return items
        first = last = target

    filtered = _between(items, first, last)
    _LOGGER.debug(
        "Time filter '%s' kept %s of %s releases", key, len(filtered), len(items)
    )
    return filtered
