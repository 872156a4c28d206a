"""Free-text release date parsing, year inference and plausibility checks."""

from __future__ import annotations

import calendar
import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable

from .config import DEFAULT_POLICY, Policy

_LOGGER = logging.getLogger(__name__)

_MONTHS = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "sept": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_MONTH_NAME_RE = re.compile(
    r"\b([A-Za-z]{3,9})\.?\s+(\d{1,2})(?:st|nd|rd|th)?\b(?:,?\s*(\d{4})(?!\d))?",
    re.IGNORECASE,
)
_SLASH_RE = re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})(?!\d)")
_ISO_RE = re.compile(r"(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?!\d)")
_COMPACT_RE = re.compile(r"(?<!\d)(\d{6,8})(?!\d)")

_RELEASE_HOUR = 12


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return as_utc(now)


def month_number(name: str) -> int | None:
    return _MONTHS.get(name.lower().rstrip("."))


def add_months(value: datetime, months: int) -> datetime:
    index = value.month - 1 + months
    year = value.year + index // 12
    month = index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _expand_year(digits: str) -> int:
    year = int(digits)
    if len(digits) != 2:
        return year
    return year + (2000 if year < 50 else 1900)


def _in_range(month: int, day: int) -> bool:
    return 1 <= month <= 12 and 1 <= day <= 31


def _build_instant(year: int, month: int, day: int) -> datetime | None:
    if not _in_range(month, day):
        return None
    try:
        return datetime(year, month, day, _RELEASE_HOUR, tzinfo=timezone.utc)
    except ValueError:
        # Day does not exist in that month (Feb 30) or year out of range.
        return None


def infer_year(
    month: int,
    day: int,
    now: datetime,
    allow_historical: bool,
    policy: Policy = DEFAULT_POLICY,
) -> int:
    """Pick a year for a month/day that was listed without one.

    Upcoming listings look forward: a month/day already behind today's date
    is next year's occurrence. Historical listings look back: a current-year
    date more than ``historical_future_cutoff_months`` ahead of ``now`` is
    taken to be last year's. The cutoff is a tie-break heuristic, not a rule
    derived from any source.
    """
    year = now.year
    if allow_historical:
        cutoff = add_months(now, policy.historical_future_cutoff_months)
        if (year, month, day) > (cutoff.year, cutoff.month, cutoff.day):
            return year - 1
        return year
    if (month, day) < (now.month, now.day):
        return year + 1
    return year


def _from_month_name(
    text: str, allow_historical: bool, now: datetime, policy: Policy
) -> datetime | None:
    for match in _MONTH_NAME_RE.finditer(text):
        month = month_number(match.group(1))
        if month is None:
            continue
        day = int(match.group(2))
        if not _in_range(month, day):
            return None
        if match.group(3):
            year = int(match.group(3))
        else:
            year = infer_year(month, day, now, allow_historical, policy)
        return _build_instant(year, month, day)
    return None


def _from_slashes(text: str, *_: Any) -> datetime | None:
    match = _SLASH_RE.search(text)
    if not match:
        return None
    month, day, year = match.groups()
    return _build_instant(_expand_year(year), int(month), int(day))


def _from_iso(text: str, *_: Any) -> datetime | None:
    match = _ISO_RE.search(text)
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    return _build_instant(year, month, day)


def _from_compact(text: str, *_: Any) -> datetime | None:
    match = _COMPACT_RE.search(text)
    if not match:
        return None
    digits = match.group(1)
    if len(digits) == 8:
        month, day, year = digits[:2], digits[2:4], digits[4:]
    elif len(digits) == 7:
        month, day, year = digits[:1], digits[1:3], digits[3:]
    else:
        month, day, year = digits[:2], digits[2:4], digits[4:]
    return _build_instant(_expand_year(year), int(month), int(day))


_FORMATS: tuple[Callable[[str, bool, datetime, Policy], datetime | None], ...] = (
    _from_month_name,
    _from_slashes,
    _from_iso,
    _from_compact,
)


def parse_date_text(
    text: str | None,
    allow_historical: bool = False,
    now: datetime | None = None,
    policy: Policy = DEFAULT_POLICY,
) -> datetime | None:
    """Turn a free-text date fragment into noon UTC on that date.

    Formats are tried in priority order and the first one that yields a valid
    date wins. Returns None when nothing matches.
    """
    if not isinstance(text, str) or not text.strip():
        return None
    reference = resolve_now(now)
    for parser in _FORMATS:
        instant = parser(text, allow_historical, reference, policy)
        if instant is not None:
            return instant
    _LOGGER.debug("Unparseable date text: %r", text)
    return None


def is_plausible(
    instant: Any,
    now: datetime | None = None,
    policy: Policy = DEFAULT_POLICY,
) -> bool:
    if not isinstance(instant, datetime):
        return False
    reference = resolve_now(now)
    lower = datetime(policy.min_plausible_year, 1, 1, tzinfo=timezone.utc)
    upper = datetime(
        reference.year + policy.max_years_ahead,
        12,
        31,
        23,
        59,
        59,
        999999,
        tzinfo=timezone.utc,
    )
    return lower <= as_utc(instant) <= upper


def normalize_date(
    text: str | None,
    allow_historical: bool = False,
    now: datetime | None = None,
    policy: Policy = DEFAULT_POLICY,
) -> datetime | None:
    reference = resolve_now(now)
    instant = parse_date_text(text, allow_historical, reference, policy)
    if instant is None:
        return None
    if not is_plausible(instant, reference, policy):
        _LOGGER.debug("Discarding implausible date %s from %r", instant.date(), text)
        return None
    return instant
