"""Merging current and historical release batches into one ordered feed."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Sequence

from .config import DEFAULT_POLICY, Policy
from .dates import as_utc, resolve_now
from .dedupe import dedupe_releases
from .models import MergeOptions, MergeResult, Release, format_instant
from .window import compute_window, filter_by_window

MODE_HISTORICAL_ONLY = "historical_only"
MODE_MIXED = "mixed"
MODE_CURRENT = "current"

_LOGGER = logging.getLogger(__name__)


def _timestamp(release: Release) -> float | None:
    if release.release_instant is None:
        return None
    return as_utc(release.release_instant).timestamp()


def _ascending(releases: list[Release]) -> list[Release]:
    def sort_key(release: Release) -> tuple[int, float]:
        ts = _timestamp(release)
        if ts is None:
            return (1, 0.0)
        return (0, ts)

    return sorted(releases, key=sort_key)


def _descending(releases: list[Release]) -> list[Release]:
    # Undated releases count as the epoch, so they sink to the end.
    return sorted(releases, key=lambda r: _timestamp(r) or 0.0, reverse=True)


def _order(releases: list[Release], mode: str, now: datetime) -> list[Release]:
    if mode == MODE_HISTORICAL_ONLY:
        return _descending(releases)
    if mode == MODE_MIXED:
        upcoming: list[Release] = []
        past: list[Release] = []
        for release in releases:
            instant = release.release_instant
            if instant is not None and as_utc(instant) > now:
                upcoming.append(release)
            else:
                past.append(release)
        return _ascending(upcoming) + _descending(past)
    return _ascending(releases)


def select_mode(options: MergeOptions) -> str:
    if options.historical_only:
        return MODE_HISTORICAL_ONLY
    if options.include_historical:
        return MODE_MIXED
    return MODE_CURRENT


def merge_releases(
    current: Sequence[Release],
    historical: Sequence[Release],
    options: MergeOptions | None = None,
    now: datetime | None = None,
    policy: Policy = DEFAULT_POLICY,
) -> MergeResult:
    """Combine release batches into one deduplicated, ordered, limited feed.

    The historical batch is first bounded to the look-back window derived
    from ``options.weeks_back``. Depending on the flags the feed holds only
    historical releases, current followed by historical, or only current.
    Duplicates (same URL or similar title) keep their first occurrence.
    """
    opts = options or MergeOptions()
    reference = resolve_now(now)
    window = compute_window(opts.weeks_back, reference, policy)
    in_window = filter_by_window(historical, window, reference)

    mode = select_mode(opts)
    if mode == MODE_HISTORICAL_ONLY:
        selected = list(in_window)
    elif mode == MODE_MIXED:
        selected = list(current) + in_window
    else:
        selected = list(current)

    unique, duplicates = dedupe_releases(selected, policy.similarity_threshold)
    ordered = _order(unique, mode, reference)
    limited = ordered[: opts.limit] if opts.limit > 0 else []

    metadata: dict[str, Any] = {
        "mode": mode,
        "count": len(limited),
        "total_before_limit": len(ordered),
        "limit": opts.limit,
        "current_input": len(current),
        "historical_input": len(historical),
        "historical_in_window": len(in_window),
        "duplicates_removed": duplicates,
        "weeks_back": window.weeks_back,
        "window_start": format_instant(window.start),
        "window_end": format_instant(window.end),
    }
    _LOGGER.debug(
        "Merged mode=%s current=%s historical=%s in_window=%s duplicates=%s final=%s",
        mode,
        len(current),
        len(historical),
        len(in_window),
        duplicates,
        len(limited),
    )
    return MergeResult(releases=limited, metadata=metadata)
