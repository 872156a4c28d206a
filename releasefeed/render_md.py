"""Markdown rendering."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from .dates import as_utc, resolve_now
from .models import Release


def _display_date(release: Release) -> str:
    if release.release_instant is None:
        return "TBA"
    return as_utc(release.release_instant).strftime("%a, %b %d %Y")


def _render_section(lines: list[str], heading: str, releases: Sequence[Release]) -> None:
    lines.append(f"## {heading}")
    if not releases:
        lines.append("- No releases")
        lines.append("")
        return
    for release in releases:
        brand = f" ({release.brand})" if release.brand else ""
        lines.append(f"- **{release.title.strip()}**{brand}")
        lines.append(f"  - Date: {_display_date(release)}")
        if release.price_hint:
            lines.append(f"  - Price: {release.price_hint}")
        if release.url:
            lines.append(f"  - Link: {release.url}")
    lines.append("")


def render_markdown(
    releases: Sequence[Release],
    now: datetime | None = None,
) -> str:
    reference = resolve_now(now)
    upcoming: list[Release] = []
    released: list[Release] = []
    for release in releases:
        instant = release.release_instant
        if instant is not None and as_utc(instant) > reference:
            upcoming.append(release)
        else:
            released.append(release)

    lines: list[str] = []
    lines.append(f"# Release Feed - {reference.strftime('%A')}, {reference.strftime('%Y-%m-%d')}")
    lines.append("")
    _render_section(lines, "Upcoming", upcoming)
    _render_section(lines, "Released", released)
    return "\n".join(lines).strip() + "\n"
