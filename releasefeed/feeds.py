"""Candidate record sources: JSON candidate files and RSS/Atom documents."""

from __future__ import annotations

import calendar
import html
import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import feedparser

from .models import CandidateRecord, SourceTag

_TAG_RE = re.compile(r"<[^>]+>")
_LOGGER = logging.getLogger(__name__)

_CANDIDATE_FIELDS = ("brand_hint", "date_text", "url", "image", "source", "price_hint")


def _strip_html(value: str) -> str:
    if not value:
        return ""
    text = _TAG_RE.sub(" ", value)
    text = html.unescape(text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def candidate_from_mapping(
    entry: dict[str, Any], source_tag: SourceTag
) -> CandidateRecord | None:
    title = entry.get("title")
    if not isinstance(title, str) or not title.strip():
        return None
    values = {key: _optional_str(entry.get(key)) for key in _CANDIDATE_FIELDS}
    return CandidateRecord(title=title.strip(), source_tag=source_tag, **values)


def load_candidate_file(path: Path) -> dict[SourceTag, list[CandidateRecord]]:
    """Read ``{"current": [...], "historical": [...]}`` candidate batches."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path.name} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} must contain a mapping at the top level")

    batches: dict[SourceTag, list[CandidateRecord]] = {}
    for tag in SourceTag:
        raw = data.get(tag.value, [])
        if not isinstance(raw, list):
            raise ValueError(f"'{tag.value}' in {path.name} must be a list")
        batch: list[CandidateRecord] = []
        for index, entry in enumerate(raw):
            candidate = None
            if isinstance(entry, dict):
                candidate = candidate_from_mapping(entry, tag)
            if candidate is None:
                _LOGGER.warning(
                    "Skipping %s candidate #%s in %s: missing title",
                    tag.value,
                    index,
                    path.name,
                )
                continue
            batch.append(candidate)
        batches[tag] = batch
    return batches


def _entry_date_text(entry: dict[str, Any]) -> str | None:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if parsed is not None:
        try:
            timestamp = calendar.timegm(parsed)
        except (TypeError, OverflowError):
            timestamp = None
        if timestamp is not None:
            return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")
    # Fall back to the raw text so year-less stamps like "Sep 13" still parse.
    return _optional_str(entry.get("published") or entry.get("updated"))


def _entry_image(entry: dict[str, Any]) -> str | None:
    for key in ("media_thumbnail", "media_content"):
        media = entry.get(key)
        if isinstance(media, list) and media and isinstance(media[0], dict):
            url = _optional_str(media[0].get("url"))
            if url:
                return url
    for link in entry.get("links", []) or []:
        if link.get("rel") == "enclosure" and str(link.get("type", "")).startswith("image/"):
            return _optional_str(link.get("href"))
    return None


def _normalize_entry(
    entry: dict[str, Any],
    source_name: str | None,
    source_tag: SourceTag,
) -> CandidateRecord:
    return CandidateRecord(
        title=_strip_html((entry.get("title") or "").strip()),
        brand_hint=_optional_str(entry.get("category")),
        date_text=_entry_date_text(entry),
        url=_optional_str(entry.get("link")),
        image=_entry_image(entry),
        source_tag=source_tag,
        source=source_name,
    )


def load_feed_candidates(
    documents: list[str],
    source_tag: SourceTag,
) -> tuple[list[CandidateRecord], dict[str, int]]:
    """Parse RSS/Atom documents (paths or raw XML) into candidate records."""
    candidates: list[CandidateRecord] = []
    stats = {"feeds_total": 0, "feeds_ok": 0, "feeds_failed": 0}

    for document in documents:
        stats["feeds_total"] += 1
        try:
            parsed = feedparser.parse(document)
        except Exception as exc:
            stats["feeds_failed"] += 1
            _LOGGER.warning("Failed to parse feed '%s': %s", document, exc)
            continue
        if parsed.get("bozo") and not parsed.entries:
            stats["feeds_failed"] += 1
            _LOGGER.warning(
                "Feed '%s' is unreadable: %s", document, parsed.get("bozo_exception")
            )
            continue
        stats["feeds_ok"] += 1
        name = _optional_str(parsed.feed.get("title"))
        for entry in parsed.entries:
            candidate = _normalize_entry(entry, name, source_tag)
            if candidate.title:
                candidates.append(candidate)
    return candidates, stats
