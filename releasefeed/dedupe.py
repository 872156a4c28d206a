"""Title normalization and similarity-based deduplication."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from .models import Release

_NON_WORD_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")

SIMILARITY_THRESHOLD = 0.8

_LOGGER = logging.getLogger(__name__)


def normalize_title(title: str | None) -> str:
    if not title:
        return ""
    cleaned = _NON_WORD_RE.sub("", title.lower())
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    return cleaned


def _significant_words(normalized: str) -> set[str]:
    return {word for word in normalized.split(" ") if len(word) > 2}


def are_similar(a: str, b: str, threshold: float = SIMILARITY_THRESHOLD) -> bool:
    """Loose bag-of-words match between two normalized titles.

    Only words longer than two characters count. The overlap is divided by
    the larger word set, so one title carrying several extra words is not a
    match. Distinct colorways of the same model can still collapse.
    """
    words_a = _significant_words(a)
    words_b = _significant_words(b)
    if not words_a or not words_b:
        return False
    ratio = len(words_a & words_b) / max(len(words_a), len(words_b))
    return ratio >= threshold


def dedupe_releases(
    releases: Iterable[Release],
    threshold: float = SIMILARITY_THRESHOLD,
) -> tuple[list[Release], int]:
    """Drop repeats by URL or similar title. The first occurrence is kept."""
    seen_urls: set[str] = set()
    kept_titles: list[str] = []
    kept: list[Release] = []
    dropped = 0
    for release in releases:
        key = normalize_title(release.title)
        if not key:
            _LOGGER.debug("Dropping release without a usable title: %r", release.url)
            dropped += 1
            continue
        url = (release.url or "").strip()
        if url:
            if url in seen_urls:
                dropped += 1
                continue
            # Marked seen even if the title check below drops this record.
            seen_urls.add(url)
        if any(are_similar(key, other, threshold) for other in kept_titles):
            _LOGGER.debug("Dropping near-duplicate title: %r", release.title)
            dropped += 1
            continue
        kept_titles.append(key)
        kept.append(release)
    return kept, dropped
