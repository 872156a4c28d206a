"""Candidate record to Release conversion."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Iterable

from .brands import resolve_brand
from .config import DEFAULT_POLICY, Policy
from .dates import normalize_date, resolve_now
from .models import CandidateRecord, Release, SourceTag

_TRAILING_PRICE_RE = re.compile(r"\s*\$\d+(?:\.\d{2})?$")

_LOGGER = logging.getLogger(__name__)


def _clean(value: str | None) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _clean_title(title: str | None) -> str:
    if not isinstance(title, str):
        return ""
    cleaned = _TRAILING_PRICE_RE.sub("", title)
    return re.sub(r"\s+", " ", cleaned).strip()


def build_release(
    candidate: CandidateRecord,
    now: datetime | None = None,
    policy: Policy = DEFAULT_POLICY,
) -> Release | None:
    title = _clean_title(candidate.title)
    if not title:
        _LOGGER.debug("Skipping candidate without a title: %r", candidate.url)
        return None
    allow_historical = candidate.source_tag == SourceTag.HISTORICAL
    return Release(
        title=title,
        brand=resolve_brand(candidate.brand_hint, title, policy),
        release_instant=normalize_date(candidate.date_text, allow_historical, now, policy),
        url=_clean(candidate.url),
        image=_clean(candidate.image),
        source=_clean(candidate.source),
        price_hint=_clean(candidate.price_hint),
    )


def build_releases(
    candidates: Iterable[CandidateRecord],
    now: datetime | None = None,
    policy: Policy = DEFAULT_POLICY,
) -> list[Release]:
    reference = resolve_now(now)
    releases: list[Release] = []
    for candidate in candidates:
        release = build_release(candidate, reference, policy)
        if release is not None:
            releases.append(release)
    return releases
