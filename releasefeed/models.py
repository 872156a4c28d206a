"""Record types passed between scrapers, the merge engine and output."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class SourceTag(str, Enum):
    CURRENT = "current"
    HISTORICAL = "historical"


@dataclass(frozen=True)
class CandidateRecord:
    title: str
    brand_hint: str | None = None
    date_text: str | None = None
    url: str | None = None
    image: str | None = None
    source_tag: SourceTag = SourceTag.CURRENT
    source: str | None = None
    price_hint: str | None = None


@dataclass(frozen=True)
class Release:
    title: str
    brand: str | None = None
    release_instant: datetime | None = None
    url: str | None = None
    image: str | None = None
    source: str | None = None
    price_hint: str | None = None

    def to_dict(self) -> dict[str, Any]:
        release_date = None
        if self.release_instant is not None:
            release_date = format_instant(self.release_instant)
        return {
            "title": self.title,
            "brand": self.brand,
            "release_date": release_date,
            "url": self.url,
            "image": self.image,
            "source": self.source,
            "price_hint": self.price_hint,
        }


@dataclass(frozen=True)
class DateWindow:
    start: datetime
    end: datetime
    weeks_back: int


@dataclass(frozen=True)
class MergeOptions:
    include_historical: bool = False
    historical_only: bool = False
    limit: int = 15
    weeks_back: int = 2


@dataclass(frozen=True)
class MergeResult:
    releases: list[Release] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


def format_instant(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
