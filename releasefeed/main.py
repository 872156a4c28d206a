"""Command-line entrypoint: build a merged release feed from candidate sources."""

from __future__ import annotations

import argparse
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import DEFAULT_POLICY, Policy, coerce_limit, load_policy
from .dates import resolve_now
from .feeds import load_candidate_file, load_feed_candidates
from .filters import filter_by_brand, filter_by_time
from .merge import merge_releases
from .models import CandidateRecord, MergeOptions, MergeResult, SourceTag, format_instant
from .releases import build_releases
from .render_md import render_markdown
from .window import coerce_weeks_back, compute_window, describe_window

_DEFAULT_CONFIG = Path("policy.yaml")

_LOGGER = logging.getLogger(__name__)


def _parse_now(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError(f"Invalid --now value '{value}': expected ISO-8601") from exc
    return resolve_now(parsed)


def _collect_candidates(
    args: argparse.Namespace,
) -> tuple[dict[SourceTag, list[CandidateRecord]], dict[str, int]]:
    batches: dict[SourceTag, list[CandidateRecord]] = {tag: [] for tag in SourceTag}
    feed_stats = {"feeds_total": 0, "feeds_ok": 0, "feeds_failed": 0}

    if args.candidates:
        loaded = load_candidate_file(Path(args.candidates))
        for tag, candidates in loaded.items():
            batches[tag].extend(candidates)

    for documents, tag in (
        (args.feed, SourceTag.CURRENT),
        (args.historical_feed, SourceTag.HISTORICAL),
    ):
        if not documents:
            continue
        candidates, stats = load_feed_candidates(documents, tag)
        batches[tag].extend(candidates)
        for key in feed_stats:
            feed_stats[key] += stats.get(key, 0)

    return batches, feed_stats


def build_feed(
    batches: dict[SourceTag, list[CandidateRecord]],
    options: MergeOptions,
    now: datetime,
    policy: Policy = DEFAULT_POLICY,
    brand: str = "",
    time_filter: str = "",
) -> MergeResult:
    current = build_releases(batches.get(SourceTag.CURRENT, []), now, policy)
    historical = build_releases(batches.get(SourceTag.HISTORICAL, []), now, policy)

    if brand:
        current = filter_by_brand(current, brand)
        historical = filter_by_brand(historical, brand)
    if time_filter:
        current = filter_by_time(current, time_filter, now)
        historical = filter_by_time(historical, time_filter, now)

    return merge_releases(current, historical, options, now, policy)


def build_payload(result: MergeResult, now: datetime, policy: Policy = DEFAULT_POLICY) -> dict[str, Any]:
    window = compute_window(result.metadata.get("weeks_back"), now, policy)
    meta = dict(result.metadata)
    meta["window_description"] = describe_window(window)
    meta["last_updated"] = format_instant(now)
    return {
        "results": [release.to_dict() for release in result.releases],
        "meta": meta,
    }


def _write_output(text: str, output: str) -> bool:
    if not output:
        print(text)
        return True
    try:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
        return True
    except OSError as exc:
        _LOGGER.warning("Failed to write output: %s", exc)
        return False


def _configure_logging() -> None:
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Merge release listings into one feed")
    parser.add_argument("--candidates", default="", help="JSON file with current/historical batches")
    parser.add_argument("--feed", action="append", default=[], help="RSS/Atom document of current releases")
    parser.add_argument(
        "--historical-feed", action="append", default=[], help="RSS/Atom document of past releases"
    )
    parser.add_argument("--config", default=str(_DEFAULT_CONFIG))
    parser.add_argument("--include-historical", action="store_true")
    parser.add_argument("--historical-only", action="store_true")
    parser.add_argument("--weeks-back", default=None)
    parser.add_argument("--limit", default=None)
    parser.add_argument("--brand", default="")
    parser.add_argument("--time", default="", help="today, week, weekend, tomorrow, 'nov 12', ...")
    parser.add_argument("--now", default="", help="reference time (ISO-8601), defaults to now")
    parser.add_argument("--markdown", action="store_true")
    parser.add_argument("--output", default="")
    return parser


def main(argv: list[str] | None = None) -> int:
    _configure_logging()
    args = _build_parser().parse_args(argv)

    config_path = Path(args.config)
    try:
        policy = load_policy(config_path) if config_path.exists() else DEFAULT_POLICY
        now = _parse_now(args.now) if args.now else datetime.now(timezone.utc)
        batches, feed_stats = _collect_candidates(args)
    except ValueError as exc:
        _LOGGER.error("Config error: %s", exc)
        return 1
    except OSError as exc:
        _LOGGER.error("Input error: %s", exc)
        return 1

    options = MergeOptions(
        include_historical=args.include_historical,
        historical_only=args.historical_only,
        limit=coerce_limit(args.limit, policy),
        weeks_back=coerce_weeks_back(args.weeks_back, policy),
    )
    result = build_feed(batches, options, now, policy, args.brand, args.time)

    if args.markdown:
        text = render_markdown(result.releases, now)
    else:
        text = json.dumps(build_payload(result, now, policy), indent=2)
    written = _write_output(text, args.output)

    meta = result.metadata
    _LOGGER.info("Run summary")
    _LOGGER.info(
        "Candidates: current=%s historical=%s",
        len(batches[SourceTag.CURRENT]),
        len(batches[SourceTag.HISTORICAL]),
    )
    _LOGGER.info(
        "Merge: mode=%s in_window=%s duplicates=%s total=%s final=%s",
        meta.get("mode"),
        meta.get("historical_in_window"),
        meta.get("duplicates_removed"),
        meta.get("total_before_limit"),
        meta.get("count"),
    )
    _LOGGER.info(
        "Feeds: total=%s ok=%s failed=%s",
        feed_stats.get("feeds_total"),
        feed_stats.get("feeds_ok"),
        feed_stats.get("feeds_failed"),
    )
    _LOGGER.info("Output written=%s", written)

    return 0 if written else 1


if __name__ == "__main__":
    raise SystemExit(main())
