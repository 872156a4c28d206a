import json
from datetime import datetime, timezone
from pathlib import Path

from releasefeed.feeds import load_candidate_file
from releasefeed.main import build_feed, main
from releasefeed.models import MergeOptions

ROOT = Path(__file__).resolve().parent.parent
FIXTURES = ROOT / "tests" / "fixtures"
NOW = "2025-11-01T12:00:00Z"


def _run(tmp_path: Path, *extra: str) -> dict:
    output = tmp_path / "feed.json"
    code = main(
        [
            "--candidates",
            str(FIXTURES / "sample_candidates.json"),
            "--config",
            str(ROOT / "policy.yaml"),
            "--now",
            NOW,
            "--output",
            str(output),
            *extra,
        ]
    )
    assert code == 0
    return json.loads(output.read_text(encoding="utf-8"))


def test_current_feed_is_ascending_and_deduplicated(tmp_path: Path) -> None:
    payload = _run(tmp_path)
    titles = [r["title"] for r in payload["results"]]
    assert titles == [
        'Nike Air Trainer Huarache "Baroque Brown"',
        'Air Jordan 11 Retro "Pearl"',
        'New Balance 990v6 "Grey"',
    ]
    assert payload["results"][1]["release_date"] == "2025-11-11T12:00:00.000Z"
    assert payload["results"][2]["release_date"] is None
    meta = payload["meta"]
    assert meta["mode"] == "current"
    assert meta["duplicates_removed"] == 1
    assert meta["last_updated"] == "2025-11-01T12:00:00.000Z"
    assert meta["window_description"] == "Past 2 weeks (2025-10-18 - 2025-11-01)"


def test_mixed_feed_with_limit(tmp_path: Path) -> None:
    payload = _run(tmp_path, "--include-historical", "--limit", "3")
    titles = [r["title"] for r in payload["results"]]
    assert titles == [
        'Nike Air Trainer Huarache "Baroque Brown"',
        'Air Jordan 11 Retro "Pearl"',
        'Adidas Samba OG "Cloud White"',
    ]
    assert payload["meta"]["total_before_limit"] == 4
    assert payload["meta"]["historical_in_window"] == 1


def test_historical_only_and_brand_filter(tmp_path: Path) -> None:
    payload = _run(tmp_path, "--historical-only", "--weeks-back", "20")
    assert [r["title"] for r in payload["results"]] == [
        'Adidas Samba OG "Cloud White"',
        'Puma Speedcat "Red"',
    ]
    assert payload["meta"]["weeks_back"] == 12

    branded = _run(tmp_path, "--include-historical", "--brand", "jordan")
    assert [r["brand"] for r in branded["results"]] == ["Jordan"]


def test_markdown_output(tmp_path: Path) -> None:
    output = tmp_path / "feed.md"
    code = main(
        [
            "--candidates",
            str(FIXTURES / "sample_candidates.json"),
            "--config",
            str(tmp_path / "missing.yaml"),
            "--now",
            NOW,
            "--include-historical",
            "--markdown",
            "--output",
            str(output),
        ]
    )
    assert code == 0
    text = output.read_text(encoding="utf-8")
    assert text.startswith("# Release Feed - Saturday, 2025-11-01")
    assert "## Upcoming" in text
    assert "- **Adidas Samba OG \"Cloud White\"** (Adidas)" in text
    assert "  - Date: TBA" in text


def test_bad_inputs_return_error(tmp_path: Path) -> None:
    bad_config = tmp_path / "policy.yaml"
    bad_config.write_text("[1, 2]", encoding="utf-8")
    assert main(["--config", str(bad_config)]) == 1
    assert main(["--config", str(tmp_path / "none.yaml"), "--now", "yesterday"]) == 1


def test_build_feed_applies_time_filter() -> None:
    batches = load_candidate_file(FIXTURES / "sample_candidates.json")
    now = datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc)
    result = build_feed(batches, MergeOptions(include_historical=True), now, time_filter="nov 11")
    assert [r.title for r in result.releases] == ['Air Jordan 11 Retro "Pearl"']
