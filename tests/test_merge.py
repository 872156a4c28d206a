from datetime import datetime, timedelta, timezone

from releasefeed.merge import merge_releases
from releasefeed.models import MergeOptions, Release

NOW = datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc)


def _release(title: str, days: float | None, url: str | None = None) -> Release:
    instant = NOW + timedelta(days=days) if days is not None else None
    return Release(title=title, release_instant=instant, url=url or f"https://example.com/{title}")


def _titles(releases: list[Release]) -> list[str]:
    return [r.title for r in releases]


def test_identical_urls_keep_one() -> None:
    current = [
        _release("Nike Dunk Low Panda", 3, url="https://example.com/x"),
        _release("Adidas Samba Cloud", 4, url="https://example.com/x"),
    ]
    result = merge_releases(current, [], MergeOptions(), now=NOW)
    assert _titles(result.releases) == ["Nike Dunk Low Panda"]
    assert result.metadata["duplicates_removed"] == 1


def test_similar_titles_collapse_across_sources() -> None:
    current = [_release("Air Jordan 1 Retro High", 2)]
    historical = [_release("air jordan 1 retro high!!", -2)]
    result = merge_releases(current, historical, MergeOptions(include_historical=True), now=NOW)
    assert _titles(result.releases) == ["Air Jordan 1 Retro High"]


def test_current_only_is_ascending_with_undated_last() -> None:
    current = [
        _release("Later Drop", 5),
        _release("Undated Drop", None),
        _release("Sooner Drop", 1),
    ]
    result = merge_releases(current, [_release("Old Drop", -3)], MergeOptions(), now=NOW)
    assert _titles(result.releases) == ["Sooner Drop", "Later Drop", "Undated Drop"]
    assert result.metadata["mode"] == "current"


def test_mixed_puts_upcoming_before_historical() -> None:
    current = [_release("Upcoming Drop", 2)]
    historical = [_release("Past Drop", -10)]
    result = merge_releases(current, historical, MergeOptions(include_historical=True), now=NOW)
    assert _titles(result.releases) == ["Upcoming Drop", "Past Drop"]
    assert result.metadata["mode"] == "mixed"


def test_mixed_orders_each_partition() -> None:
    current = [
        _release("Upcoming Far", 9),
        _release("Released Recently", -1),
        _release("Upcoming Near", 1),
    ]
    historical = [_release("Released Earlier", -5), _release("Released Latest", -0.5)]
    result = merge_releases(current, historical, MergeOptions(include_historical=True), now=NOW)
    assert _titles(result.releases) == [
        "Upcoming Near",
        "Upcoming Far",
        "Released Latest",
        "Released Recently",
        "Released Earlier",
    ]


def test_mixed_puts_undated_last_and_keeps_tie_order() -> None:
    current = [_release("Charlie Undated", None), _release("Delta Past", -1)]
    historical = [_release("Alpha Model", -1), _release("Bravo Model", -1)]
    result = merge_releases(current, historical, MergeOptions(include_historical=True), now=NOW)
    assert _titles(result.releases) == ["Delta Past", "Alpha Model", "Bravo Model", "Charlie Undated"]


def test_historical_only_ties_keep_input_order() -> None:
    historical = [_release("Echo Drop", -3), _release("Alpha Model", -1), _release("Bravo Model", -1)]
    result = merge_releases([], historical, MergeOptions(historical_only=True), now=NOW)
    assert _titles(result.releases) == ["Alpha Model", "Bravo Model", "Echo Drop"]


def test_historical_only_is_descending_and_window_bounded() -> None:
    current = [_release("Upcoming Drop", 2)]
    historical = [
        _release("Two Days Ago", -2),
        _release("Ten Days Ago", -10),
        _release("Forty Days Ago", -40),
        _release("Undated Past", None),
    ]
    options = MergeOptions(historical_only=True, weeks_back=2)
    result = merge_releases(current, historical, options, now=NOW)
    assert _titles(result.releases) == ["Two Days Ago", "Ten Days Ago"]
    assert result.metadata["mode"] == "historical_only"
    assert result.metadata["historical_in_window"] == 2

    wider = merge_releases(current, historical, MergeOptions(historical_only=True, weeks_back=8), now=NOW)
    assert _titles(wider.releases) == ["Two Days Ago", "Ten Days Ago", "Forty Days Ago"]


def test_limit_truncates_after_ordering() -> None:
    current = [
        _release("Third Drop", 3),
        _release("First Drop", 1),
        _release("Second Drop", 2),
    ]
    result = merge_releases(current, [], MergeOptions(limit=1), now=NOW)
    assert _titles(result.releases) == ["First Drop"]
    assert result.metadata["total_before_limit"] == 3
    assert result.metadata["count"] == 1


def test_ties_keep_input_order() -> None:
    current = [_release("Alpha Model", 2), _release("Bravo Model", 2), _release("Charlie Model", 2)]
    result = merge_releases(current, [], MergeOptions(), now=NOW)
    assert _titles(result.releases) == ["Alpha Model", "Bravo Model", "Charlie Model"]


def test_empty_batches_and_metadata() -> None:
    result = merge_releases([], [], MergeOptions(weeks_back=50), now=NOW)
    assert result.releases == []
    assert result.metadata["total_before_limit"] == 0
    assert result.metadata["weeks_back"] == 12
    assert result.metadata["window_end"] == "2025-11-01T23:59:59.999Z"
