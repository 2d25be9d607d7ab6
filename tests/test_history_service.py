from datetime import UTC
from datetime import datetime

import pytest

from streakstats.services import history_service
from streakstats.services.history_service import HistoryDecision
from streakstats.services.history_service import assemble_contribution_history
from streakstats.services.history_service import contributions_from_events
from streakstats.services.history_service import current_local_year
from streakstats.services.history_service import earliest_history_year
from streakstats.services.history_service import merge_years
from streakstats.services.history_service import next_history_step
from streakstats.services.history_service import year_days_to_map


def year_payload(year: int, jan_first_count: int, extra: dict[str, int] | None = None):
    days = [{"date": f"{year}-01-01", "count": jan_first_count}]
    for day, count in (extra or {}).items():
        days.append({"date": day, "count": count})
    return {"total": sum(item["count"] for item in days), "days": days}


class RecordingFetcher:
    def __init__(self, payloads: dict[int, dict[str, object]]) -> None:
        self.payloads = payloads
        self.requested: list[int] = []

    def __call__(self, year: int) -> dict[str, object]:
        self.requested.append(year)
        return self.payloads.get(year, {"total": 0, "days": []})


def test_next_step_done_when_jan_first_empty() -> None:
    decision = next_history_step({"2024-01-01": 0}, 2024, 2024, 2015, 5)

    assert decision is HistoryDecision.DONE


def test_next_step_done_when_jan_first_missing() -> None:
    decision = next_history_step({"2024-01-02": 4}, 2024, 2024, 2015, 5)

    assert decision is HistoryDecision.DONE


def test_next_step_needs_more_when_jan_first_active() -> None:
    decision = next_history_step({"2024-01-01": 2}, 2024, 2024, 2015, 5)

    assert decision is HistoryDecision.NEED_MORE_HISTORY


def test_next_step_done_at_earliest_year() -> None:
    decision = next_history_step({"2020-01-01": 2}, 2020, 2024, 2020, 10)

    assert decision is HistoryDecision.DONE


def test_next_step_done_at_year_cap() -> None:
    assert next_history_step({"2021-01-01": 1}, 2021, 2024, 2000, 5) is (
        HistoryDecision.NEED_MORE_HISTORY
    )
    assert next_history_step({"2020-01-01": 1}, 2020, 2024, 2000, 5) is (
        HistoryDecision.DONE
    )


def test_assemble_stops_after_current_year_without_jan_first_activity() -> None:
    fetcher = RecordingFetcher({2024: year_payload(2024, 0, {"2024-02-03": 3})})

    contributions = assemble_contribution_history(fetcher, 2024, 2015, 5)

    assert fetcher.requested == [2024]
    assert dict(contributions) == {"2024-01-01": 0, "2024-02-03": 3}


def test_assemble_walks_back_while_jan_first_is_active() -> None:
    fetcher = RecordingFetcher(
        {
            2024: year_payload(2024, 1),
            2023: year_payload(2023, 2, {"2023-12-31": 1}),
            2022: year_payload(2022, 0, {"2022-12-31": 5}),
        }
    )

    contributions = assemble_contribution_history(fetcher, 2024, 2015, 5)

    assert fetcher.requested == [2024, 2023, 2022]
    assert contributions["2022-12-31"] == 5
    assert contributions["2023-01-01"] == 2


def test_assemble_respects_year_cap() -> None:
    fetcher = RecordingFetcher(
        {year: year_payload(year, 1) for year in range(2010, 2025)}
    )

    assemble_contribution_history(fetcher, 2024, 2000, 5)

    assert fetcher.requested == [2024, 2023, 2022, 2021, 2020]


def test_assemble_never_fetches_before_earliest_year() -> None:
    fetcher = RecordingFetcher(
        {year: year_payload(year, 1) for year in range(2010, 2025)}
    )

    assemble_contribution_history(fetcher, 2024, 2023, 5)

    assert fetcher.requested == [2024, 2023]


def test_assemble_stops_before_next_fetch_when_deadline_passed(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(history_service, "monotonic", lambda: 100.0)
    fetcher = RecordingFetcher(
        {year: year_payload(year, 1) for year in range(2010, 2025)}
    )

    contributions = assemble_contribution_history(fetcher, 2024, 2000, 5, deadline=50.0)

    assert fetcher.requested == [2024]
    assert dict(contributions) == {"2024-01-01": 1}


def test_assembled_history_is_read_only() -> None:
    fetcher = RecordingFetcher({2024: year_payload(2024, 0)})

    contributions = assemble_contribution_history(fetcher, 2024, 2024, 5)

    with pytest.raises(TypeError):
        contributions["2024-01-02"] = 1  # type: ignore[index]


def test_merge_years_prefers_newer_year_on_overlap() -> None:
    newer = {"2023-12-31": 4, "2024-01-01": 1}
    older = {"2023-12-30": 2, "2023-12-31": 3}

    merged = merge_years([newer, older])

    assert dict(merged) == {"2023-12-30": 2, "2023-12-31": 4, "2024-01-01": 1}


def test_merge_years_of_nothing_is_empty() -> None:
    assert dict(merge_years([])) == {}


def test_year_days_to_map_skips_malformed_rows() -> None:
    payload = {
        "total": 3,
        "days": [
            {"date": "2024-01-01", "count": 1},
            {"date": "2024-01-02"},
            {"date": "yesterday", "count": 4},
            {"date": "2024-01-03", "count": "2"},
            {"date": "2024-01-04", "count": -1},
            {"date": "2024-01-05", "count": True},
            "garbage",
            {"date": "2024-01-06", "count": 2},
        ],
    }

    assert year_days_to_map(payload) == {"2024-01-01": 1, "2024-01-06": 2}


def test_year_days_to_map_handles_missing_days() -> None:
    assert year_days_to_map({"total": 0}) == {}


def test_earliest_history_year_uses_latest_bound() -> None:
    meta = {"created_at": "2019-06-01T10:00:00Z", "contribution_years": [2024, 2021, 2018]}

    assert earliest_history_year(meta, 2024) == 2019


def test_earliest_history_year_prefers_first_activity_year() -> None:
    meta = {"created_at": "2012-06-01T10:00:00Z", "contribution_years": [2024, 2022]}

    assert earliest_history_year(meta, 2024) == 2022


def test_earliest_history_year_defaults_to_current_year() -> None:
    assert earliest_history_year({"created_at": None, "contribution_years": []}, 2024) == 2024
    assert earliest_history_year({"created_at": "garbage"}, 2024) == 2024


def test_contributions_from_events_buckets_by_local_day() -> None:
    events = [
        {"id": "1", "created_at": "2024-02-03T23:30:00Z"},
        {"id": "2", "created_at": "2024-02-03T10:00:00Z"},
        {"id": "3", "created_at": "2024-02-02T08:00:00Z"},
        {"id": "4"},
        {"id": "5", "created_at": "not a timestamp"},
    ]

    assert dict(contributions_from_events(events, 0)) == {
        "2024-02-03": 2,
        "2024-02-02": 1,
    }
    assert dict(contributions_from_events(events, 60)) == {
        "2024-02-04": 1,
        "2024-02-03": 1,
        "2024-02-02": 1,
    }


def test_current_local_year_follows_offset() -> None:
    now = datetime(2024, 12, 31, 23, 0, tzinfo=UTC)

    assert current_local_year(now, 0) == 2024
    assert current_local_year(now, 120) == 2025
