"""Year-by-year assembly of a user's contribution history.

GitHub serves contributions one calendar year at a time. We walk backward
from the current year and stop as soon as the streak cannot reach further
back. The stop rule is a heuristic: a run that pauses and resumes across a
year boundary without touching January 1st can end up mis-scoped. That is
accepted in exchange for not fetching unbounded history.
"""

import logging
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from functools import reduce
from time import monotonic
from types import MappingProxyType

from streakstats.core.dates import parse_date_key
from streakstats.core.dates import parse_github_datetime
from streakstats.core.dates import to_local_date_key


logger = logging.getLogger(__name__)

ContributionMap = Mapping[str, int]
YearFetcher = Callable[[int], Mapping[str, object]]


class HistoryDecision(Enum):
    NEED_MORE_HISTORY = "need_more_history"
    DONE = "done"


def year_days_to_map(year_data: Mapping[str, object]) -> dict[str, int]:
    """Turn a collector year payload into `{date: count}`, skipping bad rows."""

    raw_days = year_data.get("days")
    if not isinstance(raw_days, list):
        return {}

    counts: dict[str, int] = {}
    for item in raw_days:
        if not isinstance(item, Mapping):
            continue
        raw_day = item.get("date")
        raw_count = item.get("count")
        if parse_date_key(raw_day) is None:
            continue
        if isinstance(raw_count, bool) or not isinstance(raw_count, int):
            continue
        if raw_count < 0:
            continue
        counts[raw_day] = raw_count
    return counts


def merge_years(years: Iterable[Mapping[str, int]]) -> ContributionMap:
    """Fold per-year maps, newest first, into one read-only map.

    Calendar weeks spill over year boundaries, so the same day can appear in
    two payloads. The newer year's value wins.
    """

    merged = reduce(lambda acc, year: {**year, **acc}, years, {})
    return MappingProxyType(merged)


def earliest_history_year(
    meta: Mapping[str, object], current_year: int
) -> int:
    """Earliest year worth fetching: not before account creation or first activity."""

    bounds: list[int] = []

    raw_created_at = meta.get("created_at")
    if isinstance(raw_created_at, str):
        try:
            bounds.append(parse_github_datetime(raw_created_at).year)
        except ValueError:
            logger.warning("Ignoring malformed createdAt value %r", raw_created_at)

    raw_years = meta.get("contribution_years")
    if isinstance(raw_years, list):
        years = [year for year in raw_years if isinstance(year, int)]
        if years:
            bounds.append(min(years))

    if not bounds:
        return current_year
    return min(max(bounds), current_year)


def next_history_step(
    year_days: Mapping[str, int],
    year: int,
    current_year: int,
    earliest_year: int,
    max_years: int,
) -> HistoryDecision:
    """Decide whether the year before `year` must be fetched as well."""

    if year_days.get(f"{year}-01-01", 0) <= 0:
        return HistoryDecision.DONE
    if year <= earliest_year:
        return HistoryDecision.DONE
    if current_year - year + 1 >= max_years:
        return HistoryDecision.DONE
    return HistoryDecision.NEED_MORE_HISTORY


def assemble_contribution_history(
    fetch_year: YearFetcher,
    current_year: int,
    earliest_year: int,
    max_years: int,
    deadline: float | None = None,
) -> ContributionMap:
    """Fetch years newest first until `next_history_step` says we are done.

    `deadline` is a `time.monotonic()` value. Once it has passed no further
    year is requested and the history gathered so far is used.
    """

    fetched: list[dict[str, int]] = []
    year = current_year

    while True:
        if fetched and deadline is not None and monotonic() >= deadline:
            logger.warning(
                "History fetch budget exhausted before year %s; using %s year(s)",
                year,
                len(fetched),
            )
            break

        year_days = year_days_to_map(fetch_year(year))
        fetched.append(year_days)
        logger.debug("Fetched %s contribution days for %s", len(year_days), year)

        decision = next_history_step(
            year_days, year, current_year, earliest_year, max_years
        )
        if decision is HistoryDecision.DONE:
            break
        year -= 1

    return merge_years(fetched)


def contributions_from_events(
    events: Iterable[Mapping[str, object]], offset_minutes: int
) -> ContributionMap:
    """Bucket raw event timestamps into local days."""

    counts: dict[str, int] = {}
    for event in events:
        created_at_raw = event.get("created_at")
        if not isinstance(created_at_raw, str):
            continue
        try:
            created_at = parse_github_datetime(created_at_raw)
        except ValueError:
            continue
        day = to_local_date_key(created_at, offset_minutes)
        counts[day] = counts.get(day, 0) + 1

    return MappingProxyType(counts)


def current_local_year(now: datetime, offset_minutes: int) -> int:
    return int(to_local_date_key(now, offset_minutes)[:4])
