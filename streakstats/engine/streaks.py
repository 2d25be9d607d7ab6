"""
Streak statistics: pure functions, no I/O and no clock access.

Every date is a local date key (`YYYY-MM-DD`) in the viewer's calendar. A day
missing from the contribution map counts exactly like a day with zero
activity: it adds nothing to the total and breaks any run.
"""
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from datetime import datetime
from datetime import timedelta

from streakstats.core.dates import local_day_keys
from streakstats.core.dates import parse_date_key

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class StreakStats:
    current_streak: int = 0
    longest_streak: int = 0
    total_commits: int = 0
    last_active_date: str | None = None


def _normalize_count(raw_count: object) -> int:
    # bool is an int subclass; it is not a count.
    if isinstance(raw_count, bool) or not isinstance(raw_count, int):
        return 0
    return max(raw_count, 0)


def in_range_days(
    contributions: Mapping[str, int], today: date
) -> list[tuple[date, int]]:
    """Sorted `(day, count)` pairs up to and including `today`.

    Malformed keys and future-dated entries are dropped.
    """
    days: list[tuple[date, int]] = []
    for raw_key, raw_count in contributions.items():
        day = parse_date_key(raw_key)
        if day is None or day > today:
            continue
        days.append((day, _normalize_count(raw_count)))
    days.sort(key=lambda item: item[0])
    return days


def current_streak(
    counts_by_day: Mapping[date, int], today: date, yesterday: date
) -> int:
    """
    Consecutive active days ending today, or ending yesterday when today has
    no activity yet. Returns 0 when neither day is active.
    """
    if counts_by_day.get(today, 0) > 0:
        cursor = today
    elif counts_by_day.get(yesterday, 0) > 0:
        cursor = yesterday
    else:
        return 0

    streak = 0
    while counts_by_day.get(cursor, 0) > 0:
        streak += 1
        cursor -= ONE_DAY
    return streak


def longest_streak(days: list[tuple[date, int]]) -> int:
    """Longest run of consecutive active calendar days in ascending `days`."""
    longest = 0
    run = 0
    previous: date | None = None

    for day, count in days:
        if count <= 0:
            run = 0
        elif run and previous is not None and day - previous == ONE_DAY:
            run += 1
        else:
            run = 1
        previous = day
        longest = max(longest, run)

    return longest


def compute_streaks(
    contributions: Mapping[str, int],
    as_of: datetime,
    offset_minutes: int,
) -> StreakStats:
    """
    Compute streak statistics for `contributions` as seen at `as_of` in the
    local calendar given by `offset_minutes` (minutes east of UTC).
    """
    today_key, yesterday_key = local_day_keys(as_of, offset_minutes)
    today = date.fromisoformat(today_key)
    yesterday = date.fromisoformat(yesterday_key)

    days = in_range_days(contributions, today)
    counts_by_day = dict(days)

    total = sum(count for _, count in days)
    last_active = next(
        (day.isoformat() for day, count in reversed(days) if count > 0), None
    )

    return StreakStats(
        current_streak=current_streak(counts_by_day, today, yesterday),
        longest_streak=longest_streak(days),
        total_commits=total,
        last_active_date=last_active,
    )
