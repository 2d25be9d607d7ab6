from datetime import UTC
from datetime import date
from datetime import datetime
from datetime import timedelta


def parse_github_datetime(raw_value: str) -> datetime:
    return datetime.fromisoformat(raw_value.replace("Z", "+00:00"))


def to_local_date_key(instant: datetime, offset_minutes: int) -> str:
    """Return the `YYYY-MM-DD` key of the local day containing `instant`.

    `offset_minutes` is the viewer's UTC offset, in minutes east of UTC.
    Naive instants are interpreted as UTC.
    """

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    shifted = instant.astimezone(UTC) + timedelta(minutes=offset_minutes)
    return shifted.date().isoformat()


def local_day_keys(as_of: datetime, offset_minutes: int) -> tuple[str, str]:
    """Return `(today, yesterday)` local date keys for one reference instant."""

    today = to_local_date_key(as_of, offset_minutes)
    yesterday = to_local_date_key(as_of - timedelta(hours=24), offset_minutes)
    return today, yesterday


def parse_date_key(raw_value: object) -> date | None:
    """Parse a strict `YYYY-MM-DD` key, returning None for anything else."""

    if not isinstance(raw_value, str):
        return None
    try:
        parsed = date.fromisoformat(raw_value)
    except ValueError:
        return None
    # fromisoformat also takes compact and week forms; keys must round-trip.
    if parsed.isoformat() != raw_value:
        return None
    return parsed
