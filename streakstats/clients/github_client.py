from collections.abc import Mapping
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from typing import Any

import httpx


USER_AGENT = "github-streak-stats"

USER_META_QUERY = """
query($login: String!) {
  user(login: $login) {
    createdAt
    contributionsCollection {
      contributionYears
    }
  }
}
"""

YEAR_CONTRIBUTIONS_QUERY = """
query($login: String!, $from: DateTime!, $to: DateTime!) {
  user(login: $login) {
    contributionsCollection(from: $from, to: $to) {
      contributionCalendar {
        totalContributions
        weeks {
          contributionDays {
            date
            contributionCount
          }
        }
      }
    }
  }
}
"""


def _graphql_headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "User-Agent": USER_AGENT,
    }


def _post_graphql(
    graphql_url: str, token: str, query: str, variables: dict[str, object]
) -> Mapping[str, Any]:
    """Run a GraphQL query and return the `user` object of the response."""

    if not token:
        raise ValueError("GITHUB_TOKEN is required for GraphQL requests")

    response = httpx.post(
        graphql_url,
        json={"query": query, "variables": variables},
        headers=_graphql_headers(token),
        timeout=20.0,
    )
    response.raise_for_status()

    payload = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("GitHub GraphQL response is invalid")

    errors = payload.get("errors")
    if errors:
        if isinstance(errors, list) and any(
            isinstance(error, Mapping) and error.get("type") == "NOT_FOUND"
            for error in errors
        ):
            raise LookupError("GitHub user not found")
        raise ValueError("GitHub GraphQL returned errors")

    data = payload.get("data")
    if not isinstance(data, Mapping):
        raise ValueError("GitHub GraphQL data is missing")

    user = data.get("user")
    if not isinstance(user, Mapping):
        raise LookupError("GitHub user not found")

    return user


def fetch_user_meta(
    username: str, token: str, graphql_url: str
) -> dict[str, str | list[int] | None]:
    """Fetch account creation date and the years GitHub reports activity in."""

    user = _post_graphql(graphql_url, token, USER_META_QUERY, {"login": username})

    raw_created_at = user.get("createdAt")
    created_at = raw_created_at if isinstance(raw_created_at, str) else None

    years: list[int] = []
    collection = user.get("contributionsCollection")
    if isinstance(collection, Mapping):
        raw_years = collection.get("contributionYears")
        if isinstance(raw_years, list):
            years = [
                year
                for year in raw_years
                if isinstance(year, int) and not isinstance(year, bool)
            ]

    return {"created_at": created_at, "contribution_years": years}


def year_window(year: int, offset_minutes: int) -> tuple[str, str]:
    """Return the ISO instants bounding a calendar year in the local offset."""

    tz = timezone(timedelta(minutes=offset_minutes))
    start = datetime(year, 1, 1, tzinfo=tz)
    end = datetime(year, 12, 31, 23, 59, 59, tzinfo=tz)
    return start.isoformat(), end.isoformat()


def fetch_year_contributions(
    username: str,
    year: int,
    token: str,
    graphql_url: str,
    offset_minutes: int = 0,
) -> dict[str, object]:
    """Fetch one calendar year of contribution days for a user."""

    from_instant, to_instant = year_window(year, offset_minutes)
    user = _post_graphql(
        graphql_url,
        token,
        YEAR_CONTRIBUTIONS_QUERY,
        {"login": username, "from": from_instant, "to": to_instant},
    )

    collection = user.get("contributionsCollection")
    if not isinstance(collection, Mapping):
        raise ValueError("GitHub contributionsCollection is missing")

    calendar = collection.get("contributionCalendar")
    if not isinstance(calendar, Mapping):
        raise ValueError("GitHub contributionCalendar is missing")

    weeks = calendar.get("weeks")
    if not isinstance(weeks, list):
        raise ValueError("GitHub contribution weeks are missing")

    days: list[dict[str, str | int]] = []
    for week in weeks:
        if not isinstance(week, Mapping):
            continue
        contribution_days = week.get("contributionDays")
        if not isinstance(contribution_days, list):
            continue
        for item in contribution_days:
            if not isinstance(item, Mapping):
                continue
            raw_date = item.get("date")
            raw_count = item.get("contributionCount")
            if isinstance(raw_date, str) and isinstance(raw_count, int):
                days.append({"date": raw_date, "count": raw_count})

    raw_total = calendar.get("totalContributions")
    total = raw_total if isinstance(raw_total, int) else sum(
        int(day["count"]) for day in days
    )

    return {"total": total, "days": days}


def fetch_public_events(
    username: str,
    api_base_url: str,
    max_pages: int = 3,
) -> list[dict[str, Any]]:
    """Fetch recent public events from the GitHub REST API.

    Sent without credentials; GitHub only keeps the last 90 days and at most
    300 events here, so this is a best-effort source.
    """

    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": USER_AGENT,
    }

    events: list[dict[str, Any]] = []
    for page in range(1, max_pages + 1):
        response = httpx.get(
            f"{api_base_url.rstrip('/')}/users/{username}/events/public",
            params={"per_page": 100, "page": page},
            headers=headers,
            timeout=15.0,
        )
        if response.status_code == 404:
            raise LookupError("GitHub user not found")
        response.raise_for_status()

        payload: Any = response.json()
        if not isinstance(payload, list):
            raise ValueError("GitHub events response is invalid")

        events.extend(item for item in payload if isinstance(item, Mapping))
        if len(payload) < 100:
            break

    return events
