import logging
from collections.abc import Callable
from datetime import UTC
from datetime import datetime
from functools import partial
from time import monotonic
from typing import TypeVar

import httpx

from streakstats.clients.github_client import fetch_public_events
from streakstats.clients.github_client import fetch_user_meta
from streakstats.clients.github_client import fetch_year_contributions
from streakstats.engine.streaks import StreakStats
from streakstats.engine.streaks import compute_streaks
from streakstats.services.history_service import ContributionMap
from streakstats.services.history_service import assemble_contribution_history
from streakstats.services.history_service import contributions_from_events
from streakstats.services.history_service import current_local_year
from streakstats.services.history_service import earliest_history_year
from streakstats.settings import Settings


logger = logging.getLogger(__name__)

T = TypeVar("T")


class InvalidGitHubTokenError(Exception):
    """Raised when GitHub rejects the provided token."""


class GitHubUserNotFoundError(Exception):
    """Raised when GitHub has no user with the requested login."""


class GitHubAPIError(Exception):
    """Raised when GitHub requests fail for non-auth reasons."""


def _call_github(func: Callable[..., T], *args, **kwargs) -> T:
    """Call a collector function, translating failures into service errors."""

    try:
        return func(*args, **kwargs)
    except httpx.HTTPStatusError as exc:
        status_code = exc.response.status_code
        if status_code in {401, 403}:
            raise InvalidGitHubTokenError from exc
        if status_code == 404:
            raise GitHubUserNotFoundError from exc
        raise GitHubAPIError from exc
    except LookupError as exc:
        raise GitHubUserNotFoundError from exc
    except Exception as exc:
        raise GitHubAPIError from exc


def collect_graphql_history(
    username: str,
    token: str,
    app_settings: Settings,
    offset_minutes: int,
    now: datetime,
) -> ContributionMap:
    """Gather as many years of calendar data as the current streak needs."""

    meta = _call_github(
        fetch_user_meta,
        username=username,
        token=token,
        graphql_url=app_settings.github_graphql_url,
    )
    current_year = current_local_year(now, offset_minutes)
    earliest_year = earliest_history_year(meta, current_year)

    fetch_year = partial(
        _call_github,
        fetch_year_contributions,
        username,
        token=token,
        graphql_url=app_settings.github_graphql_url,
        offset_minutes=offset_minutes,
    )

    deadline = None
    if app_settings.history_fetch_budget_seconds is not None:
        deadline = monotonic() + app_settings.history_fetch_budget_seconds

    return assemble_contribution_history(
        fetch_year,
        current_year=current_year,
        earliest_year=earliest_year,
        max_years=app_settings.max_history_years,
        deadline=deadline,
    )


def collect_public_history(
    username: str,
    app_settings: Settings,
    offset_minutes: int,
) -> ContributionMap:
    """Best-effort history from public events, usable without a token."""

    try:
        events = _call_github(
            fetch_public_events,
            username=username,
            api_base_url=app_settings.github_api_base_url,
            max_pages=app_settings.public_events_max_pages,
        )
    except InvalidGitHubTokenError as exc:
        # Unauthenticated 403 here means the anonymous rate limit was hit.
        raise GitHubAPIError("GitHub public API refused the request") from exc

    return contributions_from_events(events, offset_minutes)


def get_streak_stats(
    username: str,
    token: str | None,
    app_settings: Settings,
    offset_minutes: int,
    as_of: datetime | None = None,
) -> StreakStats:
    """Fetch a user's contribution history and compute streak statistics.

    A missing or rejected token degrades to public events instead of failing.
    """

    now = as_of or datetime.now(UTC)
    username = username.lower()

    contributions: ContributionMap | None = None
    if token:
        try:
            contributions = collect_graphql_history(
                username, token, app_settings, offset_minutes, now
            )
        except InvalidGitHubTokenError:
            logger.warning(
                "GitHub rejected the token; private contributions will not be "
                "visible for %s",
                username,
            )
    else:
        logger.info("No GitHub token configured; using public events for %s", username)

    if contributions is None:
        contributions = collect_public_history(username, app_settings, offset_minutes)

    return compute_streaks(contributions, now, offset_minutes)
