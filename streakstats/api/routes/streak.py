import logging

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Path
from fastapi import Query
from fastapi import Request
from fastapi import Security
from fastapi.responses import HTMLResponse
from fastapi.security import HTTPAuthorizationCredentials
from starlette.responses import Response

from streakstats.api.schemas.streak import StreakStatsResponse
from streakstats.core.security import bearer_scheme
from streakstats.core.security import resolve_github_token
from streakstats.engine.streaks import StreakStats
from streakstats.services.badge_service import render_streak_badge
from streakstats.services.badge_service import render_tier_showcase
from streakstats.services.streak_service import GitHubAPIError
from streakstats.services.streak_service import GitHubUserNotFoundError
from streakstats.services.streak_service import get_streak_stats
from streakstats.settings import Settings
from streakstats.settings import get_settings


logger = logging.getLogger(__name__)

router = APIRouter()

SVG_MEDIA_TYPE = "image/svg+xml"
GITHUB_LOGIN_PATTERN = r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,38})$"

USAGE_PAGE = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <title>GitHub Streak Stats</title>
    <style>
      body {{ font-family: system-ui, sans-serif; max-width: 800px; margin: 0 auto; padding: 2rem; }}
      pre {{ background: #f5f5f5; padding: 1rem; border-radius: 4px; overflow-x: auto; }}
    </style>
  </head>
  <body>
    <h1>&#128293; GitHub Streak Stats</h1>
    <p>Add your GitHub streak stats to your README.</p>
    <h2>Usage</h2>
    <pre>[![GitHub Streak]({base_url}streak/YOUR_GITHUB_USERNAME/badge)]({base_url})</pre>
    <p>JSON is served at <code>{base_url}streak/YOUR_GITHUB_USERNAME</code>.
    Pass <code>?tz_offset=MINUTES</code> to count days in your time zone.</p>
  </body>
</html>
"""


def _cache_headers(app_settings: Settings) -> dict[str, str]:
    return {"Cache-Control": f"public, max-age={app_settings.cache_max_age_seconds}"}


def _load_stats(
    username: str,
    credentials: HTTPAuthorizationCredentials | None,
    app_settings: Settings,
    tz_offset: int | None,
) -> StreakStats:
    token = resolve_github_token(credentials, app_settings.github_token)
    offset_minutes = (
        app_settings.utc_offset_minutes if tz_offset is None else tz_offset
    )

    try:
        return get_streak_stats(
            username=username,
            token=token,
            app_settings=app_settings,
            offset_minutes=offset_minutes,
        )
    except GitHubUserNotFoundError as exc:
        raise HTTPException(status_code=404, detail="GitHub user not found") from exc
    except GitHubAPIError as exc:
        logger.exception("GitHub request failed for %s", username)
        raise HTTPException(
            status_code=502, detail="GitHub API request failed"
        ) from exc


@router.get("/", response_class=HTMLResponse)
async def root(request: Request) -> str:
    """Return the usage page with a README embed snippet."""

    return USAGE_PAGE.format(base_url=str(request.base_url))


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/streak/{username}", response_model=StreakStatsResponse)
def get_streak(
    response: Response,
    username: str = Path(pattern=GITHUB_LOGIN_PATTERN),
    tz_offset: int | None = Query(default=None, ge=-720, le=840),
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    app_settings: Settings = Depends(get_settings),
) -> StreakStatsResponse:
    """Return streak statistics for a GitHub user as JSON."""

    stats = _load_stats(username, credentials, app_settings, tz_offset)
    response.headers.update(_cache_headers(app_settings))
    return StreakStatsResponse.from_stats(stats)


@router.get("/streak/{username}/badge")
def get_streak_badge(
    username: str = Path(pattern=GITHUB_LOGIN_PATTERN),
    tz_offset: int | None = Query(default=None, ge=-720, le=840),
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    app_settings: Settings = Depends(get_settings),
) -> Response:
    """Return streak statistics for a GitHub user as an SVG badge."""

    stats = _load_stats(username, credentials, app_settings, tz_offset)
    return Response(
        content=render_streak_badge(stats),
        media_type=SVG_MEDIA_TYPE,
        headers=_cache_headers(app_settings),
    )


@router.get("/test/badges")
def get_tier_showcase() -> Response:
    """Return one badge per tier threshold for visual inspection."""

    return Response(content=render_tier_showcase(), media_type=SVG_MEDIA_TYPE)
