from fastapi import FastAPI

from streakstats.api.routes.streak import router
from streakstats.core.middleware import StreakRateLimitMiddleware
from streakstats.core.observability import configure_logging
from streakstats.core.observability import init_sentry
from streakstats.settings import Settings


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application with observability and rate limiting."""

    app_settings = app_settings or Settings()
    configure_logging(app_settings)
    init_sentry(app_settings)

    app = FastAPI(title="GitHub Streak Stats")
    app.add_middleware(
        StreakRateLimitMiddleware,
        requests_per_window=app_settings.rate_limit_per_minute,
        window_seconds=app_settings.rate_limit_window_seconds,
    )
    app.include_router(router)
    return app


app = create_app()
