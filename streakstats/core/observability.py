import logging

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from streakstats.settings import Settings


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(app_settings: Settings) -> None:
    """Configure root logging once for the process."""

    logging.basicConfig(level=app_settings.log_level.upper(), format=LOG_FORMAT)


def init_sentry(app_settings: Settings) -> None:
    """Initialize Sentry SDK when DSN is configured.

    Token degradations and history-budget cutoffs are logged as warnings and
    travel as breadcrumbs; failed GitHub calls are logged with
    `logger.exception` and become events.
    """

    if not app_settings.sentry_dsn:
        return

    sentry_sdk.init(
        dsn=app_settings.sentry_dsn,
        environment=app_settings.environment,
        release=app_settings.release,
        traces_sample_rate=app_settings.sentry_traces_sample_rate,
        send_default_pii=False,
        integrations=[
            LoggingIntegration(level=logging.WARNING, event_level=logging.ERROR)
        ],
    )
