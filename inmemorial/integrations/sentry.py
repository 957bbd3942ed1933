# =============================================================================
# Sentry Error Tracking Integration
# =============================================================================
#
# Setup:
#   1. Create a Python project at sentry.io
#   2. Copy the DSN to .env: SENTRY_DSN=https://...@sentry.io/...
#
# init_sentry() is called from the app lifespan. Without a DSN, every
# helper here degrades to plain logging.
#
# =============================================================================

from __future__ import annotations

import logging

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from inmemorial.config import Settings, get_settings
from inmemorial.core.errors import InMemorialError

logger = logging.getLogger(__name__)


def init_sentry(settings: Settings | None = None) -> bool:
    """
    Initialize Sentry error tracking.

    Returns True if initialized, False if skipped.
    """
    settings = settings or get_settings()

    if not settings.sentry_dsn:
        logger.info("SENTRY_DSN not set - error tracking disabled")
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,

        # Performance monitoring (sample 10% of transactions in prod)
        traces_sample_rate=0.1 if settings.is_production else 1.0,

        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            StarletteIntegration(transaction_style="endpoint"),
            LoggingIntegration(
                level=logging.INFO,
                event_level=logging.ERROR,
            ),
        ],

        # Emails and tokens must not leave the server
        send_default_pii=False,

        before_send=_filter_events,
        before_send_transaction=_filter_transactions,
    )

    logger.info(f"Sentry initialized for {settings.environment}")
    return True


def _filter_events(event: dict, hint: dict) -> dict | None:
    """Filter out expected errors and scrub credentials."""
    if "exc_info" in hint:
        _, exc_value, _ = hint["exc_info"]
        # Auth failures, 404s, bad input: expected outcomes, not bugs
        if isinstance(exc_value, InMemorialError):
            return None

    request = event.get("request")
    if request and "headers" in request:
        headers = request["headers"]
        for key in list(headers.keys()):
            if key.lower() in ("authorization", "cookie"):
                headers[key] = "[Filtered]"

    return event


def _filter_transactions(event: dict, hint: dict) -> dict | None:
    """Skip health checks."""
    if event.get("transaction", "") in ("/health", "/healthz"):
        return None
    return event


def capture_exception(error: Exception, **context) -> str | None:
    """
    Report an unexpected exception.

    Returns the event ID if captured, None otherwise.
    """
    if not sentry_sdk.get_client().is_active():
        return None

    with sentry_sdk.new_scope() as scope:
        for key, value in context.items():
            scope.set_extra(key, value)
        return sentry_sdk.capture_exception(error)
