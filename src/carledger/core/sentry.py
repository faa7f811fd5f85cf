"""Sentry error tracking configuration and initialization."""

import os

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.utils import BadDsn

from carledger.core.logging import get_logger

logger = get_logger(__name__)

_sentry_initialized = False


def init_sentry() -> None:
    """
    Initialize Sentry SDK for the API and the report commands.

    Skipped when SENTRY_DSN is unset or does not look like an http(s) URL,
    so local runs and CI work without a Sentry project. Safe to call twice.
    """
    global _sentry_initialized

    if _sentry_initialized:
        return

    sentry_dsn = (os.getenv("SENTRY_DSN") or "").strip()
    if not sentry_dsn:
        logger.info("sentry.disabled", message="Sentry DSN not found, error tracking disabled")
        return

    if not sentry_dsn.startswith(("https://", "http://")):
        logger.info(
            "sentry.disabled",
            message="Sentry DSN appears to be invalid or placeholder, error tracking disabled",
            dsn_preview=sentry_dsn[:20] + "..." if len(sentry_dsn) > 20 else sentry_dsn,
        )
        return

    environment = os.getenv("ENVIRONMENT", "development")

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=environment,
            traces_sample_rate=0.0,
            send_default_pii=False,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                # structlog already writes the log lines
                LoggingIntegration(level=None, event_level=None),
            ],
            before_send=filter_sensitive_data,
        )
    except BadDsn as exc:
        logger.warning(
            "sentry.init_failed",
            message="Failed to initialize Sentry due to invalid DSN, error tracking disabled",
            error=str(exc),
        )
        return

    _sentry_initialized = True
    logger.info("sentry.initialized", environment=environment)


def filter_sensitive_data(event: dict, hint: dict) -> dict:
    """Drop extras and breadcrumbs that carry SQL before an event leaves the process."""
    environment = os.getenv("ENVIRONMENT", "development").lower()
    if environment in {"test", "testing"}:
        return event

    extra = event.get("extra")
    if isinstance(extra, dict):
        event["extra"] = {
            key: value
            for key, value in extra.items()
            if "sql" not in str(key).lower() and "sql" not in str(value).lower()
        }

    breadcrumbs = event.get("breadcrumbs")
    if isinstance(breadcrumbs, list):
        event["breadcrumbs"] = [
            crumb
            for crumb in breadcrumbs
            if "sql" not in str(crumb.get("message", "") if isinstance(crumb, dict) else crumb).lower()
        ]

    return event


def capture_report_failure(step: str, error: BaseException, **context) -> None:
    """Send a failed report step to Sentry with its period key as context."""
    if not _sentry_initialized:
        return
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("report_step", step)
        scope.set_context("report", {key: str(value) for key, value in context.items()})
        sentry_sdk.capture_exception(error)
