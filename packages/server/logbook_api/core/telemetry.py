"""
Sentry integration: breadcrumbs and exception reports.

Telemetry is fire-and-forget. Nothing here may change the outcome of the
operation being observed, so every call into the SDK is guarded and a failing
sink is only logged locally.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import sentry_sdk
import structlog
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from logbook_api.core.config import Settings

log = structlog.get_logger()


def setup_sentry(settings: Settings, release: Optional[str] = None) -> bool:
    """Initialize the Sentry SDK. Returns False when no DSN is configured."""
    if not settings.sentry_dsn:
        log.warning("telemetry.sentry_disabled", reason="no DSN configured")
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=release,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=settings.sentry_traces_sample_rate,
        send_default_pii=False,
        max_breadcrumbs=50,
    )
    log.info("telemetry.sentry_initialized", environment=settings.environment)
    return True


def add_breadcrumb(category: str, message: str, level: str = "info", **data: Any) -> None:
    """Record a diagnostic trail entry (category: db-query, db-mutation, auth, ...)."""
    try:
        sentry_sdk.add_breadcrumb(category=category, message=message, level=level, data=data)
    except Exception:
        log.warning("telemetry.breadcrumb_failed", category=category, exc_info=True)


def capture_exception(error: BaseException, tags: Optional[dict[str, Any]] = None) -> None:
    """Report an exception with a tag map (component, user_id, establishment_id)."""
    str_tags = {key: str(value) for key, value in (tags or {}).items() if value is not None}
    try:
        sentry_sdk.capture_exception(error, tags=str_tags)
    except Exception:
        log.warning("telemetry.capture_failed", tags=str_tags, exc_info=True)
