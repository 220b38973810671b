"""
Sentry initialisation.

Sentry stays disabled unless SENTRY_DSN is set. Profile data (names, PPSN,
addresses) must never leave the service, so request bodies and user fields
are scrubbed before events are sent.
"""

import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.loguru import LoguruIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.types import Event, Hint

QUIET_PATHS = ("/api/health", "/")


def _before_send(event: Event, hint: Hint) -> Event | None:
    """
    Strip personal data from an error event.

    Only the user id is kept. Cookies, the Authorization header and request
    bodies (profile forms, support messages) are dropped.
    """
    user = event.get("user")
    if user:
        user.pop("email", None)
        user.pop("username", None)
        if "ip_address" in user:
            user["ip_address"] = "{{auto}}"

    request = event.get("request")
    if request and isinstance(request, dict):
        request.pop("cookies", None)
        request.pop("data", None)
        headers = request.get("headers")
        if isinstance(headers, dict):
            for key in ("Authorization", "authorization"):
                if key in headers:
                    headers[key] = "[Filtered]"

    return event


def _before_send_transaction(event: Event, hint: Hint) -> Event | None:
    """Drop health-check transactions."""
    name = event.get("transaction", "")
    if name in QUIET_PATHS or name.endswith("/api/health"):
        return None
    return event


def _traces_sampler(sampling_context: dict[str, Any]) -> float:
    """Sample admin traffic more heavily than public browsing."""
    if sampling_context.get("parent_sampled") is True:
        return 1.0

    path = sampling_context.get("asgi_scope", {}).get("path", "")
    if path in QUIET_PATHS:
        return 0.0
    if path.startswith("/api/admin") or path.startswith("/api/auth"):
        return 0.5
    return 0.2


def init_sentry() -> None:
    """
    Initialise the Sentry SDK.

    Must run before the FastAPI app is created. No-op without SENTRY_DSN.
    """
    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return

    sentry_sdk.init(
        dsn=dsn,
        environment=os.getenv("ENVIRONMENT", "development"),
        release=os.getenv("SENTRY_RELEASE", "unknown"),
        send_default_pii=False,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoguruIntegration(),
        ],
        traces_sampler=_traces_sampler,
        sample_rate=1.0,
        before_send=_before_send,
        before_send_transaction=_before_send_transaction,
        attach_stacktrace=True,
        max_breadcrumbs=50,
        ignore_errors=[KeyboardInterrupt, SystemExit],
    )
