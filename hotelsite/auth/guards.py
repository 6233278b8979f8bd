"""Admin access guard.

Sign-in is handled outside this application; the back-office only checks
a shared admin token, sent as the ``X-Admin-Token`` header or exchanged
once for a session flag via ``POST /admin/login``.
"""

from __future__ import annotations

import hmac
from typing import TYPE_CHECKING

from litestar.exceptions import NotAuthorizedException

if TYPE_CHECKING:
    from litestar.connection import ASGIConnection
    from litestar.handlers.base import BaseRouteHandler

ADMIN_TOKEN_HEADER = "x-admin-token"
SESSION_ADMIN_KEY = "is_admin"


def token_matches(candidate: str | None, expected: str | None) -> bool:
    """Constant-time comparison; an unset expected token never matches."""
    if not candidate or not expected:
        return False
    return hmac.compare_digest(candidate.encode(), expected.encode())


def admin_guard(connection: ASGIConnection, _: BaseRouteHandler) -> None:
    """Allow the request only with a valid admin token or an admin session."""
    if connection.scope.get("session") and connection.session.get(SESSION_ADMIN_KEY):
        return

    expected = connection.app.state.settings.admin_token
    if token_matches(connection.headers.get(ADMIN_TOKEN_HEADER), expected):
        return

    raise NotAuthorizedException("Admin access required")
