"""Handshake authentication for realtime connections."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qs

from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)

REASON_UNAUTHORIZED = "unauthorized"
REASON_EXPIRED = "jwt_expired"


class HandshakeRejected(Exception):  # noqa: N818
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Extract the bearer token from Socket.IO environ/auth.

    Handles python-socketio environ shapes across ASGI/WSGI servers.
    """

    scope: Any = environ
    if isinstance(environ, dict) and "asgi.scope" in environ:
        inner = environ.get("asgi.scope")
        if isinstance(inner, dict):
            scope = inner

    query_string: str | bytes = ""
    if isinstance(scope, dict) and "query_string" in scope:
        query_string = scope.get("query_string", b"")
    elif isinstance(scope, dict) and "QUERY_STRING" in scope:
        query_string = scope.get("QUERY_STRING", "")

    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token

    # Allow `auth: { token }` as fallback.
    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token:
            return auth_token

    return None


def authenticate_token(token: str) -> int:
    """Verify signature and expiry of an access token; return its user id.

    No database lookup happens here: a signed, unexpired token is the whole
    proof of identity for the lifetime of the connection.
    """

    try:
        validated = AccessToken(token)
    except TokenError as exc:
        raise HandshakeRejected(_rejection_reason(token)) from exc

    user_id = validated.get(api_settings.USER_ID_CLAIM)
    try:
        return int(user_id)
    except (TypeError, ValueError) as exc:
        logger.warning("Access token without a usable %s claim", api_settings.USER_ID_CLAIM)
        raise HandshakeRejected(REASON_UNAUTHORIZED) from exc


def _rejection_reason(token: str) -> str:
    # Clients refresh on this exact string, so tell expiry apart from forgery.
    try:
        unverified = AccessToken(token, verify=False)
    except TokenError:
        return REASON_UNAUTHORIZED
    try:
        unverified.check_exp()
    except TokenError:
        return REASON_EXPIRED
    return REASON_UNAUTHORIZED
