"""Single-admin token verifier."""

from __future__ import annotations

from secrets import compare_digest

from scanboard.adapters.auth.base import AuthVerificationError, TokenVerifier
from scanboard.schemas.auth import AuthPrincipal


class AdminTokenVerifier(TokenVerifier):
    """Accepts exactly one configured admin token, compared in constant time."""

    def __init__(self, admin_token: str | None, admin_user_id: str = "admin") -> None:
        self._admin_token = admin_token
        self._admin_user_id = admin_user_id

    def verify_token(self, token: str) -> AuthPrincipal:
        if not self._admin_token:
            raise AuthVerificationError("Admin authentication is not configured")
        if not compare_digest(token.encode("utf-8"), self._admin_token.encode("utf-8")):
            raise AuthVerificationError("Invalid bearer token")
        return AuthPrincipal(user_id=self._admin_user_id, role="admin")


__all__ = ["AdminTokenVerifier"]
