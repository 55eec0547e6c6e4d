"""Mock auth verifier for local development and tests."""

from scanboard.adapters.auth.base import AuthVerificationError, TokenVerifier
from scanboard.schemas.auth import AuthPrincipal


class MockTokenVerifier(TokenVerifier):
    """Accepts deterministic test tokens only.

    Expected token format:
    - ``test:<user_id>`` (role defaults to ``admin``)
    - ``test:<user_id>:<role>``
    """

    def verify_token(self, token: str) -> AuthPrincipal:
        prefix, _, rest = token.partition(":")
        if prefix != "test" or not rest:
            raise AuthVerificationError("Invalid bearer token")

        user_id, _, role = rest.partition(":")
        user_id = user_id.strip()
        role = role.strip() if role else "admin"
        if not user_id:
            raise AuthVerificationError("Bearer token missing user identity")
        if not role or ":" in role:
            raise AuthVerificationError("Bearer token has an invalid role")

        return AuthPrincipal(user_id=user_id, role=role)


__all__ = ["MockTokenVerifier"]
