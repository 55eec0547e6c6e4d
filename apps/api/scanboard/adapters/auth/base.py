"""Authentication provider interfaces."""

from abc import ABC, abstractmethod

from scanboard.schemas.auth import AuthPrincipal


class AuthVerificationError(Exception):
    """Raised when a dashboard token cannot be verified."""


class TokenVerifier(ABC):
    """Resolves a bearer token into the dashboard principal."""

    @abstractmethod
    def verify_token(self, token: str) -> AuthPrincipal:
        """Verify token and return normalized principal."""


__all__ = ["AuthVerificationError", "TokenVerifier"]
