"""Auth verifier adapters."""

from .admin_auth import AdminTokenVerifier
from .base import AuthVerificationError, TokenVerifier
from .mock_auth import MockTokenVerifier

__all__ = [
    "AdminTokenVerifier",
    "AuthVerificationError",
    "TokenVerifier",
    "MockTokenVerifier",
]
