"""Dependency wiring for routes."""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from scanboard.adapters.auth import (
    AdminTokenVerifier,
    AuthVerificationError,
    MockTokenVerifier,
    TokenVerifier,
)
from scanboard.adapters.vendor.base import VendorClient
from scanboard.core.config import Settings, get_settings
from scanboard.core.logging_safety import safe_log_identifier
from scanboard.errors import ApiError
from scanboard.repositories.base import JobRecordStore
from scanboard.schemas.auth import AuthPrincipal
from scanboard.services.jobs import JobService
from scanboard.services.uploads import UploadService
from scanboard.services.webhooks import WebhookService

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
logger = logging.getLogger(__name__)

_DASHBOARD_ROLE = "admin"


def _auth_error(message: str) -> ApiError:
    return ApiError(status_code=401, code="UNAUTHORIZED", message=message)


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def get_request_correlation_id(request: Request) -> str:
    return _request_correlation_id(request)


def get_token_verifier(settings: Annotated[Settings, Depends(get_settings)]) -> TokenVerifier:
    """Resolve provider adapter from configuration."""
    if settings.auth_provider == "admin":
        return AdminTokenVerifier(admin_token=settings.admin_token)
    return MockTokenVerifier()


async def get_authenticated_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> AuthPrincipal:
    """Validate bearer token and attach normalized principal to request context."""
    correlation_id = _request_correlation_id(request)
    safe_correlation_id = safe_log_identifier(correlation_id, prefix="cid")
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=invalid_or_missing_bearer",
            safe_correlation_id,
            request.method,
            request.url.path,
        )
        raise _auth_error("Invalid or missing bearer token")

    try:
        principal = verifier.verify_token(credentials.credentials)
    except AuthVerificationError as exc:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=token_verification_failed",
            safe_correlation_id,
            request.method,
            request.url.path,
        )
        raise _auth_error(str(exc) or "Invalid bearer token") from exc

    safe_principal_id = safe_log_identifier(principal.user_id, prefix="pid")
    if principal.role != _DASHBOARD_ROLE:
        logger.warning(
            "auth.forbidden correlation_id=%s method=%s path=%s principal_id=%s role=%s",
            safe_correlation_id,
            request.method,
            request.url.path,
            safe_principal_id,
            principal.role,
        )
        raise ApiError(status_code=403, code="FORBIDDEN", message="Admin access required")

    logger.info(
        "auth.accepted correlation_id=%s method=%s path=%s principal_id=%s role=%s",
        safe_correlation_id,
        request.method,
        request.url.path,
        safe_principal_id,
        principal.role,
    )
    request.state.auth_principal = principal
    return principal


def get_store(request: Request) -> JobRecordStore:
    return request.app.state.store


def get_vendor_client(request: Request) -> VendorClient:
    return request.app.state.vendor_client


def get_job_service(
    store: Annotated[JobRecordStore, Depends(get_store)],
    vendor: Annotated[VendorClient, Depends(get_vendor_client)],
) -> JobService:
    return JobService(store, vendor)


def get_upload_service(
    store: Annotated[JobRecordStore, Depends(get_store)],
    vendor: Annotated[VendorClient, Depends(get_vendor_client)],
) -> UploadService:
    return UploadService(store, vendor)


def get_webhook_service(
    store: Annotated[JobRecordStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> WebhookService:
    return WebhookService(
        store,
        secret=settings.webhook_signing_secret,
        ack_on_error=settings.webhook_ack_on_error,
    )
