"""Vendor webhook verification and processing."""

import hashlib
import hmac
import logging

from pydantic import ValidationError

from scanboard.errors import ApiError, JobNotFoundLocally
from scanboard.repositories.base import JobRecordStore
from scanboard.schemas.webhook import VendorWebhookPayload, WebhookAck
from scanboard.services.reconciliation import ReconciliationEngine

logger = logging.getLogger(__name__)


def sign_payload(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify_signature(raw_body: bytes, signature_header: str | None, secret: str | None) -> bool:
    """Check an HMAC-SHA256 hex signature computed over the raw, unparsed body."""
    if not secret or not signature_header:
        return False
    provided = signature_header.strip().lower()
    if not provided:
        return False
    expected = sign_payload(raw_body, secret)
    return hmac.compare_digest(expected.encode("ascii"), provided.encode("utf-8"))


class WebhookService:
    def __init__(self, store: JobRecordStore, *, secret: str | None, ack_on_error: bool = True) -> None:
        self._engine = ReconciliationEngine(store)
        self._secret = secret
        self._ack_on_error = ack_on_error

    def process_notification(self, *, raw_body: bytes, signature: str | None) -> WebhookAck:
        payload = self._authenticate(raw_body=raw_body, signature=signature)
        job_id = payload.serialize

        try:
            result = self._engine.apply_observation(
                job_id,
                payload.status,
                model_url=payload.model_url,
                thumbnail_url=payload.thumbnail_url,
                error_message=payload.error_message,
                source="webhook",
            )
        except JobNotFoundLocally:
            logger.warning("webhook.job_not_found job_id=%s vendor_code=%s", job_id, payload.status)
            return WebhookAck(job_id=job_id, outcome="not_found")
        except Exception as exc:
            logger.exception(
                "webhook.processing_failed job_id=%s vendor_code=%s reason=%s",
                job_id,
                payload.status,
                type(exc).__name__,
            )
            if not self._ack_on_error:
                raise ApiError(
                    status_code=500,
                    code="WEBHOOK_PROCESSING_FAILED",
                    message="Webhook could not be processed.",
                ) from exc
            return WebhookAck(job_id=job_id, outcome="error")

        return WebhookAck(job_id=job_id, outcome="applied" if result.applied else "noop")

    def _authenticate(self, *, raw_body: bytes, signature: str | None) -> VendorWebhookPayload:
        if not self._secret:
            logger.error("webhook.rejected reason=signing_secret_not_configured")
            raise ApiError(
                status_code=503,
                code="WEBHOOK_DISABLED",
                message="Webhook processing is disabled.",
            )
        if not signature or not signature.strip():
            logger.warning("webhook.rejected reason=missing_signature")
            raise ApiError(status_code=400, code="SIGNATURE_MISSING", message="Missing signature.")
        if not verify_signature(raw_body, signature, self._secret):
            logger.warning("webhook.rejected reason=invalid_signature")
            raise ApiError(status_code=403, code="SIGNATURE_INVALID", message="Invalid signature.")

        try:
            return VendorWebhookPayload.model_validate_json(raw_body)
        except ValidationError as exc:
            logger.warning("webhook.rejected reason=invalid_payload errors=%s", exc.error_count())
            raise ApiError(
                status_code=400,
                code="WEBHOOK_PAYLOAD_INVALID",
                message="Webhook payload must carry a job id and an integer status.",
            ) from exc
