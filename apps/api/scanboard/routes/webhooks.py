"""Vendor push notification routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from starlette.concurrency import run_in_threadpool

from scanboard.routes.dependencies import get_webhook_service
from scanboard.schemas.error import WebhookRejectedError
from scanboard.schemas.webhook import WebhookAck
from scanboard.services.webhooks import WebhookService

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post(
    "/vendor",
    response_model=WebhookAck,
    responses={
        400: {"model": WebhookRejectedError},
        403: {"model": WebhookRejectedError},
        500: {"model": WebhookRejectedError},
        503: {"model": WebhookRejectedError},
    },
)
async def receive_vendor_webhook(
    request: Request,
    service: Annotated[WebhookService, Depends(get_webhook_service)],
    x_signature: Annotated[str | None, Header(alias="X-Signature")] = None,
) -> WebhookAck:
    # The signature covers the exact bytes sent, so the body is read before any parsing.
    raw_body = await request.body()
    return await run_in_threadpool(service.process_notification, raw_body=raw_body, signature=x_signature)
