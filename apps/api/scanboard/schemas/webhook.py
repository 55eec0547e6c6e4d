"""Vendor webhook schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr


class VendorWebhookPayload(BaseModel):
    """Push notification body as delivered by the vendor."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", protected_namespaces=())

    serialize: StrictStr = Field(min_length=1)
    status: StrictInt
    model_url: StrictStr | None = Field(default=None, alias="modelUrl")
    thumbnail_url: StrictStr | None = Field(default=None, alias="thumbnailUrl")
    error_message: StrictStr | None = Field(default=None, alias="errorMessage")


class WebhookAck(BaseModel):
    acknowledged: bool = True
    job_id: str
    outcome: Literal["applied", "noop", "not_found", "error"]
