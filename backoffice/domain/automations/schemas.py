"""Automation domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import validate_webhook_url

EventType = Literal["order_created", "order_paid", "product_purchased"]


class WebhookCreate(BaseModel):
    """Schema for creating an automation webhook"""

    url: str
    on_order_created: bool = False
    on_order_paid: bool = False
    on_product_purchased: bool = False
    product_id: Optional[str] = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        return validate_webhook_url(v)

    @model_validator(mode="after")
    def validate_events(self):
        if not (self.on_order_created or self.on_order_paid or self.on_product_purchased):
            raise ValueError("Select at least one event")
        if not self.on_product_purchased:
            # product filter only applies to product_purchased
            self.product_id = None
        return self


class WebhookUpdate(BaseModel):
    url: Optional[str] = None
    on_order_created: Optional[bool] = None
    on_order_paid: Optional[bool] = None
    on_product_purchased: Optional[bool] = None
    product_id: Optional[str] = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        if v is None:
            return v
        return validate_webhook_url(v)


class WebhookResponse(BaseModel):
    id: str
    url: str
    on_order_created: bool
    on_order_paid: bool
    on_product_purchased: bool
    product_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QueueItemResponse(BaseModel):
    id: str
    webhook_id: Optional[str] = None
    webhook_url: str
    event_type: str
    payload: dict
    status: str
    attempts: int
    last_error: Optional[str] = None
    last_attempt_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WebhookLogResponse(BaseModel):
    id: str
    webhook_id: Optional[str] = None
    queue_id: Optional[str] = None
    order_id: Optional[str] = None
    product_id: Optional[str] = None
    url: Optional[str] = None
    request_payload: Optional[dict] = None
    response_status: Optional[int] = None
    response_body: Optional[str] = None
    sent_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProcessResult(BaseModel):
    processed: int
    completed: int
    failed: int
    pending: int


class WebhookTestRequest(BaseModel):
    """Send a sample payload to a URL or a configured webhook"""

    event: EventType = "order_created"
    url: Optional[str] = None
    webhook_id: Optional[str] = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        if v is None:
            return v
        return validate_webhook_url(v)

    @model_validator(mode="after")
    def validate_target(self):
        if not self.url and not self.webhook_id:
            raise ValueError("Provide a url or a webhook_id")
        return self


class WebhookTestResult(BaseModel):
    success: bool
    status_code: Optional[int] = None
    response_body: Optional[str] = None
    error: Optional[str] = None
    payload: dict
