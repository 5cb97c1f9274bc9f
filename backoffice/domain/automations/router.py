"""Automation router - Webhook configuration, queue and test endpoints"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_business, require_admin
from ...database import get_db
from ...models import Business, User
from . import dispatcher
from .payloads import build_sample_payload
from .schemas import (
    ProcessResult,
    QueueItemResponse,
    WebhookCreate,
    WebhookLogResponse,
    WebhookResponse,
    WebhookTestRequest,
    WebhookTestResult,
    WebhookUpdate,
)
from .service import AutomationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/automations", tags=["Automations"])


def get_automation_service(db: Session = Depends(get_db)) -> AutomationService:
    """Dependency injection for AutomationService"""
    return AutomationService(db)


@router.get("/health")
async def automations_health(
    _admin: User = Depends(require_admin),
    service: AutomationService = Depends(get_automation_service),
):
    """Check that the webhook tables are reachable (platform admins only)"""
    return service.health()


# ============================================================================
# WEBHOOK CONFIG
# ============================================================================


@router.get("/webhooks", response_model=list[WebhookResponse])
async def get_webhooks(
    business: Business = Depends(get_current_business),
    service: AutomationService = Depends(get_automation_service),
):
    return service.get_webhooks(business)


@router.post("/webhooks", response_model=WebhookResponse)
async def create_webhook(
    data: WebhookCreate,
    business: Business = Depends(get_current_business),
    service: AutomationService = Depends(get_automation_service),
):
    return service.create_webhook(data, business)


@router.put("/webhooks/{webhook_id}", response_model=WebhookResponse)
async def update_webhook(
    webhook_id: str,
    data: WebhookUpdate,
    business: Business = Depends(get_current_business),
    service: AutomationService = Depends(get_automation_service),
):
    return service.update_webhook(webhook_id, data, business)


@router.delete("/webhooks/{webhook_id}")
async def delete_webhook(
    webhook_id: str,
    business: Business = Depends(get_current_business),
    service: AutomationService = Depends(get_automation_service),
):
    return service.delete_webhook(webhook_id, business)


# ============================================================================
# QUEUE & LOGS
# ============================================================================


@router.get("/queue", response_model=list[QueueItemResponse])
async def get_queue(
    status: Optional[Literal["pending", "completed", "failed"]] = Query(None),
    business: Business = Depends(get_current_business),
    service: AutomationService = Depends(get_automation_service),
):
    return service.get_queue(business, status)


@router.post("/queue/{queue_id}/retry", response_model=QueueItemResponse)
async def retry_webhook(
    queue_id: str,
    business: Business = Depends(get_current_business),
    service: AutomationService = Depends(get_automation_service),
):
    return await service.retry(queue_id, business)


@router.post("/queue/process", response_model=ProcessResult)
async def process_queue(
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Run one delivery sweep now instead of waiting for the worker"""
    return await dispatcher.process_pending(db)


@router.get("/logs", response_model=list[WebhookLogResponse])
async def get_logs(
    business: Business = Depends(get_current_business),
    service: AutomationService = Depends(get_automation_service),
):
    return service.get_logs(business)


# ============================================================================
# TEST SEND
# ============================================================================


@router.post("/test", response_model=WebhookTestResult)
async def test_webhook(
    data: WebhookTestRequest,
    business: Business = Depends(get_current_business),
    service: AutomationService = Depends(get_automation_service),
    db: Session = Depends(get_db),
):
    """Send a sample payload directly (no queue)"""
    url = data.url
    if data.webhook_id:
        url = service.get_webhook(data.webhook_id, business).url
    if not url:
        raise HTTPException(status_code=400, detail="No webhook URL to test")

    payload = build_sample_payload(data.event, business.id)
    return await dispatcher.send_test_webhook(db, business.id, url, payload, data.webhook_id)
