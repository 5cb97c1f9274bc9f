"""
Webhook delivery

Each queue row gets one POST per call. Rows stay pending until they
succeed or hit WEBHOOK_MAX_ATTEMPTS failures; there is no backoff, the
worker sweep simply retries on its next run.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from ...config import (
    WEBHOOK_BATCH_SIZE,
    WEBHOOK_MAX_ATTEMPTS,
    WEBHOOK_SIGNING_SECRET,
    WEBHOOK_TIMEOUT_SECONDS,
)
from ...models import WebhookQueue
from ...webhook_security import SIGNATURE_HEADER, serialize_payload, sign_payload
from .repository import WebhookRepository

logger = logging.getLogger(__name__)

MAX_LOGGED_BODY = 2000


def build_headers(delivery_id: str, event_type: str, body: bytes) -> dict:
    headers = {
        "Content-Type": "application/json",
        "X-Webhook-ID": delivery_id,
        "X-Event-Type": event_type,
    }
    if WEBHOOK_SIGNING_SECRET:
        headers[SIGNATURE_HEADER] = sign_payload(WEBHOOK_SIGNING_SECRET, body)
    return headers


async def post_webhook(
    url: str,
    body: bytes,
    headers: dict,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> tuple[Optional[int], Optional[str], Optional[str]]:
    """
    POST a webhook body.

    Returns:
        Tuple of (status_code, response_body, error); error is None on 2xx
    """
    try:
        async with httpx.AsyncClient(timeout=WEBHOOK_TIMEOUT_SECONDS, transport=transport) as client:
            response = await client.post(url, content=body, headers=headers)
    except httpx.TimeoutException as e:
        return None, None, f"Timeout after {WEBHOOK_TIMEOUT_SECONDS}s: {type(e).__name__}"
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        return None, None, f"{type(e).__name__}: {str(e)}"

    response_body = response.text[:MAX_LOGGED_BODY]
    if 200 <= response.status_code < 300:
        return response.status_code, response_body, None
    return response.status_code, response_body, f"HTTP {response.status_code}: {response_body[:200]}"


async def deliver_queue_item(
    db: Session, item: WebhookQueue, transport: Optional[httpx.AsyncBaseTransport] = None
) -> str:
    """Attempt delivery of one queue row. Returns the row's resulting status."""
    if item.status != "pending":
        logger.info(f"⏭️ Skipping webhook {item.id} with status {item.status}")
        return item.status

    payload = item.payload or {}
    body = serialize_payload(payload)
    headers = build_headers(item.id, item.event_type, body)

    logger.info(f"📤 Delivering webhook {item.id} ({item.event_type}) to {item.webhook_url}")
    status_code, response_body, error = await post_webhook(item.webhook_url, body, headers, transport)

    now = datetime.utcnow()
    item.last_attempt_at = now
    if error is None:
        item.status = "completed"
        item.processed_at = now
        item.last_error = None
        logger.info(f"✅ Webhook {item.id} delivered (HTTP {status_code})")
    else:
        item.attempts = (item.attempts or 0) + 1
        item.last_error = error
        if item.attempts >= WEBHOOK_MAX_ATTEMPTS:
            item.status = "failed"
            logger.error(f"❌ Webhook {item.id} failed permanently after {item.attempts} attempts: {error}")
        else:
            logger.warning(f"⚠️ Webhook {item.id} attempt {item.attempts} failed: {error}")

    WebhookRepository.add_log(
        db,
        webhook_id=item.webhook_id,
        queue_id=item.id,
        business_id=item.business_id,
        order_id=payload.get("order_id"),
        product_id=payload.get("product_id"),
        url=item.webhook_url,
        request_payload=payload,
        response_status=status_code,
        response_body=response_body if response_body is not None else error,
    )
    db.commit()
    return item.status


async def process_pending(
    db: Session,
    limit: Optional[int] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """Deliver the oldest pending rows"""
    rows = WebhookRepository.get_pending(db, limit or WEBHOOK_BATCH_SIZE)
    summary = {"processed": 0, "completed": 0, "failed": 0, "pending": 0}

    for row in rows:
        status = await deliver_queue_item(db, row, transport)
        summary["processed"] += 1
        if status in summary:
            summary[status] += 1

    if rows:
        logger.info(f"📊 Webhook sweep: {summary}")
    return summary


async def send_test_webhook(
    db: Session,
    business_id: str,
    url: str,
    payload: dict,
    webhook_id: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """POST a payload straight to a URL, bypassing the queue. The attempt is logged."""
    body = serialize_payload(payload)
    headers = build_headers(f"test-{uuid.uuid4()}", payload.get("event", "test"), body)

    logger.info(f"🧪 Sending test webhook to {url}")
    status_code, response_body, error = await post_webhook(url, body, headers, transport)

    WebhookRepository.add_log(
        db,
        webhook_id=webhook_id,
        business_id=business_id,
        url=url,
        request_payload=payload,
        response_status=status_code,
        response_body=response_body if response_body is not None else error,
    )
    db.commit()

    return {
        "success": error is None,
        "status_code": status_code,
        "response_body": response_body,
        "error": error,
        "payload": payload,
    }
