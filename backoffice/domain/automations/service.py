"""Automation service - Webhook configuration and event triggering"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from ... import jobs
from ...models import Business, BusinessWebhook, CustomerOrder, OrderItem, Product, WebhookQueue
from .payloads import (
    EVENT_FLAGS,
    EVENTS,
    ORDER_CREATED,
    ORDER_PAID,
    PRODUCT_PURCHASED,
    build_order_payload,
)
from .repository import WebhookRepository
from .schemas import WebhookCreate, WebhookUpdate

logger = logging.getLogger(__name__)


class AutomationService:
    """Service layer for automation webhooks"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = WebhookRepository()

    def _check_product(self, product_id: Optional[str], business: Business) -> None:
        if not product_id:
            return
        product = (
            self.db.query(Product)
            .filter(Product.id == product_id, Product.business_id == business.id)
            .first()
        )
        if not product:
            raise HTTPException(status_code=400, detail="Product not found in this business")

    def get_webhooks(self, business: Business) -> list[BusinessWebhook]:
        return self.repo.get_webhooks(self.db, business.id)

    def get_webhook(self, webhook_id: str, business: Business) -> BusinessWebhook:
        webhook = self.repo.get_webhook_by_id(self.db, webhook_id, business.id)
        if not webhook:
            raise HTTPException(status_code=404, detail="Webhook not found")
        return webhook

    def create_webhook(self, data: WebhookCreate, business: Business) -> BusinessWebhook:
        self._check_product(data.product_id, business)
        webhook = self.repo.create_webhook(self.db, business.id, **data.model_dump())
        logger.info(f"🔗 Webhook {webhook.id} created for business {business.id}")
        return webhook

    def update_webhook(self, webhook_id: str, data: WebhookUpdate, business: Business) -> BusinessWebhook:
        webhook = self.get_webhook(webhook_id, business)
        updates = data.model_dump(exclude_unset=True)

        merged = {
            flag: updates.get(flag, getattr(webhook, flag)) for flag in EVENT_FLAGS.values()
        }
        if not any(merged.values()):
            raise HTTPException(status_code=400, detail="Select at least one event")

        product_id = updates.get("product_id", webhook.product_id)
        if not merged["on_product_purchased"]:
            product_id = None
        self._check_product(product_id, business)

        if "url" in updates and updates["url"]:
            webhook.url = updates["url"]
        for flag, value in merged.items():
            setattr(webhook, flag, value)
        webhook.product_id = product_id

        return self.repo.save(self.db, webhook)

    def delete_webhook(self, webhook_id: str, business: Business) -> dict:
        webhook = self.get_webhook(webhook_id, business)
        self.repo.delete_webhook(self.db, webhook)
        return {"message": "Webhook deleted"}

    def get_queue(self, business: Business, status: Optional[str] = None) -> list[WebhookQueue]:
        return self.repo.get_queue(self.db, business.id, status)

    def get_logs(self, business: Business):
        return self.repo.get_logs(self.db, business.id)

    async def retry(self, queue_id: str, business: Business) -> WebhookQueue:
        """Put a failed row back in the queue with a fresh attempt budget"""
        item = self.repo.get_queue_item(self.db, queue_id, business.id)
        if not item:
            raise HTTPException(status_code=404, detail="Queue item not found")
        if item.status != "failed":
            raise HTTPException(status_code=400, detail="Only failed webhooks can be retried")

        item.status = "pending"
        item.attempts = 0
        item.last_error = None
        self.repo.save(self.db, item)
        logger.info(f"🔁 Webhook {item.id} reset for retry")

        await jobs.enqueue_webhook_deliveries([item.id])
        return item

    def health(self) -> dict:
        """Report whether the webhook tables are reachable"""
        tables = {}
        for table in ("business_webhooks", "webhook_queue", "webhook_logs"):
            try:
                self.db.execute(text(f"SELECT 1 FROM {table} LIMIT 1"))
                tables[table] = True
            except Exception as e:
                logger.error(f"❌ Webhook table {table} unreachable: {e}")
                self.db.rollback()
                tables[table] = False
        return {"healthy": all(tables.values()), "tables": tables}


async def trigger_event(
    db: Session, event: str, order: CustomerOrder, item: Optional[OrderItem] = None
) -> list[WebhookQueue]:
    """
    Queue one delivery per webhook subscribed to an event and schedule them.

    For product_purchased, `item` selects webhooks bound to its product
    (or to any product).
    """
    if event not in EVENTS:
        raise ValueError(f"Unknown webhook event: {event}")

    product_id = item.product_id if item is not None else None
    webhooks = WebhookRepository.get_subscribed_webhooks(
        db, order.business_id, EVENT_FLAGS[event], product_id
    )
    if not webhooks:
        return []

    payload = build_order_payload(db, order, event, item)
    rows = WebhookRepository.enqueue(
        db,
        [
            WebhookQueue(
                business_id=order.business_id,
                webhook_id=webhook.id,
                webhook_url=webhook.url,
                event_type=event,
                payload=payload,
                status="pending",
                attempts=0,
            )
            for webhook in webhooks
        ],
    )
    logger.info(f"📬 Queued {len(rows)} {event} webhook(s) for order {order.id}")

    await jobs.enqueue_webhook_deliveries([row.id for row in rows])
    return rows


async def trigger_order_created(db: Session, order: CustomerOrder) -> list[WebhookQueue]:
    return await trigger_event(db, ORDER_CREATED, order)


async def trigger_order_paid(db: Session, order: CustomerOrder) -> list[WebhookQueue]:
    """order_paid once, then product_purchased for each line item"""
    rows = await trigger_event(db, ORDER_PAID, order)
    for item in order.items:
        rows.extend(await trigger_event(db, PRODUCT_PURCHASED, order, item))
    return rows
