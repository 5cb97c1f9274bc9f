"""Automation repository - Database operations for webhooks, the queue and logs"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import BusinessWebhook, WebhookLog, WebhookQueue


class WebhookRepository:
    """Repository for automation webhook database operations"""

    @staticmethod
    def get_webhooks(db: Session, business_id: str) -> list[BusinessWebhook]:
        return (
            db.query(BusinessWebhook)
            .filter(BusinessWebhook.business_id == business_id)
            .order_by(BusinessWebhook.created_at.desc())
            .all()
        )

    @staticmethod
    def get_webhook_by_id(db: Session, webhook_id: str, business_id: str) -> Optional[BusinessWebhook]:
        return (
            db.query(BusinessWebhook)
            .filter(BusinessWebhook.id == webhook_id, BusinessWebhook.business_id == business_id)
            .first()
        )

    @staticmethod
    def get_subscribed_webhooks(
        db: Session, business_id: str, flag: str, product_id: Optional[str] = None
    ) -> list[BusinessWebhook]:
        """Webhooks listening to an event; product filter applies to product_purchased"""
        query = db.query(BusinessWebhook).filter(
            BusinessWebhook.business_id == business_id,
            getattr(BusinessWebhook, flag).is_(True),
        )
        if flag == "on_product_purchased":
            query = query.filter(
                or_(BusinessWebhook.product_id.is_(None), BusinessWebhook.product_id == product_id)
            )
        return query.order_by(BusinessWebhook.created_at.asc()).all()

    @staticmethod
    def create_webhook(db: Session, business_id: str, **data) -> BusinessWebhook:
        webhook = BusinessWebhook(business_id=business_id, **data)
        db.add(webhook)
        db.commit()
        db.refresh(webhook)
        return webhook

    @staticmethod
    def save(db: Session, obj):
        db.commit()
        db.refresh(obj)
        return obj

    @staticmethod
    def delete_webhook(db: Session, webhook: BusinessWebhook) -> None:
        db.query(WebhookQueue).filter(WebhookQueue.webhook_id == webhook.id).update(
            {WebhookQueue.webhook_id: None}, synchronize_session=False
        )
        db.delete(webhook)
        db.commit()

    # Queue
    @staticmethod
    def enqueue(db: Session, rows: list[WebhookQueue]) -> list[WebhookQueue]:
        db.add_all(rows)
        db.commit()
        for row in rows:
            db.refresh(row)
        return rows

    @staticmethod
    def get_queue_item(db: Session, queue_id: str, business_id: Optional[str] = None) -> Optional[WebhookQueue]:
        query = db.query(WebhookQueue).filter(WebhookQueue.id == queue_id)
        if business_id:
            query = query.filter(WebhookQueue.business_id == business_id)
        return query.first()

    @staticmethod
    def get_pending(db: Session, limit: int) -> list[WebhookQueue]:
        """Oldest pending rows first"""
        return (
            db.query(WebhookQueue)
            .filter(WebhookQueue.status == "pending")
            .order_by(WebhookQueue.created_at.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_queue(
        db: Session, business_id: str, status: Optional[str] = None, limit: int = 100
    ) -> list[WebhookQueue]:
        query = db.query(WebhookQueue).filter(WebhookQueue.business_id == business_id)
        if status:
            query = query.filter(WebhookQueue.status == status)
        return query.order_by(WebhookQueue.created_at.desc()).limit(limit).all()

    # Logs
    @staticmethod
    def add_log(db: Session, **data) -> WebhookLog:
        log = WebhookLog(sent_at=datetime.utcnow(), **data)
        db.add(log)
        return log

    @staticmethod
    def get_logs(db: Session, business_id: str, limit: int = 100) -> list[WebhookLog]:
        return (
            db.query(WebhookLog)
            .filter(WebhookLog.business_id == business_id)
            .order_by(WebhookLog.sent_at.desc())
            .limit(limit)
            .all()
        )
