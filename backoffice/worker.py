"""
ARQ Background Worker for Async Jobs
Handles outbound webhook delivery and the periodic queue sweep
"""

import logging
import os

from arq.cron import cron

from . import models  # noqa: F401 - register models before any database operation
from .database import SessionLocal
from .domain.automations.dispatcher import deliver_queue_item, process_pending
from .domain.automations.repository import WebhookRepository
from .jobs import get_redis_settings

logger = logging.getLogger(__name__)


async def deliver_webhook_task(ctx, queue_id: str):
    """
    Deliver one queued webhook.

    Args:
        ctx: ARQ context
        queue_id: WebhookQueue row id

    Returns:
        dict with queue_id and resulting status
    """
    db = SessionLocal()
    try:
        item = WebhookRepository.get_queue_item(db, queue_id)
        if not item:
            logger.warning(f"⚠️ Webhook queue row {queue_id} not found")
            return {"queue_id": queue_id, "status": "missing"}

        status = await deliver_queue_item(db, item)
        return {"queue_id": queue_id, "status": status}

    except Exception as e:
        logger.error(f"❌ Webhook delivery task failed for {queue_id}: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()


async def process_webhook_queue_task(ctx):
    """
    Cron sweep: deliver pending rows whose job was never enqueued,
    and retry rows that failed below the attempt cap.
    """
    db = SessionLocal()
    try:
        return await process_pending(db)
    except Exception as e:
        logger.error(f"❌ Webhook queue sweep failed: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()


class WorkerSettings:
    """ARQ Worker Settings"""

    functions = [
        deliver_webhook_task,
        process_webhook_queue_task,
    ]
    redis_settings = get_redis_settings()

    max_jobs = int(os.getenv("ARQ_MAX_JOBS", "20"))
    job_timeout = int(os.getenv("ARQ_JOB_TIMEOUT", "60"))
    keep_result = int(os.getenv("ARQ_KEEP_RESULT", "3600"))

    health_check_interval = 60

    # Delivery attempts are counted on the queue row, not by ARQ retries
    max_tries = 1

    cron_jobs = [
        cron(process_webhook_queue_task, minute=set(range(60)), run_at_startup=True),
    ]

    logger.info(f"🔧 ARQ Worker configured: max_jobs={max_jobs}, timeout={job_timeout}s")
