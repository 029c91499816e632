"""ARQ worker for order notifications and loyalty housekeeping.

Retries undelivered WhatsApp notifications from the outbox and reconciles
cached point balances against the ledger every night.
Run with: arq services.communications_service.worker.WorkerSettings
"""

import uuid
from datetime import timedelta

from arq import Retry, cron
from libs.common.arq_config import QUEUE_NAME, get_redis_settings
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import configure_logging, get_logger
from libs.db.config import AsyncSessionLocal
from services.communications_service.models import NotificationOutbox, NotificationStatus

logger = get_logger(__name__)

settings = get_settings()

# Rows younger than this are still being handled by the post-checkout task
SWEEP_GRACE_SECONDS = 60


async def startup(ctx: dict):
    configure_logging()
    logger.info("Notification worker started")


# ── Jobs ──


async def task_deliver_notification(ctx: dict, outbox_id: str):
    """Deliver one outbox row; ask ARQ to retry later while under the cap."""
    from services.communications_service.services.dispatcher import (
        deliver_outbox_entry,
    )

    async with AsyncSessionLocal() as db:
        entry = await db.get(NotificationOutbox, uuid.UUID(outbox_id))
        if entry is None or entry.status == NotificationStatus.SENT:
            return
        if entry.attempts >= settings.NOTIFICATION_MAX_ATTEMPTS:
            logger.warning(
                "Notification %s gave up after %d attempts", entry.id, entry.attempts
            )
            return

        if await deliver_outbox_entry(db, entry):
            return

        if entry.attempts < settings.NOTIFICATION_MAX_ATTEMPTS:
            raise Retry(
                defer=ctx.get("job_try", 1) * settings.NOTIFICATION_RETRY_DELAY_SECONDS
            )


async def task_sweep_outbox(ctx: dict):
    """Queue a delivery job for every undelivered outbox row."""
    from services.communications_service.services.dispatcher import find_undelivered

    async with AsyncSessionLocal() as db:
        entries = await find_undelivered(
            db, older_than=utc_now() - timedelta(seconds=SWEEP_GRACE_SECONDS)
        )

    for entry in entries:
        # Fixed job id so a row is never queued twice at once
        await ctx["redis"].enqueue_job(
            "task_deliver_notification",
            str(entry.id),
            _job_id=f"outbox:{entry.id}",
            _queue_name=QUEUE_NAME,
        )
    if entries:
        logger.info("Queued %d undelivered notifications", len(entries))


async def task_reconcile_loyalty(ctx: dict):
    """Reset cached point balances to the ledger sums."""
    from services.loyalty_service.services.loyalty_ops import reconcile_balances

    logger.info("Running: reconcile_balances")
    async with AsyncSessionLocal() as db:
        await reconcile_balances(db)


# ── Worker configuration ──


class WorkerSettings:
    """ARQ worker settings with cron job schedules."""

    redis_settings = get_redis_settings()
    queue_name = QUEUE_NAME
    on_startup = startup

    functions = [
        task_deliver_notification,
        task_sweep_outbox,
        task_reconcile_loyalty,
    ]

    max_tries = settings.NOTIFICATION_MAX_ATTEMPTS

    cron_jobs = [
        # Sweep the outbox every 5 minutes
        cron(
            task_sweep_outbox,
            minute={0, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55},
            run_at_startup=True,
        ),
        # Nightly ledger reconciliation (02:00 WIB / 19:00 UTC)
        cron(
            task_reconcile_loyalty,
            hour=19,
            minute=0,
            run_at_startup=False,
        ),
    ]
