"""Unit tests for the notification worker jobs."""

from datetime import timedelta

import pytest
from arq import Retry
from libs.common.datetime_utils import utc_now
from services.communications_service import worker
from services.communications_service.models import (
    NotificationAudience,
    NotificationOutbox,
    NotificationStatus,
)
from tests.factories import CustomerFactory


class FakeRedis:
    def __init__(self):
        self.jobs = []

    async def enqueue_job(self, function, *args, _job_id=None, _queue_name=None):
        self.jobs.append((function, args, _job_id))


def _entry(**overrides):
    defaults = {
        "audience": NotificationAudience.CUSTOMER,
        "recipient_phone": "6281234567890",
        "message": "Halo",
        "created_at": utc_now() - timedelta(minutes=10),
    }
    defaults.update(overrides)
    return NotificationOutbox(**defaults)


@pytest.fixture
def worker_sessions(monkeypatch, session_factory):
    monkeypatch.setattr(worker, "AsyncSessionLocal", session_factory)
    return session_factory


@pytest.mark.asyncio
@pytest.mark.unit
async def test_sweep_queues_old_undelivered_rows(db_session, worker_sessions):
    stale = _entry()
    fresh = _entry(created_at=utc_now())
    sent = _entry(status=NotificationStatus.SENT)
    db_session.add_all([stale, fresh, sent])
    await db_session.commit()
    redis = FakeRedis()

    await worker.task_sweep_outbox({"redis": redis})

    assert redis.jobs == [
        ("task_deliver_notification", (str(stale.id),), f"outbox:{stale.id}")
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_failed_delivery_asks_for_retry(db_session, worker_sessions):
    entry = _entry()
    db_session.add(entry)
    await db_session.commit()

    with pytest.raises(Retry):
        await worker.task_deliver_notification({"job_try": 1}, str(entry.id))

    await db_session.refresh(entry)
    assert entry.attempts == 1
    assert entry.status == NotificationStatus.FAILED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_exhausted_row_is_not_retried(db_session, worker_sessions):
    entry = _entry(
        status=NotificationStatus.FAILED,
        attempts=worker.settings.NOTIFICATION_MAX_ATTEMPTS,
    )
    db_session.add(entry)
    await db_session.commit()

    await worker.task_deliver_notification({"job_try": 3}, str(entry.id))

    await db_session.refresh(entry)
    assert entry.attempts == worker.settings.NOTIFICATION_MAX_ATTEMPTS


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reconcile_job(db_session, worker_sessions):
    customer = CustomerFactory.create(points=42)
    db_session.add(customer)
    await db_session.commit()

    await worker.task_reconcile_loyalty({})

    await db_session.refresh(customer)
    assert customer.points == 0
