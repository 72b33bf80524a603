"""Database-backed job queue shared by the API, CLI, scheduler and worker.

Rows move queued -> running -> completed. A running row is owned by one
worker through a lease that the worker keeps alive with heartbeats; a row
whose lease lapses goes back to ``failed`` and is picked up again. Failed
rows retry with exponential backoff until ``max_attempts``, then land in
``dead_letter``.
"""
import logging
import random
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.config import settings
from sitedesk.models import JobTask

logger = logging.getLogger(__name__)

QUEUED = "queued"
RUNNING = "running"
COMPLETED = "completed"
FAILED = "failed"
DEAD_LETTER = "dead_letter"

READY_STATUSES = (QUEUED, FAILED)
LEASE_EXPIRY_ERROR = "Lease expired before worker heartbeat"
MAX_ERROR_LENGTH = 2048


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def retry_delay_seconds(attempt_count: int) -> int:
    """15s, 30s, 60s, ... plus up to 20% jitter."""
    base = 15 * (2 ** max(attempt_count - 1, 0))
    return int(base * (1 + random.uniform(0, 0.2)))


async def enqueue_task(
    db: AsyncSession,
    job_type: str,
    site_id: int,
    *,
    payload_json: dict | None = None,
    idempotency_key: str | None = None,
    priority: int = 100,
    max_attempts: int | None = None,
) -> JobTask:
    """Queue one job. A known idempotency key returns the existing row instead."""
    if idempotency_key:
        result = await db.execute(select(JobTask).where(JobTask.idempotency_key == idempotency_key))
        existing = result.scalar_one_or_none()
        if existing:
            logger.info("Deduped %s task for key %s -> task=%s", job_type, idempotency_key, existing.id)
            return existing

    task = JobTask(
        job_type=job_type,
        site_id=site_id,
        status=QUEUED,
        priority=priority,
        attempt_count=0,
        max_attempts=max_attempts or settings.task_max_attempts,
        available_at=_utcnow(),
        idempotency_key=idempotency_key,
        payload_json=payload_json,
    )
    db.add(task)
    await db.commit()
    await db.refresh(task)

    logger.info("Enqueued %s task=%s site=%s", job_type, task.id, site_id)
    return task


async def claim_next_task(db: AsyncSession, *, worker_id: str, lease_seconds: int) -> JobTask | None:
    now = _utcnow()
    result = await db.execute(
        select(JobTask)
        .where(JobTask.status.in_(READY_STATUSES))
        .where(JobTask.available_at <= now)
        .where(or_(JobTask.leased_until.is_(None), JobTask.leased_until < now))
        .order_by(JobTask.priority.asc(), JobTask.created_at.asc(), JobTask.id.asc())
        .limit(1)
        .with_for_update(skip_locked=True)
    )
    task = result.scalar_one_or_none()
    if task is None:
        return None

    task.status = RUNNING
    task.attempt_count += 1
    task.lease_owner = worker_id
    task.leased_until = now + timedelta(seconds=lease_seconds)
    await db.commit()
    await db.refresh(task)

    logger.info(
        "Claimed %s task=%s site=%s attempt=%s worker=%s",
        task.job_type,
        task.id,
        task.site_id,
        task.attempt_count,
        worker_id,
    )
    return task


async def _leased_task(db: AsyncSession, task_id: int, worker_id: str) -> JobTask | None:
    """The running row for ``task_id`` if ``worker_id`` still holds its lease."""
    result = await db.execute(
        select(JobTask)
        .where(JobTask.id == task_id)
        .where(JobTask.lease_owner == worker_id)
        .where(JobTask.status == RUNNING)
        .with_for_update(skip_locked=True)
    )
    return result.scalar_one_or_none()


def _release(task: JobTask) -> None:
    task.leased_until = None
    task.lease_owner = None


async def heartbeat_task(db: AsyncSession, *, task_id: int, worker_id: str, lease_seconds: int) -> bool:
    task = await _leased_task(db, task_id, worker_id)
    if task is None:
        return False
    task.leased_until = _utcnow() + timedelta(seconds=lease_seconds)
    await db.commit()
    return True


async def complete_task(db: AsyncSession, *, task_id: int, worker_id: str) -> bool:
    task = await _leased_task(db, task_id, worker_id)
    if task is None:
        return False
    task.status = COMPLETED
    _release(task)
    await db.commit()
    return True


async def fail_task(
    db: AsyncSession, *, task_id: int, worker_id: str, error_message: str
) -> tuple[str, int | None]:
    """Record a failure. Returns (new status, retry delay in seconds or None)."""
    task = await _leased_task(db, task_id, worker_id)
    if task is None:
        return "missing", None

    task.last_error = (error_message or "Unknown worker failure")[:MAX_ERROR_LENGTH]
    _release(task)

    if task.attempt_count >= task.max_attempts:
        task.status = DEAD_LETTER
        await db.commit()
        return DEAD_LETTER, None

    delay = retry_delay_seconds(task.attempt_count)
    task.status = FAILED
    task.available_at = _utcnow() + timedelta(seconds=delay)
    await db.commit()
    return FAILED, delay


async def recover_expired_running_tasks(db: AsyncSession) -> int:
    now = _utcnow()
    result = await db.execute(
        select(JobTask)
        .where(JobTask.status == RUNNING)
        .where(JobTask.leased_until.is_not(None))
        .where(JobTask.leased_until < now)
        .with_for_update(skip_locked=True)
    )
    stale = result.scalars().all()
    for task in stale:
        task.status = FAILED
        task.available_at = now
        task.last_error = task.last_error or LEASE_EXPIRY_ERROR
        _release(task)
    if stale:
        await db.commit()
    return len(stale)


async def queue_counts(db: AsyncSession) -> dict[str, int]:
    result = await db.execute(select(JobTask.status, func.count()).group_by(JobTask.status))
    return {status: count for status, count in result.all()}
