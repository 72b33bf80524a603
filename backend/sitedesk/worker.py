import asyncio
import logging
import signal
import uuid
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.config import settings
from sitedesk.database import async_session
from sitedesk.models import JobTask
from sitedesk.models.job_task import JOB_PAGESPEED, JOB_SITE_SYNC
from sitedesk.services.scheduler import register_jobs, scheduler
from sitedesk.services.task_queue import (
    DEAD_LETTER,
    FAILED,
    claim_next_task,
    complete_task,
    fail_task,
    heartbeat_task,
    recover_expired_running_tasks,
)
from sitedesk.tasks.pagespeed_task import run_pagespeed_job
from sitedesk.tasks.site_sync_task import run_site_sync_job

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

JobHandler = Callable[[AsyncSession, JobTask], Awaitable[bool]]


async def _handle_site_sync(db: AsyncSession, task: JobTask) -> bool:
    return await run_site_sync_job(db, task.site_id)


async def _handle_pagespeed(db: AsyncSession, task: JobTask) -> bool:
    strategy = (task.payload_json or {}).get("strategy", "mobile")
    return await run_pagespeed_job(db, task.site_id, strategy)


HANDLERS: dict[str, JobHandler] = {
    JOB_SITE_SYNC: _handle_site_sync,
    JOB_PAGESPEED: _handle_pagespeed,
}


async def _heartbeat_until(done: asyncio.Event, task_id: int, worker_id: str) -> None:
    while not done.is_set():
        try:
            await asyncio.wait_for(done.wait(), timeout=settings.task_heartbeat_interval_seconds)
            return
        except asyncio.TimeoutError:
            pass

        async with async_session() as db:
            renewed = await heartbeat_task(
                db,
                task_id=task_id,
                worker_id=worker_id,
                lease_seconds=settings.task_lease_seconds,
            )
        if not renewed:
            logger.warning("Heartbeat stopped for task=%s worker=%s", task_id, worker_id)
            return


async def run_handler(task_id: int) -> tuple[bool, str]:
    """Run the handler for one claimed task. Returns (success, error message)."""
    async with async_session() as db:
        task = await db.get(JobTask, task_id)
        if task is None:
            return False, f"Task {task_id} disappeared"

        job_type = task.job_type
        handler = HANDLERS.get(job_type)
        if handler is None:
            return False, f"No handler for job type {job_type!r}"

        logger.info(
            "Running %s task=%s site=%s attempt=%s",
            job_type,
            task_id,
            task.site_id,
            task.attempt_count,
        )
        if await handler(db, task):
            return True, ""
        return False, f"{job_type} handler returned unsuccessful status"


async def process_task(task_id: int, worker_id: str) -> None:
    done = asyncio.Event()
    heartbeat = asyncio.create_task(_heartbeat_until(done, task_id, worker_id))

    try:
        success, error = await run_handler(task_id)
    except Exception as exc:
        logger.exception("Unhandled worker exception for task=%s", task_id)
        success, error = False, str(exc)
    finally:
        done.set()
        await heartbeat

    async with async_session() as db:
        if success:
            if await complete_task(db, task_id=task_id, worker_id=worker_id):
                logger.info("Completed task=%s worker=%s", task_id, worker_id)
            else:
                logger.warning("Task=%s no longer leased by worker=%s; completion skipped", task_id, worker_id)
            return

        status, retry_in = await fail_task(db, task_id=task_id, worker_id=worker_id, error_message=error)

    if status == FAILED:
        logger.warning("Retry scheduled for task=%s in %ss", task_id, retry_in)
    elif status == DEAD_LETTER:
        logger.error("Task=%s moved to dead_letter: %s", task_id, error)
    else:
        logger.error("Task=%s failed but could not be updated", task_id)


async def worker_loop(stop_event: asyncio.Event, worker_id: str) -> None:
    max_concurrent = settings.worker_max_concurrent_tasks
    poll_interval = settings.task_poll_interval_ms / 1000
    logger.info("Worker started with id=%s max_concurrent=%s", worker_id, max_concurrent)

    active: dict[int, asyncio.Task] = {}

    while not stop_event.is_set():
        for task_id in [tid for tid, t in active.items() if t.done()]:
            finished = active.pop(task_id)
            if finished.exception():
                logger.error("Task=%s raised unhandled exception: %s", task_id, finished.exception())

        async with async_session() as db:
            recovered = await recover_expired_running_tasks(db)
        if recovered:
            logger.warning("Recovered %s expired leased task(s) back to failed", recovered)

        while len(active) < max_concurrent:
            async with async_session() as db:
                task = await claim_next_task(db, worker_id=worker_id, lease_seconds=settings.task_lease_seconds)
            if task is None:
                break
            active[task.id] = asyncio.create_task(process_task(task.id, worker_id))

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=poll_interval)
        except asyncio.TimeoutError:
            continue

    if active:
        logger.info("Waiting for %s running task(s) to finish", len(active))
        await asyncio.gather(*active.values(), return_exceptions=True)


async def main() -> None:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    worker_id = settings.worker_id or f"worker-{uuid.uuid4().hex[:8]}"

    if settings.run_scheduler:
        register_jobs()
        scheduler.start()
        logger.info("Scheduler enabled in worker process")

    try:
        await worker_loop(stop_event, worker_id)
    finally:
        if scheduler.running:
            scheduler.shutdown(wait=False)
        logger.info("Worker shutting down")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
