from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from sitedesk.models import JobTask
from sitedesk.models.job_task import JOB_PAGESPEED, JOB_SITE_SYNC
from sitedesk.services import task_queue
from sitedesk.services.dispatch import dispatch_pagespeed, dispatch_sync_all

WORKER = "worker-test"


def test_retry_delay_grows_exponentially():
    assert 15 <= task_queue.retry_delay_seconds(1) <= 18
    assert 30 <= task_queue.retry_delay_seconds(2) <= 36
    assert 60 <= task_queue.retry_delay_seconds(3) <= 72


@pytest.mark.asyncio
class TestTaskQueue:
    async def test_idempotency_key_dedupes(self, db, make_site):
        site = await make_site()
        first = await task_queue.enqueue_task(db, JOB_SITE_SYNC, site.id, idempotency_key="k1")
        second = await task_queue.enqueue_task(db, JOB_SITE_SYNC, site.id, idempotency_key="k1")
        assert first.id == second.id

    async def test_claim_complete_cycle(self, db, make_site):
        site = await make_site()
        task = await task_queue.enqueue_task(db, JOB_PAGESPEED, site.id, payload_json={"strategy": "desktop"})

        claimed = await task_queue.claim_next_task(db, worker_id=WORKER, lease_seconds=60)
        assert claimed.id == task.id
        assert claimed.status == task_queue.RUNNING
        assert claimed.attempt_count == 1
        assert claimed.payload_json == {"strategy": "desktop"}

        assert await task_queue.claim_next_task(db, worker_id="other", lease_seconds=60) is None
        assert await task_queue.heartbeat_task(db, task_id=task.id, worker_id=WORKER, lease_seconds=60)
        assert not await task_queue.complete_task(db, task_id=task.id, worker_id="other")
        assert await task_queue.complete_task(db, task_id=task.id, worker_id=WORKER)

        await db.refresh(claimed)
        assert claimed.status == task_queue.COMPLETED
        assert claimed.lease_owner is None

    async def test_failures_retry_then_dead_letter(self, db, make_site):
        site = await make_site()
        task = await task_queue.enqueue_task(db, JOB_SITE_SYNC, site.id, max_attempts=2)

        await task_queue.claim_next_task(db, worker_id=WORKER, lease_seconds=60)
        status, delay = await task_queue.fail_task(db, task_id=task.id, worker_id=WORKER, error_message="boom")
        assert status == task_queue.FAILED
        assert delay >= 15

        # Not claimable until the backoff passes.
        assert await task_queue.claim_next_task(db, worker_id=WORKER, lease_seconds=60) is None
        task.available_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        await db.commit()

        await task_queue.claim_next_task(db, worker_id=WORKER, lease_seconds=60)
        status, delay = await task_queue.fail_task(db, task_id=task.id, worker_id=WORKER, error_message="boom")
        assert status == task_queue.DEAD_LETTER
        assert delay is None
        await db.refresh(task)
        assert task.last_error == "boom"

    async def test_expired_lease_is_recovered(self, db, make_site):
        site = await make_site()
        task = await task_queue.enqueue_task(db, JOB_SITE_SYNC, site.id)
        await task_queue.claim_next_task(db, worker_id=WORKER, lease_seconds=60)

        task.leased_until = datetime.now(timezone.utc) - timedelta(seconds=5)
        await db.commit()

        assert await task_queue.recover_expired_running_tasks(db) == 1
        await db.refresh(task)
        assert task.status == task_queue.FAILED
        assert task.last_error == task_queue.LEASE_EXPIRY_ERROR

        counts = await task_queue.queue_counts(db)
        assert counts == {task_queue.FAILED: 1}


@pytest.mark.asyncio
class TestDispatch:
    async def test_sync_all_only_targets_live_enabled_sites(self, db, make_site):
        enabled = await make_site(sync_enabled=True, api_token="a")
        await make_site(sync_enabled=False)
        deleted = await make_site(sync_enabled=True, api_token="b")
        deleted.soft_delete()
        await db.commit()

        tasks = await dispatch_sync_all(db)
        assert [task.site_id for task in tasks] == [enabled.id]
        assert tasks[0].job_type == JOB_SITE_SYNC

    async def test_windowed_dispatch_is_idempotent(self, db, make_site):
        await make_site(sync_enabled=True, api_token="a")
        await dispatch_sync_all(db, window="2026-10-19T02:00:00+00:00")
        await dispatch_sync_all(db, window="2026-10-19T02:00:00+00:00")

        tasks = (await db.execute(select(JobTask))).scalars().all()
        assert len(tasks) == 1

    async def test_pagespeed_fans_out_to_every_site(self, db, make_site):
        first = await make_site()
        second = await make_site(sync_enabled=False)

        tasks = await dispatch_pagespeed(db, "desktop")
        assert sorted(task.site_id for task in tasks) == [first.id, second.id]
        assert all(task.payload_json == {"strategy": "desktop"} for task in tasks)
