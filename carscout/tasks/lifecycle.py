"""Periodic lifecycle tasks: job-queue drain, sweep to sold, purge.

Each task body runs under a per-task guard; a tick that arrives while the
previous run is still in progress is skipped rather than overlapped.
"""

import logging
from contextlib import contextmanager

import redis

from carscout.config import settings
from carscout.database import SessionLocal
from carscout.services import job_queue, lifecycle
from carscout.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


class RunGuard:
    """'Already running' flags keyed by task name, shared through Redis.

    Prefork worker children and separate worker hosts all see the same
    flag. A flag expires after `timeout` seconds so a killed worker cannot
    block its task forever.
    """

    def __init__(self, client=None, timeout: int | None = None, prefix: str = "carscout:running:"):
        self._client = client
        self.timeout = settings.task_lock_timeout_seconds if timeout is None else timeout
        self.prefix = prefix

    @property
    def client(self):
        if self._client is None:
            options = {}
            if settings.redis_url.startswith("rediss://"):
                # Same self-signed Heroku Redis certs as the Celery broker
                options["ssl_cert_reqs"] = "none"
            self._client = redis.Redis.from_url(settings.redis_url, **options)
        return self._client

    def _lock_for(self, name: str):
        return self.client.lock(f"{self.prefix}{name}", timeout=self.timeout, blocking=False)

    def is_running(self, name: str) -> bool:
        return self._lock_for(name).locked()

    @contextmanager
    def hold(self, name: str):
        """Yield True if the flag was acquired, False if a run is in progress."""
        lock = self._lock_for(name)
        acquired = lock.acquire(blocking=False)
        try:
            yield acquired
        finally:
            if acquired:
                try:
                    lock.release()
                except redis.exceptions.LockError as e:
                    # Expired mid-run; another worker may already hold it
                    logger.warning(f"Run flag for {name} expired before release: {e}")


run_guard = RunGuard()


@celery_app.task(bind=True, max_retries=3)
def drain_job_queue(self):
    """Process pending jobs from the job_queue table (short interval)."""
    with run_guard.hold("drain_job_queue") as acquired:
        if not acquired:
            logger.debug("Job queue drain already running, skipping tick")
            return {"status": "skipped"}

        db = SessionLocal()
        try:
            counts = job_queue.drain(db, max_jobs=settings.job_queue_batch_size)
            if counts["completed"] or counts["failed"]:
                logger.info(
                    f"Job queue drained: {counts['completed']} completed, {counts['failed']} failed"
                )
            return {"status": "success", **counts}
        except Exception as e:
            logger.error(f"Job queue drain failed: {e}")
            self.retry(exc=e, countdown=30)
        finally:
            db.close()


@celery_app.task(bind=True, max_retries=3)
def mark_listings_sold(self):
    """Sweep active listings unseen past the threshold to sold (medium interval)."""
    with run_guard.hold("mark_listings_sold") as acquired:
        if not acquired:
            logger.warning("Sold sweep already running, skipping tick")
            return {"status": "skipped"}

        logger.info("Starting sold sweep")
        db = SessionLocal()
        try:
            marked = lifecycle.mark_stale_listings_sold(db)
            logger.info(f"Sold sweep complete: {marked} listings marked sold")
            return {"status": "success", "marked_sold": marked}
        except Exception as e:
            logger.error(f"Sold sweep failed: {e}")
            self.retry(exc=e, countdown=60)
        finally:
            db.close()


@celery_app.task(bind=True, max_retries=3)
def purge_listings(self):
    """Delete sold listings past the retention window (long interval)."""
    with run_guard.hold("purge_listings") as acquired:
        if not acquired:
            logger.warning("Purge already running, skipping tick")
            return {"status": "skipped"}

        logger.info("Starting sold listing purge")
        db = SessionLocal()
        try:
            purged = lifecycle.purge_sold_listings(db)
            logger.info(f"Purge complete: {purged} sold listings deleted")
            return {"status": "success", "purged": purged}
        except Exception as e:
            logger.error(f"Purge failed: {e}")
            self.retry(exc=e, countdown=60)
        finally:
            db.close()
