"""Database-backed job queue.

Jobs are claimed oldest-first, executed by type and finished as completed
(with a result) or failed (with an error message).
"""

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from carscout.models import Job, JobStatus
from carscout.services.lifecycle import mark_stale_listings_sold, purge_sold_listings

logger = logging.getLogger(__name__)


def _run_mark_sold(db: Session, payload: dict[str, Any]) -> dict[str, Any]:
    marked = mark_stale_listings_sold(db, threshold_hours=payload.get("threshold_hours"))
    return {"marked_sold": marked}


def _run_purge(db: Session, payload: dict[str, Any]) -> dict[str, Any]:
    purged = purge_sold_listings(db, retention_days=payload.get("retention_days"))
    return {"purged": purged}


JOB_HANDLERS: dict[str, Callable[[Session, dict[str, Any]], dict[str, Any]]] = {
    "mark_stale_listings_sold": _run_mark_sold,
    "purge_sold_listings": _run_purge,
}


def enqueue(db: Session, job_type: str, payload: Optional[dict[str, Any]] = None) -> Job:
    job = Job(type=job_type, payload=payload or {}, status=JobStatus.PENDING.value)
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info(f"Enqueued job {job.id} ({job_type})")
    return job


def _claim_next(db: Session) -> Optional[Job]:
    """Move the oldest pending job to processing; None if the queue is empty."""
    while True:
        job = (
            db.query(Job)
            .filter(Job.status == JobStatus.PENDING.value)
            .order_by(Job.created_at.asc(), Job.id.asc())
            .first()
        )
        if job is None:
            return None

        # Conditional claim so two drains never run the same job
        claimed = db.execute(
            update(Job)
            .where(Job.id == job.id)
            .where(Job.status == JobStatus.PENDING.value)
            .values(status=JobStatus.PROCESSING.value, started_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        ).rowcount
        db.commit()
        if claimed == 1:
            db.refresh(job)
            return job


def process_next(db: Session) -> Optional[Job]:
    """Execute the next pending job. Returns the job, or None if none was pending."""
    job = _claim_next(db)
    if job is None:
        return None

    handler = JOB_HANDLERS.get(job.type)
    try:
        if handler is None:
            raise ValueError(f"Unknown job type: {job.type}")
        result = handler(db, job.payload or {})
        job.status = JobStatus.COMPLETED.value
        job.result = result
    except Exception as e:
        db.rollback()
        logger.error(f"Job {job.id} ({job.type}) failed: {e}")
        job.status = JobStatus.FAILED.value
        job.error = str(e)

    job.completed_at = datetime.utcnow()
    db.commit()
    return job


def drain(db: Session, max_jobs: int = 10) -> dict[str, int]:
    """Process up to max_jobs pending jobs."""
    completed = 0
    failed = 0
    for _ in range(max_jobs):
        job = process_next(db)
        if job is None:
            break
        if job.status == JobStatus.COMPLETED.value:
            completed += 1
        else:
            failed += 1
    return {"completed": completed, "failed": failed}
