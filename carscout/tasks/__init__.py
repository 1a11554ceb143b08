"""Celery tasks."""

from carscout.tasks.celery_app import celery_app
from carscout.tasks.lifecycle import drain_job_queue, mark_listings_sold, purge_listings

__all__ = [
    "celery_app",
    "drain_job_queue",
    "mark_listings_sold",
    "purge_listings",
]
