"""Celery application configuration."""

import ssl

from celery import Celery

from carscout.config import settings

# Handle Heroku Redis SSL connection (rediss://)
redis_url = settings.redis_url
broker_use_ssl = None
backend_use_ssl = None

if redis_url.startswith("rediss://"):
    # Heroku Redis uses SSL - configure for self-signed certs
    broker_use_ssl = {
        "ssl_cert_reqs": ssl.CERT_NONE,
    }
    backend_use_ssl = {
        "ssl_cert_reqs": ssl.CERT_NONE,
    }

# Create Celery app
celery_app = Celery(
    "carscout",
    broker=redis_url,
    backend=redis_url,
    include=[
        "carscout.tasks.lifecycle",
    ],
)

# Celery configuration
celery_config = {
    "task_serializer": "json",
    "accept_content": ["json"],
    "result_serializer": "json",
    "timezone": "UTC",
    "enable_utc": True,
    "task_track_started": True,
    "task_time_limit": 300,  # 5 minute timeout
    "worker_prefetch_multiplier": 1,
    "worker_concurrency": 2,
}

# Add SSL config if using rediss://
if broker_use_ssl:
    celery_config["broker_use_ssl"] = broker_use_ssl
    celery_config["redis_backend_use_ssl"] = backend_use_ssl

celery_app.conf.update(**celery_config)

# Beat schedule: three independent periodic tasks
celery_app.conf.beat_schedule = {}
if settings.scheduler_enabled:
    celery_app.conf.beat_schedule = {
        "drain-job-queue": {
            "task": "carscout.tasks.lifecycle.drain_job_queue",
            "schedule": settings.job_queue_interval_seconds,
            # A missed drain tick is superseded by the next one
            "options": {"expires": settings.job_queue_interval_seconds},
        },
        "mark-stale-listings-sold": {
            "task": "carscout.tasks.lifecycle.mark_listings_sold",
            "schedule": settings.sold_sweep_interval_seconds,
        },
        "purge-sold-listings": {
            "task": "carscout.tasks.lifecycle.purge_listings",
            "schedule": settings.purge_interval_seconds,
        },
    }
