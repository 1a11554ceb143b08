"""Domain services."""

from carscout.services.lifecycle import (
    mark_stale_listings_sold,
    purge_sold_listings,
    upsert_listing,
)
from carscout.services.job_queue import enqueue, process_next, drain

__all__ = [
    "mark_stale_listings_sold",
    "purge_sold_listings",
    "upsert_listing",
    "enqueue",
    "process_next",
    "drain",
]
