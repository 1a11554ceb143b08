"""Database models."""

from carscout.models.car_listing import CarListing, ListingStatus, Platform
from carscout.models.valuation_cache import ValuationCacheEntry
from carscout.models.job import Job, JobStatus

__all__ = [
    "CarListing",
    "ListingStatus",
    "Platform",
    "ValuationCacheEntry",
    "Job",
    "JobStatus",
]
