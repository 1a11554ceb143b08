"""Listing ingest and job-queue routes."""

from datetime import datetime
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from carscout.database import get_db
from carscout.models import CarListing, Platform
from carscout.services import job_queue, lifecycle

router = APIRouter(prefix="/api", tags=["listings"])


class ListingIn(BaseModel):
    platform: Platform
    platform_listing_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: Optional[str] = None
    price: float = Field(ge=0)
    vin: Optional[str] = Field(default=None, max_length=17)
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    mileage: Optional[int] = Field(default=None, ge=0)
    condition: Optional[Literal["excellent", "good", "fair", "poor", "salvage"]] = None
    location: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    seller_info: Optional[dict[str, Any]] = None
    platform_url: str = Field(min_length=1)


def _serialize(listing: CarListing) -> dict[str, Any]:
    return {
        "id": listing.id,
        "platform": listing.platform,
        "platform_listing_id": listing.platform_listing_id,
        "title": listing.title,
        "price": float(listing.price),
        "make": listing.make,
        "model": listing.model,
        "year": listing.year,
        "mileage": listing.mileage,
        "condition": listing.condition,
        "status": listing.status,
        "first_seen_at": listing.first_seen_at.isoformat() if listing.first_seen_at else None,
        "last_seen_at": listing.last_seen_at.isoformat() if listing.last_seen_at else None,
        "sold_at": listing.sold_at.isoformat() if listing.sold_at else None,
        "days_on_market": listing.days_on_market,
        "platform_url": listing.platform_url,
    }


@router.post("/listings")
async def ingest_listing(payload: ListingIn, db: Session = Depends(get_db)):
    """Record an observation of a scraped listing (insert or refresh)."""
    listing, created = lifecycle.upsert_listing(db, payload.model_dump())
    return {"created": created, "listing": _serialize(listing)}


@router.get("/listings/{listing_id}")
async def get_listing(listing_id: int, db: Session = Depends(get_db)):
    listing = db.query(CarListing).filter(CarListing.id == listing_id).first()
    if not listing:
        raise HTTPException(status_code=404, detail="Listing not found")
    return _serialize(listing)


class JobIn(BaseModel):
    type: Literal["mark_stale_listings_sold", "purge_sold_listings"]
    payload: dict[str, Any] = Field(default_factory=dict)


@router.post("/jobs")
async def create_job(payload: JobIn, db: Session = Depends(get_db)):
    """Queue a lifecycle job for the next job-queue drain."""
    job = job_queue.enqueue(db, payload.type, payload.payload)
    return {
        "id": job.id,
        "type": job.type,
        "status": job.status,
        "queued_at": (job.created_at or datetime.utcnow()).isoformat(),
    }
