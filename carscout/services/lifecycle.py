"""Listing lifecycle: active -> sold -> purged.

    active --(unseen > threshold)--> sold --(sold_at older than retention)--> deleted

mark_stale_listings_sold is the only writer of sold_at / days_on_market.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from carscout.config import settings
from carscout.models import CarListing, ListingStatus, Platform
from carscout.valuation.retention import round_half_up

logger = logging.getLogger(__name__)

# Attributes a re-observation may overwrite on an active listing
MUTABLE_FIELDS = (
    "title",
    "description",
    "price",
    "vin",
    "make",
    "model",
    "year",
    "mileage",
    "condition",
    "location",
    "images",
    "seller_info",
    "platform_url",
)


def days_on_market(first_seen_at: datetime, sold_at: datetime) -> int:
    """Whole days between first observation and sale, never less than 1."""
    elapsed_days = (sold_at - first_seen_at).total_seconds() / 86400
    return max(1, round_half_up(elapsed_days))


def upsert_listing(
    db: Session, listing_data: dict[str, Any], now: Optional[datetime] = None
) -> tuple[CarListing, bool]:
    """
    Record one observation of a marketplace posting.

    (platform, platform_listing_id) is the identity: a new identity inserts a
    row, a known active identity gets its attributes and last_seen_at
    refreshed. A sold identity that shows up again keeps its sold state and
    recorded attributes (it is comparable-sales data); only last_seen_at moves.

    Returns:
        (listing, created)
    """
    now = now or datetime.utcnow()
    platform = Platform(listing_data["platform"]).value
    platform_listing_id = str(listing_data["platform_listing_id"])

    existing = (
        db.query(CarListing)
        .filter(CarListing.platform == platform)
        .filter(CarListing.platform_listing_id == platform_listing_id)
        .first()
    )

    if existing:
        if existing.is_sold:
            logger.info(
                f"Sold listing {platform}:{platform_listing_id} re-observed; keeping sold state"
            )
        else:
            for field in MUTABLE_FIELDS:
                if field in listing_data and listing_data[field] is not None:
                    value = listing_data[field]
                    if field == "price":
                        value = Decimal(str(value))
                    setattr(existing, field, value)
        existing.last_seen_at = now
        db.commit()
        return existing, False

    listing = CarListing(
        platform=platform,
        platform_listing_id=platform_listing_id,
        title=listing_data["title"],
        description=listing_data.get("description"),
        price=Decimal(str(listing_data["price"])),
        vin=listing_data.get("vin"),
        make=listing_data.get("make"),
        model=listing_data.get("model"),
        year=listing_data.get("year"),
        mileage=listing_data.get("mileage"),
        condition=listing_data.get("condition"),
        location=listing_data.get("location"),
        images=list(listing_data.get("images") or []),
        seller_info=listing_data.get("seller_info"),
        platform_url=listing_data["platform_url"],
        status=ListingStatus.ACTIVE.value,
        first_seen_at=now,
        last_seen_at=now,
    )
    db.add(listing)
    db.commit()
    return listing, True


def mark_stale_listings_sold(
    db: Session,
    now: Optional[datetime] = None,
    threshold_hours: Optional[int] = None,
) -> int:
    """
    Transition active listings unseen for longer than the threshold to sold.

    Each row is updated conditionally (still active) inside its own savepoint,
    so a concurrent writer or a single failing row never aborts the batch.

    Returns:
        Number of listings actually marked sold.
    """
    now = now or datetime.utcnow()
    threshold_hours = settings.sold_threshold_hours if threshold_hours is None else threshold_hours
    cutoff = now - timedelta(hours=threshold_hours)

    stale = (
        db.query(CarListing.id, CarListing.first_seen_at)
        .filter(CarListing.status == ListingStatus.ACTIVE.value)
        .filter(CarListing.last_seen_at < cutoff)
        .all()
    )
    if not stale:
        return 0

    marked = 0
    failed = 0
    for listing_id, first_seen_at in stale:
        try:
            with db.begin_nested():
                result = db.execute(
                    update(CarListing)
                    .where(CarListing.id == listing_id)
                    .where(CarListing.status == ListingStatus.ACTIVE.value)
                    .values(
                        status=ListingStatus.SOLD.value,
                        sold_at=now,
                        days_on_market=days_on_market(first_seen_at or now, now),
                    )
                    .execution_options(synchronize_session=False)
                )
            if result.rowcount == 1:
                marked += 1
        except Exception as e:
            failed += 1
            logger.error(f"Failed to mark listing {listing_id} as sold: {e}")
            continue

    db.commit()
    # Rows loaded earlier in this session must not keep stale status values
    db.expire_all()

    logger.info(f"Marked {marked} listings sold ({failed} failed, {len(stale)} stale)")
    return marked


def purge_sold_listings(
    db: Session,
    now: Optional[datetime] = None,
    retention_days: Optional[int] = None,
) -> int:
    """Delete sold listings whose sold_at is older than the retention window."""
    now = now or datetime.utcnow()
    retention_days = settings.sold_retention_days if retention_days is None else retention_days
    cutoff = now - timedelta(days=retention_days)

    result = db.execute(
        delete(CarListing)
        .where(CarListing.status == ListingStatus.SOLD.value)
        .where(CarListing.sold_at < cutoff)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.expire_all()

    purged = result.rowcount or 0
    if purged > 0:
        logger.info(f"Purged {purged} sold listings older than {retention_days} days")
    return purged

