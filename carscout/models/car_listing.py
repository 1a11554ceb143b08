"""Car listing model for scraped marketplace postings."""

import enum
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from carscout.database import Base


class Platform(str, enum.Enum):
    FACEBOOK = "facebook"
    CRAIGSLIST = "craigslist"


class ListingStatus(str, enum.Enum):
    ACTIVE = "active"
    SOLD = "sold"


class CarListing(Base):
    """Represents one observed vehicle posting on a marketplace platform.

    Active listings double as comparable-sales data once they transition to
    sold (see carscout.services.lifecycle).
    """

    __tablename__ = "car_listings"
    __table_args__ = (
        UniqueConstraint("platform", "platform_listing_id", name="uq_car_listings_platform_listing"),
        Index("ix_car_listings_status_last_seen", "status", "last_seen_at"),
        Index("ix_car_listings_status_sold_at", "status", "sold_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Platform identity
    platform: Mapped[str] = mapped_column(String(20), nullable=False)
    platform_listing_id: Mapped[str] = mapped_column(String(100), nullable=False)

    # Posting details
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    images: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    seller_info: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    platform_url: Mapped[str] = mapped_column(Text, nullable=False)

    # Vehicle attributes (often missing on free-text postings)
    vin: Mapped[Optional[str]] = mapped_column(String(17), nullable=True)
    make: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    model: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    year: Mapped[Optional[int]] = mapped_column(nullable=True)
    mileage: Mapped[Optional[int]] = mapped_column(nullable=True)
    condition: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Lifecycle
    status: Mapped[str] = mapped_column(String(10), default=ListingStatus.ACTIVE.value, nullable=False)
    sold_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    days_on_market: Mapped[Optional[int]] = mapped_column(nullable=True)

    # Timestamps
    first_seen_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    @property
    def is_sold(self) -> bool:
        return self.status == ListingStatus.SOLD.value

    def __repr__(self) -> str:
        return (
            f"<CarListing(id={self.id}, platform='{self.platform}', "
            f"listing_id='{self.platform_listing_id}', status='{self.status}')>"
        )
