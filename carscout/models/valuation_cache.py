"""Cached vehicle valuation model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from carscout.database import Base


class ValuationCacheEntry(Base):
    """A priced opinion for one (make, model, year[, vin]) tuple.

    Rows are insert-only. A row past expires_at is ignored by lookups and a
    later fetch inserts a fresh row.
    """

    __tablename__ = "valuation_cache"
    __table_args__ = (
        Index("ix_valuation_cache_lookup", "make", "model", "year", "expires_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    vin: Mapped[Optional[str]] = mapped_column(String(17), nullable=True)
    make: Mapped[str] = mapped_column(String(50), nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    year: Mapped[int] = mapped_column(nullable=False)
    mileage: Mapped[int] = mapped_column(nullable=False)
    condition: Mapped[str] = mapped_column(String(20), nullable=False)

    estimated_value: Mapped[int] = mapped_column(nullable=False)
    low_value: Mapped[int] = mapped_column(nullable=False)
    high_value: Mapped[int] = mapped_column(nullable=False)
    source: Mapped[str] = mapped_column(String(30), default="retention_model", nullable=False)

    fetched_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ValuationCacheEntry(id={self.id}, {self.year} {self.make} {self.model}, "
            f"value={self.estimated_value})>"
        )
