"""Shared test fixtures for CarScout."""

import os

# Must be set before carscout.config / carscout.database are imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PRICING_API_URL", "")
os.environ.setdefault("PRICING_API_KEY", "")
os.environ.setdefault("OPENROUTER_API_KEY", "")

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from carscout.database import Base
from carscout.models import CarListing, ListingStatus
from carscout.valuation import RetentionModel, get_calibration

NOW = datetime(2026, 10, 1, 12, 0, 0)


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads (TestClient) with working SAVEPOINTs."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def retention_model() -> RetentionModel:
    return RetentionModel(get_calibration(), current_year=lambda: 2026)


_counter = {"n": 0}


def make_listing(db, **overrides) -> CarListing:
    """Insert a listing; defaults describe an active 2020 Toyota Camry."""
    _counter["n"] += 1
    data = dict(
        platform="craigslist",
        platform_listing_id=f"cl-{_counter['n']}",
        title="2020 Toyota Camry SE",
        price=Decimal("18000"),
        platform_url=f"https://sfbay.craigslist.org/cto/d/{_counter['n']}.html",
        images=[],
        make="Toyota",
        model="Camry",
        year=2020,
        mileage=60000,
        condition="good",
        status=ListingStatus.ACTIVE.value,
        first_seen_at=NOW - timedelta(days=10),
        last_seen_at=NOW - timedelta(hours=1),
    )
    data.update(overrides)
    listing = CarListing(**data)
    db.add(listing)
    db.commit()
    return listing


def make_sold(db, days_on_market: int = 10, sold_days_ago: int = 5, **overrides) -> CarListing:
    sold_at = NOW - timedelta(days=sold_days_ago)
    overrides.setdefault("first_seen_at", sold_at - timedelta(days=days_on_market))
    overrides.setdefault("last_seen_at", sold_at - timedelta(hours=48))
    return make_listing(
        db,
        status=ListingStatus.SOLD.value,
        sold_at=sold_at,
        days_on_market=days_on_market,
        **overrides,
    )
