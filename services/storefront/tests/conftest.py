"""
Pytest fixtures for storefront service tests.

Provides an in-memory database, a fake legacy inventory source and a test
client wired to both.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.database import Base, get_db, get_session_factory
from app.legacy.inventory_reader import LegacySourceError, get_legacy_reader
from app.main import app as fastapi_app
from app.models import Coupon, Order, TaxRate
from app.schemas.inventory_sync import LegacyInventoryRecord, LegacySite


class FakeLegacyReader:
    """Stands in for the SQL Server source; returns whatever the test loads"""

    def __init__(self, records=None, error=None):
        self.records = list(records or [])
        self.error = error
        self.calls = []

    def fetch_inventory(self, site_code):
        self.calls.append(site_code)
        if self.error:
            raise self.error
        return list(self.records)

    def list_sites(self):
        if self.error:
            raise self.error
        return [LegacySite(code="007", name="Santiago Branch")]


def make_record(barcode, **overrides):
    """Legacy row for site 007 with sensible defaults"""
    values = {
        "barcode": barcode,
        "product_code": f"P-{barcode}",
        "name": f"Product {barcode}",
        "retail_price": 99.5,
        "on_hand_quantity": 10,
        "base_unit_code": "PC",
        "category_name": "Hand Tools & Equipment",
        "category_id": "15",
        "site_code": "007",
        "site_name": "Santiago Branch",
    }
    values.update(overrides)
    return LegacyInventoryRecord(**values)


@pytest.fixture(scope='session')
def engine():
    """Single shared in-memory database for the test session."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope='session')
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope='function')
def db_session(engine, session_factory):
    """Create fresh database for each test."""
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())

    session = session_factory()
    yield session

    session.rollback()
    session.close()


@pytest.fixture(scope='function')
def legacy_reader():
    return FakeLegacyReader()


@pytest.fixture(scope='function')
def client(db_session, session_factory, legacy_reader):
    """Create test client backed by the test database and fake legacy source."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_session_factory] = lambda: session_factory
    fastapi_app.dependency_overrides[get_legacy_reader] = lambda: legacy_reader

    yield TestClient(fastapi_app)

    fastapi_app.dependency_overrides.clear()


@pytest.fixture(scope='function')
def make_coupon(db_session):
    """Factory for coupons; defaults to an active 10% coupon with no limits."""

    def _make_coupon(code="SAVE10", **overrides):
        values = {
            "code": code,
            "name": f"{code} promo",
            "discount_type": "PERCENTAGE",
            "discount_value": Decimal("10"),
            "usage_count": 0,
            "is_active": True,
        }
        values.update(overrides)
        coupon = Coupon(**values)
        db_session.add(coupon)
        db_session.commit()
        return coupon

    return _make_coupon


@pytest.fixture(scope='function')
def make_order(db_session):
    """Factory for bare orders to hang redemptions on."""
    counter = {"n": 0}

    def _make_order(user_id=None):
        counter["n"] += 1
        order = Order(
            order_number=f"ORD-TEST-{counter['n']:04d}",
            user_id=user_id,
            subtotal=Decimal("1000"),
            total_amount=Decimal("1000"),
        )
        db_session.add(order)
        db_session.commit()
        return order

    return _make_order


@pytest.fixture(scope='function')
def default_tax_rate(db_session):
    tax_rate = TaxRate(code="VAT12", name="VAT 12%", rate=Decimal("12.00"), is_default=True, is_active=True)
    db_session.add(tax_rate)
    db_session.commit()
    return tax_rate


def utcnow():
    return datetime.now(timezone.utc)


def legacy_down():
    return FakeLegacyReader(error=LegacySourceError("Legacy system query failed: connection refused"))
