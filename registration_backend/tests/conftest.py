"""
Pytest configuration and fixtures for tests.

Every test gets a fresh in-memory SQLite database with the registration schema
created from the ORM metadata, foreign keys enforced, and the reference data
(organization, products, pricing, option items) seeded.
"""

import os

# Point the service at SQLite before any src module builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import uuid
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.core import config
from src.db.base import Base
from src.db.models import (
    CategoryOption,
    OptionItem,
    Organization,
    PackageCategory,
    PaymentProvider,
    Pricing,
    Product,
)
from src.services.cart_assembly import Golfer

ORDER_DATE = datetime(2026, 5, 1, 9, 30)

SHIRT_SIZES = ["SMALL", "MEDIUM", "LARGE", "X-LARGE", "2X-LARGE"]  # option items 1-5
LEFT_HANDED = 6
RIGHT_HANDED = 7
GOLF_CART = 8


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def engine():
    """Create test database engine (in-memory SQLite, foreign keys on)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    with factory() as seed:
        _seed_reference_data(seed)
        seed.commit()
    return factory


@pytest.fixture
def session(session_factory):
    with session_factory() as session:
        yield session


def _seed_reference_data(session):
    provider = PaymentProvider(id=uuid.uuid4(), name="Square")
    session.add_all(
        [
            Organization(id=config.DEFAULT_ORGANIZATION_ID, name="Lakeside Charity Classic", city="Austin", state="TX"),
            provider,
            PackageCategory(id=1, name="Registration"),
        ]
    )
    session.flush()

    session.add_all(
        [
            Product(id="prod_solo", payment_provider_id=provider.id, description="Solo Registration"),
            Product(id="prod_twosome", payment_provider_id=provider.id, description="Twosome Registration"),
            Product(id="prod_foursome", payment_provider_id=provider.id, description="Foursome Registration"),
            CategoryOption(id=1, package_category_id=1, name="T-Shirt"),
            CategoryOption(id=2, package_category_id=1, name="Dexterity"),
            CategoryOption(id=3, package_category_id=1, name="Extras"),
        ]
    )
    session.flush()

    session.add_all(
        [
            Pricing(id="price_solo", product_id="prod_solo", price=Decimal("100.00")),
            Pricing(id="price_twosome", product_id="prod_twosome", price=Decimal("190.00")),
            Pricing(id="price_foursome", product_id="prod_foursome", price=Decimal("360.00")),
        ]
    )
    session.add_all(
        [OptionItem(id=number, category_option_id=1, name=size) for number, size in enumerate(SHIRT_SIZES, start=1)]
    )
    session.add_all(
        [
            OptionItem(id=LEFT_HANDED, category_option_id=2, name="LEFT-HANDED"),
            OptionItem(id=RIGHT_HANDED, category_option_id=2, name="RIGHT-HANDED"),
            OptionItem(id=GOLF_CART, category_option_id=3, name="GOLF CART"),
        ]
    )


# ============================================================================
# Helpers
# ============================================================================

@pytest.fixture
def count_rows(session):
    """Row count of a mapped model, read straight from the database."""

    def _count(model):
        return session.scalar(select(func.count()).select_from(model))

    return _count


def make_golfers(count, shirt="3", dexterity=""):
    return [Golfer(name=f"Golfer {index}", shirt_size_code=shirt, dexterity_code=dexterity) for index in range(count)]
