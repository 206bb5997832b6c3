"""Shared fixtures: a throwaway SQLite database with Botswana reference data."""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import agriconnect.models  # noqa: F401  (registers tables)
from agriconnect.core.database import Base
from agriconnect.models import Crop, Region, Price, User, UserRole

CROPS = [
    ("Beans", "legumes"),
    ("Cabbage", "vegetables"),
    ("Maize", "grains"),
    ("Onions", "vegetables"),
    ("Tomatoes", "vegetables"),
]
REGIONS = ["Gaborone", "Francistown", "Maun", "Central"]


class StubFetcher:
    """Stands in for FAOPriceFetcher; returns canned rows."""

    def __init__(self, rows=None):
        self.rows = rows
        self.calls = 0

    def fetch_external_prices(self):
        self.calls += 1
        return self.rows


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def reference_data(db):
    """Crops and regions; returns {"crops": {name: id}, "regions": {name: id}}."""
    crops = [Crop(name=name, category=category) for name, category in CROPS]
    regions = [Region(name=name) for name in REGIONS]
    db.add_all(crops + regions)
    db.commit()
    return {
        "crops": {crop.name: crop.id for crop in crops},
        "regions": {region.name: region.id for region in regions},
    }


@pytest.fixture
def farmers(db):
    """Two active farmers plus an inactive farmer and a buyer; returns active farmer ids."""
    users = [
        User(email="kagiso@example.bw", full_name="Kagiso M.", role=UserRole.FARMER, is_active=True),
        User(email="neo@example.bw", full_name="Neo T.", role=UserRole.FARMER, is_active=True),
        User(email="old@example.bw", full_name="Dormant Farmer", role=UserRole.FARMER, is_active=False),
        User(email="buyer@example.bw", full_name="Buyer", role=UserRole.BUYER, is_active=True),
    ]
    db.add_all(users)
    db.commit()
    return [users[0].id, users[1].id]


@pytest.fixture
def make_price(db):
    """Insert a price row directly."""

    def _make(crop_id, region_id, price, previous_price=None, unit="kg"):
        row = Price(
            crop_id=crop_id,
            region_id=region_id,
            price=Decimal(str(price)),
            previous_price=Decimal(str(previous_price)) if previous_price is not None else None,
            unit=unit,
        )
        db.add(row)
        db.commit()
        return row

    return _make
