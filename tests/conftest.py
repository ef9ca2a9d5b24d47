"""
Pytest configuration and fixtures
"""
from datetime import datetime, timedelta

import pytest

from garden_backend import models
from garden_backend.config import GameSettings
from garden_backend.database import Base, make_engine, make_session_factory
from garden_backend.domain import UTC, Garden, Plant, PlantType
from garden_backend.services import catalog
from garden_backend.services.garden_service import GardenService

T0 = datetime(2026, 4, 1, 8, 0, tzinfo=UTC)

PUMPKIN = {
    "name": "Pumpkin",
    "description": "Slow and steady, needs no fertilizer",
    "icon": "🎃",
    "growth_time_seconds": timedelta(days=5).total_seconds(),
    "water_needs": 60,
    "fertilizer_needs": 0,
    "yield_amount": 4,
    "harvest_value": 20,
    "experience_value": 30,
    "min_level": 1,
    "season": "all",
    "weather": "all",
    "rarity": "common",
}


@pytest.fixture
def settings():
    return GameSettings()


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'garden.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    """Create a database session for testing"""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def plant_types(db):
    catalog.seed_plant_types(db, catalog.STARTER_PLANTS + [PUMPKIN])
    return {t.name: t for t in catalog.load_catalog(db).values()}


@pytest.fixture
def make_user(db):
    def _make(username="gardener", level=1, experience=0, coins=100):
        user = models.User(
            username=username,
            password_hash="x",
            level=level,
            experience=experience,
            coins=coins,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user.id

    return _make


@pytest.fixture
def user_id(make_user):
    return make_user()


@pytest.fixture
def service(session_factory, settings, plant_types):
    return GardenService(session_factory, settings=settings, clock=lambda: T0)


# --- in-memory builders for the pure core ---

def pure_type(**overrides):
    fields = dict(
        id="type-basic",
        name="Basic",
        growth_time=timedelta(days=5).total_seconds(),
        water_needs=60,
        fertilizer_needs=0,
        yield_=3,
        harvest_value=10,
        experience_value=5,
    )
    fields.update(overrides)
    return PlantType(**fields)


def pure_garden(**overrides):
    fields = dict(id="g1", owner_id="owner", last_tick_at=T0, season="spring", weather="cloudy")
    fields.update(overrides)
    return Garden(**fields)


def pure_plant(position=0, **overrides):
    fields = dict(
        id=f"p{position}",
        garden_id="g1",
        plant_type_id="type-basic",
        position=position,
        planted_at=T0,
    )
    fields.update(overrides)
    return Plant(**fields)
