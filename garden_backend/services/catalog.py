# garden_backend/services/catalog.py
import logging

from garden_backend import models
from garden_backend.domain import PlantType

logger = logging.getLogger(__name__)

MINUTE = 60

STARTER_PLANTS = [
    {
        "name": "Tomato",
        "description": "A juicy red tomato that grows well in warm weather",
        "icon": "🍅",
        "growth_time_seconds": 120 * MINUTE,
        "water_needs": 60,
        "fertilizer_needs": 20,
        "yield_amount": 3,
        "harvest_value": 15,
        "experience_value": 10,
        "min_level": 1,
        "season": "summer",
        "weather": "sunny",
        "rarity": "common",
    },
    {
        "name": "Carrot",
        "description": "An orange root vegetable that grows underground",
        "icon": "🥕",
        "growth_time_seconds": 90 * MINUTE,
        "water_needs": 50,
        "fertilizer_needs": 10,
        "yield_amount": 2,
        "harvest_value": 12,
        "experience_value": 8,
        "min_level": 1,
        "season": "spring",
        "weather": "all",
        "rarity": "common",
    },
    {
        "name": "Lettuce",
        "description": "A leafy green vegetable that grows quickly",
        "icon": "🥬",
        "growth_time_seconds": 60 * MINUTE,
        "water_needs": 70,
        "fertilizer_needs": 5,
        "yield_amount": 1,
        "harvest_value": 8,
        "experience_value": 5,
        "min_level": 1,
        "season": "spring",
        "weather": "cloudy",
        "rarity": "common",
    },
    {
        "name": "Strawberry",
        "description": "A sweet red berry that requires careful tending",
        "icon": "🍓",
        "growth_time_seconds": 180 * MINUTE,
        "water_needs": 80,
        "fertilizer_needs": 30,
        "yield_amount": 2,
        "harvest_value": 25,
        "experience_value": 15,
        "min_level": 3,
        "season": "spring",
        "weather": "sunny",
        "rarity": "uncommon",
    },
    {
        "name": "Golden Apple",
        "description": "A rare golden apple with magical properties",
        "icon": "🍎",
        "growth_time_seconds": 360 * MINUTE,
        "water_needs": 90,
        "fertilizer_needs": 50,
        "yield_amount": 1,
        "harvest_value": 100,
        "experience_value": 50,
        "min_level": 10,
        "season": "autumn",
        "weather": "sunny",
        "rarity": "legendary",
    },
]


def seed_plant_types(db, entries=None):
    """Insert catalog entries that are not in the database yet. Returns how many were added."""

    added = 0
    for entry in entries or STARTER_PLANTS:
        exists = db.query(models.PlantType).filter(models.PlantType.name == entry["name"]).first()
        if exists:
            continue
        db.add(models.PlantType(**entry))
        added += 1
    db.commit()
    if added:
        logger.info("Seeded %d plant types", added)
    return added


def to_domain(row):
    return PlantType(
        id=row.id,
        name=row.name,
        growth_time=row.growth_time_seconds,
        water_needs=row.water_needs,
        fertilizer_needs=row.fertilizer_needs,
        yield_=row.yield_amount,
        harvest_value=row.harvest_value,
        experience_value=row.experience_value,
        min_level=row.min_level,
        season=row.season,
        weather=row.weather,
        rarity=row.rarity,
        description=row.description or "",
        icon=row.icon or "",
    )


def load_catalog(db):
    return {row.id: to_domain(row) for row in db.query(models.PlantType).all()}
