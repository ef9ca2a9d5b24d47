# garden_backend/domain.py
"""Value types shared by the simulation core.

These are plain dataclasses, independent of the database layer. The
service converts ORM rows into them before a cycle and back afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple

UTC = timezone.utc

# Stages
SEED = "seed"
SPROUT = "sprout"
GROWING = "growing"
MATURE = "mature"
HARVESTABLE = "harvestable"
WITHERED = "withered"

STAGES = (SEED, SPROUT, GROWING, MATURE, HARVESTABLE, WITHERED)

# Seasons
SEASONS = ("spring", "summer", "autumn", "winter")

# Weather condition -> (growth multiplier, water evaporation rate)
WEATHER_EFFECTS = {
    "sunny": (1.2, 1.5),
    "cloudy": (1.0, 1.0),
    "rainy": (1.1, 0.3),
    "stormy": (0.8, 0.1),
    "foggy": (0.9, 0.8),
    "windy": (0.95, 1.3),
    "snowy": (0.5, 0.2),
}
ADVERSE_WEATHER = ("stormy", "snowy")

UPGRADES = ("sprinkler", "greenhouse", "composter")

ANY = "all"


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""

    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def season_for(date: datetime) -> str:
    month = date.month
    if 3 <= month <= 5:
        return "spring"
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "autumn"
    return "winter"


def evaporation_rate(weather: str) -> float:
    return WEATHER_EFFECTS.get(weather, (1.0, 1.0))[1]


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def level_for(experience: int) -> int:
    # every 100 XP is one level
    return experience // 100 + 1


@dataclass(frozen=True)
class PlantType:
    id: str
    name: str
    growth_time: float  # seconds
    water_needs: int = 50
    fertilizer_needs: int = 0
    yield_: int = 1
    harvest_value: int = 10
    experience_value: int = 5
    min_level: int = 1
    season: str = ANY
    weather: str = ANY
    rarity: str = "common"
    description: str = ""
    icon: str = ""


@dataclass(frozen=True)
class Owner:
    id: str
    level: int = 1
    experience: int = 0
    coins: int = 0


@dataclass
class Plant:
    id: str
    garden_id: str
    plant_type_id: str
    position: int
    planted_at: datetime
    stage: str = SEED
    growth_progress: float = 0.0
    water_level: float = 50.0
    health: float = 100.0
    fertilizer_boost: float = 0.0
    stressed_for: float = 0.0  # seconds below the critical adequacy floor
    last_watered_at: Optional[datetime] = None
    last_fertilized_at: Optional[datetime] = None
    harvested_at: Optional[datetime] = None


@dataclass
class Garden:
    id: str
    owner_id: str
    last_tick_at: datetime
    name: str = "My Garden"
    description: str = ""
    size: int = 9
    water_level: float = 50.0
    fertilizer_level: float = 50.0
    soil_quality: float = 50.0
    sprinkler: bool = False
    greenhouse: bool = False
    composter: bool = False
    season: str = "spring"
    weather: str = "cloudy"
    version: int = 0


@dataclass(frozen=True)
class HarvestResult:
    coins_earned: int
    experience_earned: int
    level_up: bool
    new_level: int


@dataclass(frozen=True)
class GardenSnapshot:
    """Authoritative view of one garden after catch-up."""

    garden: Garden
    plants: Tuple[Plant, ...] = field(default_factory=tuple)

    def plant_at(self, position: int) -> Optional[Plant]:
        for plant in self.plants:
            if plant.position == position:
                return plant
        return None

    def plant_by_id(self, plant_id: str) -> Optional[Plant]:
        for plant in self.plants:
            if plant.id == plant_id:
                return plant
        return None
