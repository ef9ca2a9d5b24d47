# garden_backend/services/reconciliation.py
"""Full-state responses returned after every call.

Callers must replace whatever they held with the garden payload; it is
never a diff.
"""

from dataclasses import dataclass
from typing import Optional

from garden_backend.domain import GardenSnapshot, HarvestResult, Plant


@dataclass(frozen=True)
class ActionResult:
    garden: GardenSnapshot
    plant: Optional[Plant] = None
    harvest: Optional[HarvestResult] = None


def _iso(dt):
    return dt.isoformat() if dt is not None else None


def plant_payload(plant):
    return {
        "id": plant.id,
        "garden_id": plant.garden_id,
        "plant_type_id": plant.plant_type_id,
        "position": plant.position,
        "stage": plant.stage,
        "growth_progress": round(plant.growth_progress, 4),
        "water_level": round(plant.water_level, 4),
        "health": round(plant.health, 4),
        "fertilizer_boost": plant.fertilizer_boost,
        "planted_at": _iso(plant.planted_at),
        "last_watered_at": _iso(plant.last_watered_at),
        "last_fertilized_at": _iso(plant.last_fertilized_at),
        "harvested_at": _iso(plant.harvested_at),
    }


def garden_payload(snapshot):
    garden = snapshot.garden
    return {
        "id": garden.id,
        "owner_id": garden.owner_id,
        "name": garden.name,
        "description": garden.description,
        "size": garden.size,
        "water_level": round(garden.water_level, 4),
        "fertilizer_level": round(garden.fertilizer_level, 4),
        "soil_quality": round(garden.soil_quality, 4),
        "upgrades": {
            "sprinkler": garden.sprinkler,
            "greenhouse": garden.greenhouse,
            "composter": garden.composter,
        },
        "season": garden.season,
        "weather": garden.weather,
        "last_tick_at": _iso(garden.last_tick_at),
        "version": garden.version,
        "plants": [plant_payload(p) for p in snapshot.plants],
    }


def result_payload(result):
    payload = {"garden": garden_payload(result.garden)}
    if result.plant is not None:
        payload["plant"] = plant_payload(result.plant)
    if result.harvest is not None:
        payload["harvest"] = {
            "coins_earned": result.harvest.coins_earned,
            "experience_earned": result.harvest.experience_earned,
            "level_up": result.harvest.level_up,
            "new_level": result.harvest.new_level,
        }
    return payload
