# garden_backend/services/decay.py
"""Passive resource decay.

All functions are pure: they take the current values and return new
dataclass instances. Nothing here ever raises a level.
"""

from dataclasses import replace
from datetime import timedelta

from garden_backend.domain import ADVERSE_WEATHER, WITHERED, clamp, evaporation_rate


def effective_elapsed(last_tick_at, now, settings):
    """Elapsed time since the last tick, capped, never negative."""

    elapsed = now - last_tick_at
    if elapsed <= timedelta(0):
        return timedelta(0)
    return min(elapsed, settings.catchup_cap)


def split_steps(elapsed, step):
    """Yield tick-sized chunks of ``elapsed``; the last one may be shorter."""

    remaining = elapsed
    while remaining > timedelta(0):
        chunk = min(step, remaining)
        yield chunk
        remaining -= chunk


def _lower(value, loss):
    return clamp(value - max(0.0, loss))


def decay_garden(garden, hours, settings):
    water_rate = settings.garden_water_decay
    fertilizer_rate = settings.garden_fertilizer_decay
    soil_rate = settings.soil_decay
    if garden.sprinkler:
        water_rate /= 2
    if garden.composter:
        fertilizer_rate /= 2
        soil_rate /= 2

    return replace(
        garden,
        water_level=_lower(garden.water_level, water_rate * hours),
        fertilizer_level=_lower(garden.fertilizer_level, fertilizer_rate * hours),
        soil_quality=_lower(garden.soil_quality, soil_rate * hours),
    )


def decay_plant(plant, garden, hours, settings):
    if plant.stage == WITHERED:
        return plant

    water_rate = settings.plant_water_decay * evaporation_rate(garden.weather)
    if garden.sprinkler:
        water_rate /= 2

    health_loss = 0.0
    if garden.weather in ADVERSE_WEATHER:
        health_loss = settings.adverse_weather_penalty * hours
        if garden.greenhouse:
            health_loss /= 2

    return replace(
        plant,
        water_level=_lower(plant.water_level, water_rate * hours),
        health=_lower(plant.health, health_loss),
    )
