# garden_backend/services/growth.py
"""Growth, stress and stage rules for plant instances."""

from dataclasses import replace

from garden_backend.domain import (
    ANY,
    GROWING,
    HARVESTABLE,
    MATURE,
    SEED,
    SPROUT,
    WITHERED,
    clamp,
)

# progress values within this distance of 100 count as fully grown
EPSILON = 1e-6

# (upper bound exclusive, stage)
STAGE_BANDS = (
    (10.0, SEED),
    (30.0, SPROUT),
    (70.0, GROWING),
    (100.0, MATURE),
)


def stage_for(progress, health, current=None):
    if current == WITHERED or health <= 0:
        return WITHERED
    if progress >= 100.0:
        return HARVESTABLE
    for upper, stage in STAGE_BANDS:
        if progress < upper:
            return stage
    return MATURE


def water_adequacy(plant, plant_type):
    if plant_type.water_needs <= 0:
        return 1.0
    return min(1.0, max(0.0, plant.water_level / plant_type.water_needs))


def fertilizer_freshness(plant, at, settings):
    if plant.last_fertilized_at is None:
        return 0.0
    since = (at - plant.last_fertilized_at).total_seconds()
    window = settings.fertilizer_effect.total_seconds()
    if window <= 0:
        return 0.0
    return clamp(1.0 - since / window, 0.0, 1.0)


def fertilizer_adequacy(plant, plant_type, garden, at, settings):
    if plant_type.fertilizer_needs <= 0:
        return 1.0
    supply = garden.fertilizer_level * garden.soil_quality / 100.0
    supply += plant.fertilizer_boost * fertilizer_freshness(plant, at, settings)
    return min(1.0, max(0.0, supply / plant_type.fertilizer_needs))


def environment_factor(plant_type, garden, settings):
    factor = 1.0
    if plant_type.season != ANY and plant_type.season == garden.season:
        factor *= settings.affinity_bonus
    if plant_type.weather != ANY and plant_type.weather == garden.weather:
        factor *= settings.affinity_bonus
    return factor


def _adequacy_factor(adequacy, settings):
    if adequacy < settings.low_adequacy:
        return adequacy * 0.5
    return adequacy


def growth_multiplier(plant, plant_type, garden, at, settings):
    water = _adequacy_factor(water_adequacy(plant, plant_type), settings)
    fertilizer = _adequacy_factor(
        fertilizer_adequacy(plant, plant_type, garden, at, settings), settings
    )
    return water * fertilizer * environment_factor(plant_type, garden, settings)


def _stress(plant, stressed, seconds, settings):
    """Return (stressed_for, health) after ``seconds`` more of the step."""

    if not stressed:
        return 0.0, plant.health

    grace = settings.stress_grace.total_seconds()
    before = plant.stressed_for
    after = before + seconds
    over_grace = max(0.0, after - grace) - max(0.0, before - grace)
    loss = settings.stress_health_loss * over_grace / 3600.0
    return after, clamp(plant.health - loss)


def grow_plant(plant, plant_type, garden, at, step, settings):
    """Advance one plant by one tick of length ``step`` ending at ``at``."""

    if plant.stage == WITHERED:
        return plant

    seconds = step.total_seconds()
    water = water_adequacy(plant, plant_type)
    fertilizer = fertilizer_adequacy(plant, plant_type, garden, at, settings)

    progress = plant.growth_progress
    if plant.stage != HARVESTABLE and plant_type.growth_time > 0:
        multiplier = growth_multiplier(plant, plant_type, garden, at, settings)
        progress += seconds / plant_type.growth_time * 100.0 * multiplier
        if progress >= 100.0 - EPSILON:
            progress = 100.0
        progress = clamp(progress)

    stressed = min(water, fertilizer) < settings.critical_floor
    stressed_for, health = _stress(plant, stressed, seconds, settings)

    return replace(
        plant,
        growth_progress=progress,
        health=health,
        stressed_for=stressed_for,
        stage=stage_for(progress, health, plant.stage),
    )
