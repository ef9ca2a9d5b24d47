# garden_backend/services/garden_state.py
"""In-memory aggregate for one garden and its plants.

``apply`` always catches the garden up to ``now`` before the gate runs, and
only swaps in the new state once every invariant holds.
"""

import logging
import uuid
from dataclasses import replace

from garden_backend import errors
from garden_backend.domain import (
    HARVESTABLE,
    SEED,
    WITHERED,
    GardenSnapshot,
    HarvestResult,
    Plant,
    clamp,
    level_for,
)
from garden_backend.services.action_gate import (
    ActionGate,
    Fertilize,
    Harvest,
    InstallUpgrade,
    PlantSeed,
    Remove,
    SetEnvironment,
    Water,
)
from garden_backend.services.decay import decay_garden, decay_plant, effective_elapsed, split_steps
from garden_backend.services.growth import fertilizer_freshness, grow_plant, stage_for
from garden_backend.services.reconciliation import ActionResult

logger = logging.getLogger(__name__)

PERCENT_FIELDS = ("growth_progress", "water_level", "health", "fertilizer_boost")


def catch_up(garden, plants, plant_types, now, settings):
    """Advance decay and growth from ``garden.last_tick_at`` to ``now``.

    Returns new ``(garden, plants)``; the inputs are not modified. Calling
    it again with the same ``now`` returns the state unchanged.
    """

    elapsed = effective_elapsed(garden.last_tick_at, now, settings)
    at = garden.last_tick_at
    plants = list(plants)

    for step in split_steps(elapsed, settings.tick_step):
        hours = step.total_seconds() / 3600.0
        at = at + step
        garden = decay_garden(garden, hours, settings)
        plants = [
            grow_plant(
                decay_plant(plant, garden, hours, settings),
                plant_types[plant.plant_type_id],
                garden,
                at,
                step,
                settings,
            )
            for plant in plants
        ]

    if now > garden.last_tick_at:
        garden = replace(garden, last_tick_at=now)
    return garden, plants


def check_invariants(garden, plants):
    seen = set()
    for plant in plants:
        if not 0 <= plant.position < garden.size:
            raise errors.InvariantViolation("PositionOutOfBounds", f"Plant {plant.id} at {plant.position}")
        if plant.position in seen:
            raise errors.InvariantViolation("DuplicatePosition", f"Position {plant.position} used twice")
        seen.add(plant.position)

        for name in PERCENT_FIELDS:
            value = getattr(plant, name)
            if not 0 <= value <= 100:
                raise errors.InvariantViolation("OutOfRange", f"{name}={value} on plant {plant.id}")

        if plant.stage != WITHERED:
            if plant.stage != stage_for(plant.growth_progress, plant.health):
                raise errors.InvariantViolation("StageMismatch", f"Plant {plant.id} is {plant.stage}")
        if (plant.stage == HARVESTABLE) != (plant.growth_progress == 100 and plant.health > 0):
            raise errors.InvariantViolation("HarvestableMismatch", f"Plant {plant.id}")

    for name in ("water_level", "fertilizer_level", "soil_quality"):
        value = getattr(garden, name)
        if not 0 <= value <= 100:
            raise errors.InvariantViolation("OutOfRange", f"garden {name}={value}")


class GardenState:
    def __init__(self, garden, plants, plant_types, settings, gate=None):
        self.plant_types = plant_types
        self.settings = settings
        self.gate = gate or ActionGate(settings)
        check_invariants(garden, plants)
        self._garden = garden
        self._plants = sorted(plants, key=lambda p: p.position)

    @property
    def garden(self):
        return self._garden

    def snapshot(self):
        return GardenSnapshot(
            garden=replace(self._garden),
            plants=tuple(replace(p) for p in self._plants),
        )

    def catch_up(self, now):
        garden, plants = catch_up(self._garden, self._plants, self.plant_types, now, self.settings)
        check_invariants(garden, plants)
        self._garden, self._plants = garden, plants
        return self.snapshot()

    def apply(self, action, owner, now):
        """Catch up, validate ``action`` and apply it all-or-nothing."""

        garden, plants = catch_up(self._garden, self._plants, self.plant_types, now, self.settings)
        self.gate.check(action, garden, plants, owner, self.plant_types, now)

        plant = None
        harvest = None

        if isinstance(action, PlantSeed):
            plant = Plant(
                id=str(uuid.uuid4()),
                garden_id=garden.id,
                plant_type_id=action.plant_type_id,
                position=action.position,
                planted_at=now,
                stage=SEED,
            )
            plants.append(plant)

        elif isinstance(action, Water):
            plants, plant = self._update(
                plants,
                action.plant_id,
                lambda p: replace(
                    p, water_level=min(100.0, p.water_level + action.amount), last_watered_at=now
                ),
            )

        elif isinstance(action, Fertilize):
            plants, plant = self._update(
                plants,
                action.plant_id,
                lambda p: replace(
                    p,
                    fertilizer_boost=self._boost_after(p, action.amount, now),
                    last_fertilized_at=now,
                ),
            )

        elif isinstance(action, Harvest):
            plants, plant = self._take(plants, action.plant_id)
            plant = replace(plant, harvested_at=now)
            harvest = self._reward(plant, owner)

        elif isinstance(action, Remove):
            plants, plant = self._take(plants, action.plant_id)

        elif isinstance(action, InstallUpgrade):
            garden = replace(garden, **{action.upgrade: True})

        elif isinstance(action, SetEnvironment):
            garden = replace(garden, season=action.season, weather=action.weather)

        plants.sort(key=lambda p: p.position)
        check_invariants(garden, plants)
        self._garden, self._plants = garden, plants

        logger.debug("garden %s applied %s", garden.id, type(action).__name__)
        return ActionResult(garden=self.snapshot(), plant=plant, harvest=harvest)

    # ------------------------------------------------------------------
    @staticmethod
    def _update(plants, plant_id, change):
        updated = None
        result = []
        for plant in plants:
            if plant.id == plant_id:
                updated = change(plant)
                result.append(updated)
            else:
                result.append(plant)
        return result, updated

    @staticmethod
    def _take(plants, plant_id):
        taken = next(p for p in plants if p.id == plant_id)
        return [p for p in plants if p.id != plant_id], taken

    def _boost_after(self, plant, amount, now):
        # a new dose never drops below what is still fresh from the last one
        remaining = plant.fertilizer_boost * fertilizer_freshness(plant, now, self.settings)
        return clamp(max(float(amount), remaining))

    def _reward(self, plant, owner):
        plant_type = self.plant_types[plant.plant_type_id]
        coins = round(plant_type.yield_ * plant_type.harvest_value * plant.health / 100.0)
        experience = plant_type.experience_value
        new_level = level_for(owner.experience + experience)
        return HarvestResult(
            coins_earned=coins,
            experience_earned=experience,
            level_up=new_level > owner.level,
            new_level=new_level,
        )
