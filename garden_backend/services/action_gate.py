# garden_backend/services/action_gate.py
"""Player actions and the rules that decide whether they may run.

The gate only reads state. It is always evaluated against a garden that
has already been caught up to ``now``.
"""

from dataclasses import dataclass

from garden_backend import errors
from garden_backend.domain import HARVESTABLE, SEASONS, UPGRADES, WEATHER_EFFECTS, WITHERED

MIN_AMOUNT = 1
MAX_AMOUNT = 100


@dataclass(frozen=True)
class PlantSeed:
    position: int
    plant_type_id: str


@dataclass(frozen=True)
class Water:
    plant_id: str
    amount: int


@dataclass(frozen=True)
class Fertilize:
    plant_id: str
    amount: int


@dataclass(frozen=True)
class Harvest:
    plant_id: str


@dataclass(frozen=True)
class Remove:
    plant_id: str


@dataclass(frozen=True)
class InstallUpgrade:
    upgrade: str


@dataclass(frozen=True)
class SetEnvironment:
    season: str
    weather: str


class ActionGate:
    def __init__(self, settings):
        self.settings = settings

    def check(self, action, garden, plants, owner, plant_types, now):
        """Raise a specific GardenError if ``action`` may not run."""

        if owner.id != garden.owner_id:
            raise errors.AuthorizationError(errors.NOT_OWNER, "Garden belongs to another player")

        handler = getattr(self, "_check_" + type(action).__name__.lower(), None)
        if handler is None:
            raise errors.ValidationError("UnknownAction", f"Unsupported action {type(action).__name__}")
        handler(action, garden, plants, owner, plant_types, now)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _require_plant(plant_id, plants):
        for plant in plants:
            if plant.id == plant_id:
                return plant
        raise errors.NotFoundError(errors.PLANT_NOT_FOUND, f"Plant {plant_id} not found")

    @staticmethod
    def _require_amount(amount):
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise errors.ValidationError(errors.INVALID_AMOUNT, "Amount must be an integer")
        if not MIN_AMOUNT <= amount <= MAX_AMOUNT:
            raise errors.ValidationError(
                errors.INVALID_AMOUNT, f"Amount must be between {MIN_AMOUNT} and {MAX_AMOUNT}"
            )

    @staticmethod
    def _require_alive(plant):
        if plant.stage == WITHERED:
            raise errors.StateConflictError(errors.PLANT_WITHERED, "Plant has withered")

    def cooldown_remaining(self, plant, now):
        """Time left before ``plant`` may be fertilized again, or None if ready."""

        if plant.last_fertilized_at is None:
            return None
        ready_at = plant.last_fertilized_at + self.settings.fertilize_cooldown
        if now >= ready_at:
            return None
        return ready_at - now

    # ------------------------------------------------------------------
    # per-action rules
    # ------------------------------------------------------------------
    def _check_plantseed(self, action, garden, plants, owner, plant_types, now):
        position = action.position
        if isinstance(position, bool) or not isinstance(position, int):
            raise errors.ValidationError(errors.INVALID_POSITION, "Position must be an integer")
        if not 0 <= position < garden.size:
            raise errors.ValidationError(
                errors.INVALID_POSITION, f"Position must be between 0 and {garden.size - 1}"
            )

        plant_type = plant_types.get(action.plant_type_id)
        if plant_type is None:
            raise errors.NotFoundError(
                errors.PLANT_TYPE_NOT_FOUND, f"Plant type {action.plant_type_id} not found"
            )

        if any(p.position == position for p in plants):
            raise errors.StateConflictError(errors.SLOT_OCCUPIED, "Position already occupied")

        if owner.level < plant_type.min_level:
            raise errors.AuthorizationError(
                errors.LEVEL_TOO_LOW, f"{plant_type.name} requires level {plant_type.min_level}"
            )

    def _check_water(self, action, garden, plants, owner, plant_types, now):
        self._require_amount(action.amount)
        plant = self._require_plant(action.plant_id, plants)
        self._require_alive(plant)
        if plant.water_level >= 100:
            raise errors.StateConflictError(errors.WATER_FULL, "Plant is already fully watered")

    def _check_fertilize(self, action, garden, plants, owner, plant_types, now):
        self._require_amount(action.amount)
        plant = self._require_plant(action.plant_id, plants)
        self._require_alive(plant)
        remaining = self.cooldown_remaining(plant, now)
        if remaining is not None:
            raise errors.StateConflictError(
                errors.COOLDOWN_ACTIVE,
                f"Fertilizer can be applied again in {int(remaining.total_seconds())}s",
            )

    def _check_harvest(self, action, garden, plants, owner, plant_types, now):
        plant = self._require_plant(action.plant_id, plants)
        if plant.stage != HARVESTABLE:
            raise errors.StateConflictError(errors.NOT_HARVESTABLE, "Plant is not ready for harvest")

    def _check_remove(self, action, garden, plants, owner, plant_types, now):
        self._require_plant(action.plant_id, plants)

    def _check_installupgrade(self, action, garden, plants, owner, plant_types, now):
        if action.upgrade not in UPGRADES:
            raise errors.ValidationError(errors.INVALID_UPGRADE, f"Unknown upgrade {action.upgrade}")
        if getattr(garden, action.upgrade):
            raise errors.StateConflictError(
                errors.UPGRADE_INSTALLED, f"{action.upgrade} is already installed"
            )

    def _check_setenvironment(self, action, garden, plants, owner, plant_types, now):
        if action.season not in SEASONS or action.weather not in WEATHER_EFFECTS:
            raise errors.ValidationError(
                errors.INVALID_ENVIRONMENT, f"Unknown environment {action.season}/{action.weather}"
            )
