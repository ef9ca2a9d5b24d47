"""
Tests for the action gate and the garden aggregate
"""
from dataclasses import replace
from datetime import timedelta

import pytest

from conftest import T0, pure_garden, pure_plant, pure_type

from garden_backend import errors
from garden_backend.domain import GROWING, HARVESTABLE, SEED, WITHERED, Owner
from garden_backend.services.action_gate import (
    Fertilize,
    Harvest,
    InstallUpgrade,
    PlantSeed,
    Remove,
    SetEnvironment,
    Water,
)
from garden_backend.services.garden_state import GardenState
from garden_backend.services.growth import fertilizer_adequacy

OWNER = Owner(id="owner", level=1, experience=0, coins=100)


def make_state(settings, plants=(), **garden_fields):
    types = {
        "type-basic": pure_type(),
        "type-rare": pure_type(id="type-rare", name="Rare", min_level=5),
    }
    return GardenState(pure_garden(**garden_fields), list(plants), types, settings)


def assert_rejected(state, action, error_cls, reason, now=T0, owner=OWNER):
    before = state.snapshot()
    with pytest.raises(error_cls) as exc:
        state.apply(action, owner, now)
    assert exc.value.reason == reason
    assert state.snapshot() == before


def test_plant_seed_creates_seed_in_slot(settings):
    state = make_state(settings)
    result = state.apply(PlantSeed(position=4, plant_type_id="type-basic"), OWNER, T0)

    assert result.plant.position == 4
    assert result.plant.stage == SEED
    assert result.plant.growth_progress == 0
    assert result.garden.plant_at(4) == result.plant
    assert len(result.garden.plants) == 1


def test_plant_seed_assigns_fresh_ids(settings):
    state = make_state(settings)
    first = state.apply(PlantSeed(position=0, plant_type_id="type-basic"), OWNER, T0).plant
    second = state.apply(PlantSeed(position=1, plant_type_id="type-basic"), OWNER, T0).plant
    assert first.id and second.id
    assert first.id != second.id

    with pytest.raises(TypeError):
        PlantSeed(position=2, plant_type_id="type-basic", plant_id="chosen")


def test_broken_state_is_refused(settings):
    with pytest.raises(errors.InvariantViolation) as exc:
        make_state(settings, [pure_plant(3), replace(pure_plant(3), id="twin")])
    assert exc.value.reason == "DuplicatePosition"
    assert isinstance(exc.value, errors.GardenError)
    assert exc.value.status_code == 500


def test_plant_seed_into_occupied_slot_changes_nothing(settings):
    state = make_state(settings, [pure_plant(0), pure_plant(4, water_level=70)])
    assert_rejected(state, PlantSeed(position=4, plant_type_id="type-basic"), errors.StateConflictError, "SlotOccupied")


@pytest.mark.parametrize("position", [-1, 9, 42])
def test_plant_seed_out_of_bounds(settings, position):
    state = make_state(settings)
    assert_rejected(state, PlantSeed(position=position, plant_type_id="type-basic"), errors.ValidationError, "InvalidPosition")


def test_plant_seed_checks_level_and_catalog(settings):
    state = make_state(settings)
    assert_rejected(state, PlantSeed(position=0, plant_type_id="type-rare"), errors.AuthorizationError, "LevelTooLow")
    assert_rejected(state, PlantSeed(position=0, plant_type_id="nope"), errors.NotFoundError, "PlantTypeNotFound")


def test_only_owner_may_act(settings):
    state = make_state(settings, [pure_plant(0)])
    stranger = Owner(id="someone-else", level=99)
    assert_rejected(state, Water(plant_id="p0", amount=10), errors.AuthorizationError, "NotOwner", owner=stranger)


def test_water_is_clamped(settings):
    state = make_state(settings, [pure_plant(0, water_level=90)])
    result = state.apply(Water(plant_id="p0", amount=30), OWNER, T0)
    assert result.plant.water_level == 100
    assert result.plant.last_watered_at == T0


def test_water_rejected_when_full_or_bad_amount(settings):
    state = make_state(settings, [pure_plant(0, water_level=100)])
    assert_rejected(state, Water(plant_id="p0", amount=10), errors.StateConflictError, "WaterFull")
    assert_rejected(state, Water(plant_id="p0", amount=0), errors.ValidationError, "InvalidAmount")
    assert_rejected(state, Water(plant_id="p0", amount=101), errors.ValidationError, "InvalidAmount")
    assert_rejected(state, Water(plant_id="ghost", amount=10), errors.NotFoundError, "PlantNotFound")


def test_fertilize_cooldown(settings):
    state = make_state(settings, [pure_plant(0, water_level=100)])
    state.apply(Fertilize(plant_id="p0", amount=20), OWNER, T0)

    assert_rejected(
        state,
        Fertilize(plant_id="p0", amount=20),
        errors.StateConflictError,
        "CooldownActive",
        now=T0 + timedelta(hours=23),
    )

    later = T0 + timedelta(hours=24, seconds=1)
    result = state.apply(Fertilize(plant_id="p0", amount=35), OWNER, later)
    assert result.plant.last_fertilized_at == later
    assert result.plant.fertilizer_boost == 35


def test_small_dose_keeps_fresh_fertilizer(settings):
    hungry = pure_type(id="type-hungry", name="Hungry", fertilizer_needs=100)
    state = GardenState(
        pure_garden(fertilizer_level=0),
        [pure_plant(0, plant_type_id="type-hungry", water_level=100)],
        {"type-hungry": hungry},
        settings,
    )
    state.apply(Fertilize(plant_id="p0", amount=100), OWNER, T0)

    later = T0 + timedelta(hours=24, seconds=1)
    caught_up = state.catch_up(later)
    before = fertilizer_adequacy(caught_up.plant_at(0), hungry, caught_up.garden, later, settings)

    result = state.apply(Fertilize(plant_id="p0", amount=1), OWNER, later)
    after = fertilizer_adequacy(result.plant, hungry, result.garden.garden, later, settings)

    assert before == pytest.approx(0.5, abs=1e-3)
    assert after >= before
    assert result.plant.fertilizer_boost == pytest.approx(before * 100)


def test_cooldown_is_configurable(settings):
    quick = replace(settings, fertilize_cooldown=timedelta(hours=1))
    state = make_state(quick, [pure_plant(0, water_level=100)])
    state.apply(Fertilize(plant_id="p0", amount=20), OWNER, T0)
    state.apply(Fertilize(plant_id="p0", amount=20), OWNER, T0 + timedelta(hours=1))


def test_harvest_on_growing_plant_fails_without_mutation(settings):
    state = make_state(settings, [pure_plant(0, growth_progress=50, stage=GROWING, water_level=80)])
    assert_rejected(state, Harvest(plant_id="p0"), errors.StateConflictError, "NotHarvestable")


def test_harvest_rewards_and_frees_slot(settings):
    state = make_state(settings, [pure_plant(2, growth_progress=100, stage=HARVESTABLE, water_level=100, health=50)])
    result = state.apply(Harvest(plant_id="p2"), Owner(id="owner", level=1, experience=98), T0)

    assert result.harvest.coins_earned == 15  # 3 * 10 * 0.5
    assert result.harvest.experience_earned == 5
    assert result.harvest.level_up is True
    assert result.harvest.new_level == 2
    assert result.plant.harvested_at == T0
    assert result.garden.plant_at(2) is None


def test_withered_plant_only_allows_remove(settings):
    dead = pure_plant(1, stage=WITHERED, health=0, growth_progress=40, water_level=0)
    state = make_state(settings, [dead])

    assert_rejected(state, Water(plant_id="p1", amount=10), errors.StateConflictError, "PlantWithered")
    assert_rejected(state, Fertilize(plant_id="p1", amount=10), errors.StateConflictError, "PlantWithered")
    assert_rejected(state, Harvest(plant_id="p1"), errors.StateConflictError, "NotHarvestable")

    # time passing does not touch it either
    assert state.catch_up(T0 + timedelta(hours=12)).plant_at(1) == dead

    result = state.apply(Remove(plant_id="p1"), OWNER, T0 + timedelta(hours=12))
    assert result.garden.plants == ()


def test_upgrades_and_environment(settings):
    state = make_state(settings)
    result = state.apply(InstallUpgrade(upgrade="sprinkler"), OWNER, T0)
    assert result.garden.garden.sprinkler is True

    assert_rejected(state, InstallUpgrade(upgrade="sprinkler"), errors.StateConflictError, "UpgradeInstalled")
    assert_rejected(state, InstallUpgrade(upgrade="jacuzzi"), errors.ValidationError, "InvalidUpgrade")

    result = state.apply(SetEnvironment(season="summer", weather="sunny"), OWNER, T0)
    assert (result.garden.garden.season, result.garden.garden.weather) == ("summer", "sunny")
    assert_rejected(state, SetEnvironment(season="monsoon", weather="sunny"), errors.ValidationError, "InvalidEnvironment")


def test_action_sees_caught_up_state(settings):
    # 20 hours of sunny weather drain 60 points of water first
    state = make_state(settings, [pure_plant(0, water_level=100)], weather="sunny")
    result = state.apply(Water(plant_id="p0", amount=10), OWNER, T0 + timedelta(hours=20))
    assert result.plant.water_level == pytest.approx(50)
    assert result.garden.garden.last_tick_at == T0 + timedelta(hours=20)


def test_positions_stay_unique_and_in_bounds(settings):
    state = make_state(settings, size=4)
    for position in range(4):
        state.apply(PlantSeed(position=position, plant_type_id="type-basic"), OWNER, T0)
    with pytest.raises(errors.ValidationError):
        state.apply(PlantSeed(position=4, plant_type_id="type-basic"), OWNER, T0)

    positions = [p.position for p in state.snapshot().plants]
    assert positions == [0, 1, 2, 3]
