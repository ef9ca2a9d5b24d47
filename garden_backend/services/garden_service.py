# garden_backend/services/garden_service.py
"""Transport-agnostic operations on gardens.

Each call runs one load -> catch-up -> validate -> apply -> persist cycle
while holding the garden's lock. The lock is never held across anything
but the database transaction. A version column guards against writers in
other processes; a stale version is retried a bounded number of times.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace

from garden_backend import errors, models
from garden_backend.config import settings as default_settings
from garden_backend.domain import (
    Garden,
    GardenSnapshot,
    Owner,
    Plant,
    as_utc,
    level_for,
    season_for,
    utc_now,
)
from garden_backend.services import catalog
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
from garden_backend.services.reconciliation import ActionResult

logger = logging.getLogger(__name__)

MAX_GARDEN_SIZE = 100

GARDEN_FIELDS = (
    "name",
    "description",
    "size",
    "water_level",
    "fertilizer_level",
    "soil_quality",
    "sprinkler",
    "greenhouse",
    "composter",
    "season",
    "weather",
    "last_tick_at",
)

PLANT_FIELDS = (
    "plant_type_id",
    "position",
    "stage",
    "growth_progress",
    "water_level",
    "health",
    "fertilizer_boost",
    "stressed_for",
    "planted_at",
    "last_watered_at",
    "last_fertilized_at",
)


def garden_from_row(row):
    return Garden(
        id=row.id,
        owner_id=row.owner_id,
        last_tick_at=as_utc(row.last_tick_at),
        name=row.name,
        description=row.description or "",
        size=row.size,
        water_level=row.water_level,
        fertilizer_level=row.fertilizer_level,
        soil_quality=row.soil_quality,
        sprinkler=bool(row.sprinkler),
        greenhouse=bool(row.greenhouse),
        composter=bool(row.composter),
        season=row.season,
        weather=row.weather,
        version=row.version,
    )


def plant_from_row(row):
    return Plant(
        id=row.id,
        garden_id=row.garden_id,
        plant_type_id=row.plant_type_id,
        position=row.position,
        planted_at=as_utc(row.planted_at),
        stage=row.stage,
        growth_progress=row.growth_progress,
        water_level=row.water_level,
        health=row.health,
        fertilizer_boost=row.fertilizer_boost or 0.0,
        stressed_for=row.stressed_for or 0.0,
        last_watered_at=as_utc(row.last_watered_at),
        last_fertilized_at=as_utc(row.last_fertilized_at),
    )


def owner_from_row(row):
    return Owner(id=row.id, level=row.level, experience=row.experience, coins=row.coins)


class GardenService:
    def __init__(self, session_factory, settings=None, clock=utc_now):
        self.session_factory = session_factory
        self.settings = settings or default_settings
        self.clock = clock
        # garden id -> [lock, holders and waiters]
        self._locks = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------
    def plant_seed(self, garden_id, owner_id, plant_type_id, position, now=None):
        return self._run(garden_id, owner_id, PlantSeed(position=position, plant_type_id=plant_type_id), now)

    def water_plant(self, garden_id, owner_id, plant_id, amount, now=None):
        return self._run(garden_id, owner_id, Water(plant_id=plant_id, amount=amount), now)

    def fertilize_plant(self, garden_id, owner_id, plant_id, amount, now=None):
        return self._run(garden_id, owner_id, Fertilize(plant_id=plant_id, amount=amount), now)

    def harvest_plant(self, garden_id, owner_id, plant_id, now=None):
        return self._run(garden_id, owner_id, Harvest(plant_id=plant_id), now)

    def remove_plant(self, garden_id, owner_id, plant_id, now=None):
        return self._run(garden_id, owner_id, Remove(plant_id=plant_id), now)

    def install_upgrade(self, garden_id, owner_id, upgrade, now=None):
        return self._run(garden_id, owner_id, InstallUpgrade(upgrade=upgrade), now)

    def set_environment(self, garden_id, owner_id, season, weather, now=None):
        return self._run(garden_id, owner_id, SetEnvironment(season=season, weather=weather), now)

    def get_garden(self, garden_id, now=None, owner_id=None):
        """Catch the garden up to ``now`` and return the full snapshot."""

        result = self._run(garden_id, owner_id, None, now)
        return result.garden

    # ------------------------------------------------------------------
    # Garden administration
    # ------------------------------------------------------------------
    def create_garden(self, owner_id, name, now=None, size=None, description=""):
        now = as_utc(now) if now is not None else self.clock()
        size = self.settings.default_size if size is None else size
        if isinstance(size, bool) or not isinstance(size, int) or not 1 <= size <= MAX_GARDEN_SIZE:
            raise errors.ValidationError(
                errors.INVALID_SIZE, f"Garden size must be between 1 and {MAX_GARDEN_SIZE}"
            )

        db = self.session_factory()
        try:
            owner = db.query(models.User).filter(models.User.id == owner_id).first()
            if owner is None:
                raise errors.NotFoundError(errors.OWNER_NOT_FOUND, f"Owner {owner_id} not found")

            row = models.Garden(
                owner_id=owner_id,
                name=name,
                description=description,
                size=size,
                season=season_for(now),
                last_tick_at=now,
                version=0,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            logger.info("Created garden %s (size %d) for %s", row.id, size, owner_id)
            return GardenSnapshot(garden=garden_from_row(row), plants=())
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def list_gardens(self, owner_id, now=None):
        db = self.session_factory()
        try:
            ids = [
                gid
                for (gid,) in db.query(models.Garden.id)
                .filter(models.Garden.owner_id == owner_id)
                .order_by(models.Garden.created_at)
                .all()
            ]
        finally:
            db.close()
        return [self.get_garden(gid, now, owner_id=owner_id) for gid in ids]

    def delete_garden(self, garden_id, owner_id):
        with self._lock_for(garden_id):
            db = self.session_factory()
            try:
                row = db.query(models.Garden).filter(models.Garden.id == garden_id).first()
                if row is None:
                    raise errors.NotFoundError(errors.GARDEN_NOT_FOUND, f"Garden {garden_id} not found")
                if row.owner_id != owner_id:
                    raise errors.AuthorizationError(errors.NOT_OWNER, "Garden belongs to another player")
                db.delete(row)
                db.commit()
                logger.info("Deleted garden %s", garden_id)
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

    def list_plant_types(self):
        db = self.session_factory()
        try:
            types = catalog.load_catalog(db).values()
        finally:
            db.close()
        return sorted(types, key=lambda t: (t.min_level, t.name))

    # ------------------------------------------------------------------
    # Serialized cycle
    # ------------------------------------------------------------------
    @contextmanager
    def _lock_for(self, garden_id):
        """Hold the garden's lock; the entry only lives while someone uses it."""

        with self._locks_guard:
            entry = self._locks.get(garden_id)
            if entry is None:
                entry = self._locks[garden_id] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[garden_id]

    def _run(self, garden_id, owner_id, action, now):
        now = as_utc(now) if now is not None else self.clock()
        name = type(action).__name__ if action is not None else "catch_up"

        with self._lock_for(garden_id):
            attempt = 0
            while True:
                attempt += 1
                try:
                    result = self._cycle(garden_id, owner_id, action, now)
                except errors.ConcurrencyConflict:
                    if attempt >= self.settings.max_retries:
                        logger.warning("garden %s: %s gave up after %d attempts", garden_id, name, attempt)
                        raise
                    logger.warning("garden %s: version conflict on %s, retrying", garden_id, name)
                    continue
                except errors.GardenError as e:
                    logger.info("garden %s: %s rejected (%s)", garden_id, name, e.reason)
                    raise

                if action is not None:
                    logger.info("garden %s: %s ok", garden_id, name)
                return result

    def _cycle(self, garden_id, owner_id, action, now):
        db = self.session_factory()
        try:
            row = db.query(models.Garden).filter(models.Garden.id == garden_id).first()
            if row is None:
                raise errors.NotFoundError(errors.GARDEN_NOT_FOUND, f"Garden {garden_id} not found")

            owner_row = None
            if owner_id is not None:
                owner_row = db.query(models.User).filter(models.User.id == owner_id).first()
                if owner_row is None:
                    raise errors.NotFoundError(errors.OWNER_NOT_FOUND, f"Owner {owner_id} not found")
                if action is None and row.owner_id != owner_id:
                    raise errors.AuthorizationError(errors.NOT_OWNER, "Garden belongs to another player")

            if action is not None and owner_row is None:
                raise errors.AuthorizationError(errors.NOT_OWNER, "Actions need an owner")

            state = GardenState(
                garden_from_row(row),
                [plant_from_row(p) for p in row.plants],
                catalog.load_catalog(db),
                self.settings,
            )

            if action is None:
                state.catch_up(now)
                result = None
            else:
                result = state.apply(action, owner_from_row(owner_row), now)

            snapshot = state.snapshot()
            new_version = self._persist(db, row, snapshot)

            harvest = result.harvest if result is not None else None
            if harvest is not None:
                harvest = self._credit(db, owner_row, harvest)

            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        snapshot = GardenSnapshot(
            garden=replace(snapshot.garden, version=new_version),
            plants=snapshot.plants,
        )
        if result is None:
            return ActionResult(garden=snapshot)
        return replace(result, garden=snapshot, harvest=harvest)

    def _persist(self, db, row, snapshot):
        garden = snapshot.garden
        expected = row.version
        values = {getattr(models.Garden, name): getattr(garden, name) for name in GARDEN_FIELDS}
        values[models.Garden.version] = expected + 1

        updated = (
            db.query(models.Garden)
            .filter(models.Garden.id == garden.id, models.Garden.version == expected)
            .update(values, synchronize_session=False)
        )
        if updated != 1:
            raise errors.ConcurrencyConflict(
                errors.VERSION_MISMATCH, f"Garden {garden.id} changed while it was being updated"
            )

        rows = {p.id: p for p in row.plants}
        keep = set()
        for plant in snapshot.plants:
            keep.add(plant.id)
            plant_row = rows.get(plant.id)
            if plant_row is None:
                plant_row = models.Plant(id=plant.id, garden_id=garden.id)
                db.add(plant_row)
            for name in PLANT_FIELDS:
                setattr(plant_row, name, getattr(plant, name))

        for plant_id, plant_row in rows.items():
            if plant_id not in keep:
                db.delete(plant_row)

        return expected + 1

    def _credit(self, db, owner_row, harvest):
        db.query(models.User).filter(models.User.id == owner_row.id).update(
            {
                models.User.coins: models.User.coins + harvest.coins_earned,
                models.User.experience: models.User.experience + harvest.experience_earned,
            },
            synchronize_session=False,
        )
        db.refresh(owner_row)
        old_level = owner_row.level
        owner_row.level = level_for(owner_row.experience)
        return replace(harvest, new_level=owner_row.level, level_up=owner_row.level > old_level)
