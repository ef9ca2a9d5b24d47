# garden_backend/models.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from garden_backend.database import Base


def _uuid():
    return str(uuid.uuid4())


def _now():
    return datetime.now(timezone.utc)


# 1. Players: level, experience and coins are credited on harvest
class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)

    level = Column(Integer, default=1, nullable=False)
    experience = Column(Integer, default=0, nullable=False)
    coins = Column(Integer, default=100, nullable=False)

    created_at = Column(DateTime(timezone=True), default=_now)

    gardens = relationship("Garden", back_populates="owner", cascade="all, delete-orphan")


# 2. Catalog: static plant types, read-only at runtime
class PlantType(Base):
    __tablename__ = "plant_types"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, unique=True, nullable=False)
    description = Column(String, default="")
    icon = Column(String, default="")

    # Growth
    growth_time_seconds = Column(Float, nullable=False)
    water_needs = Column(Integer, default=50)        # 0-100
    fertilizer_needs = Column(Integer, default=0)    # 0-100

    # Harvest
    yield_amount = Column(Integer, default=1)        # items per harvest
    harvest_value = Column(Integer, default=10)      # coins per item
    experience_value = Column(Integer, default=5)    # XP per harvest

    # Requirements
    min_level = Column(Integer, default=1)
    season = Column(String, default="all")           # spring, summer, autumn, winter, all
    weather = Column(String, default="all")          # sunny, cloudy, rainy, ..., all
    rarity = Column(String, default="common")


# 3. Gardens: fixed-size grid plus shared resources
class Garden(Base):
    __tablename__ = "gardens"

    id = Column(String(36), primary_key=True, default=_uuid)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String, default="")

    size = Column(Integer, default=9, nullable=False)  # 3x3 grid
    water_level = Column(Float, default=50.0)
    fertilizer_level = Column(Float, default=50.0)
    soil_quality = Column(Float, default=50.0)

    # Upgrades
    sprinkler = Column(Boolean, default=False)
    greenhouse = Column(Boolean, default=False)
    composter = Column(Boolean, default=False)

    # Environment as last reported by the weather service
    season = Column(String, default="spring")
    weather = Column(String, default="cloudy")

    last_tick_at = Column(DateTime(timezone=True), nullable=False)
    version = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now)

    owner = relationship("User", back_populates="gardens")
    plants = relationship("Plant", back_populates="garden", cascade="all, delete-orphan")


# 4. Plants: one instance per occupied slot
class Plant(Base):
    __tablename__ = "plants"
    __table_args__ = (UniqueConstraint("garden_id", "position", name="uq_plant_slot"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    garden_id = Column(String(36), ForeignKey("gardens.id"), nullable=False, index=True)
    plant_type_id = Column(String(36), ForeignKey("plant_types.id"), nullable=False)
    position = Column(Integer, nullable=False)

    stage = Column(String, default="seed", nullable=False)
    growth_progress = Column(Float, default=0.0)
    water_level = Column(Float, default=50.0)
    health = Column(Float, default=100.0)
    fertilizer_boost = Column(Float, default=0.0)
    stressed_for = Column(Float, default=0.0)

    planted_at = Column(DateTime(timezone=True), nullable=False)
    last_watered_at = Column(DateTime(timezone=True), nullable=True)
    last_fertilized_at = Column(DateTime(timezone=True), nullable=True)

    garden = relationship("Garden", back_populates="plants")
    plant_type = relationship("PlantType")
