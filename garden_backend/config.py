# garden_backend/config.py
import os
from dataclasses import dataclass
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./garden.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
# Signs the session cookie; set a real value in production
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")

WEATHER_API_URL = os.getenv("WEATHER_API_URL", "https://api.open-meteo.com/v1/forecast")
GARDEN_LATITUDE = float(os.getenv("GARDEN_LATITUDE", "52.52"))
GARDEN_LONGITUDE = float(os.getenv("GARDEN_LONGITUDE", "13.41"))


def _env_float(key, default):
    value = os.getenv(key)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class GameSettings:
    """Tuning knobs for the simulation. Rates are per hour unless noted."""

    catchup_cap: timedelta = timedelta(hours=24)
    tick_step: timedelta = timedelta(hours=1)
    fertilize_cooldown: timedelta = timedelta(hours=24)
    fertilizer_effect: timedelta = timedelta(hours=48)
    stress_grace: timedelta = timedelta(hours=6)

    garden_water_decay: float = 2.0
    garden_fertilizer_decay: float = 1.5
    soil_decay: float = 0.25
    plant_water_decay: float = 2.0
    adverse_weather_penalty: float = 1.0
    stress_health_loss: float = 5.0

    critical_floor: float = 0.10
    low_adequacy: float = 0.30
    affinity_bonus: float = 1.1

    default_size: int = 9
    max_retries: int = 3

    def __post_init__(self):
        # catch-up splits elapsed time into tick_step chunks
        if self.tick_step <= timedelta(0):
            raise ValueError(f"tick_step must be positive, got {self.tick_step}")
        if self.catchup_cap <= timedelta(0):
            raise ValueError(f"catchup_cap must be positive, got {self.catchup_cap}")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")

    @classmethod
    def from_env(cls):
        return cls(
            catchup_cap=timedelta(hours=_env_float("CATCHUP_CAP_HOURS", 24)),
            tick_step=timedelta(minutes=_env_float("TICK_STEP_MINUTES", 60)),
            fertilize_cooldown=timedelta(hours=_env_float("FERTILIZE_COOLDOWN_HOURS", 24)),
            fertilizer_effect=timedelta(hours=_env_float("FERTILIZER_EFFECT_HOURS", 48)),
            stress_grace=timedelta(hours=_env_float("STRESS_GRACE_HOURS", 6)),
            garden_water_decay=_env_float("GARDEN_WATER_DECAY", 2.0),
            garden_fertilizer_decay=_env_float("GARDEN_FERTILIZER_DECAY", 1.5),
            soil_decay=_env_float("SOIL_DECAY", 0.25),
            plant_water_decay=_env_float("PLANT_WATER_DECAY", 2.0),
            adverse_weather_penalty=_env_float("ADVERSE_WEATHER_PENALTY", 1.0),
            stress_health_loss=_env_float("STRESS_HEALTH_LOSS", 5.0),
            max_retries=int(_env_float("MAX_RETRIES", 3)),
        )


settings = GameSettings.from_env()
