# garden_backend/services/weather_service.py
import logging

import requests

from garden_backend.config import GARDEN_LATITUDE, GARDEN_LONGITUDE, WEATHER_API_URL
from garden_backend.domain import WEATHER_EFFECTS, season_for, utc_now

logger = logging.getLogger(__name__)

TIMEOUT_SECONDS = 5


def condition_for_code(code, wind_speed=0.0):
    """
    Maps a WMO weather code (as returned by Open-Meteo) to one of our
    seven conditions.
    See: https://open-meteo.com/en/docs (WMO Weather interpretation codes)
    """
    if code is None:
        return "cloudy"
    code = int(code)

    if code in (95, 96, 99):
        return "stormy"
    if code in (71, 73, 75, 77, 85, 86):
        return "snowy"
    if 51 <= code <= 67 or 80 <= code <= 82:
        return "rainy"
    if code in (45, 48):
        return "foggy"
    # clear or partly cloudy, but strong wind wins
    if wind_speed and wind_speed >= 30:
        return "windy"
    if code in (0, 1):
        return "sunny"
    return "cloudy"


def current_conditions(latitude=GARDEN_LATITUDE, longitude=GARDEN_LONGITUDE, now=None):
    """
    Fetches the current weather for a location.
    Returns {"season", "weather", "temperature", "growth_multiplier",
    "water_evaporation_rate"} or None if the provider is unreachable.
    Never call this while holding a garden lock.
    """
    now = now or utc_now()
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current": "temperature_2m,weather_code,wind_speed_10m",
    }

    try:
        response = requests.get(WEATHER_API_URL, params=params, timeout=TIMEOUT_SECONDS)
    except requests.RequestException as e:
        logger.warning("Weather lookup failed: %s", e)
        return None

    if response.status_code != 200:
        logger.warning("Weather API returned %s: %s", response.status_code, response.text[:200])
        return None

    current = response.json().get("current", {})
    weather = condition_for_code(current.get("weather_code"), current.get("wind_speed_10m") or 0.0)
    growth_multiplier, evaporation = WEATHER_EFFECTS[weather]

    return {
        "season": season_for(now),
        "weather": weather,
        "temperature": current.get("temperature_2m"),
        "growth_multiplier": growth_multiplier,
        "water_evaporation_rate": evaporation,
    }
