# garden_backend/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from garden_backend import auth, database, models
from garden_backend.config import CORS_ORIGINS, LOG_LEVEL, SECRET_KEY
from garden_backend.errors import GardenError
from garden_backend.services import catalog, weather_service
from garden_backend.services.garden_service import GardenService
from garden_backend.services.reconciliation import garden_payload, result_payload

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    # Create tables and the starter catalog
    models.Base.metadata.create_all(bind=database.engine)
    db = database.SessionLocal()
    try:
        catalog.seed_plant_types(db)
    finally:
        db.close()
    yield


app = FastAPI(title="Garden API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(
    SessionMiddleware,
    secret_key=SECRET_KEY,
    session_cookie=auth.SESSION_COOKIE,
    same_site="lax",
)

app.include_router(auth.router)

_service = GardenService(database.SessionLocal)


# Dependency
def get_service():
    return _service


@app.exception_handler(GardenError)
async def garden_error_handler(request: Request, exc: GardenError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# --- Pydantic Schemas ---
class GardenCreate(BaseModel):
    name: str
    description: str = ""
    size: int = 9


class PlantCreate(BaseModel):
    plant_type_id: str
    position: int


class AmountIn(BaseModel):
    amount: int


class EnvironmentIn(BaseModel):
    season: str
    weather: str


# --- API ENDPOINTS ---

@app.get("/plant-types")
def list_plant_types(service: GardenService = Depends(get_service)):
    return [
        {
            "id": t.id,
            "name": t.name,
            "description": t.description,
            "icon": t.icon,
            "rarity": t.rarity,
            "growth_time_seconds": t.growth_time,
            "water_needs": t.water_needs,
            "fertilizer_needs": t.fertilizer_needs,
            "yield": t.yield_,
            "harvest_value": t.harvest_value,
            "experience_value": t.experience_value,
            "min_level": t.min_level,
            "season": t.season,
            "weather": t.weather,
        }
        for t in service.list_plant_types()
    ]


@app.get("/gardens")
def list_gardens(owner_id: str = Depends(auth.require_login), service: GardenService = Depends(get_service)):
    return [garden_payload(s) for s in service.list_gardens(owner_id)]


@app.post("/gardens", status_code=201)
def create_garden(
    body: GardenCreate,
    owner_id: str = Depends(auth.require_login),
    service: GardenService = Depends(get_service),
):
    snapshot = service.create_garden(owner_id, body.name, size=body.size, description=body.description)
    return garden_payload(snapshot)


@app.get("/gardens/{garden_id}")
def get_garden(
    garden_id: str,
    owner_id: str = Depends(auth.require_login),
    service: GardenService = Depends(get_service),
):
    """Always returns the garden caught up to the server clock."""
    return garden_payload(service.get_garden(garden_id, owner_id=owner_id))


@app.delete("/gardens/{garden_id}")
def delete_garden(
    garden_id: str,
    owner_id: str = Depends(auth.require_login),
    service: GardenService = Depends(get_service),
):
    service.delete_garden(garden_id, owner_id)
    return {"status": "deleted", "garden_id": garden_id}


@app.post("/gardens/{garden_id}/plants", status_code=201)
def plant_seed(
    garden_id: str,
    body: PlantCreate,
    owner_id: str = Depends(auth.require_login),
    service: GardenService = Depends(get_service),
):
    result = service.plant_seed(garden_id, owner_id, body.plant_type_id, body.position)
    return result_payload(result)


@app.post("/gardens/{garden_id}/plants/{plant_id}/water")
def water_plant(
    garden_id: str,
    plant_id: str,
    body: AmountIn,
    owner_id: str = Depends(auth.require_login),
    service: GardenService = Depends(get_service),
):
    return result_payload(service.water_plant(garden_id, owner_id, plant_id, body.amount))


@app.post("/gardens/{garden_id}/plants/{plant_id}/fertilize")
def fertilize_plant(
    garden_id: str,
    plant_id: str,
    body: AmountIn,
    owner_id: str = Depends(auth.require_login),
    service: GardenService = Depends(get_service),
):
    return result_payload(service.fertilize_plant(garden_id, owner_id, plant_id, body.amount))


@app.post("/gardens/{garden_id}/plants/{plant_id}/harvest")
def harvest_plant(
    garden_id: str,
    plant_id: str,
    owner_id: str = Depends(auth.require_login),
    service: GardenService = Depends(get_service),
):
    return result_payload(service.harvest_plant(garden_id, owner_id, plant_id))


@app.delete("/gardens/{garden_id}/plants/{plant_id}")
def remove_plant(
    garden_id: str,
    plant_id: str,
    owner_id: str = Depends(auth.require_login),
    service: GardenService = Depends(get_service),
):
    return result_payload(service.remove_plant(garden_id, owner_id, plant_id))


@app.post("/gardens/{garden_id}/upgrades/{upgrade}")
def install_upgrade(
    garden_id: str,
    upgrade: str,
    owner_id: str = Depends(auth.require_login),
    service: GardenService = Depends(get_service),
):
    return result_payload(service.install_upgrade(garden_id, owner_id, upgrade))


@app.put("/gardens/{garden_id}/environment")
def set_environment(
    garden_id: str,
    body: EnvironmentIn,
    owner_id: str = Depends(auth.require_login),
    service: GardenService = Depends(get_service),
):
    return result_payload(service.set_environment(garden_id, owner_id, body.season, body.weather))


@app.post("/gardens/{garden_id}/environment/refresh")
def refresh_environment(
    garden_id: str,
    owner_id: str = Depends(auth.require_login),
    service: GardenService = Depends(get_service),
):
    """Pulls live weather first, then applies it like any other action."""
    conditions = weather_service.current_conditions()
    if conditions is None:
        raise HTTPException(status_code=502, detail="Weather service unavailable")
    result = service.set_environment(garden_id, owner_id, conditions["season"], conditions["weather"])
    return result_payload(result)


@app.get("/weather/current")
def current_weather():
    conditions = weather_service.current_conditions()
    if conditions is None:
        raise HTTPException(status_code=502, detail="Weather service unavailable")
    return conditions
