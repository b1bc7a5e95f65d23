"""FastAPI application exposing the nearby-places reconciliation controller."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

import config
from actions import dial_uri, maps_url, share_message
from controller import ControllerState, ReconciliationController
from filters import FilterKey, filter_label, filter_title, included_types
from geo import Coordinate, format_distance
from location import default_location_provider
from models import (
    ActivateRequest,
    CoordinateModel,
    DialResponse,
    FilterRequest,
    ResultItemModel,
    ShareResponse,
    StateResponse,
)
from places_client import PlacesClient
from snapshot_cache import SnapshotCache

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def _log_transition(state: ControllerState) -> None:
    logger.debug("phase=%s stale=%s results=%d", state.phase.value, state.stale, len(state.results))


@asynccontextmanager
async def lifespan(app: FastAPI):
    location = default_location_provider()
    controller = ReconciliationController(location, PlacesClient(), SnapshotCache())
    controller.subscribe(_log_transition)
    app.state.location = location
    app.state.controller = controller
    logger.info("Controller ready (snapshot db: %s)", config.SNAPSHOT_DB_PATH)
    yield


app = FastAPI(title="Where Nearby", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _state_response(state: ControllerState) -> StateResponse:
    coordinate = None
    if state.coordinate is not None:
        coordinate = CoordinateModel(lat=state.coordinate.lat, lng=state.coordinate.lng)
    return StateResponse(
        phase=state.phase.value,
        coordinate=coordinate,
        coordinate_updated_at=state.coordinate_updated_at,
        address=state.address,
        stale=state.stale,
        loading=state.loading,
        error=state.error,
        filter=state.filter_key,
        title=filter_title(state.filter_key),
        results=[
            ResultItemModel(
                id=r.id,
                name=r.name,
                vicinity=r.vicinity,
                distance_m=r.distance_m,
                distance_label=format_distance(r.distance_m),
                compass=r.compass,
            )
            for r in state.results
        ],
    )


# ---------- Health check ----------

@app.get("/health")
async def health():
    return {"status": "ok"}


# ---------- State ----------

@app.get("/state", response_model=StateResponse)
async def get_state(request: Request):
    return _state_response(request.app.state.controller.state)


@app.post("/activate", response_model=StateResponse)
async def activate(body: ActivateRequest, request: Request):
    coordinate = None
    if body.lat is not None and body.lng is not None:
        coordinate = Coordinate(body.lat, body.lng)
    request.app.state.location.report(coordinate, body.permission)
    state = await request.app.state.controller.activate()
    return _state_response(state)


@app.post("/filter", response_model=StateResponse)
async def select_filter(body: FilterRequest, request: Request):
    try:
        state = await request.app.state.controller.select_filter(body.filter)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return _state_response(state)


# ---------- Share + emergency ----------

@app.get("/share", response_model=ShareResponse)
async def share(request: Request):
    state = request.app.state.controller.state
    if state.coordinate is None:
        raise HTTPException(409, "No known location to share yet.")
    return ShareResponse(text=share_message(state.coordinate, state.address), map_url=maps_url(state.coordinate))


@app.get("/emergency")
async def emergency_numbers():
    return {"numbers": list(config.EMERGENCY_NUMBERS)}


@app.get("/emergency/{number}", response_model=DialResponse)
async def dial(number: str):
    try:
        uri = dial_uri(number)
    except ValueError as e:
        raise HTTPException(404, str(e))
    return DialResponse(number=number, uri=uri)


# ---------- Config (read-only) ----------

@app.get("/config")
async def get_config():
    return {
        "search_radius_m": config.SEARCH_RADIUS_M,
        "max_result_count": config.MAX_RESULT_COUNT,
        "timeout_s": config.PLACES_TIMEOUT_S,
        "language_code": config.LANGUAGE_CODE,
        "filters": [
            {"key": key.value, "label": filter_label(key), "title": filter_title(key), "types": included_types(key)}
            for key in FilterKey
        ],
        "emergency_numbers": list(config.EMERGENCY_NUMBERS),
    }
