"""HTTP endpoints for registration, results and state snapshots.

All handlers are ``async def`` so they run on the event loop, serialized with
the WebSocket handlers that mutate the same engine.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from icekart.api.dependencies import get_engine
from icekart.engine import RaceEngine
from icekart.race.errors import DuplicateRacer, InvalidRacerName
from icekart.realtime.messages import RacerView, ResultsResponse

router = APIRouter(prefix="/api", tags=["race"])


class RegisterRequest(BaseModel):
    name: str | None = None
    avatar: str = ""


async def invalid_request_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer unparseable or mistyped request bodies with a 400."""
    logger.warning(f"[HTTP] Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"detail": "Invalid request"})


@router.post("/register")
async def register_racer(request: RegisterRequest, engine: RaceEngine = Depends(get_engine)) -> dict:
    """Register a racer.

    Returns 400 when the name is missing or blank (or the body is not a
    valid registration) and 409 when the name is already taken.
    """
    try:
        racer = engine.register(request.name, avatar=request.avatar)
    except InvalidRacerName as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except DuplicateRacer as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return RacerView.from_racer(racer).to_wire()


@router.get("/results")
async def race_results(engine: RaceEngine = Depends(get_engine)) -> dict:
    """Standings: active racers by laps, checkpoints and time, then disqualified racers."""
    ranked = engine.results()
    logger.debug(f"[RESULTS] Returning {len(ranked)} racers")
    return ResultsResponse(racers=[RacerView.from_racer(r) for r in ranked]).to_wire()


@router.get("/state")
async def race_state(engine: RaceEngine = Depends(get_engine)) -> dict:
    return engine.snapshot().to_wire()
