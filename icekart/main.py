from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from loguru import logger

from icekart import __version__
from icekart.api.race import invalid_request_handler
from icekart.api.race import router as race_router
from icekart.api.ws import router as ws_router
from icekart.core.logger import setup_logger
from icekart.core.settings import Settings, load_settings
from icekart.engine import RaceEngine
from icekart.race.clock import Clock, system_clock


def create_app(settings: Settings | None = None, clock: Clock = system_clock) -> FastAPI:
    """Build the race service application around a fresh race engine."""
    settings = settings or load_settings()

    app = FastAPI(title="IceKart Race Service", version=__version__)
    app.state.settings = settings
    app.state.engine = RaceEngine.from_settings(settings, clock=clock)

    app.add_exception_handler(RequestValidationError, invalid_request_handler)
    app.include_router(race_router)
    app.include_router(ws_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests."""
        logger.debug(f"Request: {request.method} {request.url.path}")
        response = await call_next(request)
        logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
        return response

    logger.info("FastAPI application initialized")
    return app


def _build_default_app() -> FastAPI:
    settings = load_settings()
    setup_logger(level=settings.log_level, log_file=settings.log_file)
    return create_app(settings)


app = _build_default_app()
