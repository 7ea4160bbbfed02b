"""FastAPI app, request gates, error handling, and route registration."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

# Configure logging in the worker process (so INFO logs are visible with uvicorn --reload)
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(name)s: %(message)s",
)

from cassette.api.middleware import (
    ConsentMiddleware,
    CSRFMiddleware,
    SpotifyAuthMiddleware,
    error_response,
)
from cassette.api.state import AppState, get_state
from cassette.config import Settings, ensure_data_dir
from cassette.exceptions import CassetteError

from cassette.api.routes import player_states, spotify, you

__all__ = ["create_app", "AppState", "get_state"]

logger = logging.getLogger(__name__)


def create_app(state: Optional[AppState] = None) -> FastAPI:
    """Build the app around the given state (settings from the environment if omitted)."""
    if state is None:
        state = AppState(Settings.from_env())
    settings = state.settings
    if settings.dev_mode:
        logging.getLogger("cassette").setLevel(logging.DEBUG)
        logger.debug("Running in DEV mode. Being more verbose.")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ensure_data_dir(settings)
        logger.info("Storing player states in %s", settings.player_states_dir)
        yield

    app = FastAPI(
        title="Cassette API",
        description="Save what Spotify is playing into slots and resume it later",
        lifespan=lifespan,
        docs_url="/api/docs" if settings.dev_mode else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.dev_mode else None,
    )
    app.state.cassette = state

    # Added last runs first: consent, then Spotify login, then CSRF
    app.add_middleware(CSRFMiddleware, settings=settings)
    app.add_middleware(SpotifyAuthMiddleware, state=state)
    app.add_middleware(ConsentMiddleware, settings=settings)

    @app.exception_handler(CassetteError)
    async def cassette_error_handler(request: Request, exc: CassetteError):
        if exc.status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc)

    app.include_router(spotify.router, prefix="/api", tags=["spotify"])
    app.include_router(player_states.router, prefix="/api/playerStates", tags=["playerStates"])
    app.include_router(you.router, prefix="/api/you", tags=["you"])
    return app
