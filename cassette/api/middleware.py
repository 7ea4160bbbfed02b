"""
Request gates, outermost first: consent cookie, Spotify login, CSRF token.

Errors raised here never reach FastAPI's exception handlers, so they are
rendered with error_response() directly.
"""

import logging
import secrets

from fastapi import Request
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, RedirectResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from cassette.api.state import AppState
from cassette.config import Settings
from cassette.core.session_store import Session
from cassette.exceptions import CassetteError, CSRFError

logger = logging.getLogger(__name__)

SAFE_METHODS = ("GET", "HEAD", "OPTIONS", "TRACE")

_FALLBACK_ENTRY_PAGE = (
    "<!DOCTYPE html><html><head><title>Cassette</title></head><body>"
    "<p>Cassette stores your Spotify user id and the player states you save. "
    "Please accept the use of cookies to continue.</p></body></html>"
)


def error_response(exc: CassetteError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def entry_page(settings: Settings) -> Response:
    """The web app entry point (index.html), or a minimal page if it is not built."""
    index_file = settings.web_dir / "index.html"
    if index_file.is_file():
        return FileResponse(index_file)
    return HTMLResponse(_FALLBACK_ENTRY_PAGE)


def requested_path(request: Request) -> str:
    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    return path


class ConsentMiddleware(BaseHTTPMiddleware):
    """Without the consent cookie every path gets the entry page and nothing else happens."""

    def __init__(self, app, settings: Settings) -> None:
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):
        if self.settings.consent_cookie_name not in request.cookies:
            return entry_page(self.settings)
        return await call_next(request)


class SpotifyAuthMiddleware(BaseHTTPMiddleware):
    """Loads the session and lets only requests with a Spotify token through.

    Everything else is redirected into the login handshake; the callback path
    completes it.
    """

    def __init__(self, app, state: AppState) -> None:
        super().__init__(app)
        self.state = state
        self.settings = state.settings

    def _is_gated(self, path: str) -> bool:
        return path == self.settings.callback_path or path == "/api" or path.startswith("/api/")

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not self._is_gated(path):
            return await call_next(request)

        sessions = self.state.sessions
        handshake = self.state.handshake
        session = sessions.get(request.cookies.get(self.settings.session_cookie_name))
        try:
            if session.is_authenticated and not await run_in_threadpool(
                handshake.ensure_fresh_token, session
            ):
                session = sessions.new()

            if session.is_authenticated:
                if path == self.settings.callback_path:
                    response = RedirectResponse("/", status_code=307)
                else:
                    request.state.session = session
                    response = await call_next(request)
            elif path == self.settings.callback_path:
                return_path = await run_in_threadpool(
                    handshake.complete, session, dict(request.query_params)
                )
                response = RedirectResponse(return_path, status_code=307)
            else:
                auth_url = handshake.begin(session, requested_path(request))
                response = RedirectResponse(auth_url, status_code=307)
        except CassetteError as e:
            response = error_response(e)

        if session.modified:
            sessions.save(session)
        if session.saved:
            self._set_session_cookie(response, session)
        return response

    def _set_session_cookie(self, response: Response, session: Session) -> None:
        response.set_cookie(
            key=self.settings.session_cookie_name,
            value=session.id,
            max_age=self.settings.session_max_age,
            path="/",
            httponly=True,
            samesite="lax",
            secure=self.settings.secure_cookies,
        )


class CSRFMiddleware(BaseHTTPMiddleware):
    """State-changing requests must echo the session's CSRF token in a header."""

    def __init__(self, app, settings: Settings) -> None:
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):
        session = getattr(request.state, "session", None)
        if session is None:
            return await call_next(request)

        header = self.settings.csrf_header_name
        try:
            token = session.csrf_token
            if token is None:
                token = secrets.token_urlsafe(32)
                session.csrf_token = token
            if request.method not in SAFE_METHODS:
                supplied = request.headers.get(header, "")
                if not secrets.compare_digest(supplied.encode(), token.encode()):
                    logger.debug("CSRF check failed for %s %s", request.method, request.url.path)
                    raise CSRFError(
                        f"Failed verifying CSRF token. Expect token to be contained in header '{header}'."
                    )
        except CassetteError as e:
            return error_response(e)

        request.state.csrf_token = token
        return await call_next(request)
