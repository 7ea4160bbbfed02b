"""Shared application state (injected into routes and middleware)."""
from typing import Optional

from fastapi import Depends, Request

from cassette.config import Settings
from cassette.core.auth import OAuthHandshake
from cassette.core.player_state_store import PlayerStateStore
from cassette.core.session_store import Session, SessionStore
from cassette.core.spotify_client import SpotifyAuthenticator, SpotifyPlayer
from cassette.exceptions import SessionValueError


class AppState:
    def __init__(
        self,
        settings: Settings,
        *,
        sessions: Optional[SessionStore] = None,
        player_states: Optional[PlayerStateStore] = None,
        authenticator: Optional[SpotifyAuthenticator] = None,
    ) -> None:
        self.settings = settings
        self.sessions = sessions or SessionStore(max_age=settings.session_max_age)
        self.player_states = player_states or PlayerStateStore(settings.player_states_dir)
        self.authenticator = authenticator or SpotifyAuthenticator(settings)
        self.handshake = OAuthHandshake(self.authenticator, self.sessions)


def get_state(request: Request) -> AppState:
    return request.app.state.cassette


def get_session(request: Request) -> Session:
    """Session loaded by the auth middleware for this request."""
    return request.state.session


def get_user_id(session: Session = Depends(get_session)) -> str:
    user_id = session.authenticated_user
    if user_id is None:
        raise SessionValueError("authenticated_user", str)
    return user_id


def get_player(
    session: Session = Depends(get_session),
    state: AppState = Depends(get_state),
) -> SpotifyPlayer:
    token = session.auth_token
    if token is None:
        raise SessionValueError("auth_token", dict)
    return state.authenticator.client_for(token)
