"""
Spotify authorization code handshake, bound to the server-side session.

States (derived from the session, not stored):
- no token, no nonce:   next request starts the handshake
- no token, nonce set:  waiting for Spotify to redirect to the callback
- token and user set:   authenticated, requests pass through
"""

import logging
import secrets
from typing import Mapping

from cassette.core.session_store import Session, SessionStore
from cassette.core.spotify_client import SpotifyAuthenticator
from cassette.exceptions import (
    AccessDeniedError,
    DirectCallbackAccessError,
    ProviderError,
    StateMismatchError,
)

logger = logging.getLogger(__name__)

NONCE_BYTES = 32


def generate_nonce() -> str:
    return secrets.token_urlsafe(NONCE_BYTES)


class OAuthHandshake:
    def __init__(self, authenticator: SpotifyAuthenticator, sessions: SessionStore) -> None:
        self.authenticator = authenticator
        self.sessions = sessions

    def begin(self, session: Session, return_path: str) -> str:
        """Remember where the user wanted to go and return Spotify's authorization URL.

        The session is saved here, before any redirect goes out, so a parallel
        request from the same browser cannot read a stale nonce.
        """
        nonce = generate_nonce()
        session.begin_handshake(nonce, return_path)
        self.sessions.save(session)
        logger.info("Starting Spotify login, will return to %s", return_path)
        return self.authenticator.authorize_url(nonce)

    def complete(self, session: Session, params: Mapping[str, str]) -> str:
        """Handle the callback leg; returns the path to send the user back to.

        Every check runs before the code is exchanged with Spotify.
        """
        if params.get("error"):
            logger.warning("Spotify login failed: %s", params["error"])
            raise AccessDeniedError(f"Spotify denied access: {params['error']}")

        if not session.pending_return_path:
            raise DirectCallbackAccessError()

        expected = session.pending_state
        received = params.get("state") or ""
        if not expected or not secrets.compare_digest(received.encode(), expected.encode()):
            logger.warning("OAuth state mismatch on callback for session")
            raise StateMismatchError()

        code = params.get("code")
        if not code:
            raise AccessDeniedError("Spotify did not return an authorization code")

        token = self.authenticator.exchange_code(code)
        user_id = self.authenticator.client_for(token).current_user_id()

        session.authenticate(token, user_id)
        return_path = session.finish_handshake()
        self.sessions.save(session)
        logger.info("User %s logged in with Spotify", user_id)
        return return_path

    def ensure_fresh_token(self, session: Session) -> bool:
        """Refresh an expired token in place.

        Returns False when refreshing failed; the session is then discarded and
        the caller has to start over with a new one.
        """
        token = session.auth_token
        if token is None or not self.authenticator.is_expired(token):
            return True
        try:
            session.replace_token(self.authenticator.refresh(token))
        except ProviderError:
            logger.info("Token refresh failed for user %s, logging in again", session.authenticated_user)
            self.sessions.discard(session.id)
            return False
        self.sessions.save(session)
        return True
