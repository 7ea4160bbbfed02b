"""
Server-side sessions keyed by a random cookie id.

The browser only ever sees the session id; token, user identity and the
transient OAuth handshake values stay on the server.
"""

import copy
import secrets
import threading
import time
from typing import Any, Optional

from cassette.exceptions import SessionValueError

AUTH_TOKEN = "auth_token"
AUTHENTICATED_USER = "authenticated_user"
PENDING_STATE = "pending_state"
PENDING_RETURN_PATH = "pending_return_path"
CSRF_TOKEN = "csrf_token"


class Session:
    """One browser session with typed access to its values."""

    def __init__(self, session_id: str, data: Optional[dict] = None, is_new: bool = False):
        self.id = session_id
        self._data: dict[str, Any] = data or {}
        self.is_new = is_new
        self.modified = False
        self.saved = False

    def _get(self, key: str, type_: type) -> Any:
        value = self._data.get(key)
        if value is not None and not isinstance(value, type_):
            raise SessionValueError(key, type_)
        return value

    def _set(self, key: str, value: Any) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = value
        self.modified = True

    @property
    def auth_token(self) -> Optional[dict]:
        return self._get(AUTH_TOKEN, dict)

    @property
    def authenticated_user(self) -> Optional[str]:
        return self._get(AUTHENTICATED_USER, str)

    @property
    def pending_state(self) -> Optional[str]:
        return self._get(PENDING_STATE, str)

    @property
    def pending_return_path(self) -> Optional[str]:
        return self._get(PENDING_RETURN_PATH, str)

    @property
    def csrf_token(self) -> Optional[str]:
        return self._get(CSRF_TOKEN, str)

    @csrf_token.setter
    def csrf_token(self, value: str) -> None:
        self._set(CSRF_TOKEN, value)

    @property
    def is_authenticated(self) -> bool:
        return self.auth_token is not None and self.authenticated_user is not None

    def authenticate(self, token: dict, user_id: str) -> None:
        """Store token and user together. The user cannot change within a session."""
        current = self.authenticated_user
        if current is not None and current != user_id:
            raise SessionValueError(AUTHENTICATED_USER, str)
        self._set(AUTHENTICATED_USER, user_id)
        self._set(AUTH_TOKEN, token)

    def replace_token(self, token: dict) -> None:
        """Swap in a refreshed token for the already authenticated user."""
        if self.authenticated_user is None:
            raise SessionValueError(AUTHENTICATED_USER, str)
        self._set(AUTH_TOKEN, token)

    def begin_handshake(self, nonce: str, return_path: str) -> None:
        self._set(PENDING_STATE, nonce)
        self._set(PENDING_RETURN_PATH, return_path)

    def finish_handshake(self) -> Optional[str]:
        """Clear the nonce and consume the return path."""
        return_path = self.pending_return_path
        self._set(PENDING_STATE, None)
        self._set(PENDING_RETURN_PATH, None)
        return return_path

    def to_dict(self) -> dict:
        return copy.deepcopy(self._data)


class SessionStore:
    """In-process session storage with expiry."""

    def __init__(self, max_age: int) -> None:
        self._max_age = max_age
        self._lock = threading.Lock()
        # session id -> (expires_at monotonic, data)
        self._sessions: dict[str, tuple[float, dict]] = {}

    def _generate_session_id(self) -> str:
        return secrets.token_urlsafe(32)

    def _purge_expired(self, now: float) -> None:
        expired = [sid for sid, (expires_at, _) in self._sessions.items() if expires_at <= now]
        for sid in expired:
            del self._sessions[sid]

    def new(self) -> Session:
        return Session(self._generate_session_id(), is_new=True)

    def get(self, session_id: Optional[str]) -> Session:
        """Return the stored session for this cookie value, or a fresh unsaved one."""
        if session_id:
            with self._lock:
                self._purge_expired(time.monotonic())
                entry = self._sessions.get(session_id)
            if entry is not None:
                return Session(session_id, copy.deepcopy(entry[1]))
        return self.new()

    def save(self, session: Session) -> None:
        """Persist a copy of the session and extend its lifetime."""
        with self._lock:
            self._sessions[session.id] = (time.monotonic() + self._max_age, session.to_dict())
        session.modified = False
        session.saved = True

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
