"""Core services: sessions, Spotify handshake, player state capture/restore."""
from cassette.core.player_state_store import PlayerStateStore
from cassette.core.session_store import Session, SessionStore

__all__ = ["PlayerStateStore", "Session", "SessionStore"]
