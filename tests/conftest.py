"""
Shared test fixtures: fake Spotify collaborators and a logged-in test client.
"""

from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi.testclient import TestClient

from cassette.api.app import create_app
from cassette.api.state import AppState
from cassette.config import Settings
from cassette.core.player_state_store import PlayerStateStore
from cassette.core.session_store import SessionStore
from cassette.exceptions import ProviderError
from cassette.models.player_state import DeviceDescriptor

USER_ID = "listener-1"


def currently_playing_payload(
    position_ms=45_000,
    context_uri="spotify:album:ctx1",
    item_uri="spotify:track:t1",
    images=None,
    artists=("Author One", "Reader Two"),
):
    if images is None:
        images = [{"url": "https://img.test/cover.jpg"}, {"url": "https://img.test/small.jpg"}]
    return {
        "is_playing": True,
        "progress_ms": position_ms,
        "context": {"uri": context_uri} if context_uri else None,
        "item": {
            "uri": item_uri,
            "name": "Chapter 1",
            "duration_ms": 600_000,
            "album": {"name": "The Book", "images": images},
            "artists": [{"name": n} for n in artists],
        },
    }


class FakePlayer:
    """Stands in for SpotifyPlayer; records every call."""

    def __init__(self):
        self.calls = []
        self.playing = currently_playing_payload()
        self.device_list = [DeviceDescriptor(id="dev-a", name="Phone", is_active=False)]
        self.user_id = USER_ID
        self.fail = set()

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail:
            raise ProviderError(f"{name} failed")

    def current_user_id(self):
        self._record("current_user_id")
        return self.user_id

    def currently_playing(self):
        self._record("currently_playing")
        return self.playing

    def devices(self):
        self._record("devices")
        return list(self.device_list)

    def pause(self):
        self._record("pause")

    def play(self, context_uri, item_uri, position_ms, device_id):
        self._record("play", context_uri, item_uri, position_ms, device_id)

    def call_names(self):
        return [c[0] for c in self.calls]


class FakeAuthenticator:
    """Stands in for SpotifyAuthenticator."""

    def __init__(self, player):
        self.player = player
        self.exchanged = []
        self.refreshed = []
        self.refresh_fails = False

    def authorize_url(self, state):
        return f"https://accounts.spotify.test/authorize?state={state}"

    def exchange_code(self, code):
        self.exchanged.append(code)
        return {"access_token": f"token-{code}", "refresh_token": "refresh", "expired": False}

    def is_expired(self, token):
        return bool(token.get("expired"))

    def refresh(self, token):
        self.refreshed.append(token)
        if self.refresh_fails:
            raise ProviderError("refresh failed")
        return {"access_token": "fresh", "refresh_token": "refresh", "expired": False}

    def client_for(self, token):
        return self.player


@pytest.fixture
def settings(tmp_path):
    return Settings(
        spotify_client_id="client-id",
        spotify_client_secret="client-secret",
        app_url="http://testserver/",
        data_dir=tmp_path / "data",
        web_dir=tmp_path / "web",
        secure_cookies=False,
    )


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def authenticator(player):
    return FakeAuthenticator(player)


@pytest.fixture
def store(settings):
    return PlayerStateStore(settings.player_states_dir)


@pytest.fixture
def app_state(settings, store, authenticator):
    return AppState(
        settings,
        sessions=SessionStore(max_age=settings.session_max_age),
        player_states=store,
        authenticator=authenticator,
    )


@pytest.fixture
def client(app_state):
    """Test client that has accepted the consent cookie but is not logged in."""
    with TestClient(create_app(app_state), follow_redirects=False) as c:
        c.cookies.set(app_state.settings.consent_cookie_name, "1")
        yield c


def state_from_location(location):
    return parse_qs(urlsplit(location).query)["state"][0]


def log_in(client, path="/api/playerStates"):
    """Run the Spotify handshake; returns the callback response."""
    start = client.get(path)
    assert start.status_code == 307
    nonce = state_from_location(start.headers["location"])
    return client.get("/spotify-oauth-callback", params={"code": "abc", "state": nonce})


@pytest.fixture
def logged_in_client(client, app_state):
    """Client with a completed handshake and the CSRF header set."""
    log_in(client)
    token = client.head("/api/csrfToken").headers[app_state.settings.csrf_header_name]
    client.headers[app_state.settings.csrf_header_name] = token
    return client
