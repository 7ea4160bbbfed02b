"""Spotify API access via Spotipy: OAuth handshake helpers and a per-user player client."""
import logging
from typing import List, Optional

from requests.exceptions import RequestException
from spotipy import Spotify
from spotipy.cache_handler import CacheHandler, MemoryCacheHandler
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from cassette.config import Settings
from cassette.exceptions import ProviderError
from cassette.models.player_state import DeviceDescriptor

logger = logging.getLogger(__name__)

_SPOTIFY_ERRORS = (SpotifyException, SpotifyOauthError, RequestException)


def _provider_error(operation: str, e: Exception) -> ProviderError:
    logger.warning("Spotify %s failed: %s", operation, e)
    return ProviderError(f"Spotify {operation} failed: {e}")


class SpotifyPlayer:
    """The subset of the Spotify Web API this app needs, for one user's token."""

    def __init__(self, sp: Spotify) -> None:
        self._sp = sp

    def current_user_id(self) -> str:
        try:
            user = self._sp.current_user()
        except _SPOTIFY_ERRORS as e:
            raise _provider_error("current user lookup", e)
        if not user or not user.get("id"):
            raise ProviderError("Spotify did not return a user id")
        return user["id"]

    def currently_playing(self) -> Optional[dict]:
        """Return the raw currently-playing payload, or None if nothing is playing."""
        try:
            return self._sp.currently_playing()
        except _SPOTIFY_ERRORS as e:
            raise _provider_error("currently playing lookup", e)

    def devices(self) -> List[DeviceDescriptor]:
        try:
            result = self._sp.devices()
        except _SPOTIFY_ERRORS as e:
            raise _provider_error("device lookup", e)
        return [
            DeviceDescriptor(
                id=d.get("id") or "",
                name=d.get("name") or "",
                is_active=bool(d.get("is_active", False)),
            )
            for d in (result or {}).get("devices") or []
        ]

    def pause(self) -> None:
        try:
            self._sp.pause_playback()
        except _SPOTIFY_ERRORS as e:
            raise _provider_error("pause", e)

    def play(self, context_uri: str, item_uri: str, position_ms: int, device_id: str) -> None:
        """Start item_uri within context_uri at position_ms on device_id.

        Without a context only the single item is started.
        """
        try:
            if context_uri:
                self._sp.start_playback(
                    device_id=device_id,
                    context_uri=context_uri,
                    offset={"uri": item_uri},
                    position_ms=position_ms,
                )
            else:
                self._sp.start_playback(
                    device_id=device_id,
                    uris=[item_uri],
                    position_ms=position_ms,
                )
        except _SPOTIFY_ERRORS as e:
            raise _provider_error("play", e)


class _DiscardingCacheHandler(CacheHandler):
    """Spotipy cache that keeps nothing; tokens only live in the user's session."""

    def get_cached_token(self):
        return None

    def save_token_to_cache(self, token_info):
        pass


class SpotifyAuthenticator:
    """Builds authorization URLs, exchanges codes and refreshes tokens."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._oauth = self._new_oauth(_DiscardingCacheHandler())

    def _new_oauth(self, cache_handler: CacheHandler) -> SpotifyOAuth:
        return SpotifyOAuth(
            client_id=self._settings.spotify_client_id,
            client_secret=self._settings.spotify_client_secret,
            redirect_uri=self._settings.redirect_uri,
            scope=self._settings.scopes,
            cache_handler=cache_handler,
            open_browser=False,
        )

    def authorize_url(self, state: str) -> str:
        return self._oauth.get_authorize_url(state=state)

    def exchange_code(self, code: str) -> dict:
        # Spotipy returns the full token (with refresh token) only via its cache,
        # so each exchange gets a cache of its own.
        cache = MemoryCacheHandler()
        try:
            self._new_oauth(cache).get_access_token(code=code, as_dict=False, check_cache=False)
        except _SPOTIFY_ERRORS as e:
            raise _provider_error("code exchange", e)
        token = cache.get_cached_token()
        if not token or not token.get("access_token"):
            raise ProviderError("Spotify did not return an access token")
        return token

    def is_expired(self, token: dict) -> bool:
        return SpotifyOAuth.is_token_expired(token)

    def refresh(self, token: dict) -> dict:
        refresh_token = token.get("refresh_token")
        if not refresh_token:
            raise ProviderError("No refresh token stored")
        try:
            return self._oauth.refresh_access_token(refresh_token)
        except _SPOTIFY_ERRORS as e:
            raise _provider_error("token refresh", e)

    def client_for(self, token: dict) -> SpotifyPlayer:
        return SpotifyPlayer(Spotify(auth=token["access_token"]))
