"""Spotify-backed helpers for the web app: CSRF token handout and device list."""
from fastapi import APIRouter, Depends, Request, Response

from cassette.api.state import AppState, get_player, get_state
from cassette.core.spotify_client import SpotifyPlayer

router = APIRouter()


@router.head("/csrfToken")
def csrf_token(request: Request, state: AppState = Depends(get_state)):
    """Hand the session's CSRF token to the web app in a response header."""
    return Response(headers={state.settings.csrf_header_name: request.state.csrf_token})


@router.get("/activeDevices")
def active_devices(player: SpotifyPlayer = Depends(get_player)):
    """Return the user's playback devices as Spotify currently reports them."""
    return [d.to_dict() for d in player.devices()]
