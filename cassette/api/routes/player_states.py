"""Saved player states ("slots"): list, store, overwrite, delete, restore."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from cassette.api.state import AppState, get_player, get_state, get_user_id
from cassette.core.capture import APPEND, capture_player_state
from cassette.core.restore import restore_player_state
from cassette.core.spotify_client import SpotifyPlayer
from cassette.exceptions import InvalidSlotError

router = APIRouter()


def get_slot(slot: str) -> int:
    """Path parameter 'slot' as a non-negative integer."""
    if not (slot.isascii() and slot.isdigit()):
        raise InvalidSlotError(f"Please make sure the given slot is valid: {slot!r} is not an integer >= 0")
    return int(slot)


@router.get("")
def list_player_states(
    user_id: str = Depends(get_user_id),
    state: AppState = Depends(get_state),
):
    """Return all stored slots of the logged-in user."""
    player_states = state.player_states.load(user_id)
    return [s.to_dict() for s in player_states.states]


@router.post("", status_code=201)
def store_player_state(
    user_id: str = Depends(get_user_id),
    player: SpotifyPlayer = Depends(get_player),
    state: AppState = Depends(get_state),
):
    """Store the current playback in a new slot and pause."""
    slot, snapshot = capture_player_state(player, state.player_states, user_id, APPEND)
    return {"slot": slot, "state": snapshot.to_dict()}


@router.put("/{slot}")
def overwrite_player_state(
    slot: int = Depends(get_slot),
    user_id: str = Depends(get_user_id),
    player: SpotifyPlayer = Depends(get_player),
    state: AppState = Depends(get_state),
):
    """Replace an existing slot with the current playback and pause."""
    slot, snapshot = capture_player_state(player, state.player_states, user_id, slot)
    return {"slot": slot, "state": snapshot.to_dict()}


@router.delete("/{slot}")
def delete_player_state(
    slot: int = Depends(get_slot),
    user_id: str = Depends(get_user_id),
    state: AppState = Depends(get_state),
):
    """Remove a slot; later slots move down by one. Returns the remaining slots."""
    remaining = state.player_states.remove_slot(user_id, slot)
    return [s.to_dict() for s in remaining]


@router.post("/{slot}/restore")
def restore_player_state_route(
    slot: int = Depends(get_slot),
    device_id: Optional[str] = Query(None, alias="deviceID"),
    user_id: str = Depends(get_user_id),
    player: SpotifyPlayer = Depends(get_player),
    state: AppState = Depends(get_state),
):
    """Resume a slot, on deviceID if given, else on the active (or first) device."""
    result = restore_player_state(player, state.player_states, user_id, slot, device_id)
    return {"ok": True, **result}
