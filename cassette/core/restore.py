"""Resume a stored slot on a playback device."""
import logging
from typing import List, Optional

from cassette.core.player_state_store import PlayerStateStore
from cassette.core.spotify_client import SpotifyPlayer
from cassette.exceptions import (
    NoDeviceError,
    PlaybackCommandFailedError,
    ProviderError,
    SlotOutOfRangeError,
)
from cassette.models.player_state import DeviceDescriptor

logger = logging.getLogger(__name__)

# Playback always runs on a little before it can be paused, so resume a bit earlier.
REWIND_WINDOW_MS = 10_000


def resume_position(position_ms: int) -> int:
    """Stored position minus the rewind window, never below zero."""
    return max(0, position_ms - REWIND_WINDOW_MS)


def pick_device(devices: List[DeviceDescriptor]) -> DeviceDescriptor:
    """First active device, else the first one Spotify lists."""
    if not devices:
        raise NoDeviceError()
    for device in devices:
        if device.is_active:
            return device
    return devices[0]


def resolve_device(player: SpotifyPlayer, device_id: Optional[str]) -> str:
    """Use the given device id as-is, or pick one from the live device list."""
    if device_id:
        return device_id
    return pick_device(player.devices()).id


def restore_player_state(
    player: SpotifyPlayer,
    store: PlayerStateStore,
    user_id: str,
    slot: int,
    device_id: Optional[str] = None,
) -> dict:
    """Pause, then play the stored context/item from the rewound position.

    Slot and device are validated before any playback command is sent.
    """
    player_states = store.load(user_id)
    if slot < 0 or slot >= len(player_states):
        raise SlotOutOfRangeError()
    snapshot = player_states.states[slot]
    position_ms = resume_position(snapshot.position_ms)
    target_device = resolve_device(player, device_id)

    logger.info("Restoring slot %d of user %s on device %s", slot, user_id, target_device)

    # Spotify rejects pausing an idle player; that must not block the resume.
    try:
        player.pause()
    except ProviderError as e:
        logger.warning("Pause before restore failed: %s", e.message)

    try:
        player.play(
            context_uri=snapshot.context_uri,
            item_uri=snapshot.item_uri,
            position_ms=position_ms,
            device_id=target_device,
        )
    except ProviderError as e:
        raise PlaybackCommandFailedError(e.message) from e

    return {"device_id": target_device, "position_ms": position_ms}
