"""Data models for player states and devices."""
from cassette.models.player_state import DeviceDescriptor, PlaybackSnapshot, PlayerStates

__all__ = [
    "DeviceDescriptor",
    "PlaybackSnapshot",
    "PlayerStates",
]
