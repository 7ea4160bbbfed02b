"""Turn the live player state into a stored slot."""
import logging

from cassette.core.player_state_store import PlayerStateStore
from cassette.core.spotify_client import SpotifyPlayer
from cassette.exceptions import (
    NoArtworkError,
    NoPlaybackStateError,
    ProviderError,
    SlotOutOfRangeError,
)
from cassette.models.player_state import PlaybackSnapshot

logger = logging.getLogger(__name__)

APPEND = -1


def snapshot_from_currently_playing(pb: dict) -> PlaybackSnapshot:
    """Map Spotify's currently_playing() response to a snapshot."""
    item = (pb or {}).get("item")
    if not item or not item.get("uri"):
        raise NoPlaybackStateError()
    album = item.get("album") or {}
    images = album.get("images") or []
    if not images or not images[0].get("url"):
        raise NoArtworkError()
    artists = item.get("artists") or []
    context = pb.get("context") or {}
    return PlaybackSnapshot(
        context_uri=context.get("uri") or "",
        item_uri=item["uri"],
        title=item.get("name", ""),
        album_name=album.get("name", ""),
        artwork_url=images[0]["url"],
        artist_names=", ".join(a.get("name", "") for a in artists),
        position_ms=int(pb.get("progress_ms") or 0),
        duration_ms=int(item.get("duration_ms") or 0),
    )


def capture_player_state(
    player: SpotifyPlayer,
    store: PlayerStateStore,
    user_id: str,
    slot: int = APPEND,
) -> tuple[int, PlaybackSnapshot]:
    """Store what is currently playing in slot (or a new slot when slot < 0), then pause.

    Returns the slot number written and the snapshot.
    """
    player_states = store.load(user_id)
    if slot >= len(player_states):
        raise SlotOutOfRangeError()

    try:
        pb = player.currently_playing()
    except ProviderError as e:
        raise NoPlaybackStateError(e.message) from e
    if not pb:
        raise NoPlaybackStateError()
    snapshot = snapshot_from_currently_playing(pb)

    if slot < 0:
        player_states.states.append(snapshot)
        slot = len(player_states) - 1
    else:
        player_states.states[slot] = snapshot

    store.save(player_states)
    logger.info("Persisted player state of user %s in slot %d", user_id, slot)

    try:
        player.pause()
    except ProviderError as e:
        logger.warning("Could not pause playback after storing slot %d: %s", slot, e.message)

    return slot, snapshot
