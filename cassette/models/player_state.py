"""Saved playback snapshots and live device descriptors."""
from dataclasses import asdict, dataclass
from typing import List


@dataclass
class PlaybackSnapshot:
    """One slot: what was playing and where, at capture time."""
    context_uri: str
    item_uri: str
    title: str
    album_name: str
    artwork_url: str
    artist_names: str  # comma-joined
    position_ms: int
    duration_ms: int

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "PlaybackSnapshot":
        return cls(
            context_uri=data.get("context_uri") or "",
            item_uri=data["item_uri"],
            title=data.get("title") or "",
            album_name=data.get("album_name") or "",
            artwork_url=data.get("artwork_url") or "",
            artist_names=data.get("artist_names") or "",
            position_ms=int(data.get("position_ms") or 0),
            duration_ms=int(data.get("duration_ms") or 0),
        )


@dataclass
class PlayerStates:
    """Ordered slots of one user; the slot number is the list index."""
    user_id: str
    states: List[PlaybackSnapshot]

    def __len__(self) -> int:
        return len(self.states)


@dataclass
class DeviceDescriptor:
    """Playback device as reported live by Spotify. Never persisted."""
    id: str
    name: str
    is_active: bool

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "active": self.is_active}
