"""Persist and load per-user player states (one JSON document per user)."""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List
from urllib.parse import quote

from cassette.exceptions import NotFoundError, SlotOutOfRangeError, StorageError
from cassette.models.player_state import PlaybackSnapshot, PlayerStates

logger = logging.getLogger(__name__)


class PlayerStateStore:
    """Durable record of each user's slots.

    Saves always replace the whole document, so two concurrent writers for
    the same user end up with whichever wrote last.
    """

    def __init__(self, directory: Path) -> None:
        self._dir = Path(directory)

    def _path(self, user_id: str) -> Path:
        return self._dir / f"{quote(user_id, safe='')}.json"

    def _read(self, path: Path) -> dict:
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Could not read player states from %s: %s", path, e)
            raise StorageError() from e
        if not isinstance(data, dict):
            raise StorageError()
        return data

    def load(self, user_id: str) -> PlayerStates:
        """Return the user's slots; an empty collection if nothing is stored yet."""
        p = self._path(user_id)
        if not p.exists():
            return PlayerStates(user_id=user_id, states=[])
        data = self._read(p)
        try:
            states = [PlaybackSnapshot.from_dict(item) for item in data.get("states") or []]
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Malformed player state in %s: %s", p, e)
            raise StorageError() from e
        return PlayerStates(user_id=user_id, states=states)

    def save(self, player_states: PlayerStates) -> None:
        """Replace the user's whole document."""
        p = self._path(player_states.user_id)
        data = {
            "user_id": player_states.user_id,
            "states": [s.to_dict() for s in player_states.states],
        }
        tmp_name = None
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            # One temp file per write; concurrent writers never share it
            with tempfile.NamedTemporaryFile(
                "w", dir=self._dir, prefix=p.stem + ".", suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(json.dumps(data, indent=2))
            os.replace(tmp_name, p)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            logger.error("Could not write player states to %s: %s", p, e)
            raise StorageError() from e

    def delete(self, user_id: str) -> None:
        """Remove the user's whole record. Raises NotFoundError if there is none."""
        p = self._path(user_id)
        try:
            p.unlink()
        except FileNotFoundError:
            raise NotFoundError()
        except OSError as e:
            raise StorageError() from e

    def fetch_raw_document(self, user_id: str) -> bytes:
        """Return the stored document as-is, for export."""
        p = self._path(user_id)
        try:
            return p.read_bytes()
        except FileNotFoundError:
            raise NotFoundError()
        except OSError as e:
            raise StorageError() from e

    def remove_slot(self, user_id: str, slot: int) -> List[PlaybackSnapshot]:
        """Delete one slot; every later slot moves down by one. Returns the remaining slots."""
        player_states = self.load(user_id)
        if slot < 0 or slot >= len(player_states):
            raise SlotOutOfRangeError()
        player_states.states.pop(slot)
        self.save(player_states)
        return player_states.states
