from __future__ import annotations

import secrets
import string
from threading import RLock

from .models import Room


ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
ROOM_CODE_LENGTH = 6


def normalize_room_code(code: str | None) -> str:
    return str(code or "").strip().upper()


class RoomStore:
    """Process-wide room registry: room code -> Room.

    ``lock`` serialises every mutation of every room it holds, so handlers
    and timer callbacks never interleave on the same room.
    """

    def __init__(self) -> None:
        self.lock = RLock()
        self._rooms: dict[str, Room] = {}

    def get(self, code: str) -> Room | None:
        with self.lock:
            return self._rooms.get(code)

    def set(self, room: Room) -> None:
        with self.lock:
            self._rooms[room.id] = room

    def delete(self, code: str) -> bool:
        with self.lock:
            if code in self._rooms:
                del self._rooms[code]
                return True
            return False

    def __contains__(self, code: str) -> bool:
        with self.lock:
            return code in self._rooms

    def __len__(self) -> int:
        with self.lock:
            return len(self._rooms)

    def list(self) -> list[Room]:
        with self.lock:
            return list(self._rooms.values())

    def clear(self) -> None:
        with self.lock:
            self._rooms.clear()

    def new_code(self) -> str:
        with self.lock:
            code = _random_code()
            while code in self:
                code = _random_code()
            return code


def _random_code() -> str:
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
