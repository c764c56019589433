"""In-memory registry of live game rooms."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Dict

from .errors import RoomNotFound
from .room import Room

logger = logging.getLogger(__name__)

ROOM_CODE_LENGTH = 6


def normalize_room_id(room_id: object) -> str:
    if not isinstance(room_id, str) or not room_id.strip():
        raise RoomNotFound()
    return room_id.strip().upper()


class RoomRegistry:
    """Owns every live ``Room``, keyed by its short upper-case code.

    The registry lock only guards the mapping itself; per-room mutations are
    serialised by each room's own lock so unrelated rooms never contend.
    """

    def __init__(self, code_length: int = ROOM_CODE_LENGTH, max_attempts: int = 10) -> None:
        self.code_length = code_length
        self.max_attempts = max_attempts
        self._rooms: Dict[str, Room] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._rooms)

    def _generate_room_code(self) -> str:
        return uuid.uuid4().hex[: self.code_length].upper()

    async def create(self) -> Room:
        """Allocate an empty room under a code unused by any live room."""
        async with self._lock:
            for _ in range(self.max_attempts):
                room_id = self._generate_room_code()
                if room_id not in self._rooms:
                    room = Room(room_id=room_id)
                    self._rooms[room_id] = room
                    logger.info("Room %s created", room_id)
                    return room
        raise RuntimeError("Unable to allocate room")

    async def get(self, room_id: object) -> Room:
        normalized = normalize_room_id(room_id)
        async with self._lock:
            room = self._rooms.get(normalized)
        if room is None:
            raise RoomNotFound()
        return room

    async def remove(self, room_id: str) -> None:
        normalized = normalize_room_id(room_id)
        async with self._lock:
            if self._rooms.pop(normalized, None) is not None:
                logger.info("Room %s removed", normalized)
