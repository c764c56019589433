"""Per-connection intent handlers sitting between the transport and the rooms.

The gateway never owns game state. It resolves rooms through the registry,
applies changes under the room's lock and fans the resulting state out to
the connections seated in that room.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from .board import Symbol
from .errors import AlreadyInRoom, GameError, RoomNotFound
from .registry import RoomRegistry
from .room import Room

logger = logging.getLogger(__name__)

OPPONENT_LEFT_MESSAGE = "Opponent disconnected."


class Connection(Protocol):
    """Anything that can push a named event to one client.

    ``send`` is awaited while the room lock is held, so implementations must
    only queue the frame and never wait on the client itself.
    """

    conn_id: str

    async def send(self, event: str, payload: object) -> None:
        ...


@dataclass(frozen=True)
class Seat:
    room_id: str
    symbol: Symbol


@dataclass
class Ack:
    """Outcome of one client intent, returned for every handler."""

    ok: bool
    error: Optional[GameError] = None
    data: Dict[str, object] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"ok": self.ok, **self.data}
        if self.error is not None:
            payload["error"] = self.error.message
            payload["code"] = self.error.code
        return payload


class SessionGateway:
    def __init__(self, registry: RoomRegistry) -> None:
        self.registry = registry
        self._connections: Dict[str, Connection] = {}
        self._seats: Dict[str, Seat] = {}

    # ---- bookkeeping ----

    def connect(self, connection: Connection) -> None:
        self._connections[connection.conn_id] = connection

    def seat_of(self, conn_id: str) -> Optional[Seat]:
        return self._seats.get(conn_id)

    async def _send(self, conn_id: str, event: str, payload: object) -> None:
        connection = self._connections.get(conn_id)
        if connection is None:
            return
        try:
            await connection.send(event, payload)
        except Exception:
            # The transport reports the disconnect separately.
            logger.warning("Dropping %s for unreachable connection %s", event, conn_id)

    async def _broadcast(self, room: Room, event: str, payload: object) -> None:
        for conn_id in list(room.players):
            await self._send(conn_id, event, payload)

    async def _reject(self, conn_id: str, exc: GameError, notify: bool = True) -> Ack:
        logger.debug("Rejected intent from %s: %s", conn_id, exc.code)
        if notify:
            await self._send(conn_id, "errorMessage", exc.to_payload())
        return Ack(ok=False, error=exc)

    # ---- intents ----

    async def create_room(self, connection: Connection) -> Ack:
        conn_id = connection.conn_id
        if conn_id in self._seats:
            return await self._reject(conn_id, AlreadyInRoom())

        room = await self.registry.create()
        async with room.lock:
            symbol = room.join(conn_id)
            self._seats[conn_id] = Seat(room.room_id, symbol)
            logger.info("Connection %s created room %s as %s", conn_id, room.room_id, symbol)
            await self._send(conn_id, "roomCreated", {"roomId": room.room_id, "symbol": symbol})
        return Ack(ok=True, data={"roomId": room.room_id})

    async def join_room(self, connection: Connection, room_id: object) -> Ack:
        conn_id = connection.conn_id
        try:
            if conn_id in self._seats:
                raise AlreadyInRoom()
            room = await self.registry.get(room_id)
            async with room.lock:
                symbol = room.join(conn_id)
                self._seats[conn_id] = Seat(room.room_id, symbol)
                logger.info("Connection %s joined room %s as %s", conn_id, room.room_id, symbol)
                for member in list(room.players):
                    await self._send(member, "yourSymbol", {"symbol": room.symbols[member]})
                if len(room.players) == 2:
                    await self._broadcast(room, "gameStarted", room.snapshot())
        except GameError as exc:
            return await self._reject(conn_id, exc)
        return Ack(ok=True, data={"roomId": room.room_id, "symbol": symbol})

    async def make_move(self, connection: Connection, room_id: object, index: object) -> Ack:
        conn_id = connection.conn_id
        try:
            room = await self.registry.get(room_id)
            async with room.lock:
                outcome = room.move(conn_id, index)
                if outcome.terminal:
                    logger.info("Room %s finished: %s %s", room.room_id, outcome.kind, outcome.winner or "")
                    await self._broadcast(room, "gameOver", room.game_over_payload())
                else:
                    await self._broadcast(room, "updateBoard", room.snapshot())
        except GameError as exc:
            return await self._reject(conn_id, exc)
        return Ack(ok=True)

    async def restart_game(self, connection: Connection, room_id: object) -> Ack:
        conn_id = connection.conn_id
        try:
            room = await self.registry.get(room_id)
            async with room.lock:
                room.restart(conn_id)
                await self._broadcast(room, "gameRestarted", room.snapshot())
        except RoomNotFound as exc:
            # Restarting a room that is gone is silently ignored.
            return await self._reject(conn_id, exc, notify=False)
        except GameError as exc:
            return await self._reject(conn_id, exc)
        return Ack(ok=True)

    async def disconnect(self, conn_id: str) -> None:
        """Release whatever seat ``conn_id`` held; safe for unseated connections."""
        self._connections.pop(conn_id, None)
        seat = self._seats.pop(conn_id, None)
        if seat is None:
            return
        try:
            room = await self.registry.get(seat.room_id)
        except RoomNotFound:
            return

        async with room.lock:
            if room.symbol_of(conn_id) is None:
                return
            remaining = room.leave(conn_id)
            logger.info("Connection %s left room %s", conn_id, room.room_id)
            if remaining:
                for member in remaining:
                    await self._send(member, "opponentLeft", {"message": OPPONENT_LEFT_MESSAGE})
            else:
                await self.registry.remove(room.room_id)
