"""Authoritative state for a single two-player game room."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .board import BOARD_SIZE, ONGOING, O, X, Board, Outcome, Symbol, other_symbol
from .errors import (
    AlreadyInRoom,
    GameNotInProgress,
    IndexOutOfRange,
    NotAMember,
    RoomFull,
    RoomNotFound,
    WrongTurn,
)

MAX_PLAYERS = 2


class RoomState(str, Enum):
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    ABANDONED = "abandoned"


@dataclass
class Room:
    """One game session between at most two connections.

    Mutating methods assume the caller holds ``lock``; they either apply the
    whole change or raise a ``GameError`` without touching any state.
    """

    room_id: str
    players: List[str] = field(default_factory=list)
    symbols: Dict[str, Symbol] = field(default_factory=dict)
    board: Board = field(default_factory=Board)
    current_turn: Symbol = X
    state: RoomState = RoomState.WAITING
    outcome: Outcome = ONGOING
    # Set once the last player leaves; the registry drops the room afterwards
    closed: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    # ---- membership ----

    def symbol_of(self, conn_id: str) -> Optional[Symbol]:
        return self.symbols.get(conn_id)

    def free_symbols(self) -> List[Symbol]:
        taken = set(self.symbols.values())
        return [s for s in (X, O) if s not in taken]

    def join(self, conn_id: str) -> Symbol:
        """Seat ``conn_id``; the game starts as soon as both seats are taken."""
        if self.closed:
            raise RoomNotFound()
        if conn_id in self.symbols:
            raise AlreadyInRoom()
        if len(self.players) >= MAX_PLAYERS:
            raise RoomFull()

        # X for the first joiner, O for the second. After an abandonment the
        # newcomer takes whichever seat the leaver vacated.
        symbol = self.free_symbols()[0]
        self.players.append(conn_id)
        self.symbols[conn_id] = symbol

        if len(self.players) == MAX_PLAYERS:
            self.board.reset()
            self.current_turn = X
            self.outcome = ONGOING
            self.state = RoomState.IN_PROGRESS
        return symbol

    def leave(self, conn_id: str) -> List[str]:
        """Drop ``conn_id`` and return the connections still seated."""
        if conn_id not in self.symbols:
            raise NotAMember()
        self.players.remove(conn_id)
        del self.symbols[conn_id]

        if not self.players:
            self.closed = True
        elif self.state is not RoomState.WAITING:
            self.state = RoomState.ABANDONED
        return list(self.players)

    # ---- play ----

    def move(self, conn_id: str, index: object) -> Outcome:
        if self.closed:
            raise RoomNotFound()
        symbol = self.symbols.get(conn_id)
        if symbol is None:
            raise NotAMember()
        if self.state is not RoomState.IN_PROGRESS:
            raise GameNotInProgress()
        if symbol != self.current_turn:
            raise WrongTurn()
        if isinstance(index, bool) or not isinstance(index, int):
            raise IndexOutOfRange()
        if not 0 <= index < BOARD_SIZE:
            raise IndexOutOfRange()
        outcome = self.board.place(symbol, index)
        if outcome.terminal:
            self.outcome = outcome
            self.state = RoomState.FINISHED
        else:
            self.current_turn = other_symbol(symbol)
        return outcome

    def restart(self, conn_id: str) -> None:
        """Clear the board and hand the first move back to X.

        Any member may restart at any time, including mid-game. Rooms without
        an opponent keep their state so moves stay rejected.
        """
        if self.closed:
            raise RoomNotFound()
        if conn_id not in self.symbols:
            raise NotAMember()
        self.board.reset()
        self.current_turn = X
        self.outcome = ONGOING
        if self.state in (RoomState.IN_PROGRESS, RoomState.FINISHED):
            self.state = RoomState.IN_PROGRESS

    # ---- payloads ----

    def snapshot(self) -> Dict[str, object]:
        return {"board": self.board.to_wire(), "currentTurn": self.current_turn}

    def game_over_payload(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"result": self.outcome.kind}
        if self.outcome.winner is not None:
            payload["winner"] = self.outcome.winner
        payload["board"] = self.board.to_wire()
        return payload

    def describe(self) -> Dict[str, object]:
        return {
            "roomId": self.room_id,
            "state": self.state.value,
            "players": len(self.players),
            "availableSymbols": self.free_symbols(),
            "available": len(self.players) < MAX_PLAYERS,
            "board": self.board.to_wire(),
            "currentTurn": self.current_turn,
        }
