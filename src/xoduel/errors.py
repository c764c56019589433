"""Errors raised for rejected client intents.

None of these are fatal: the gateway turns each into an acknowledgement
failure or an ``errorMessage`` for the connection that sent the intent.
"""

from __future__ import annotations

from typing import Dict


class GameError(Exception):
    """Base class for room and move rejections."""

    code = "game_error"
    default_message = "Request rejected."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message}


class RoomNotFound(GameError):
    code = "room_not_found"
    default_message = "Room does not exist."


class RoomFull(GameError):
    code = "room_full"
    default_message = "Room is full."


class NotAMember(GameError):
    code = "not_a_member"
    default_message = "You are not part of this room."


class WrongTurn(GameError):
    code = "wrong_turn"
    default_message = "Not your turn."


class CellOccupied(GameError):
    code = "cell_occupied"
    default_message = "Cell already occupied."


class IndexOutOfRange(GameError):
    code = "index_out_of_range"
    default_message = "Cell index must be between 0 and 8."


class GameNotInProgress(GameError):
    code = "game_not_in_progress"
    default_message = "Game is not in progress."


class AlreadyInRoom(GameError):
    code = "already_in_room"
    default_message = "You are already in a room."


class MalformedMessage(GameError):
    code = "malformed_message"
    default_message = "Message could not be understood."


class UnknownEvent(GameError):
    code = "unknown_event"
    default_message = "Unknown event."
