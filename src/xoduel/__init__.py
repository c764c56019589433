"""XODuel package exposing tic-tac-toe rooms, the session gateway, and the web application."""

from .board import Board, Outcome, evaluate
from .gateway import SessionGateway
from .registry import RoomRegistry
from .room import Room, RoomState
from .web import app, create_app

__all__ = [
    "Board",
    "Outcome",
    "Room",
    "RoomRegistry",
    "RoomState",
    "SessionGateway",
    "app",
    "create_app",
    "evaluate",
]
