"""FastAPI application exposing the game rooms over a WebSocket."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from .config import Settings
from .errors import MalformedMessage, RoomNotFound, UnknownEvent
from .gateway import Ack, SessionGateway
from .registry import RoomRegistry

logger = logging.getLogger(__name__)


class ClientMessage(BaseModel):
    """Frame sent by a client: an event name, its payload and an optional ack id."""

    event: str
    data: Dict[str, Any] = Field(default_factory=dict)
    ack: Optional[int] = None


class WebSocketConnection:
    """Adapts a Starlette WebSocket to the gateway's ``Connection`` protocol.

    ``send`` only queues the frame; ``pump`` writes queued frames in order,
    so a slow client never stalls the room handler that produced them.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self.conn_id = uuid.uuid4().hex
        self.websocket = websocket
        self._outbox: asyncio.Queue[Dict[str, object]] = asyncio.Queue()

    @property
    def pending(self) -> int:
        return self._outbox.qsize()

    async def send(self, event: str, payload: object) -> None:
        self._outbox.put_nowait({"event": event, "data": payload})

    async def send_ack(self, ack_id: int, ack: Ack) -> None:
        self._outbox.put_nowait({"event": "ack", "ack": ack_id, "data": ack.to_payload()})

    async def pump(self) -> None:
        try:
            while True:
                frame = await self._outbox.get()
                await self.websocket.send_json(frame)
        except (WebSocketDisconnect, RuntimeError):
            logger.debug("Stopped writing to %s", self.conn_id)


async def receive_frame(websocket: WebSocket) -> Optional[str]:
    """Next text frame, or ``None`` for a binary one."""
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
    return message.get("text")


async def dispatch(
    gateway: SessionGateway, connection: WebSocketConnection, message: ClientMessage
) -> Ack:
    data = message.data
    if message.event == "createRoom":
        return await gateway.create_room(connection)
    if message.event == "joinRoom":
        return await gateway.join_room(connection, data.get("roomId"))
    if message.event == "makeMove":
        return await gateway.make_move(connection, data.get("roomId"), data.get("index"))
    if message.event == "restartGame":
        return await gateway.restart_game(connection, data.get("roomId"))

    error = UnknownEvent(f"Unknown event {message.event!r}.")
    await connection.send("errorMessage", error.to_payload())
    return Ack(ok=False, error=error)


def create_app(
    settings: Optional[Settings] = None, registry: Optional[RoomRegistry] = None
) -> FastAPI:
    settings = settings or Settings.from_env()
    registry = registry or RoomRegistry(code_length=settings.room_code_length)
    gateway = SessionGateway(registry)

    app = FastAPI(title="XODuel", description="Two-player tic-tac-toe rooms over WebSockets")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.gateway = gateway

    @app.get("/healthz")
    async def healthz() -> Dict[str, object]:
        return {"status": "ok", "rooms": len(registry)}

    @app.get("/api/room/{room_id}")
    async def inspect_room(room_id: str) -> Dict[str, object]:
        try:
            room = await registry.get(room_id)
        except RoomNotFound as exc:
            raise HTTPException(status_code=404, detail="Room not found") from exc
        async with room.lock:
            return room.describe()

    @app.websocket("/ws")
    async def play(websocket: WebSocket) -> None:
        await websocket.accept()
        connection = WebSocketConnection(websocket)
        gateway.connect(connection)
        writer = asyncio.create_task(connection.pump())
        logger.info("Connected: %s", connection.conn_id)

        try:
            while True:
                raw = await receive_frame(websocket)
                if raw is None:
                    await connection.send("errorMessage", MalformedMessage().to_payload())
                    continue
                try:
                    message = ClientMessage.model_validate_json(raw)
                except ValidationError:
                    await connection.send("errorMessage", MalformedMessage().to_payload())
                    continue
                ack = await dispatch(gateway, connection, message)
                if message.ack is not None:
                    await connection.send_ack(message.ack, ack)
        except WebSocketDisconnect:
            pass
        finally:
            logger.info("Disconnected: %s", connection.conn_id)
            await gateway.disconnect(connection.conn_id)
            writer.cancel()

    return app


app = create_app()
