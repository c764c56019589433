"""Tests for the session gateway, driven with in-memory connections."""

import asyncio
from typing import List, Tuple

from xoduel.gateway import SessionGateway
from xoduel.registry import RoomRegistry
from xoduel.room import RoomState


class RecordingConnection:
    def __init__(self, conn_id: str) -> None:
        self.conn_id = conn_id
        self.events: List[Tuple[str, object]] = []

    async def send(self, event: str, payload: object) -> None:
        self.events.append((event, payload))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def last(self, name: str) -> object:
        return [payload for event, payload in self.events if event == name][-1]


async def _started_game():
    gateway = SessionGateway(RoomRegistry())
    host, guest = RecordingConnection("host"), RecordingConnection("guest")
    gateway.connect(host)
    gateway.connect(guest)
    created = await gateway.create_room(host)
    room_id = created.data["roomId"]
    joined = await gateway.join_room(guest, room_id)
    assert joined.ok
    return gateway, host, guest, room_id


def test_create_and_join_start_game():
    async def scenario():
        gateway, host, guest, room_id = await _started_game()
        assert host.events[0] == ("roomCreated", {"roomId": room_id, "symbol": "X"})
        assert host.last("yourSymbol") == {"symbol": "X"}
        assert guest.last("yourSymbol") == {"symbol": "O"}
        started = {"board": [None] * 9, "currentTurn": "X"}
        assert host.last("gameStarted") == started
        assert guest.last("gameStarted") == started
        assert gateway.seat_of("guest").symbol == "O"

    asyncio.run(scenario())


def test_join_failures_are_acked_and_reported():
    async def scenario():
        gateway, host, guest, room_id = await _started_game()
        late = RecordingConnection("late")
        gateway.connect(late)

        full = await gateway.join_room(late, room_id)
        assert not full.ok
        assert full.to_payload()["code"] == "room_full"
        missing = await gateway.join_room(late, "ZZZZZZ")
        assert missing.error.code == "room_not_found"
        assert late.names() == ["errorMessage", "errorMessage"]
        assert "errorMessage" not in host.names()

    asyncio.run(scenario())


def test_moves_broadcast_updates_and_reject_quietly():
    async def scenario():
        gateway, host, guest, room_id = await _started_game()
        assert (await gateway.make_move(host, room_id, 4)).ok
        assert guest.last("updateBoard")["currentTurn"] == "O"
        assert guest.last("updateBoard")["board"][4] == "X"

        rejected = await gateway.make_move(guest, room_id, 4)
        assert rejected.error.code == "cell_occupied"
        assert guest.last("errorMessage")["message"] == "Cell already occupied."
        assert "errorMessage" not in host.names()
        room = await gateway.registry.get(room_id)
        assert room.current_turn == "O"

    asyncio.run(scenario())


def test_win_broadcasts_game_over():
    async def scenario():
        gateway, host, guest, room_id = await _started_game()
        for conn, index in [(host, 0), (guest, 3), (host, 1), (guest, 4), (host, 2)]:
            assert (await gateway.make_move(conn, room_id, index)).ok
        over = guest.last("gameOver")
        assert over["result"] == "win"
        assert over["winner"] == "X"
        assert over["board"][:3] == ["X", "X", "X"]

    asyncio.run(scenario())


def test_draw_is_reported_once():
    async def scenario():
        gateway, host, guest, room_id = await _started_game()
        for turn, index in enumerate([0, 1, 2, 4, 3, 5, 7, 6, 8]):
            await gateway.make_move(host if turn % 2 == 0 else guest, room_id, index)
        assert host.names().count("gameOver") == 1
        assert host.last("gameOver")["result"] == "draw"
        after = await gateway.make_move(guest, room_id, 0)
        assert after.error.code == "game_not_in_progress"
        assert host.names().count("gameOver") == 1

    asyncio.run(scenario())


def test_restart_resets_room():
    async def scenario():
        gateway, host, guest, room_id = await _started_game()
        await gateway.make_move(host, room_id, 0)
        assert (await gateway.restart_game(guest, room_id)).ok
        assert host.last("gameRestarted") == {"board": [None] * 9, "currentTurn": "X"}

        ignored = await gateway.restart_game(guest, "ZZZZZZ")
        assert not ignored.ok
        assert "errorMessage" not in guest.names()

    asyncio.run(scenario())


def test_disconnects_notify_then_remove_room():
    async def scenario():
        gateway, host, guest, room_id = await _started_game()
        await gateway.disconnect("guest")
        assert host.last("opponentLeft") == {"message": "Opponent disconnected."}
        room = await gateway.registry.get(room_id)
        assert room.state is RoomState.ABANDONED

        await gateway.disconnect("host")
        assert len(gateway.registry) == 0
        # Unseated or repeated disconnects are harmless
        await gateway.disconnect("host")
        await gateway.disconnect("never-seen")

    asyncio.run(scenario())


def test_connection_holds_one_seat():
    async def scenario():
        gateway, host, guest, room_id = await _started_game()
        again = await gateway.create_room(host)
        assert again.error.code == "already_in_room"
        assert len(gateway.registry) == 1

    asyncio.run(scenario())


def test_concurrent_moves_are_serialised():
    async def scenario():
        gateway, host, guest, room_id = await _started_game()
        results = await asyncio.gather(
            gateway.make_move(host, room_id, 4),
            gateway.make_move(host, room_id, 5),
        )
        assert sorted(ack.ok for ack in results) == [False, True]
        room = await gateway.registry.get(room_id)
        assert room.board.to_wire().count("X") == 1

    asyncio.run(scenario())


def test_concurrent_joins_admit_one():
    async def scenario():
        gateway = SessionGateway(RoomRegistry())
        host = RecordingConnection("host")
        rivals = [RecordingConnection(f"rival-{n}") for n in range(3)]
        for conn in [host, *rivals]:
            gateway.connect(conn)
        room_id = (await gateway.create_room(host)).data["roomId"]
        acks = await asyncio.gather(*(gateway.join_room(c, room_id) for c in rivals))
        assert [ack.ok for ack in acks].count(True) == 1

    asyncio.run(scenario())
