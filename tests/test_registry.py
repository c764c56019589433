"""Tests for the in-memory room registry."""

import asyncio

import pytest

from xoduel.errors import RoomNotFound
from xoduel.registry import RoomRegistry


def test_create_and_lookup():
    async def scenario():
        registry = RoomRegistry()
        room = await registry.create()
        assert len(room.room_id) == 6
        assert room.players == []
        assert await registry.get(room.room_id) is room
        # Lookups tolerate surrounding whitespace and lower case
        assert await registry.get(f" {room.room_id.lower()} ") is room
        return registry, room

    registry, room = asyncio.run(scenario())
    assert len(registry) == 1


def test_ids_are_unique():
    async def scenario():
        registry = RoomRegistry()
        rooms = await asyncio.gather(*(registry.create() for _ in range(50)))
        return {room.room_id for room in rooms}

    assert len(asyncio.run(scenario())) == 50


def test_missing_and_malformed_ids():
    async def scenario():
        registry = RoomRegistry()
        for bad in ("NOPE00", "", None, 42):
            with pytest.raises(RoomNotFound):
                await registry.get(bad)

    asyncio.run(scenario())


def test_remove_is_idempotent():
    async def scenario():
        registry = RoomRegistry()
        room = await registry.create()
        await registry.remove(room.room_id)
        await registry.remove(room.room_id)
        assert len(registry) == 0

    asyncio.run(scenario())


def test_allocation_gives_up_after_collisions(monkeypatch):
    registry = RoomRegistry(max_attempts=3)
    monkeypatch.setattr(registry, "_generate_room_code", lambda: "SAME00")

    async def scenario():
        await registry.create()
        with pytest.raises(RuntimeError):
            await registry.create()

    asyncio.run(scenario())
