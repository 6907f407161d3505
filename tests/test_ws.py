# test_ws.py -- WebSocket ConnectionManager tests

from __future__ import annotations

import pytest

from foodie_live.ws import ConnectionManager

from conftest import FakeWebSocket


@pytest.mark.asyncio
async def test_connect_disconnect(manager: ConnectionManager) -> None:
    ws = FakeWebSocket()
    conn = await manager.connect(ws)
    assert ws.accepted
    assert conn
    assert len(manager) == 1
    manager.disconnect(conn)
    assert len(manager) == 0


@pytest.mark.asyncio
async def test_connection_ids_are_unique(manager: ConnectionManager) -> None:
    ids = {await manager.connect(FakeWebSocket()) for _ in range(10)}
    assert len(ids) == 10


@pytest.mark.asyncio
async def test_send_group_only_reaches_members(manager: ConnectionManager) -> None:
    ws1, ws2, ws3 = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()
    c1 = await manager.connect(ws1)
    c2 = await manager.connect(ws2)
    await manager.connect(ws3)
    manager.add_to_group(c1, "dish")
    manager.add_to_group(c2, "dish")
    sent = await manager.send_group("dish", {"type": "update"})
    assert sent == 2
    assert ws1.messages == [{"type": "update"}]
    assert ws2.messages == [{"type": "update"}]
    assert ws3.messages == []


@pytest.mark.asyncio
async def test_send_group_drops_dead_members(manager: ConnectionManager) -> None:
    ok = await manager.connect(FakeWebSocket())
    dead = await manager.connect(FakeWebSocket(fail_on_send=True))
    manager.add_to_group(ok, "dish")
    manager.add_to_group(dead, "dish")
    assert await manager.send_group("dish", {"type": "update"}) == 1
    assert manager.group_members("dish") == {ok}


@pytest.mark.asyncio
async def test_send_group_empty_no_op(manager: ConnectionManager) -> None:
    assert await manager.send_group("nobody", {"type": "update"}) == 0


@pytest.mark.asyncio
async def test_disconnect_leaves_all_groups(manager: ConnectionManager) -> None:
    conn = await manager.connect(FakeWebSocket())
    manager.add_to_group(conn, "a")
    manager.add_to_group(conn, "b")
    manager.disconnect(conn)
    assert manager.group_members("a") == set()
    assert manager.group_members("b") == set()


@pytest.mark.asyncio
async def test_disconnect_idempotent(manager: ConnectionManager) -> None:
    conn = await manager.connect(FakeWebSocket())
    manager.disconnect(conn)
    manager.disconnect(conn)  # Should not raise
    assert len(manager) == 0


def test_add_unknown_connection_ignored(manager: ConnectionManager) -> None:
    manager.add_to_group("ghost", "dish")
    assert manager.group_members("dish") == set()


@pytest.mark.asyncio
async def test_send_group_builds_payload_per_recipient(manager: ConnectionManager) -> None:
    ws1, ws2 = FakeWebSocket(), FakeWebSocket()
    for ws in (ws1, ws2):
        manager.add_to_group(await manager.connect(ws), "dish")
    calls: list[int] = []

    def payload() -> dict:
        calls.append(1)
        return {"n": len(calls)}

    assert await manager.send_group("dish", payload) == 2
    assert sorted(ws1.messages + ws2.messages, key=lambda m: m["n"]) == [{"n": 1}, {"n": 2}]


@pytest.mark.asyncio
async def test_send_group_drops_member_after_one_failure(manager: ConnectionManager) -> None:
    flaky = FakeWebSocket(fail_times=1)
    conn = await manager.connect(flaky)
    manager.add_to_group(conn, "dish")
    assert await manager.send_group("dish", {"type": "update"}) == 0
    assert manager.group_members("dish") == set()
