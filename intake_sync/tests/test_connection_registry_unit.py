import asyncio

import pytest

from intake_sync.realtime.connections import ConnectionClosedError, ConnectionRegistry, QueuedConnection


def test_join_and_leave_channel_bookkeeping(make_conn) -> None:
    registry = ConnectionRegistry()
    conn = make_conn("c1")
    registry.add(conn)

    registry.join_channel(conn, "session:s1")
    assert registry.members("session:s1") == [conn]
    assert conn.channels == {"session:s1"}

    registry.leave_channel(conn, "session:s1")
    assert registry.members("session:s1") == []
    assert conn.channels == set()


def test_leave_channel_never_joined_is_noop(make_conn) -> None:
    registry = ConnectionRegistry()
    conn = make_conn("c1")
    registry.add(conn)
    registry.leave_channel(conn, "session:never")
    assert registry.members("session:never") == []


def test_remove_drops_connection_from_all_channels(make_conn) -> None:
    registry = ConnectionRegistry()
    conn = make_conn("c1")
    other = make_conn("c2")
    registry.add(conn)
    registry.add(other)
    registry.join_channel(conn, "session:s1")
    registry.join_channel(conn, "session:s2")
    registry.join_channel(other, "session:s1")

    registry.remove(conn)

    assert conn not in registry
    assert registry.members("session:s1") == [other]
    assert registry.members("session:s2") == []
    assert conn.channels == set()


def test_broadcast_reaches_every_connection_regardless_of_channel(make_conn) -> None:
    registry = ConnectionRegistry()
    a, b = make_conn("a"), make_conn("b")
    registry.add(a)
    registry.add(b)
    registry.join_channel(a, "session:s1")

    delivered = registry.broadcast("update-dashboard", {"sessionId": "s1", "data": {}})

    assert delivered == 2
    assert a.events() == ["update-dashboard"]
    assert b.events() == ["update-dashboard"]


def test_broadcast_excludes_origin_when_asked(make_conn) -> None:
    registry = ConnectionRegistry()
    a, b = make_conn("a"), make_conn("b")
    registry.add(a)
    registry.add(b)

    registry.broadcast("update-dashboard", {"raw": True}, exclude=a)

    assert a.messages == []
    assert b.of("update-dashboard") == [{"raw": True}]


def test_failed_target_does_not_block_remaining_fanout(make_conn) -> None:
    registry = ConnectionRegistry()
    good_before = make_conn("good1")
    broken = make_conn("broken", fail=True)
    good_after = make_conn("good2")
    for conn in (good_before, broken, good_after):
        registry.add(conn)

    delivered = registry.broadcast("review-updated", {"id": "x", "reviewed": True})

    assert delivered == 2
    assert good_before.events() == ["review-updated"]
    assert good_after.events() == ["review-updated"]
    assert broken not in registry


def test_send_to_closed_connection_is_contained(make_conn) -> None:
    registry = ConnectionRegistry()
    conn = make_conn("c1")
    registry.add(conn)
    conn.close()

    with pytest.raises(ConnectionClosedError):
        conn.send("new-submission", {})
    assert registry.send(conn, "new-submission", {}) is False
    assert len(registry) == 0


def test_queued_connection_pumps_messages_in_order() -> None:
    async def scenario() -> list:
        conn = QueuedConnection("q1")
        sent: list = []

        async def fake_send(message) -> None:
            sent.append(message)
            if len(sent) == 3:
                conn.close()

        conn.send("a", 1)
        conn.send("b", 2)
        conn.send("c", 3)
        await asyncio.wait_for(conn.pump(fake_send), timeout=1.0)
        return sent

    sent = asyncio.run(scenario())
    assert [item["event"] for item in sent] == ["a", "b", "c"]
    assert sent[0] == {"event": "a", "data": 1}


def test_queued_connection_stops_and_closes_on_transport_error() -> None:
    async def scenario() -> QueuedConnection:
        conn = QueuedConnection("q2")

        async def broken_send(message) -> None:
            raise RuntimeError("socket closed")

        conn.send("a", 1)
        await asyncio.wait_for(conn.pump(broken_send), timeout=1.0)
        return conn

    conn = asyncio.run(scenario())
    assert conn.closed is True
    with pytest.raises(ConnectionClosedError):
        conn.send("b", 2)
