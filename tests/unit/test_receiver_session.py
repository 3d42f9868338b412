# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
import json

import pytest

from config import ClientConfig
from fake_ws import FakeWebSocket
from session.connection_status import ConnectionStatus
from session.receiver_session import ReceiverSession
from session.shutdown import ShutdownReason
from transport.connection import ConnectError, Connection


def fake_connector(ws: FakeWebSocket, urls: list[str]):
    async def connect_fn(url: str) -> Connection:
        urls.append(url)
        return Connection(ws, url=url)
    return connect_fn


async def _wait_for_event(events, event_type: str, timeout: float = 1.0) -> None:
    async def poll():
        while not any(e["event_type"] == event_type for e in events):
            await asyncio.sleep(0)
    await asyncio.wait_for(poll(), timeout=timeout)


def test_end_to_end_interrupt_shutdown(events):
    """
    connect -> 3 handshake messages -> start -> smeter -73 logged
    -> interrupt -> close frame -> read error -> exit
    """
    urls: list[str] = []
    ws = FakeWebSocket(inbound=(json.dumps({"type": "smeter", "value": -73}),))
    config = ClientConfig(addr="radio.local:8073", squelch_level=-100, frequency_offset=500)

    async def scenario():
        session = ReceiverSession(
            config=config,
            connect_fn=fake_connector(ws, urls),
            install_signal_handlers=False,
        )
        task = asyncio.create_task(session.run())

        await _wait_for_event(events, "SMETER")
        session.interrupts.notify()

        reason = await asyncio.wait_for(task, timeout=1.0)
        return session, reason

    session, reason = asyncio.run(scenario())

    assert reason is ShutdownReason.LOCAL_INTERRUPT
    assert urls == ["ws://radio.local:8073/ws/"]

    # Handshake, then start
    assert ws.sent[0] == "SERVER DE CLIENT client=openwebrx.js type=receiver"
    assert [json.loads(m)["type"] for m in ws.sent[1:]] == [
        "connectionproperties",
        "dspcontrol",
        "dspcontrol",
    ]
    assert json.loads(ws.sent[3]) == {"type": "dspcontrol", "action": "start"}
    assert json.loads(ws.sent[2])["params"]["squelch_level"] == -100

    # Exactly one close frame
    assert ws.close_calls == [(1000, "")]

    smeter = [e for e in events if e["event_type"] == "SMETER"]
    assert [e["value"] for e in smeter] == [-73]

    types = [e["event_type"] for e in events]
    assert types.index("INTERRUPT_RECEIVED") < types.index("READ_ERROR")
    assert types[-1] == "SESSION_SUMMARY"
    assert events[-1]["reason"] == "LOCAL_INTERRUPT"
    assert events[-1]["frames"] == {"SMETER": 1}

    assert session.connection_status is ConnectionStatus.DOWN


def test_remote_close_ends_session(events):
    ws = FakeWebSocket(inbound=("CLIENT DE SERVER server=openwebrx",))
    ws.feed_close(1001, "")

    async def scenario():
        session = ReceiverSession(
            config=ClientConfig(),
            connect_fn=fake_connector(ws, []),
            install_signal_handlers=False,
        )
        return await asyncio.wait_for(session.run(), timeout=1.0)

    reason = asyncio.run(scenario())

    assert reason is ShutdownReason.REMOTE_CLOSED
    assert ws.close_calls == []
    assert len(ws.sent) == 4
    assert "CONNECTION_CLOSED" in [e["event_type"] for e in events]


def test_connect_failure_propagates(events):
    async def failing_connect(url: str) -> Connection:
        raise ConnectError(f"refused: {url}")

    session = ReceiverSession(
        config=ClientConfig(),
        connect_fn=failing_connect,
        install_signal_handlers=False,
    )

    with pytest.raises(ConnectError):
        asyncio.run(session.run())

    assert session.connection_status is ConnectionStatus.DOWN
    types = [e["event_type"] for e in events]
    assert types[0] == "CONNECTING"
    assert "CONNECTED" not in types


def test_connect_and_session_timers_are_emitted(events):
    ws = FakeWebSocket()
    ws.feed_close()

    async def scenario():
        session = ReceiverSession(
            config=ClientConfig(),
            connect_fn=fake_connector(ws, []),
            install_signal_handlers=False,
        )
        await asyncio.wait_for(session.run(), timeout=1.0)
        return session

    session = asyncio.run(scenario())

    timers = [e for e in events if e["event_type"] == "METRIC_TIMER"]
    assert [t["metric"] for t in timers] == ["connect_latency", "session_duration"]
    assert all(t["session_id"] == session.session_id for t in timers)
    assert all(isinstance(t["value_ms"], int) and t["value_ms"] >= 0 for t in timers)


def test_unacknowledged_close_aborts_after_second_interrupt(events):
    ws = FakeWebSocket(ack_close=False)

    async def scenario():
        session = ReceiverSession(
            config=ClientConfig(),
            connect_fn=fake_connector(ws, []),
            install_signal_handlers=False,
        )
        task = asyncio.create_task(session.run())

        session.interrupts.notify()
        await _wait_for_event(events, "INTERRUPT_RECEIVED")
        session.interrupts.notify()

        return await asyncio.wait_for(task, timeout=1.0)

    reason = asyncio.run(scenario())

    assert reason is ShutdownReason.LOCAL_INTERRUPT
    assert ws.close_calls == [(1000, "")]
    assert ws.transport.aborted is True

    types = [e["event_type"] for e in events]
    assert types.index("SECOND_INTERRUPT") < types.index("CONNECTION_ABORTED")
    assert types[-1] == "SESSION_SUMMARY"


def test_failed_close_aborts_the_transport(events):
    ws = FakeWebSocket(close_error=OSError("broken pipe"))

    async def scenario():
        session = ReceiverSession(
            config=ClientConfig(),
            connect_fn=fake_connector(ws, []),
            install_signal_handlers=False,
        )
        session.interrupts.notify()
        return await asyncio.wait_for(session.run(), timeout=1.0)

    reason = asyncio.run(scenario())

    assert reason is ShutdownReason.CLOSE_FAILED
    assert ws.transport.aborted is True
    assert "CONNECTION_ABORTED" in [e["event_type"] for e in events]


def test_completed_close_does_not_abort(events):
    ws = FakeWebSocket()

    async def scenario():
        session = ReceiverSession(
            config=ClientConfig(),
            connect_fn=fake_connector(ws, []),
            install_signal_handlers=False,
        )
        session.interrupts.notify()
        return await asyncio.wait_for(session.run(), timeout=1.0)

    assert asyncio.run(scenario()) is ShutdownReason.LOCAL_INTERRUPT
    assert ws.transport.aborted is False
    assert "CONNECTION_ABORTED" not in [e["event_type"] for e in events]


def test_dispatcher_crash_is_logged_before_summary(events):
    ws = FakeWebSocket(recv_error=RuntimeError("decoder exploded"))

    async def scenario():
        session = ReceiverSession(
            config=ClientConfig(),
            connect_fn=fake_connector(ws, []),
            install_signal_handlers=False,
        )
        return await asyncio.wait_for(session.run(), timeout=1.0)

    reason = asyncio.run(scenario())

    assert reason is ShutdownReason.REMOTE_CLOSED

    failed = [e for e in events if e["event_type"] == "DISPATCHER_FAILED"]
    assert len(failed) == 1
    assert failed[0]["error"] == "RuntimeError: decoder exploded"

    types = [e["event_type"] for e in events]
    assert types.index("DISPATCHER_FAILED") < types.index("SESSION_SUMMARY")
