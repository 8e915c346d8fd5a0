"""Tests for the session registry."""

import asyncio

import pytest

from commerce_mcp.registry import ToolRegistry
from commerce_mcp.sessions import SessionRegistry
from commerce_mcp.transport import SessionTransport


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingTransport(SessionTransport):
    def close(self) -> None:
        raise RuntimeError("boom")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sessions(clock: FakeClock) -> SessionRegistry:
    """Create a registry with a 300s TTL on a fake clock."""
    tools = ToolRegistry()
    return SessionRegistry(
        transport_factory=lambda sid: SessionTransport(sid, tools, "test", "0.0.0"),
        ttl=300.0,
        sweep_interval=60.0,
        clock=clock,
    )


class TestResolve:
    """Tests for session lookup and creation."""

    def test_new_session_without_id(self, sessions):
        """No id opens a new session with a generated id."""
        session, is_new = sessions.resolve(None)

        assert is_new is True
        assert len(session.id) == 36
        assert session.transport.session_id == session.id
        assert session.id in sessions

    def test_known_id_returns_same_session(self, sessions):
        """A known id always maps to the same session and transport."""
        first, _ = sessions.resolve(None)

        again, is_new = sessions.resolve(first.id)

        assert is_new is False
        assert again is first
        assert again.transport is first.transport
        assert len(sessions) == 1

    def test_unknown_id_gets_fresh_id(self, sessions):
        """Unknown ids are not adopted; a new id is generated."""
        session, is_new = sessions.resolve("stale-session-id")

        assert is_new is True
        assert session.id != "stale-session-id"
        assert "stale-session-id" not in sessions

    def test_distinct_sessions_have_distinct_transports(self, sessions):
        a, _ = sessions.resolve(None)
        b, _ = sessions.resolve(None)

        assert a.id != b.id
        assert a.transport is not b.transport

    def test_resolve_refreshes_activity(self, sessions, clock):
        session, _ = sessions.resolve(None)
        clock.advance(100)

        sessions.resolve(session.id)

        assert session.last_activity == clock.now

    def test_initialize_marks_session(self, sessions):
        """Handling initialize flags the owning session."""
        session, _ = sessions.resolve(None)
        session.transport._initialize({"protocolVersion": "2025-03-26"})

        assert session.initialized is True

    def test_sweep_interval_must_be_below_ttl(self):
        with pytest.raises(ValueError):
            SessionRegistry(transport_factory=lambda sid: None, ttl=60.0, sweep_interval=60.0)


class TestClose:
    """Tests for explicit termination."""

    def test_close_removes_session(self, sessions):
        session, _ = sessions.resolve(None)

        assert sessions.close(session.id) is True
        assert session.id not in sessions
        assert session.transport.closed is True

    def test_close_twice_is_noop(self, sessions):
        session, _ = sessions.resolve(None)
        sessions.close(session.id)

        assert sessions.close(session.id) is False
        assert len(sessions) == 0

    def test_transport_close_unregisters(self, sessions):
        """A transport closing on its own removes its session."""
        session, _ = sessions.resolve(None)

        session.transport.close()

        assert session.id not in sessions

    def test_close_all(self, sessions):
        for _ in range(3):
            sessions.resolve(None)

        sessions.close_all()

        assert len(sessions) == 0


class TestEviction:
    """Tests for TTL eviction."""

    def test_not_evicted_at_ttl(self, sessions, clock):
        """Idle time equal to the TTL is still live."""
        session, _ = sessions.resolve(None)
        clock.advance(300)

        assert sessions.evict_expired() == []
        assert session.id in sessions

    def test_evicted_past_ttl(self, sessions, clock):
        session, _ = sessions.resolve(None)
        clock.advance(300.5)

        assert sessions.evict_expired() == [session.id]
        assert session.id not in sessions
        assert session.transport.closed is True

    def test_activity_postpones_eviction(self, sessions, clock):
        session, _ = sessions.resolve(None)
        clock.advance(200)
        sessions.touch(session.id)
        clock.advance(200)

        assert sessions.evict_expired() == []

    def test_only_expired_sessions_evicted(self, sessions, clock):
        old, _ = sessions.resolve(None)
        clock.advance(250)
        fresh, _ = sessions.resolve(None)
        clock.advance(100)

        assert sessions.evict_expired() == [old.id]
        assert fresh.id in sessions

    def test_close_failure_does_not_stop_sweep(self, clock):
        """A transport failing to close is logged; the others still go."""
        tools = ToolRegistry()
        created = []

        def factory(sid):
            cls = FailingTransport if not created else SessionTransport
            created.append(sid)
            return cls(sid, tools, "test", "0.0.0")

        sessions = SessionRegistry(factory, ttl=10.0, sweep_interval=1.0, clock=clock)
        failing, _ = sessions.resolve(None)
        healthy, _ = sessions.resolve(None)
        clock.advance(11)

        evicted = sessions.evict_expired()

        assert set(evicted) == {failing.id, healthy.id}
        assert len(sessions) == 0
        assert healthy.transport.closed is True

    def test_touch_unknown(self, sessions):
        assert sessions.touch("missing") is False


class TestSweeper:
    """Tests for the background sweep task."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, sessions):
        sessions.start()
        assert sessions.sweeping is True

        await sessions.stop()

        assert sessions.sweeping is False

    @pytest.mark.asyncio
    async def test_sweep_loop_evicts(self):
        """The background task evicts idle sessions on its own."""
        clock = FakeClock()
        tools = ToolRegistry()
        sessions = SessionRegistry(
            lambda sid: SessionTransport(sid, tools, "test", "0.0.0"),
            ttl=0.05,
            sweep_interval=0.01,
            clock=clock,
        )
        session, _ = sessions.resolve(None)
        clock.advance(1)

        sessions.start()
        for _ in range(50):
            if session.id not in sessions:
                break
            await asyncio.sleep(0.01)
        await sessions.stop()

        assert session.id not in sessions

    @pytest.mark.asyncio
    async def test_stop_without_start(self, sessions):
        await sessions.stop()
        assert sessions.sweeping is False
