"""Session registry.

Owns every live MCP session. A session binds one client connection (via
the ``mcp-session-id`` header) to its own :class:`SessionTransport`.
Sessions are created on first contact, refreshed on every contact and
evicted by a background sweep once idle longer than the TTL.

All map mutations are synchronous: on a single event loop no two of them
can interleave, so no lock is needed.
"""

import asyncio
import contextlib
import time
import uuid
from dataclasses import dataclass
from typing import Callable

import structlog

from commerce_mcp.transport import SessionTransport

logger = structlog.get_logger()

TransportFactory = Callable[[str], SessionTransport]


@dataclass(eq=False)
class Session:
    """A live logical session and its exclusively owned transport."""

    id: str
    transport: SessionTransport
    last_activity: float
    initialized: bool = False


class SessionRegistry:
    """Single-writer registry of live sessions with TTL eviction."""

    def __init__(
        self,
        transport_factory: TransportFactory,
        ttl: float = 300.0,
        sweep_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the registry.

        Args:
            transport_factory: Builds a fresh transport for a new session id.
            ttl: Seconds of inactivity after which a session is evicted.
            sweep_interval: Seconds between eviction sweeps; must be below ``ttl``.
            clock: Monotonic time source.
        """
        if sweep_interval >= ttl:
            raise ValueError("sweep_interval must be less than ttl")
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self._transport_factory = transport_factory
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._sweeper: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def resolve(self, session_id: str | None = None) -> tuple[Session, bool]:
        """Return the session for ``session_id``, creating one if unknown.

        Unknown or expired ids are not reused: the new session always gets a
        freshly generated id, which the caller hands back to the client.

        Returns:
            ``(session, is_new)``.
        """
        if session_id:
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_activity = self._clock()
                return session, False
            logger.info("Unknown MCP session id, opening a new session", requested=session_id)

        new_id = self._new_id()
        transport = self._transport_factory(new_id)
        transport.on_close(self._forget)
        transport.on_initialized(self._mark_initialized)

        now = self._clock()
        session = Session(id=new_id, transport=transport, last_activity=now)
        self._sessions[new_id] = session
        logger.info("MCP session created", session_id=new_id, active_sessions=len(self._sessions))
        return session, True

    def touch(self, session_id: str) -> bool:
        """Refresh a session's activity timestamp."""
        session = self._sessions.get(session_id)
        if session is None:
            return False
        session.last_activity = self._clock()
        return True

    def close(self, session_id: str) -> bool:
        """Terminate a session at the client's request."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        self._close_transport(session)
        return True

    def evict_expired(self, now: float | None = None, ttl: float | None = None) -> list[str]:
        """Remove and close every session idle for longer than ``ttl``.

        Returns:
            Ids of the evicted sessions.
        """
        now = self._clock() if now is None else now
        ttl = self.ttl if ttl is None else ttl

        expired = [
            session
            for session in self._sessions.values()
            if now - session.last_activity > ttl
        ]
        for session in expired:
            self._sessions.pop(session.id, None)
            logger.info(
                "Cleaning up expired session",
                session_id=session.id,
                idle_seconds=round(now - session.last_activity, 1),
            )
            self._close_transport(session)
        return [session.id for session in expired]

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)

    def _new_id(self) -> str:
        session_id = str(uuid.uuid4())
        while session_id in self._sessions:
            session_id = str(uuid.uuid4())
        return session_id

    def _close_transport(self, session: Session) -> None:
        try:
            session.transport.close()
        except Exception as e:
            logger.warning(
                "Error closing session transport",
                session_id=session.id,
                error=str(e),
            )

    def _forget(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def _mark_initialized(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        if session is not None:
            session.initialized = True

    # =========================================================================
    # Background Sweep
    # =========================================================================

    @property
    def sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        """Start the periodic eviction sweep on the running event loop."""
        if self.sweeping:
            return
        self._sweeper = asyncio.create_task(self._sweep_loop(), name="session-sweeper")
        logger.info(
            "Session sweeper started",
            ttl_seconds=self.ttl,
            interval_seconds=self.sweep_interval,
        )

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None
        logger.info("Session sweeper stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            evicted = self.evict_expired()
            if evicted:
                logger.info(
                    "Session sweep complete",
                    evicted=len(evicted),
                    active_sessions=len(self._sessions),
                )
