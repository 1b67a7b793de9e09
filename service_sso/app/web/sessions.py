"""
Server-side sessions for the SSO service.
"""

import asyncio
import secrets
import time
from typing import Any, Callable, Dict, Optional

from shared.logging import get_logger


class ServerSession:
    """Session state held in process; the browser only carries its id."""

    def __init__(self, session_id: str, now: float):
        self.session_id = session_id
        self.attributes: Dict[str, Any] = {}
        self.created_at = now
        self.last_accessed = now

    def get_attribute(self, name: str) -> Any:
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = value

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)


class SessionStore:
    """In-process session store with idle expiry.

    Every request of one browser session resolves to the same
    ``ServerSession`` object, so the per-session lock used for login keys
    guards state that all of those requests share. ``on_expire`` runs for
    every session that ends, whether by idle timeout or invalidation.
    """

    def __init__(
        self,
        idle_timeout_seconds: float = 1800,
        on_expire: Optional[Callable[[ServerSession], None]] = None,
        sweep_interval_seconds: float = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.idle_timeout_seconds = idle_timeout_seconds
        self.on_expire = on_expire
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._sessions: Dict[str, ServerSession] = {}
        self.logger = get_logger("sso.sessions")

        self.sweep_task: Optional[asyncio.Task] = None
        self.running = False

    async def start(self):
        """Start the idle session sweeper."""
        self.running = True
        self.sweep_task = asyncio.create_task(self._sweep_loop())
        self.logger.info("Session sweeper started", idle_timeout=self.idle_timeout_seconds)

    async def stop(self):
        """Stop the sweeper and end every remaining session."""
        self.running = False
        if self.sweep_task:
            self.sweep_task.cancel()
            try:
                await self.sweep_task
            except asyncio.CancelledError:
                pass
            self.sweep_task = None

        for session_id in list(self._sessions):
            self.invalidate(session_id)
        self.logger.info("Session sweeper stopped")

    async def _sweep_loop(self):
        while self.running:
            await asyncio.sleep(self.sweep_interval_seconds)
            expired = self.expire_idle()
            if expired:
                self.logger.info("Idle sessions expired", count=expired)

    def new_session(self) -> ServerSession:
        """Create a session that is only kept once it is saved."""
        return ServerSession(secrets.token_urlsafe(32), self._clock())

    def save(self, session: ServerSession) -> None:
        self._sessions[session.session_id] = session

    def get(self, session_id: str) -> Optional[ServerSession]:
        """Return the live session for ``session_id`` and mark it as used."""
        session = self._sessions.get(session_id)
        if session is None:
            return None

        now = self._clock()
        if now - session.last_accessed > self.idle_timeout_seconds:
            self.invalidate(session_id)
            return None

        session.last_accessed = now
        return session

    def contains(self, session_id: str) -> bool:
        return session_id in self._sessions

    def invalidate(self, session_id: str) -> None:
        """End a session; ending an unknown session is a no-op."""
        session = self._sessions.pop(session_id, None)
        if session is not None and self.on_expire is not None:
            self.on_expire(session)

    def expire_idle(self) -> int:
        """End every session idle for longer than the timeout."""
        cutoff = self._clock() - self.idle_timeout_seconds
        idle = [sid for sid, session in self._sessions.items() if session.last_accessed < cutoff]
        for session_id in idle:
            self.invalidate(session_id)
        return len(idle)

    def __len__(self) -> int:
        return len(self._sessions)
