"""
Unit tests for SessionLockRegistry.
"""

import gc

import pytest

from service_sso.app.handoff import SessionLockRegistry


class TestSessionLockRegistry:
    """Test cases for SessionLockRegistry."""

    @pytest.mark.asyncio
    async def test_same_session_shares_a_lock(self):
        locks = SessionLockRegistry()

        first = locks.lock_for("session-a")

        assert locks.lock_for("session-a") is first
        assert locks.lock_for("session-b") is not first

    @pytest.mark.asyncio
    async def test_unused_locks_are_dropped(self):
        locks = SessionLockRegistry()

        lock = locks.lock_for("session-a")
        async with lock:
            assert len(locks) == 1

        del lock
        gc.collect()
        assert len(locks) == 0
