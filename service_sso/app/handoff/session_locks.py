"""
Per-session mutual exclusion for login key issuance.
"""

import asyncio
import weakref


class SessionLockRegistry:
    """Hands out one ``asyncio.Lock`` per session id.

    Locks are held weakly: once no request is waiting on or holding a
    session's lock it is dropped, so the registry does not grow with the
    number of sessions ever seen.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
