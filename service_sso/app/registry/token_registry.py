"""
In-process registry of external login keys.
"""

from typing import Dict, Generic, Optional, TypeVar

from shared.logging import get_logger

P = TypeVar("P")


class TokenRegistry(Generic[P]):
    """Concurrent mapping from external login key to principal.

    Every operation touches a single key and is implemented with one dict
    primitive, so readers never wait on writers and operations on the same
    key are linearizable. Nothing here orders operations across keys.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, P] = {}
        self.logger = get_logger("sso.registry")

    def put(self, key: str, principal: P) -> None:
        """Insert or overwrite the principal for ``key``."""
        self._entries[key] = principal

    def put_if_absent(self, key: str, principal: P) -> bool:
        """Insert ``principal`` only when ``key`` is free.

        Returns True when this call claimed the key.
        """
        if key in self._entries:
            return False
        return self._entries.setdefault(key, principal) is principal

    def get(self, key: str) -> Optional[P]:
        return self._entries.get(key)

    def contains(self, key: str) -> bool:
        return key in self._entries

    def remove(self, key: str) -> None:
        """Remove ``key``; removing an absent key is a no-op."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry (service shutdown and test isolation)."""
        count = len(self._entries)
        self._entries.clear()
        self.logger.info("Login key registry cleared", entries=count)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
