"""
Account stores.

Implementations of the ``AccountStore`` protocol used by cross-server
hand-off: an in-memory store for local runs and tests, and a PostgreSQL
store backed by asyncpg.
"""

from .memory import InMemoryAccountStore
from .postgres import PostgresAccountStore

__all__ = ["InMemoryAccountStore", "PostgresAccountStore"]
