"""
Hand-off coordinators.

Both coordinators are steps of a request processing chain. ``check`` is the
chain entry point and always answers "success"; ``hand_off`` returns a
``HandOffResult`` describing what really happened.

- local: same-server hand-off with external login keys
- cross_server: hand-off between servers with signed bearer tokens
"""

from .cross_server import CrossServerSSOCoordinator
from .local import LocalSSOCoordinator
from .models import Account, CHAIN_CONTINUE, FailureKind, HandOffOutcome, HandOffResult
from .properties import SecurityProperties
from .session_locks import SessionLockRegistry

__all__ = [
    "Account",
    "CHAIN_CONTINUE",
    "CrossServerSSOCoordinator",
    "FailureKind",
    "HandOffOutcome",
    "HandOffResult",
    "LocalSSOCoordinator",
    "SecurityProperties",
    "SessionLockRegistry",
]
