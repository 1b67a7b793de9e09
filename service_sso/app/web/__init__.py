"""
Web adapters.

Bridges FastAPI requests and server-side sessions to the protocols the
hand-off coordinators expect, and installs the session and hand-off
middleware.
"""

from .adapters import SessionLoginManager, StarletteSsoRequest
from .middleware import install_handoff_middleware, install_session_middleware
from .sessions import ServerSession, SessionStore

__all__ = [
    "ServerSession",
    "SessionLoginManager",
    "SessionStore",
    "StarletteSsoRequest",
    "install_handoff_middleware",
    "install_session_middleware",
]
