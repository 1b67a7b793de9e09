"""
Collaborator interfaces the hand-off coordinators depend on.

The web layer, the account store and the login primitives live outside the
hand-off core. These protocols describe the slice of them the coordinators
actually use; ``app.web`` and ``app.accounts`` provide implementations.
"""

from typing import Any, Optional, Protocol

from .models import Account


class SsoSession(Protocol):
    """Session-scoped state of one browser session."""

    @property
    def session_id(self) -> str: ...

    def get_attribute(self, name: str) -> Any: ...

    def set_attribute(self, name: str, value: Any) -> None: ...

    def remove_attribute(self, name: str) -> None: ...


class SsoRequest(Protocol):
    """One inbound request as seen by a hand-off step."""

    @property
    def session(self) -> SsoSession: ...

    @property
    def tenant_id(self) -> str: ...

    @property
    def application_name(self) -> str: ...

    def get_parameter(self, name: str) -> Optional[str]: ...

    def get_header(self, name: str) -> Optional[str]: ...

    def get_attribute(self, name: str) -> Any: ...

    def set_attribute(self, name: str, value: Any) -> None: ...


class SessionAuthenticator(Protocol):
    """Login state transitions owned by the surrounding platform."""

    def session_account(self, request: SsoRequest) -> Optional[Account]: ...

    async def login(self, request: SsoRequest, account: Account) -> None: ...

    async def logout(self, request: SsoRequest) -> bool: ...

    async def switch_tenant(self, request: SsoRequest, tenant_id: str) -> None: ...


class AccountStore(Protocol):
    """Persistent account lookup, scoped by tenant."""

    async def find_account(self, account_id: str, tenant_id: str) -> Optional[Account]: ...

    async def store_account(self, account: Account) -> None: ...
