"""
Starlette implementations of the hand-off collaborator protocols.
"""

from typing import Any, Callable, Dict, Optional

from fastapi import Request

from shared.logging import get_logger, set_account_context
from ..handoff.models import Account, USER_LOGIN_ATTR
from ..handoff.ports import SsoSession
from .sessions import ServerSession


TENANT_ATTR = "tenantId"
TENANT_HEADER = "X-Tenant-ID"


class StarletteSsoRequest:
    """A FastAPI request viewed as an ``SsoRequest``.

    Request attributes and the resolved session live in ``request.state``
    so that middleware and endpoints handling the same request share them.
    """

    def __init__(self, request: Request, default_tenant: str, application_name: str):
        self._request = request
        self._default_tenant = default_tenant
        self._application_name = application_name
        self._session: ServerSession = request.state.sso_session
        if not hasattr(request.state, "sso_attributes"):
            request.state.sso_attributes = {}
        self._attributes: Dict[str, Any] = request.state.sso_attributes

    @property
    def session(self) -> ServerSession:
        return self._session

    @property
    def tenant_id(self) -> str:
        """Tenant of this request: switched tenant, header, session, then default."""
        tenant_id = self._attributes.get(TENANT_ATTR) or self._request.headers.get(TENANT_HEADER)
        if tenant_id and tenant_id.strip():
            return tenant_id.strip()
        return self._session.get_attribute(TENANT_ATTR) or self._default_tenant

    @property
    def application_name(self) -> str:
        return self._application_name

    def get_parameter(self, name: str) -> Optional[str]:
        return self._request.query_params.get(name)

    def get_header(self, name: str) -> Optional[str]:
        return self._request.headers.get(name)

    def get_attribute(self, name: str) -> Any:
        return self._attributes.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        self._attributes[name] = value


class SessionLoginManager:
    """Login state kept in the cookie session.

    ``on_logout`` runs before the session's login state is dropped; the
    service uses it to release the session's external login key.
    """

    def __init__(self, on_logout: Optional[Callable[[SsoSession], None]] = None):
        self.on_logout = on_logout
        self.logger = get_logger("sso.web.login")

    def session_account(self, request: StarletteSsoRequest) -> Optional[Account]:
        data = request.session.get_attribute(USER_LOGIN_ATTR)
        if not data:
            return None
        return Account.model_validate(data)

    async def login(self, request: StarletteSsoRequest, account: Account) -> None:
        request.session.set_attribute(USER_LOGIN_ATTR, account.model_dump())
        request.session.set_attribute(TENANT_ATTR, account.tenant_id)
        request.set_attribute(USER_LOGIN_ATTR, account)
        set_account_context(account.account_id, account.tenant_id)
        self.logger.info("Account logged in", account_id=account.account_id, tenant_id=account.tenant_id)

    async def logout(self, request: StarletteSsoRequest) -> bool:
        """Drop the session's login state; False when nobody was logged in."""
        current = self.session_account(request)
        if self.on_logout is not None:
            self.on_logout(request.session)
        request.session.remove_attribute(USER_LOGIN_ATTR)
        request.set_attribute(USER_LOGIN_ATTR, None)
        if current is None:
            return False
        self.logger.info("Account logged out", account_id=current.account_id)
        return True

    async def switch_tenant(self, request: StarletteSsoRequest, tenant_id: str) -> None:
        request.set_attribute(TENANT_ATTR, tenant_id)
        request.session.set_attribute(TENANT_ATTR, tenant_id)
