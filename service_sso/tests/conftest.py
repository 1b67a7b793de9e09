"""
Shared fixtures for SSO service tests.
"""

import base64
from typing import Any, Dict, List, Optional, Tuple

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_sso.app.handoff.models import Account, USER_LOGIN_ATTR
from service_sso.app.tokens import CrossServerTokenCodec


TEST_SECRET = base64.b64encode(b"shared-test-secret-for-hs512-signing-" + b"0123456789abcdef" * 2).decode()
SESSION_SECRET = "session-signing-secret-for-tests"


class FakeSession:
    """Dict-backed session."""

    def __init__(self, session_id: str = "session-1"):
        self.session_id = session_id
        self.attributes: Dict[str, Any] = {}

    def get_attribute(self, name: str) -> Any:
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = value

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)


class FakeRequest:
    """Request with explicit parameters, headers and attributes."""

    def __init__(
        self,
        session: Optional[FakeSession] = None,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        tenant_id: str = "default",
        application_name: str = "catalog",
        account: Optional[Account] = None,
    ):
        self.session = session or FakeSession()
        self.params = params or {}
        self.headers = headers or {}
        self.tenant_id = tenant_id
        self.application_name = application_name
        self.attributes: Dict[str, Any] = {}
        if account is not None:
            self.attributes[USER_LOGIN_ATTR] = account

    def get_parameter(self, name: str) -> Optional[str]:
        return self.params.get(name)

    def get_header(self, name: str) -> Optional[str]:
        return self.headers.get(name)

    def get_attribute(self, name: str) -> Any:
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = value


class FakeAuthenticator:
    """Records login state transitions in call order."""

    def __init__(self, logout_result: bool = True):
        self.logout_result = logout_result
        self.events: List[Tuple[str, Optional[str]]] = []

    def session_account(self, request: FakeRequest) -> Optional[Account]:
        return request.session.get_attribute(USER_LOGIN_ATTR)

    async def login(self, request: FakeRequest, account: Account) -> None:
        self.events.append(("login", account.account_id))
        request.session.set_attribute(USER_LOGIN_ATTR, account)

    async def logout(self, request: FakeRequest) -> bool:
        current = self.session_account(request)
        self.events.append(("logout", current.account_id if current else None))
        request.session.remove_attribute(USER_LOGIN_ATTR)
        return self.logout_result

    async def switch_tenant(self, request: FakeRequest, tenant_id: str) -> None:
        self.events.append(("switch_tenant", tenant_id))
        request.tenant_id = tenant_id


@pytest.fixture
def codec():
    """Codec keyed with the test secret."""
    return CrossServerTokenCodec(TEST_SECRET)


@pytest.fixture
def authenticator():
    return FakeAuthenticator()


@pytest.fixture
def alice():
    return Account(account_id="alice", tenant_id="default")


@pytest.fixture
def bob():
    return Account(account_id="bob", tenant_id="default")
