"""
Same-server hand-off through external login keys.
"""

import uuid
from typing import Callable, Optional

from shared.metrics import MetricsCollector

from ..registry import TokenRegistry
from .coordinator import HandOffCoordinator
from .models import (
    Account,
    EXTERNAL_LOGIN_KEY_ATTR,
    FailureKind,
    HandOffOutcome,
    HandOffResult,
    REQUESTED_WITH_HEADER,
    USER_LOGIN_ATTR,
)
from .ports import SessionAuthenticator, SsoRequest, SsoSession
from .session_locks import SessionLockRegistry


class LocalSSOCoordinator(HandOffCoordinator):
    """Issues login keys for sessions and logs sessions in from them.

    A session holds at most one key. Navigating to a new page rotates it;
    background XMLHttpRequests of the same page reuse the current one.
    """

    path = "local"
    KEY_PREFIX = "EL"

    def __init__(
        self,
        registry: TokenRegistry[Account],
        authenticator: SessionAuthenticator,
        session_locks: Optional[SessionLockRegistry] = None,
        metrics: Optional[MetricsCollector] = None,
        key_factory: Callable[[], uuid.UUID] = uuid.uuid4,
    ):
        super().__init__(authenticator, metrics)
        self.registry = registry
        self.session_locks = session_locks or SessionLockRegistry()
        self._key_factory = key_factory

    async def issue_or_retrieve(self, request: SsoRequest) -> str:
        """Get (creating it if needed) the login key of the request's session.

        Returns an empty string when the request carries no logged-in account.
        """
        external_key = request.get_attribute(EXTERNAL_LOGIN_KEY_ATTR)
        if external_key:
            return external_key

        session = request.session
        async with self.session_locks.lock_for(session.session_id):
            session_key = session.get_attribute(EXTERNAL_LOGIN_KEY_ATTR)
            if session_key:
                if self.is_async_request(request):
                    return session_key
                self.registry.remove(session_key)
                session.remove_attribute(EXTERNAL_LOGIN_KEY_ATTR)

            # checked after the old key is dropped so it is cleared for anonymous requests too
            account = request.get_attribute(USER_LOGIN_ATTR)
            if account is None:
                return ""

            external_key = self._claim_unique_key(account)
            request.set_attribute(EXTERNAL_LOGIN_KEY_ATTR, external_key)
            session.set_attribute(EXTERNAL_LOGIN_KEY_ATTR, external_key)

        if self.metrics is not None:
            self.metrics.record_login_key_issued(len(self.registry))
        return external_key

    def _claim_unique_key(self, account: Account) -> str:
        while True:
            candidate = f"{self.KEY_PREFIX}{self._key_factory()}"
            if self.registry.put_if_absent(candidate, account):
                return candidate

    def consume(self, external_key: str) -> Optional[Account]:
        """Look up the account behind a login key without changing the registry."""
        return self.registry.get(external_key)

    def cleanup(self, session: SsoSession) -> None:
        """Forget the login key of a session that is ending."""
        session_key = session.get_attribute(EXTERNAL_LOGIN_KEY_ATTR)
        if session_key:
            self.registry.remove(session_key)
            session.remove_attribute(EXTERNAL_LOGIN_KEY_ATTR)

    async def hand_off(self, request: SsoRequest) -> HandOffResult:
        external_key = request.get_parameter(EXTERNAL_LOGIN_KEY_ATTR)
        if external_key is None:
            return HandOffResult(HandOffOutcome.NO_ACTION)

        account = self.consume(external_key)
        if account is None:
            self.logger.warning("Could not find account for external login key",
                                external_login_key=external_key)
            return HandOffResult.failed(FailureKind.REGISTRY_MISS)

        # same account id may exist in several tenants
        await self._align_tenant(request, account)

        current = self.authenticator.session_account(request)
        return await self._switch_identity(request, account, current)

    @staticmethod
    def is_async_request(request: SsoRequest) -> bool:
        return request.get_header(REQUESTED_WITH_HEADER) == "XMLHttpRequest"
