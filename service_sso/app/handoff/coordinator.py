"""
Common behaviour of the SSO hand-off chain steps.
"""

from typing import Awaitable, Callable, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector

from .models import Account, CHAIN_CONTINUE, FailureKind, HandOffOutcome, HandOffResult
from .ports import SessionAuthenticator, SsoRequest


BeforeLogin = Callable[[Account], Awaitable[None]]


class HandOffCoordinator:
    """Base class for a hand-off step embedded in a request processing chain.

    Subclasses implement ``hand_off`` and return what really happened.
    ``check`` is the chain boundary: it records the result and always lets
    the chain continue.
    """

    path = "base"

    def __init__(self, authenticator: SessionAuthenticator, metrics: Optional[MetricsCollector] = None):
        self.authenticator = authenticator
        self.metrics = metrics
        self.logger = get_logger(f"sso.{self.path}")

    async def hand_off(self, request: SsoRequest) -> HandOffResult:
        raise NotImplementedError

    async def check(self, request: SsoRequest) -> str:
        """Run the hand-off as a chain step; the answer is always "success"."""
        result = await self.hand_off(request)

        if result.failure is FailureKind.ACCOUNT_LOOKUP_FAILED:
            self.logger.error("SSO hand-off failed", outcome=result.outcome.value,
                              failure=result.failure.value, account_id=result.account_id)
        elif result.failure is not None:
            self.logger.warning("SSO hand-off rejected", outcome=result.outcome.value,
                                failure=result.failure.value, account_id=result.account_id)
        elif result.outcome is not HandOffOutcome.NO_ACTION:
            self.logger.info("SSO hand-off completed", outcome=result.outcome.value,
                             account_id=result.account_id)

        if self.metrics is not None:
            self.metrics.record_handoff(self.path, result.label)

        return CHAIN_CONTINUE

    async def _align_tenant(self, request: SsoRequest, account: Account) -> None:
        """Move the request into the account's tenant when they differ."""
        if account.tenant_id != request.tenant_id:
            self.logger.info(
                "Switching tenant for hand-off",
                from_tenant=request.tenant_id,
                to_tenant=account.tenant_id,
                account_id=account.account_id
            )
            await self.authenticator.switch_tenant(request, account.tenant_id)

    async def _switch_identity(
        self,
        request: SsoRequest,
        account: Account,
        current: Optional[Account],
        before_login: Optional[BeforeLogin] = None,
    ) -> HandOffResult:
        """Make ``account`` the session's account.

        Same account already active: nothing to do. Another account active:
        log it out first and log the new one in even if the logout failed.
        """
        outcome = HandOffOutcome.LOGGED_IN
        if current is not None:
            if current.account_id == account.account_id:
                return HandOffResult(HandOffOutcome.ALREADY_ACTIVE, account_id=account.account_id)

            if not await self.authenticator.logout(request):
                self.logger.warning("Logout of previous account failed, continuing",
                                    previous_account_id=current.account_id)
            outcome = HandOffOutcome.SWITCHED

        if before_login is not None:
            await before_login(account)

        await self.authenticator.login(request, account)
        return HandOffResult(outcome, account_id=account.account_id)
