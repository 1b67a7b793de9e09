"""
Cross-server hand-off through signed bearer tokens.
"""

from typing import Optional

from shared.errors import AccountStoreError, TokenVerificationError
from shared.metrics import MetricsCollector

from ..tokens import CrossServerTokenCodec
from .coordinator import HandOffCoordinator
from .models import (
    Account,
    AUTHORISATION_HEADER,
    EXTERNAL_SERVER_LOGIN_KEY,
    FailureKind,
    HandOffOutcome,
    HandOffResult,
)
from .ports import AccountStore, SessionAuthenticator, SsoRequest
from .properties import SecurityProperties


class CrossServerSSOCoordinator(HandOffCoordinator):
    """Logs a session in as an account asserted by a trusted server.

    The ``externalServerLoginKey`` parameter carries the account id and the
    ``Authorisation`` header a token signed with the shared secret. Both
    servers must know the account under the same id; they may or may not
    share a database.
    """

    path = "cross_server"

    def __init__(
        self,
        codec: CrossServerTokenCodec,
        account_store: AccountStore,
        authenticator: SessionAuthenticator,
        properties: SecurityProperties,
        metrics: Optional[MetricsCollector] = None,
    ):
        super().__init__(authenticator, metrics)
        self.codec = codec
        self.account_store = account_store
        self.properties = properties

    async def hand_off(self, request: SsoRequest) -> HandOffResult:
        account_id = request.get_parameter(EXTERNAL_SERVER_LOGIN_KEY)
        if account_id is None:
            return HandOffResult(HandOffOutcome.NO_ACTION)

        current = self.authenticator.session_account(request)

        try:
            account = await self.account_store.find_account(account_id, request.tenant_id)
            if account is None:
                self.logger.warning("Could not find account for external server login key",
                                    account_id=account_id, tenant_id=request.tenant_id)
                return HandOffResult.failed(FailureKind.ACCOUNT_NOT_FOUND, account_id)

            await self._align_tenant(request, account)

            token = self._bearer_token(request)
            if token is None:
                self.logger.warning("No bearer token on cross-server login, logging out current account",
                                    account_id=account_id)
                await self.authenticator.logout(request)
                return HandOffResult.failed(FailureKind.CREDENTIAL_MISSING, account_id,
                                            outcome=HandOffOutcome.LOGGED_OUT)

            if not self._token_accepted(request, token, account):
                self.logger.warning("Bearer token rejected, logging out current account",
                                    account_id=account_id)
                await self.authenticator.logout(request)
                return HandOffResult.failed(FailureKind.TOKEN_INVALID, account_id,
                                            outcome=HandOffOutcome.LOGGED_OUT)

            return await self._switch_identity(request, account, current, before_login=self._reactivate)

        except AccountStoreError as exc:
            self.logger.error("Cannot get account information", account_id=account_id, error=str(exc))
            return HandOffResult.failed(FailureKind.ACCOUNT_LOOKUP_FAILED, account_id)

    def _token_accepted(self, request: SsoRequest, token: str, account: Account) -> bool:
        issuer = self.properties.external_server_name(request.tenant_id)
        try:
            return self.codec.verify(token, account.account_id, issuer, request.application_name)
        except TokenVerificationError as exc:
            self.logger.warning("Bearer token failed signature check",
                                account_id=account.account_id, error=exc.details.get("error"))
            return False

    async def _reactivate(self, account: Account) -> None:
        """Clear the logged-out flag of an account re-authenticated by assertion."""
        if account.login_disabled or not account.has_logged_out:
            return
        account.has_logged_out = False
        await self.account_store.store_account(account)

    @staticmethod
    def _bearer_token(request: SsoRequest) -> Optional[str]:
        header = request.get_header(AUTHORISATION_HEADER)
        if header is None:
            return None
        if header.startswith("Bearer "):
            header = header[7:]
        return header.strip() or None
