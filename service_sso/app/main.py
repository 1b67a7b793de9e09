"""
SSO service for 254Carbon Access Layer.
"""

from typing import Optional

from fastapi import Request
from pydantic import BaseModel

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import AuthenticationError, ConfigurationError
from shared.secrets_manager import SecretsManager
from .accounts import InMemoryAccountStore, PostgresAccountStore
from .handoff import CrossServerSSOCoordinator, LocalSSOCoordinator, SecurityProperties
from .handoff.models import AUTHORISATION_HEADER, EXTERNAL_SERVER_LOGIN_KEY, USER_LOGIN_ATTR
from .handoff.ports import AccountStore
from .registry import TokenRegistry
from .tokens import CrossServerTokenCodec
from .web import (
    SessionLoginManager,
    SessionStore,
    StarletteSsoRequest,
    install_handoff_middleware,
    install_session_middleware,
)


JWT_SECRET_NAME = "sso_jwt_master_key"
SESSION_SECRET_NAME = "sso_session_secret"


class ExternalTokenRequest(BaseModel):
    """Request model for issuing a cross-server bearer token."""
    target_application: str


class ExternalTokenResponse(BaseModel):
    """Everything a client needs to hand its session to the external server."""
    token: str
    header: str = AUTHORISATION_HEADER
    parameter: str = EXTERNAL_SERVER_LOGIN_KEY
    account_id: str
    issuer: str
    expires_in_ms: int


class SSOService(BaseService):
    """SSO service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        secrets: Optional[SecretsManager] = None,
        account_store: Optional[AccountStore] = None,
    ):
        super().__init__("sso", 8013, config or get_config("sso", 8013))

        secrets = secrets or SecretsManager()
        self.codec = CrossServerTokenCodec(secrets.require_secret(JWT_SECRET_NAME))
        session_secret = secrets.require_secret(SESSION_SECRET_NAME)

        self.properties = (
            SecurityProperties.from_yaml(self.config.sso_properties_file)
            if self.config.sso_properties_file else SecurityProperties()
        )
        self.account_store = account_store or self._create_account_store()
        self.registry: TokenRegistry = TokenRegistry()

        self.authenticator = SessionLoginManager(on_logout=lambda session: self.local_sso.cleanup(session))
        self.local_sso = LocalSSOCoordinator(self.registry, self.authenticator, metrics=self.metrics)
        self.sessions = SessionStore(
            idle_timeout_seconds=self.config.sso_session_idle_timeout_seconds,
            on_expire=self.local_sso.cleanup
        )
        self.cross_server_sso = CrossServerSSOCoordinator(
            self.codec,
            self.account_store,
            self.authenticator,
            self.properties,
            metrics=self.metrics
        )

        install_handoff_middleware(
            self.app,
            [self.local_sso, self.cross_server_sso],
            self.authenticator,
            default_tenant=self.config.sso_default_tenant,
            application_name=self.config.sso_application_name
        )
        # installed last so it wraps the hand-off middleware
        install_session_middleware(
            self.app,
            self.sessions,
            secret_key=session_secret,
            cookie_name=self.config.sso_session_cookie,
            https_only=self.config.tls_enabled
        )

        self._setup_sso_routes()

    def _create_account_store(self) -> AccountStore:
        store_type = self.config.sso_account_store.lower()
        if store_type == "postgres":
            return PostgresAccountStore(self.config.postgres_dsn)
        if store_type == "memory":
            if self.config.sso_accounts_file:
                return InMemoryAccountStore.from_yaml(self.config.sso_accounts_file)
            return InMemoryAccountStore()
        raise ConfigurationError(f"Unknown account store '{self.config.sso_account_store}'")

    def _sso_request(self, request: Request) -> StarletteSsoRequest:
        return StarletteSsoRequest(request, self.config.sso_default_tenant, self.config.sso_application_name)

    def _setup_sso_routes(self):
        """Set up SSO-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "sso",
                "message": "254Carbon Access Layer - SSO Service",
                "version": "1.0.0"
            }

        @self.app.get("/sso/session")
        async def current_session(request: Request):
            """Account and tenant of the caller's session."""
            sso_request = self._sso_request(request)
            account = sso_request.get_attribute(USER_LOGIN_ATTR)
            return {
                "tenant_id": sso_request.tenant_id,
                "account": account.model_dump() if account is not None else None
            }

        @self.app.get("/sso/login-key")
        async def login_key(request: Request):
            """External login key of the caller's session (empty when anonymous)."""
            external_key = await self.local_sso.issue_or_retrieve(self._sso_request(request))
            return {"externalLoginKey": external_key}

        @self.app.post("/sso/logout")
        async def logout(request: Request):
            """Log the session out and release its login key."""
            logged_out = await self.authenticator.logout(self._sso_request(request))
            return {"success": logged_out}

        @self.app.post("/sso/external-token", response_model=ExternalTokenResponse)
        async def external_token(body: ExternalTokenRequest, request: Request):
            """Issue a bearer token asserting the caller's account to the external server."""
            sso_request = self._sso_request(request)
            account = sso_request.get_attribute(USER_LOGIN_ATTR)
            if account is None:
                raise AuthenticationError("An authenticated session is required")

            issuer = self.config.sso_server_identity or self.properties.external_server_name(sso_request.tenant_id)
            ttl_ms = self.properties.token_time_to_live_ms(sso_request.tenant_id)
            token = self.codec.issue(account.account_id, issuer, body.target_application, ttl_ms)

            self.logger.info(
                "External token issued",
                account_id=account.account_id,
                target_application=body.target_application,
                issuer=issuer
            )
            return ExternalTokenResponse(
                token=token,
                account_id=account.account_id,
                issuer=issuer,
                expires_in_ms=ttl_ms
            )

    async def _startup(self):
        await self.sessions.start()
        if isinstance(self.account_store, PostgresAccountStore):
            await self.account_store.start()

    async def _shutdown(self):
        if isinstance(self.account_store, PostgresAccountStore):
            await self.account_store.stop()
        await self.sessions.stop()
        self.registry.clear()

    async def _check_dependencies(self):
        """Check SSO dependencies."""
        return {
            "account_store": await self.account_store.check_health()
        }


def create_app():
    """Create FastAPI application."""
    service = SSOService()
    return service.app


if __name__ == "__main__":
    service = SSOService()
    service.run()
