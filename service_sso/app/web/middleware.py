"""
Session and hand-off middleware for FastAPI applications.
"""

from typing import Optional, Sequence

from fastapi import FastAPI, Request
from itsdangerous import BadSignature, Signer

from shared.logging import get_logger, set_account_context
from ..handoff.coordinator import HandOffCoordinator
from ..handoff.models import USER_LOGIN_ATTR
from .adapters import SessionLoginManager, StarletteSsoRequest
from .sessions import ServerSession, SessionStore


SESSION_COOKIE_SALT = "access.sso.session"

logger = get_logger("sso.web.sessions")


def install_handoff_middleware(
    app: FastAPI,
    steps: Sequence[HandOffCoordinator],
    authenticator: SessionLoginManager,
    default_tenant: str,
    application_name: str,
) -> None:
    """Run every hand-off step before the endpoint, then attach the session's account.

    Must be installed inside the session middleware.
    """

    @app.middleware("http")
    async def sso_handoff(request: Request, call_next):
        sso_request = StarletteSsoRequest(request, default_tenant, application_name)

        for step in steps:
            await step.check(sso_request)

        account = authenticator.session_account(sso_request)
        sso_request.set_attribute(USER_LOGIN_ATTR, account)
        if account is not None:
            set_account_context(account.account_id, account.tenant_id)

        return await call_next(request)


def install_session_middleware(
    app: FastAPI,
    store: SessionStore,
    secret_key: str,
    cookie_name: str,
    https_only: bool = False,
) -> None:
    """Resolve the request's ``ServerSession`` from a signed session id cookie.

    The cookie carries nothing but the id. A session created by a request is
    kept, and its cookie sent, only once the request stored something in it.
    Install after the hand-off middleware so that it wraps it.
    """
    signer = Signer(secret_key, salt=SESSION_COOKIE_SALT)

    def resolve(cookie: Optional[str]) -> Optional[ServerSession]:
        if not cookie:
            return None
        try:
            session_id = signer.unsign(cookie).decode()
        except BadSignature:
            logger.warning("Rejected session cookie with bad signature")
            return None
        return store.get(session_id)

    @app.middleware("http")
    async def sso_session(request: Request, call_next):
        session = resolve(request.cookies.get(cookie_name))
        is_new = session is None
        if is_new:
            session = store.new_session()
        request.state.sso_session = session

        response = await call_next(request)

        if is_new and session.attributes:
            store.save(session)
            response.set_cookie(
                cookie_name,
                signer.sign(session.session_id).decode(),
                httponly=True,
                samesite="lax",
                secure=https_only,
            )
        return response
