"""
Signed bearer tokens for cross-server single sign-on.
"""

import base64
import binascii
import time
from typing import Any, Callable, Dict

import jwt

from shared.errors import ConfigurationError, TokenVerificationError
from shared.logging import get_logger


class CrossServerTokenCodec:
    """Issue and verify HS512 JWTs shared between trusting servers.

    The secret is the base64 text of the shared key. It is injected at
    startup and is identical on every server that trusts the others.
    """

    ALGORITHM = "HS512"

    def __init__(self, secret: str, clock: Callable[[], float] = time.time):
        if not secret:
            raise ConfigurationError("Cross-server signing secret is empty")
        try:
            self._signing_key = base64.b64decode(secret, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ConfigurationError(
                "Cross-server signing secret is not valid base64",
                details={"error": str(exc)}
            ) from exc
        self._clock = clock
        self.logger = get_logger("sso.tokens")

    def issue(self, id: str, issuer: str, subject: str, ttl_millis: int) -> str:
        """Build, sign and serialize a bearer token.

        Args:
            id: account identifier the token vouches for
            issuer: identity of the issuing server
            subject: destination application
            ttl_millis: lifetime in milliseconds. A negative value omits the
                expiry claim. Such tokens are rejected by ``verify`` and should
                only be produced for diagnostics.

        Returns:
            Compact, URL-safe JWS string
        """
        now = self._clock()
        claims: Dict[str, Any] = {
            "jti": id,
            "iat": int(now),
            "sub": subject,
            "iss": issuer,
        }
        if ttl_millis >= 0:
            # NumericDate may be fractional (RFC 7519 section 2); whole seconds
            # would stretch or cut a millisecond TTL by up to a second
            claims["exp"] = round(now + ttl_millis / 1000.0, 3)
        else:
            self.logger.warning("Issuing bearer token without expiry", id=id, issuer=issuer)

        return jwt.encode(claims, self._signing_key, algorithm=self.ALGORITHM)

    def decode(self, token: str) -> Dict[str, Any]:
        """Verify the signature of ``token`` and return its claims.

        Raises:
            TokenVerificationError: malformed token, wrong algorithm or a
                signature that does not match the shared secret
        """
        try:
            return jwt.decode(
                token,
                self._signing_key,
                algorithms=[self.ALGORITHM],
                options={"verify_exp": False, "verify_iat": False},
            )
        except jwt.PyJWTError as exc:
            raise TokenVerificationError(
                "Bearer token is not a valid signed token",
                details={"error": str(exc)}
            ) from exc

    def verify(self, token: str, expected_id: str, expected_issuer: str, expected_subject: str) -> bool:
        """Check a bearer token against the identity the caller expects.

        The signature is checked before any claim is read; a bad signature
        raises ``TokenVerificationError`` instead of returning False.

        Returns:
            True only if id, issuer and subject match exactly and the token
            carries an expiry strictly in the future
        """
        claims = self.decode(token)

        expires_at = claims.get("exp")
        if not isinstance(expires_at, (int, float)):
            self.logger.warning("Rejecting bearer token without expiry", id=claims.get("jti"))
            return False

        return (
            claims.get("jti") == expected_id
            and claims.get("iss") == expected_issuer
            and claims.get("sub") == expected_subject
            and expires_at > self._clock()
        )
