"""
Cross-server bearer tokens.

Issues and verifies compact HS512 JWTs carrying the account id, issuer,
destination application and expiry. Tokens are never stored; the shared
secret is the only state.
"""

from .codec import CrossServerTokenCodec

__all__ = ["CrossServerTokenCodec"]
