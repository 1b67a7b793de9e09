"""
External login key registry.

Maps the opaque keys handed to browsers onto the account that owns the
issuing session. Entries live exactly as long as the session keeps the key
bound; there is no independent expiry.
"""

from .token_registry import TokenRegistry

__all__ = ["TokenRegistry"]
