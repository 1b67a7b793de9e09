"""
Tenant-scoped security properties used by cross-server hand-off.
"""

from typing import Any, Dict, Optional

import yaml

from shared.errors import ConfigurationError
from shared.logging import get_logger


SECURITY = "security"
DEFAULT_SCOPE = "default"
DEFAULT_TOKEN_DURATION_SECONDS = 30


class SecurityProperties:
    """Property lookup with per-tenant overrides.

    Overrides are nested as ``{tenant: {category: {key: value}}}``; the
    ``default`` tenant applies to every tenant that does not set a key itself.
    Built-in defaults are passed by the caller, as with any property lookup.
    """

    def __init__(self, overrides: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None):
        self._overrides = overrides or {}
        self.logger = get_logger("sso.properties")

    @classmethod
    def from_yaml(cls, path: str) -> "SecurityProperties":
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(
                f"Cannot load security properties from {path}",
                details={"error": str(exc)}
            ) from exc

        if not isinstance(data, dict):
            raise ConfigurationError(f"Security properties file {path} must contain a mapping")
        return cls(data)

    def get_property(self, category: str, key: str, default: str, tenant_id: Optional[str] = None) -> str:
        for scope in (tenant_id, DEFAULT_SCOPE):
            if scope is None:
                continue
            value = self._overrides.get(scope, {}).get(category, {}).get(key)
            if value is not None:
                return str(value)
        return default

    def external_server_name(self, tenant_id: Optional[str]) -> str:
        """Canonical identity of the trusted external server.

        Empty when there is no tenant context or external servers are disabled.
        """
        if tenant_id is None:
            return ""
        if self.get_property(SECURITY, "use-external-server", "Y", tenant_id) != "Y":
            return ""

        server_name = self.get_property(SECURITY, "external-server-name", "localhost:8443", tenant_id)
        server_query = self.get_property(SECURITY, "external-server-query", "/catalog/control/", tenant_id)
        return f"https://{server_name}{server_query}"

    def token_time_to_live_ms(self, tenant_id: Optional[str]) -> int:
        """Lifetime of issued bearer tokens, in milliseconds."""
        if tenant_id is None:
            return DEFAULT_TOKEN_DURATION_SECONDS * 1000

        raw = self.get_property(SECURITY, "external-server-token-duration",
                                str(DEFAULT_TOKEN_DURATION_SECONDS), tenant_id)
        try:
            return int(raw) * 1000
        except ValueError as exc:
            raise ConfigurationError(
                "external-server-token-duration must be a whole number of seconds",
                details={"value": raw, "tenant_id": tenant_id}
            ) from exc
