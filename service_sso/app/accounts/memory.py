"""
In-memory account store.
"""

from typing import Dict, Iterable, Optional, Tuple

import yaml

from shared.errors import ConfigurationError
from shared.logging import get_logger
from ..handoff.models import Account


class InMemoryAccountStore:
    """Account store kept in a dict keyed by (tenant, account id).

    Lookups return copies, so changes only become visible through
    ``store_account``, as with a database-backed store.
    """

    def __init__(self, accounts: Iterable[Account] = ()):
        self._accounts: Dict[Tuple[str, str], Account] = {}
        self.logger = get_logger("sso.accounts.memory")
        for account in accounts:
            self.add(account)

    @classmethod
    def from_yaml(cls, path: str) -> "InMemoryAccountStore":
        """Load accounts from a YAML list of account mappings."""
        try:
            with open(path, "r") as f:
                entries = yaml.safe_load(f) or []
            accounts = [Account.model_validate(entry) for entry in entries]
        except (OSError, yaml.YAMLError, ValueError) as exc:
            raise ConfigurationError(
                f"Cannot load accounts from {path}",
                details={"error": str(exc)}
            ) from exc
        return cls(accounts)

    def add(self, account: Account) -> None:
        self._accounts[(account.tenant_id, account.account_id)] = account.model_copy()

    async def find_account(self, account_id: str, tenant_id: str) -> Optional[Account]:
        account = self._accounts.get((tenant_id, account_id))
        return account.model_copy() if account is not None else None

    async def store_account(self, account: Account) -> None:
        self._accounts[(account.tenant_id, account.account_id)] = account.model_copy()
        self.logger.debug("Account stored", account_id=account.account_id, tenant_id=account.tenant_id)

    async def check_health(self) -> str:
        return "ok"

    def __len__(self) -> int:
        return len(self._accounts)
