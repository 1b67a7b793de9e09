"""
PostgreSQL account store for the SSO Service.
"""

from typing import Optional

import asyncpg

from shared.errors import AccountStoreError
from shared.logging import get_logger
from ..handoff.models import Account


class PostgresAccountStore:
    """Account store backed by the ``sso_accounts`` table."""

    def __init__(self, dsn: str, command_timeout: float = 10):
        self.dsn = dsn
        self.command_timeout = command_timeout
        self.logger = get_logger("sso.accounts.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Open the connection pool and make sure the table exists."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=1,
                max_size=10,
                command_timeout=self.command_timeout
            )
            await self._create_tables()
            self.logger.info("PostgreSQL account store started")
        except (asyncpg.PostgresError, OSError) as e:
            self.logger.error("Failed to start PostgreSQL account store", error=str(e))
            raise AccountStoreError(str(e))

    async def stop(self):
        """Close the connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL account store stopped")

    async def _create_tables(self):
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS sso_accounts (
                    account_id VARCHAR(255) NOT NULL,
                    tenant_id VARCHAR(255) NOT NULL,
                    enabled BOOLEAN,
                    has_logged_out BOOLEAN NOT NULL DEFAULT FALSE,
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    PRIMARY KEY (tenant_id, account_id)
                );
            """)

    def _require_pool(self) -> asyncpg.Pool:
        if self.pool is None:
            raise AccountStoreError("PostgreSQL account store is not started")
        return self.pool

    async def find_account(self, account_id: str, tenant_id: str) -> Optional[Account]:
        """Fetch one account of a tenant, or None."""
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    SELECT account_id, tenant_id, enabled, has_logged_out
                    FROM sso_accounts
                    WHERE account_id = $1 AND tenant_id = $2
                    """,
                    account_id,
                    tenant_id
                )
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            self.logger.error("Account lookup failed", account_id=account_id, error=str(e))
            raise AccountStoreError(str(e), details={"account_id": account_id})

        if row is None:
            return None
        return Account(
            account_id=row["account_id"],
            tenant_id=row["tenant_id"],
            enabled=row["enabled"],
            has_logged_out=row["has_logged_out"]
        )

    async def store_account(self, account: Account) -> None:
        """Persist the mutable flags of an account."""
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                await conn.execute(
                    """
                    UPDATE sso_accounts
                    SET enabled = $3, has_logged_out = $4, updated_at = NOW()
                    WHERE account_id = $1 AND tenant_id = $2
                    """,
                    account.account_id,
                    account.tenant_id,
                    account.enabled,
                    account.has_logged_out
                )
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            self.logger.error("Account update failed", account_id=account.account_id, error=str(e))
            raise AccountStoreError(str(e), details={"account_id": account.account_id})

    async def check_health(self) -> str:
        try:
            async with self._require_pool().acquire() as conn:
                await conn.fetchval("SELECT 1")
            return "ok"
        except (AccountStoreError, asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            self.logger.error("Account store health check failed", error=str(e))
            return "error"
