"""
Data models for SSO hand-off.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel


EXTERNAL_LOGIN_KEY_ATTR = "externalLoginKey"
EXTERNAL_SERVER_LOGIN_KEY = "externalServerLoginKey"
USER_LOGIN_ATTR = "userLogin"
AUTHORISATION_HEADER = "Authorisation"
REQUESTED_WITH_HEADER = "X-Requested-With"

# Every chain step reports this, whatever happened inside it.
CHAIN_CONTINUE = "success"


class Account(BaseModel):
    """An account a session can be logged in as.

    ``enabled`` of None means the flag was never set and counts as enabled.
    """

    account_id: str
    tenant_id: str
    enabled: Optional[bool] = None
    has_logged_out: bool = False

    @property
    def login_disabled(self) -> bool:
        return self.enabled is False


class HandOffOutcome(str, Enum):
    """What a hand-off step did to the session."""

    NO_ACTION = "no_action"
    ALREADY_ACTIVE = "already_active"
    LOGGED_IN = "logged_in"
    SWITCHED = "switched"
    LOGGED_OUT = "logged_out"


class FailureKind(str, Enum):
    """Why a hand-off step did not establish the requested account."""

    REGISTRY_MISS = "registry_miss"
    ACCOUNT_NOT_FOUND = "account_not_found"
    ACCOUNT_LOOKUP_FAILED = "account_lookup_failed"
    TOKEN_INVALID = "token_invalid"
    CREDENTIAL_MISSING = "credential_missing"


@dataclass(frozen=True)
class HandOffResult:
    """Internal result of one hand-off step."""

    outcome: HandOffOutcome
    failure: Optional[FailureKind] = None
    account_id: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    @property
    def label(self) -> str:
        return self.failure.value if self.failure else self.outcome.value

    @classmethod
    def failed(cls, failure: FailureKind, account_id: Optional[str] = None,
               outcome: HandOffOutcome = HandOffOutcome.NO_ACTION) -> "HandOffResult":
        return cls(outcome=outcome, failure=failure, account_id=account_id)
