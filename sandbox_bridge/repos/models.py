"""Repository dataclasses."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime


class AccountStatus(str, enum.Enum):
    REGISTERED = "REGISTERED"
    LINKED = "LINKED"


@dataclass(slots=True)
class SandboxAccount:
    account_id: str
    account_name: str | None
    status: AccountStatus
    registered_at: datetime
    last_modified_at: datetime
    commercial_linked_account_id: str | None = None

    @property
    def is_linked(self) -> bool:
        return bool(self.commercial_linked_account_id)
