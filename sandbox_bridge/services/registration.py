"""Idempotent registration of GovCloud accounts into the sandbox inventory."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from sandbox_bridge.errors import ConflictError, ValidationError
from sandbox_bridge.repos import AccountStatus, SandboxAccount, SandboxAccountRepository
from sandbox_bridge.services.lifecycle import AccountLifecycleService

logger = logging.getLogger(__name__)

MESSAGE_CREATED = "created, joined, and registered"
MESSAGE_LINKED = "already registered, mapping updated"
MESSAGE_UNCHANGED = "already registered"


class RegistrationOutcome(str, enum.Enum):
    CREATED = "CREATED"
    LINKED = "LINKED"
    UNCHANGED = "UNCHANGED"


_MESSAGES = {
    RegistrationOutcome.CREATED: MESSAGE_CREATED,
    RegistrationOutcome.LINKED: MESSAGE_LINKED,
    RegistrationOutcome.UNCHANGED: MESSAGE_UNCHANGED,
}


@dataclass
class RegistrationResult:
    govcloud_account_id: str
    commercial_account_id: str | None
    outcome: RegistrationOutcome
    status: str = "SUCCESS"

    @property
    def message(self) -> str:
        return _MESSAGES[self.outcome]

    def to_payload(self) -> dict[str, Any]:
        return {
            "govCloudAccountId": self.govcloud_account_id,
            "commercialAccountId": self.commercial_account_id,
            "status": self.status,
            "message": self.message,
        }


class RegistrationService:
    """Register an account exactly once and attach its commercial link at most once.

    Per account: no record -> REGISTERED (no link) or LINKED. A record only
    gains a link, it never loses or changes one. Organization and identity
    setup runs only on the first registration, before anything is stored.
    """

    def __init__(
        self,
        repository: SandboxAccountRepository | None = None,
        lifecycle: AccountLifecycleService | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository or SandboxAccountRepository()
        self._lifecycle = lifecycle or AccountLifecycleService()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def get(self, account_id: str) -> SandboxAccount | None:
        return await self._repository.get(account_id)

    async def register(
        self,
        govcloud_account_id: str,
        commercial_account_id: str | None,
        account_name: str | None,
    ) -> RegistrationResult:
        if not govcloud_account_id or not govcloud_account_id.strip():
            raise ValidationError("govCloudAccountId is required")
        commercial_account_id = commercial_account_id or None

        existing = await self._repository.get(govcloud_account_id)
        if existing is not None:
            return await self._reconcile(existing, commercial_account_id)

        await self._lifecycle.register_account(govcloud_account_id, account_name, commercial_account_id)

        now = self._clock()
        account = SandboxAccount(
            account_id=govcloud_account_id,
            account_name=account_name,
            status=AccountStatus.LINKED if commercial_account_id else AccountStatus.REGISTERED,
            registered_at=now,
            last_modified_at=now,
            commercial_linked_account_id=commercial_account_id,
        )
        while not await self._repository.create(account):
            # A concurrent registration stored the record first, unless the
            # key changed and was removed again, in which case create retries.
            existing = await self._repository.get(govcloud_account_id)
            if existing is not None:
                return await self._reconcile(existing, commercial_account_id)

        logger.info(
            "account registered",
            extra={"govcloud_account_id": govcloud_account_id, "commercial_account_id": commercial_account_id},
        )
        return RegistrationResult(govcloud_account_id, commercial_account_id, RegistrationOutcome.CREATED)

    async def _reconcile(
        self, existing: SandboxAccount, commercial_account_id: str | None
    ) -> RegistrationResult:
        account_id = existing.account_id
        linked = existing.commercial_linked_account_id

        if commercial_account_id is None or linked == commercial_account_id:
            return RegistrationResult(account_id, linked, RegistrationOutcome.UNCHANGED)

        if linked is not None:
            logger.error(
                "refusing to relink account",
                extra={
                    "govcloud_account_id": account_id,
                    "linked_commercial_account_id": linked,
                    "requested_commercial_account_id": commercial_account_id,
                },
            )
            raise ConflictError(
                "account is already linked to a different commercial account",
                account_id=account_id,
                linked_commercial_account_id=linked,
                requested_commercial_account_id=commercial_account_id,
            )

        updated = await self._repository.link_commercial_account(account_id, commercial_account_id)
        outcome = RegistrationOutcome.LINKED if updated else RegistrationOutcome.UNCHANGED
        logger.info(
            "commercial mapping reconciled",
            extra={"govcloud_account_id": account_id, "outcome": outcome.value},
        )
        return RegistrationResult(account_id, commercial_account_id, outcome)
