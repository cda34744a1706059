"""Repository for sandbox account records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import WatchError

from sandbox_bridge.errors import ConflictError
from sandbox_bridge.storage import RedisFactory

from .models import AccountStatus, SandboxAccount


ACCOUNT_KEY_TEMPLATE = "v1:accounts:{account_id}"
LINK_FIELD = "commercial_linked_account_id"


def _decode(raw: dict[bytes, bytes], field: str) -> str | None:
    value = raw.get(field.encode())
    if not value:
        return None
    return value.decode()


class SandboxAccountRepository:
    """Persist sandbox accounts as Redis hashes, one key per account id.

    The commercial link field is absent until linked and is only ever written
    with HSETNX, so no sequence of writes can clear or replace it.
    """

    def __init__(self, redis: Optional[Redis] = None) -> None:
        self._client = redis

    @property
    def _redis(self) -> Redis:
        return self._client or RedisFactory.client()

    @staticmethod
    def _key(account_id: str) -> str:
        return ACCOUNT_KEY_TEMPLATE.format(account_id=account_id)

    @staticmethod
    def _mapping(account: SandboxAccount) -> dict[str, str]:
        return {
            "account_id": account.account_id,
            "account_name": account.account_name or "",
            "status": account.status.value,
            "registered_at": account.registered_at.isoformat(),
            "last_modified_at": account.last_modified_at.isoformat(),
        }

    async def get(self, account_id: str) -> SandboxAccount | None:
        raw = await self._redis.hgetall(self._key(account_id))
        if not raw:
            return None

        return SandboxAccount(
            account_id=account_id,
            account_name=_decode(raw, "account_name"),
            status=AccountStatus(_decode(raw, "status") or AccountStatus.REGISTERED.value),
            registered_at=datetime.fromisoformat(_decode(raw, "registered_at")),
            last_modified_at=datetime.fromisoformat(_decode(raw, "last_modified_at")),
            commercial_linked_account_id=_decode(raw, LINK_FIELD),
        )

    async def put(self, account: SandboxAccount) -> None:
        """Upsert the plain fields, then attach the link through ``link_commercial_account``.

        Status follows the stored link, so a record without a link never
        moves a linked account back to REGISTERED. A different link raises
        ConflictError.
        """
        key = self._key(account.account_id)
        stored = await self._redis.hget(key, LINK_FIELD)
        stored_link = stored.decode() if isinstance(stored, bytes) else stored
        requested = account.commercial_linked_account_id
        if stored_link and requested and stored_link != requested:
            raise self._conflict(account.account_id, stored_link, requested)

        mapping = self._mapping(account)
        linked = bool(stored_link or requested)
        mapping["status"] = (AccountStatus.LINKED if linked else AccountStatus.REGISTERED).value
        await self._redis.hset(key, mapping=mapping)
        if account.commercial_linked_account_id:
            await self.link_commercial_account(account.account_id, account.commercial_linked_account_id)

    async def create(self, account: SandboxAccount) -> bool:
        """Write ``account`` only if no record exists.

        Returns False when a record is already there, including one written by
        a concurrent registration between WATCH and EXEC.
        """
        key = self._key(account.account_id)
        mapping = self._mapping(account)
        if account.commercial_linked_account_id:
            mapping[LINK_FIELD] = account.commercial_linked_account_id

        async with self._redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                if await pipe.exists(key):
                    await pipe.unwatch()
                    return False
                pipe.multi()
                pipe.hset(key, mapping=mapping)
                await pipe.execute()
            except WatchError:
                return False
        return True

    async def link_commercial_account(self, account_id: str, commercial_account_id: str) -> bool:
        """Attach the commercial link once.

        Returns True when this call set the link, False when the same link was
        already present. A different existing link raises ConflictError.
        """
        key = self._key(account_id)
        if not await self._redis.exists(key):
            raise LookupError(f"account {account_id} is not registered")

        added = await self._redis.hsetnx(key, LINK_FIELD, commercial_account_id)
        if added:
            await self._redis.hset(
                key,
                mapping={
                    "status": AccountStatus.LINKED.value,
                    "last_modified_at": datetime.now(timezone.utc).isoformat(),
                },
            )
            return True

        current = await self._redis.hget(key, LINK_FIELD)
        current_value = current.decode() if isinstance(current, bytes) else current
        if current_value == commercial_account_id:
            return False
        raise self._conflict(account_id, current_value, commercial_account_id)

    @staticmethod
    def _conflict(account_id: str, linked: str | None, requested: str) -> ConflictError:
        return ConflictError(
            "account is already linked to a different commercial account",
            account_id=account_id,
            linked_commercial_account_id=linked,
            requested_commercial_account_id=requested,
        )
