from __future__ import annotations

from datetime import datetime, timezone

import pytest

from sandbox_bridge.errors import ConflictError
from sandbox_bridge.repos import AccountStatus, SandboxAccount, SandboxAccountRepository
from sandbox_bridge.repos.accounts import LINK_FIELD

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _account(link: str | None = None) -> SandboxAccount:
    return SandboxAccount(
        account_id="222222222222",
        account_name="acct-1",
        status=AccountStatus.LINKED if link else AccountStatus.REGISTERED,
        registered_at=NOW,
        last_modified_at=NOW,
        commercial_linked_account_id=link,
    )


@pytest.mark.asyncio
async def test_get_missing_returns_none(fake_redis):
    assert await SandboxAccountRepository(fake_redis).get("222222222222") is None


@pytest.mark.asyncio
async def test_create_round_trips_record(fake_redis):
    repo = SandboxAccountRepository(fake_redis)

    assert await repo.create(_account("111111111111")) is True
    stored = await repo.get("222222222222")

    assert stored.account_name == "acct-1"
    assert stored.status is AccountStatus.LINKED
    assert stored.registered_at == NOW
    assert stored.commercial_linked_account_id == "111111111111"


@pytest.mark.asyncio
async def test_unlinked_record_has_no_link_field(fake_redis):
    repo = SandboxAccountRepository(fake_redis)

    await repo.create(_account())

    assert LINK_FIELD.encode() not in fake_redis.hashes["v1:accounts:222222222222"]
    assert (await repo.get("222222222222")).is_linked is False


@pytest.mark.asyncio
async def test_create_refuses_existing_record(fake_redis):
    repo = SandboxAccountRepository(fake_redis)
    await repo.create(_account("111111111111"))

    assert await repo.create(_account("333333333333")) is False
    assert (await repo.get("222222222222")).commercial_linked_account_id == "111111111111"


@pytest.mark.asyncio
async def test_create_loses_race_to_concurrent_writer(fake_redis):
    repo = SandboxAccountRepository(fake_redis)

    async def concurrent_write():
        await fake_redis.hset("v1:accounts:222222222222", mapping={"account_id": "222222222222"})

    fake_redis.before_exec = concurrent_write

    assert await repo.create(_account()) is False


@pytest.mark.asyncio
async def test_put_never_clears_existing_link(fake_redis):
    repo = SandboxAccountRepository(fake_redis)
    await repo.create(_account("111111111111"))

    await repo.put(_account())

    stored = await repo.get("222222222222")
    assert stored.commercial_linked_account_id == "111111111111"
    assert stored.status is AccountStatus.LINKED


@pytest.mark.asyncio
async def test_put_with_different_link_conflicts(fake_redis):
    repo = SandboxAccountRepository(fake_redis)
    await repo.create(_account("111111111111"))
    renamed = _account("333333333333")
    renamed.account_name = "acct-2"

    with pytest.raises(ConflictError):
        await repo.put(renamed)

    stored = await repo.get("222222222222")
    assert stored.commercial_linked_account_id == "111111111111"
    assert stored.account_name == "acct-1"


@pytest.mark.asyncio
async def test_put_links_unlinked_record(fake_redis):
    repo = SandboxAccountRepository(fake_redis)
    await repo.create(_account())

    await repo.put(_account("111111111111"))
    await repo.put(_account("111111111111"))

    stored = await repo.get("222222222222")
    assert stored.commercial_linked_account_id == "111111111111"
    assert stored.status is AccountStatus.LINKED


@pytest.mark.asyncio
async def test_link_is_set_once(fake_redis):
    repo = SandboxAccountRepository(fake_redis)
    await repo.create(_account())

    assert await repo.link_commercial_account("222222222222", "111111111111") is True
    assert await repo.link_commercial_account("222222222222", "111111111111") is False

    stored = await repo.get("222222222222")
    assert stored.status is AccountStatus.LINKED
    assert stored.last_modified_at > NOW


@pytest.mark.asyncio
async def test_link_to_different_account_conflicts(fake_redis):
    repo = SandboxAccountRepository(fake_redis)
    await repo.create(_account("111111111111"))

    with pytest.raises(ConflictError) as excinfo:
        await repo.link_commercial_account("222222222222", "333333333333")

    assert excinfo.value.context["linked_commercial_account_id"] == "111111111111"
    assert (await repo.get("222222222222")).commercial_linked_account_id == "111111111111"


@pytest.mark.asyncio
async def test_link_requires_existing_record(fake_redis):
    with pytest.raises(LookupError):
        await SandboxAccountRepository(fake_redis).link_commercial_account("222222222222", "111111111111")
