from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from sandbox_bridge.errors import ConflictError, UpstreamServiceError, ValidationError
from sandbox_bridge.repos import SandboxAccountRepository
from sandbox_bridge.services.registration import (
    MESSAGE_CREATED,
    MESSAGE_LINKED,
    MESSAGE_UNCHANGED,
    RegistrationOutcome,
    RegistrationService,
)

GOV = "222222222222"
COMMERCIAL = "111111111111"


@pytest.fixture
def lifecycle():
    return AsyncMock()


@pytest.fixture
def service(fake_redis, lifecycle):
    return RegistrationService(
        SandboxAccountRepository(fake_redis),
        lifecycle,
        clock=lambda: datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


@pytest.mark.asyncio
async def test_first_registration_creates_and_links(service, lifecycle):
    result = await service.register(GOV, COMMERCIAL, "acct-1")

    assert result.outcome is RegistrationOutcome.CREATED
    assert result.to_payload() == {
        "govCloudAccountId": GOV,
        "commercialAccountId": COMMERCIAL,
        "status": "SUCCESS",
        "message": MESSAGE_CREATED,
    }
    lifecycle.register_account.assert_awaited_once_with(GOV, "acct-1", COMMERCIAL)
    assert (await service.get(GOV)).commercial_linked_account_id == COMMERCIAL


@pytest.mark.asyncio
async def test_replayed_registration_is_unchanged(service, lifecycle):
    await service.register(GOV, COMMERCIAL, "acct-1")

    result = await service.register(GOV, COMMERCIAL, "acct-1")

    assert result.status == "SUCCESS"
    assert result.message == MESSAGE_UNCHANGED
    assert lifecycle.register_account.await_count == 1


@pytest.mark.asyncio
async def test_link_added_to_unlinked_record(service, lifecycle):
    await service.register(GOV, None, "acct-1")

    result = await service.register(GOV, COMMERCIAL, "acct-1")

    assert result.outcome is RegistrationOutcome.LINKED
    assert result.message == MESSAGE_LINKED
    assert (await service.get(GOV)).commercial_linked_account_id == COMMERCIAL
    assert lifecycle.register_account.await_count == 1


@pytest.mark.asyncio
async def test_registration_without_link_keeps_existing_link(service):
    await service.register(GOV, COMMERCIAL, "acct-1")

    result = await service.register(GOV, None, "acct-1")

    assert result.outcome is RegistrationOutcome.UNCHANGED
    assert result.commercial_account_id == COMMERCIAL


@pytest.mark.asyncio
async def test_relink_to_different_account_is_a_conflict(service):
    await service.register(GOV, COMMERCIAL, "acct-1")

    with pytest.raises(ConflictError):
        await service.register(GOV, "333333333333", "acct-1")

    assert (await service.get(GOV)).commercial_linked_account_id == COMMERCIAL


@pytest.mark.asyncio
async def test_lifecycle_failure_persists_nothing(service, lifecycle):
    lifecycle.register_account.side_effect = UpstreamServiceError("account not in organization")

    with pytest.raises(UpstreamServiceError):
        await service.register(GOV, COMMERCIAL, "acct-1")

    assert await service.get(GOV) is None


@pytest.mark.asyncio
async def test_concurrent_create_is_reconciled(service, fake_redis):
    async def concurrent_registration():
        await fake_redis.hset(
            f"v1:accounts:{GOV}",
            mapping={
                "account_id": GOV,
                "account_name": "acct-1",
                "status": "REGISTERED",
                "registered_at": "2026-01-01T00:00:00+00:00",
                "last_modified_at": "2026-01-01T00:00:00+00:00",
            },
        )

    fake_redis.before_exec = concurrent_registration

    result = await service.register(GOV, COMMERCIAL, "acct-1")

    assert result.outcome is RegistrationOutcome.LINKED
    assert (await service.get(GOV)).commercial_linked_account_id == COMMERCIAL


@pytest.mark.asyncio
async def test_create_retries_when_record_vanishes(service, fake_redis, lifecycle):
    async def written_then_deleted():
        await fake_redis.hset(f"v1:accounts:{GOV}", mapping={"account_id": GOV})
        await fake_redis.delete(f"v1:accounts:{GOV}")

    fake_redis.before_exec = written_then_deleted

    result = await service.register(GOV, COMMERCIAL, "acct-1")

    assert result.outcome is RegistrationOutcome.CREATED
    stored = await service.get(GOV)
    assert stored.account_name == "acct-1"
    assert stored.commercial_linked_account_id == COMMERCIAL
    lifecycle.register_account.assert_awaited_once()


@pytest.mark.asyncio
async def test_blank_account_id_rejected(service):
    with pytest.raises(ValidationError):
        await service.register("  ", COMMERCIAL, "acct-1")
