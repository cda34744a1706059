"""Process-wide wiring of services for the Django views and orchestrator steps."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import lru_cache
from typing import AsyncIterator

from sandbox_bridge.services import (
    AccountCreationService,
    AccountLifecycleService,
    CommercialBridgeClient,
    CostService,
    GovCloudAccountService,
    HandshakeService,
    RegistrationService,
    TrustBridge,
)
from sandbox_bridge.storage import RedisFactory


@dataclass
class Services:
    handshakes: HandshakeService
    creation: AccountCreationService
    bridge_client: CommercialBridgeClient
    lifecycle: AccountLifecycleService
    registration: RegistrationService
    govcloud_accounts: GovCloudAccountService
    costs: CostService


def build_services() -> Services:
    bridge_client = CommercialBridgeClient()
    lifecycle = AccountLifecycleService()
    return Services(
        handshakes=HandshakeService(TrustBridge()),
        creation=AccountCreationService(bridge_client),
        bridge_client=bridge_client,
        lifecycle=lifecycle,
        registration=RegistrationService(lifecycle=lifecycle),
        govcloud_accounts=GovCloudAccountService(),
        costs=CostService(),
    )


@lru_cache
def get_services() -> Services:
    """Collaborators are built once per process and shared by every request."""
    return build_services()


@asynccontextmanager
async def redis_lifespan() -> AsyncIterator[None]:
    """Convenience context manager for ensuring Redis connections close cleanly."""
    try:
        yield
    finally:
        await RedisFactory.close()
