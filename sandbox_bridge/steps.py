"""Entry points invoked by the account-creation state machine.

Each step is one idempotent unit of work: camelCase JSON in, camelCase JSON
out. Failures propagate as ``SandboxBridgeError`` subclasses so the
orchestrator can retry on ``retryable`` kinds and stop on the rest.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from sandbox_bridge.app import Services, get_services
from sandbox_bridge.config import settings
from sandbox_bridge.errors import SandboxBridgeError, UpstreamServiceError, ValidationError
from sandbox_bridge.schemas.base import first_error
from sandbox_bridge.schemas.steps import (
    AcceptInvitationInput,
    AcceptInvitationOutput,
    AccountStepInput,
    CheckStatusInput,
    CheckStatusOutput,
    InitiateCreationInput,
    InitiateCreationOutput,
    RegisterInput,
    RegisterOutput,
    SendInvitationOutput,
)
from sandbox_bridge.services.handshake import GONE_STATUSES
from sandbox_bridge.services.lifecycle import ALREADY_JOINED

audit = logging.getLogger("sandbox_bridge.audit")

Step = Callable[..., Awaitable[dict[str, Any]]]
ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse(model: type[ModelT], event: Mapping[str, Any]) -> ModelT:
    try:
        return model.model_validate(event)
    except PydanticValidationError as exc:
        raise ValidationError(first_error(exc)) from exc


async def initiate_creation(event: Mapping[str, Any], services: Services | None = None) -> dict[str, Any]:
    services = services or get_services()
    payload = _parse(InitiateCreationInput, event)
    request = await services.creation.initiate_creation(payload.account_name, payload.email)
    audit.info("account_creation_initiated", extra={"request_id": request.request_id, "account_name": request.account_name})
    return InitiateCreationOutput(
        request_id=request.request_id,
        status=request.status,
        account_name=request.account_name,
        email=request.email,
    ).to_wire()


async def check_status(event: Mapping[str, Any], services: Services | None = None) -> dict[str, Any]:
    services = services or get_services()
    payload = _parse(CheckStatusInput, event)
    status = await services.creation.check_status(payload.request_id)
    audit.info(
        "account_status_retrieved",
        extra={"request_id": payload.request_id, "status": status.status, "govcloud_account_id": status.govcloud_account_id},
    )
    return CheckStatusOutput(
        request_id=payload.request_id,
        status=status.status,
        gov_cloud_account_id=status.govcloud_account_id,
        commercial_account_id=status.commercial_account_id,
        account_name=payload.account_name,
        email=payload.email,
        message=status.message,
    ).to_wire()


async def send_invitation(event: Mapping[str, Any], services: Services | None = None) -> dict[str, Any]:
    services = services or get_services()
    payload = _parse(AccountStepInput, event)
    handshake_id = await services.lifecycle.invite_account(payload.gov_cloud_account_id)
    audit.info(
        "organization_invitation_sent",
        extra={"govcloud_account_id": payload.gov_cloud_account_id, "handshake_id": handshake_id},
    )
    return SendInvitationOutput(
        gov_cloud_account_id=payload.gov_cloud_account_id,
        commercial_account_id=payload.commercial_account_id,
        handshake_id=handshake_id,
        account_name=payload.account_name,
    ).to_wire()


async def accept_invitation(event: Mapping[str, Any], services: Services | None = None) -> dict[str, Any]:
    services = services or get_services()
    payload = _parse(AcceptInvitationInput, event)

    def _output(state: str | None) -> dict[str, Any]:
        return AcceptInvitationOutput(
            gov_cloud_account_id=payload.gov_cloud_account_id,
            commercial_account_id=payload.commercial_account_id,
            account_name=payload.account_name,
            handshake_state=state,
        ).to_wire()

    if payload.handshake_id == ALREADY_JOINED:
        audit.info("invitation_acceptance_skipped", extra={"govcloud_account_id": payload.gov_cloud_account_id})
        return _output("ACCEPTED")

    if not payload.commercial_account_id:
        raise ValidationError("commercialAccountId is required to accept an invitation")

    try:
        acceptance = await services.bridge_client.accept_invitation(
            govcloud_account_id=payload.gov_cloud_account_id,
            handshake_id=payload.handshake_id,
            govcloud_region=payload.gov_cloud_region or settings.govcloud_region,
            commercial_linked_account_id=payload.commercial_account_id,
        )
    except UpstreamServiceError as exc:
        if exc.context.get("upstream_status") not in GONE_STATUSES:
            raise
        # Handshake already consumed or expired; registration decides whether the account joined.
        audit.warning(
            "invitation_no_longer_available",
            extra={"govcloud_account_id": payload.gov_cloud_account_id, "handshake_id": payload.handshake_id},
        )
        return _output(None)

    audit.info(
        "invitation_accepted",
        extra={"govcloud_account_id": payload.gov_cloud_account_id, "handshake_state": acceptance.handshake_state},
    )
    return _output(acceptance.handshake_state)


async def register_in_isb(event: Mapping[str, Any], services: Services | None = None) -> dict[str, Any]:
    services = services or get_services()
    payload = _parse(RegisterInput, event)
    result = await services.registration.register(
        payload.gov_cloud_account_id, payload.commercial_account_id, payload.account_name
    )
    audit.info(
        "account_registered",
        extra={
            "govcloud_account_id": result.govcloud_account_id,
            "commercial_account_id": result.commercial_account_id,
            "outcome": result.outcome.value,
        },
    )
    return RegisterOutput(
        gov_cloud_account_id=result.govcloud_account_id,
        commercial_account_id=result.commercial_account_id,
        status=result.status,
        message=result.message,
    ).to_wire()


STEPS: dict[str, Step] = {
    "initiate-creation": initiate_creation,
    "check-status": check_status,
    "send-invitation": send_invitation,
    "accept-invitation": accept_invitation,
    "register-in-isb": register_in_isb,
}


async def run_step(name: str, event: Mapping[str, Any], services: Services | None = None) -> dict[str, Any]:
    step = STEPS.get(name)
    if step is None:
        raise ValidationError(f"unknown step '{name}'", known_steps=sorted(STEPS))
    try:
        return await step(event, services)
    except SandboxBridgeError as exc:
        audit.warning(
            "step_failed",
            extra={"step": name, "kind": exc.kind, "retryable": exc.retryable, "error": exc.message},
        )
        raise


_loop: asyncio.AbstractEventLoop | None = None


def _run_sync(coro: Awaitable[dict[str, Any]]) -> dict[str, Any]:
    # One loop per process so the cached Redis client stays bound to it across warm invocations.
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(coro)


def lambda_handler(name: str) -> Callable[[Mapping[str, Any], Any], dict[str, Any]]:
    if name not in STEPS:
        raise KeyError(name)

    def handler(event: Mapping[str, Any], context: Any = None) -> dict[str, Any]:
        return _run_sync(run_step(name, event))

    handler.__name__ = f"{name.replace('-', '_')}_handler"
    return handler


initiate_creation_handler = lambda_handler("initiate-creation")
check_status_handler = lambda_handler("check-status")
send_invitation_handler = lambda_handler("send-invitation")
accept_invitation_handler = lambda_handler("accept-invitation")
register_in_isb_handler = lambda_handler("register-in-isb")


__all__ = [
    "STEPS",
    "run_step",
    "initiate_creation",
    "check_status",
    "send_invitation",
    "accept_invitation",
    "register_in_isb",
    "initiate_creation_handler",
    "check_status_handler",
    "send_invitation_handler",
    "accept_invitation_handler",
    "register_in_isb_handler",
]
