from __future__ import annotations

import pytest

from conftest import client_error
from sandbox_bridge.services.handshake import (
    FAILURE_MESSAGE,
    GONE_MESSAGE,
    REQUIRED_FIELDS_MESSAGE,
    HandshakeService,
    HandshakeStatus,
)
from sandbox_bridge.services.sts import CredentialChain, TrustBridge

TARGET = "222222222222"
INTERMEDIATE = "111111111111"


@pytest.fixture
def service(session_factory):
    bridge = TrustBridge(CredentialChain(session_factory=session_factory))
    return HandshakeService(bridge, session_factory=session_factory)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "args",
    [
        ("", "h-1", "us-gov-west-1", INTERMEDIATE),
        (TARGET, None, "us-gov-west-1", INTERMEDIATE),
        (TARGET, "h-1", "  ", INTERMEDIATE),
        (TARGET, "h-1", "us-gov-west-1", None),
    ],
)
async def test_missing_fields_rejected_before_any_call(service, aws_clients, args):
    result = await service.accept_handshake(*args)

    assert result.status_code == 400
    assert result.to_payload()["error"] == REQUIRED_FIELDS_MESSAGE
    assert result.to_payload()["kind"] == "ValidationError"
    aws_clients["sts"].assume_role.assert_not_called()


@pytest.mark.asyncio
async def test_accepts_with_bridged_credentials(service, session_factory, aws_clients):
    aws_clients["organizations"].accept_handshake.return_value = {"Handshake": {"Id": "h-1", "State": "ACCEPTED"}}

    result = await service.accept_handshake(TARGET, "h-1", "us-gov-west-1", INTERMEDIATE)

    assert result.status_code == 200
    assert result.to_payload() == {
        "status": "ACCEPTED",
        "handshakeId": "h-1",
        "govCloudAccountId": TARGET,
        "handshakeState": "ACCEPTED",
    }
    aws_clients["organizations"].accept_handshake.assert_called_once_with(HandshakeId="h-1")
    # The organizations client is built from the GovCloud hop's credentials.
    assert session_factory.sessions[-1].credentials["aws_access_key_id"] == f"AKIA{TARGET}"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code, message",
    [
        ("HandshakeAlreadyInStateException", "already accepted"),
        ("AlreadyInOrganizationException", ""),
        ("ConstraintViolationException", "The account is already a member of this organization"),
    ],
)
async def test_already_accepted_is_success(service, aws_clients, code, message):
    aws_clients["organizations"].accept_handshake.side_effect = client_error(code, message, "AcceptHandshake")

    result = await service.accept_handshake(TARGET, "h-1", "us-gov-west-1", INTERMEDIATE)

    assert result.status_code == 200
    assert result.status is HandshakeStatus.ALREADY_ACCEPTED
    assert result.to_payload() == {
        "status": "ACCEPTED",
        "handshakeId": "h-1",
        "govCloudAccountId": TARGET,
        "handshakeState": "ACCEPTED",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code, status",
    [
        ("HandshakeNotFoundException", HandshakeStatus.NOT_FOUND),
        ("InvalidHandshakeTransitionException", HandshakeStatus.EXPIRED),
    ],
)
async def test_gone_handshakes_fail_with_status_marker(service, aws_clients, code, status):
    aws_clients["organizations"].accept_handshake.side_effect = client_error(code, "gone", "AcceptHandshake")

    result = await service.accept_handshake(TARGET, "h-1", "us-gov-west-1", INTERMEDIATE)

    assert result.status_code == 500
    payload = result.to_payload()
    assert payload["error"] == GONE_MESSAGE
    assert payload["kind"] == "UpstreamServiceError"
    assert payload["status"] == status.value
    assert payload["handshakeId"] == "h-1"


@pytest.mark.asyncio
async def test_hop_one_failure_skips_hop_two_and_accept(service, aws_clients):
    aws_clients["sts"].assume_role.side_effect = client_error("AccessDenied", "denied", "AssumeRole")

    result = await service.accept_handshake(TARGET, "h-1", "us-gov-west-1", INTERMEDIATE)

    assert result.status_code == 500
    assert result.to_payload()["error"] == FAILURE_MESSAGE
    assert result.to_payload()["kind"] == "TrustEstablishmentError"
    assert aws_clients["sts"].assume_role.call_count == 1
    aws_clients["organizations"].accept_handshake.assert_not_called()


@pytest.mark.asyncio
async def test_other_provider_errors_are_500(service, aws_clients):
    aws_clients["organizations"].accept_handshake.side_effect = client_error(
        "AccessDeniedException", "no", "AcceptHandshake"
    )

    result = await service.accept_handshake(TARGET, "h-1", "us-gov-west-1", INTERMEDIATE)

    assert result.status_code == 500
    assert result.to_payload() == {"error": FAILURE_MESSAGE, "message": "no", "kind": "UpstreamServiceError"}


@pytest.mark.asyncio
async def test_malformed_response_is_500(service, aws_clients):
    aws_clients["organizations"].accept_handshake.return_value = {}

    result = await service.accept_handshake(TARGET, "h-1", "us-gov-west-1", INTERMEDIATE)

    assert result.status_code == 500
    assert result.status is HandshakeStatus.FAILED
