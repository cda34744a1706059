from __future__ import annotations

import pytest

from conftest import client_error, sts_response
from sandbox_bridge.errors import TrustEstablishmentError
from sandbox_bridge.services.sts import (
    CHAINED_SESSION_MAX_SECONDS,
    BridgeCredentialSet,
    CredentialChain,
    TrustBridge,
    session_name,
)


def test_session_name_is_sanitized_and_bounded():
    name = session_name("Bridge To/GovCloud!" * 10, chain_id="abc123")

    assert name.endswith("-abc123")
    assert len(name) <= 64
    assert " " not in name and "/" not in name and "!" not in name


def test_credential_repr_hides_secrets():
    creds = BridgeCredentialSet.from_sts(sts_response("111111111111")["Credentials"])

    assert "secret-" not in repr(creds)
    assert "token-" not in repr(creds)
    assert creds.expires_at.year == 2026


def test_chain_uses_previous_hop_credentials(session_factory, aws_clients):
    chain = CredentialChain(region="us-east-1", duration_seconds=7200, session_factory=session_factory)

    creds = chain.assume(
        ["arn:aws:iam::111111111111:role/Hop", "arn:aws-us-gov:iam::222222222222:role/Hop"],
        session_base="Test",
    )

    first, second = aws_clients["sts"].assume_role.call_args_list
    assert first.kwargs["RoleArn"] == "arn:aws:iam::111111111111:role/Hop"
    assert first.kwargs["DurationSeconds"] == 7200
    assert second.kwargs["DurationSeconds"] == CHAINED_SESSION_MAX_SECONDS
    assert first.kwargs["RoleSessionName"] == second.kwargs["RoleSessionName"]

    ambient, hop_two = session_factory.sessions[:2]
    assert ambient.credentials == {}
    assert hop_two.credentials["aws_access_key_id"] == "AKIA111111111111"
    assert creds.access_key_id == "AKIA222222222222"


def test_chain_failure_reports_hop_and_stops(session_factory, aws_clients):
    aws_clients["sts"].assume_role.side_effect = client_error("AccessDenied", "not trusted", "AssumeRole")
    chain = CredentialChain(session_factory=session_factory)

    with pytest.raises(TrustEstablishmentError) as excinfo:
        chain.assume(
            ["arn:aws:iam::111111111111:role/Hop", "arn:aws-us-gov:iam::222222222222:role/Hop"],
            session_base="Test",
        )

    assert excinfo.value.hop == 1
    assert excinfo.value.role_arn == "arn:aws:iam::111111111111:role/Hop"
    assert excinfo.value.retryable is True
    assert aws_clients["sts"].assume_role.call_count == 1


def test_session_for_without_roles_returns_ambient_session(session_factory, aws_clients):
    chain = CredentialChain(session_factory=session_factory)

    session = chain.session_for([None, None], session_base="Test")

    assert session.credentials == {}
    aws_clients["sts"].assume_role.assert_not_called()


def test_trust_bridge_role_arns_cross_partitions(session_factory):
    bridge = TrustBridge(CredentialChain(session_factory=session_factory), role_name="OrganizationAccountAccessRole")

    hop_one, hop_two = bridge.role_arns("222222222222", "111111111111")

    assert hop_one == "arn:aws:iam::111111111111:role/OrganizationAccountAccessRole"
    assert hop_two == "arn:aws-us-gov:iam::222222222222:role/OrganizationAccountAccessRole"


@pytest.mark.asyncio
async def test_trust_bridge_returns_target_credentials(session_factory, aws_clients):
    bridge = TrustBridge(CredentialChain(session_factory=session_factory))

    creds = await bridge.abridge_credentials("222222222222", "111111111111")

    assert creds.access_key_id == "AKIA222222222222"
    assert aws_clients["sts"].assume_role.call_count == 2
