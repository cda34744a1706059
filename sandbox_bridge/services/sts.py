"""STS role chaining, including the cross-partition trust bridge.

Commercial and GovCloud partitions share no trust. The only sanctioned path
across is a linked account pair whose halves both trust the same role name:
assume that role in the commercial half, then use those credentials to
assume it again in the GovCloud half.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Sequence

import boto3
import shortuuid
from botocore.exceptions import BotoCoreError, ClientError

from sandbox_bridge.config import settings
from sandbox_bridge.errors import TrustEstablishmentError

logger = logging.getLogger(__name__)

SessionFactory = Callable[..., boto3.session.Session]

# AWS caps chained role sessions at one hour regardless of the role's maximum.
CHAINED_SESSION_MAX_SECONDS = 3600
_SESSION_NAME_INVALID = re.compile(r"[^a-zA-Z0-9+=,.@_-]")


@dataclass(frozen=True)
class BridgeCredentialSet:
    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str = field(repr=False)
    expires_at: datetime | None = None

    @classmethod
    def from_sts(cls, creds: dict[str, Any]) -> "BridgeCredentialSet":
        expiration = creds.get("Expiration")
        if isinstance(expiration, str):
            expiration = datetime.fromisoformat(expiration.replace("Z", "+00:00"))
        return cls(
            access_key_id=creds["AccessKeyId"],
            secret_access_key=creds["SecretAccessKey"],
            session_token=creds["SessionToken"],
            expires_at=expiration,
        )

    def session(self, factory: SessionFactory | None = None) -> boto3.session.Session:
        factory = factory or boto3.session.Session
        return factory(
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            aws_session_token=self.session_token,
        )


def session_name(base: str, chain_id: str | None = None) -> str:
    """Build a RoleSessionName within STS limits, suffixed with a chain id."""
    suffix = chain_id or shortuuid.ShortUUID().random(length=10)
    available = 64 - (len(suffix) + 1)
    sanitized = _SESSION_NAME_INVALID.sub("", base)[: max(available, 1)]
    return f"{sanitized}-{suffix}"


class CredentialChain:
    """Assume a sequence of roles, each hop using the previous hop's credentials.

    No credentials are retained between calls; every invocation starts from
    the ambient identity.
    """

    def __init__(
        self,
        *,
        region: str | None = None,
        duration_seconds: int | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._region = region or settings.aws_region
        self._duration = duration_seconds or settings.assume_role_duration_seconds
        self._session_factory = session_factory or boto3.session.Session

    def assume(self, role_arns: Sequence[str], *, session_base: str) -> BridgeCredentialSet:
        if not role_arns:
            raise ValueError("at least one role ARN is required")

        name = session_name(session_base)
        credentials: BridgeCredentialSet | None = None
        for hop, role_arn in enumerate(role_arns, start=1):
            if credentials is None:
                session = self._session_factory()
                duration = self._duration
            else:
                session = credentials.session(self._session_factory)
                duration = min(self._duration, CHAINED_SESSION_MAX_SECONDS)

            sts_client = session.client("sts", region_name=self._region)
            try:
                response = sts_client.assume_role(
                    RoleArn=role_arn,
                    RoleSessionName=name,
                    DurationSeconds=duration,
                )
            except (ClientError, BotoCoreError) as exc:
                logger.warning("assume_role rejected", extra={"hop": hop, "role_arn": role_arn})
                raise TrustEstablishmentError(
                    f"hop {hop}: could not assume {role_arn}: {exc}",
                    hop=hop,
                    role_arn=role_arn,
                ) from exc

            credentials = BridgeCredentialSet.from_sts(response["Credentials"])
            logger.debug("assumed role", extra={"hop": hop, "role_arn": role_arn, "session_name": name})
        return credentials

    def session_for(self, role_arns: Sequence[str | None], *, session_base: str) -> boto3.session.Session:
        """Return a boto3 session at the end of ``role_arns``, or the ambient session when none are set."""
        arns = [arn for arn in role_arns if arn]
        if not arns:
            return self._session_factory()
        return self.assume(arns, session_base=session_base).session(self._session_factory)


class TrustBridge:
    """Obtain credentials inside a GovCloud account through its linked commercial account."""

    def __init__(
        self,
        chain: CredentialChain | None = None,
        *,
        role_name: str | None = None,
        source_partition: str | None = None,
        target_partition: str | None = None,
        session_base: str | None = None,
    ) -> None:
        self._chain = chain or CredentialChain()
        self._role_name = role_name or settings.bridge_role_name
        self._source_partition = source_partition or settings.commercial_partition
        self._target_partition = target_partition or settings.govcloud_partition
        self._session_base = session_base or settings.bridge_session_name

    def role_arns(self, target_account_id: str, intermediate_linked_account_id: str) -> tuple[str, str]:
        return (
            settings.role_arn(
                intermediate_linked_account_id, partition=self._source_partition, role_name=self._role_name
            ),
            settings.role_arn(target_account_id, partition=self._target_partition, role_name=self._role_name),
        )

    def bridge_credentials(self, target_account_id: str, intermediate_linked_account_id: str) -> BridgeCredentialSet:
        hop_one, hop_two = self.role_arns(target_account_id, intermediate_linked_account_id)
        return self._chain.assume([hop_one, hop_two], session_base=self._session_base)

    async def abridge_credentials(
        self, target_account_id: str, intermediate_linked_account_id: str
    ) -> BridgeCredentialSet:
        return await asyncio.to_thread(self.bridge_credentials, target_account_id, intermediate_linked_account_id)
