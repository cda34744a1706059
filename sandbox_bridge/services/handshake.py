"""Accept a GovCloud organization handshake through the trust bridge."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from sandbox_bridge.errors import SandboxBridgeError, UpstreamServiceError, ValidationError
from sandbox_bridge.services.sts import BridgeCredentialSet, SessionFactory, TrustBridge

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = (
    "govCloudAccountId, handshakeId, govCloudRegion, and commercialLinkedAccountId are required"
)
FAILURE_MESSAGE = "Failed to accept invitation"

_ALREADY_ACCEPTED_CODES = {"HandshakeAlreadyInStateException", "AlreadyInOrganizationException"}


class HandshakeStatus(str, enum.Enum):
    ACCEPTED = "ACCEPTED"
    ALREADY_ACCEPTED = "ALREADY_ACCEPTED"
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"


_GONE_CODES = {
    "HandshakeNotFoundException": HandshakeStatus.NOT_FOUND,
    "InvalidHandshakeTransitionException": HandshakeStatus.EXPIRED,
}

# Values of the ``status`` marker carried by a failed acceptance whose handshake is gone.
GONE_STATUSES = frozenset(status.value for status in _GONE_CODES.values())
GONE_MESSAGE = "Handshake is no longer available"


@dataclass
class HandshakeResult:
    status_code: int
    status: HandshakeStatus
    handshake_id: str | None
    govcloud_account_id: str | None
    handshake_state: str | None = None
    error: str | None = None
    error_kind: str | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @classmethod
    def failure(
        cls,
        exc: SandboxBridgeError,
        *,
        status_code: int,
        error: str,
        handshake_id: str | None,
        govcloud_account_id: str | None,
        status: HandshakeStatus = HandshakeStatus.FAILED,
    ) -> "HandshakeResult":
        return cls(
            status_code=status_code,
            status=status,
            handshake_id=handshake_id,
            govcloud_account_id=govcloud_account_id,
            error=error,
            error_kind=exc.kind,
            message=exc.message,
        )

    def to_payload(self) -> dict[str, Any]:
        if not self.ok:
            payload = {"error": self.error, "message": self.message, "kind": self.error_kind}
            if self.status is not HandshakeStatus.FAILED:
                payload["status"] = self.status.value
                payload["handshakeId"] = self.handshake_id
            return payload
        # Already-accepted is reported on the wire as a plain acceptance.
        return {
            "status": HandshakeStatus.ACCEPTED.value,
            "handshakeId": self.handshake_id,
            "govCloudAccountId": self.govcloud_account_id,
            "handshakeState": self.handshake_state,
        }


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class HandshakeService:
    def __init__(self, bridge: TrustBridge | None = None, session_factory: SessionFactory | None = None) -> None:
        self._bridge = bridge or TrustBridge()
        self._session_factory = session_factory

    def _accept_sync(self, credentials: BridgeCredentialSet, handshake_id: str, region: str) -> dict[str, Any]:
        client = credentials.session(self._session_factory).client("organizations", region_name=region)
        return client.accept_handshake(HandshakeId=handshake_id)

    async def accept_handshake(
        self,
        target_account_id: str | None,
        handshake_id: str | None,
        target_region: str | None,
        intermediate_linked_account_id: str | None,
    ) -> HandshakeResult:
        """Accept ``handshake_id`` as ``target_account_id``. Always returns a result, never raises."""
        if not all(
            value and value.strip()
            for value in (target_account_id, handshake_id, target_region, intermediate_linked_account_id)
        ):
            return HandshakeResult.failure(
                ValidationError(REQUIRED_FIELDS_MESSAGE),
                status_code=400,
                error=REQUIRED_FIELDS_MESSAGE,
                handshake_id=handshake_id,
                govcloud_account_id=target_account_id,
            )

        logger.info(
            "accepting handshake",
            extra={
                "govcloud_account_id": target_account_id,
                "handshake_id": handshake_id,
                "commercial_linked_account_id": intermediate_linked_account_id,
            },
        )

        try:
            credentials = await self._bridge.abridge_credentials(target_account_id, intermediate_linked_account_id)
            response = await asyncio.to_thread(self._accept_sync, credentials, handshake_id, target_region)
            state = response["Handshake"]["State"]
        except SandboxBridgeError as exc:
            return HandshakeResult.failure(
                exc,
                status_code=500,
                error=FAILURE_MESSAGE,
                handshake_id=handshake_id,
                govcloud_account_id=target_account_id,
            )
        except ClientError as exc:
            return self._from_client_error(exc, handshake_id, target_account_id)
        except (BotoCoreError, KeyError, TypeError) as exc:
            logger.exception("handshake acceptance failed", extra={"handshake_id": handshake_id})
            return HandshakeResult.failure(
                UpstreamServiceError(f"unexpected organizations response: {exc}"),
                status_code=500,
                error=FAILURE_MESSAGE,
                handshake_id=handshake_id,
                govcloud_account_id=target_account_id,
            )

        return HandshakeResult(
            status_code=200,
            status=HandshakeStatus.ACCEPTED,
            handshake_id=handshake_id,
            govcloud_account_id=target_account_id,
            handshake_state=state,
        )

    def _from_client_error(
        self, exc: ClientError, handshake_id: str, govcloud_account_id: str
    ) -> HandshakeResult:
        code = _error_code(exc)
        message = exc.response.get("Error", {}).get("Message", str(exc))

        if code in _ALREADY_ACCEPTED_CODES or "already a member" in message:
            logger.info("handshake already accepted", extra={"handshake_id": handshake_id})
            return HandshakeResult(
                status_code=200,
                status=HandshakeStatus.ALREADY_ACCEPTED,
                handshake_id=handshake_id,
                govcloud_account_id=govcloud_account_id,
                handshake_state="ACCEPTED",
            )

        if code in _GONE_CODES:
            logger.warning("handshake no longer available", extra={"handshake_id": handshake_id, "error_code": code})
            return HandshakeResult.failure(
                UpstreamServiceError(message),
                status_code=500,
                error=GONE_MESSAGE,
                handshake_id=handshake_id,
                govcloud_account_id=govcloud_account_id,
                status=_GONE_CODES[code],
            )

        logger.error("accept_handshake failed", extra={"handshake_id": handshake_id, "error_code": code})
        return HandshakeResult.failure(
            UpstreamServiceError(message),
            status_code=500,
            error=FAILURE_MESSAGE,
            handshake_id=handshake_id,
            govcloud_account_id=govcloud_account_id,
        )
