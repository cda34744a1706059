"""Start GovCloud account creation without waiting for it to finish."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sandbox_bridge.errors import UpstreamServiceError, ValidationError
from sandbox_bridge.schemas.accounts import EMAIL_PATTERN
from sandbox_bridge.services.bridge_client import AccountCreationClient, CommercialBridgeClient, CreationStatus

logger = logging.getLogger(__name__)


def validate_creation_input(account_name: str | None, email: str | None) -> None:
    if not account_name or not account_name.strip():
        raise ValidationError("accountName is required")
    if not email or not EMAIL_PATTERN.match(email):
        raise ValidationError("Valid email is required")


@dataclass
class CreationRequest:
    request_id: str
    account_name: str
    email: str
    status: str


class AccountCreationService:
    """Hand account creation to the bridge and return a tracking handle.

    Nothing is stored here. A retried call may start a second creation
    upstream; downstream steps key on the account, not the request.
    """

    def __init__(self, client: AccountCreationClient | None = None) -> None:
        self._client = client or CommercialBridgeClient()

    async def initiate_creation(self, account_name: str, email: str) -> CreationRequest:
        validate_creation_input(account_name, email)
        try:
            handle = await self._client.create_account(account_name, email)
        except UpstreamServiceError as exc:
            raise UpstreamServiceError(
                exc.message,
                status_code=exc.status_code,
                account_name=account_name,
                email=email,
            ) from exc

        logger.info(
            "account creation initiated",
            extra={"request_id": handle.request_id, "account_name": account_name},
        )
        return CreationRequest(
            request_id=handle.request_id,
            account_name=account_name,
            email=email,
            status=handle.status,
        )

    async def check_status(self, request_id: str) -> CreationStatus:
        if not request_id:
            raise ValidationError("requestId is required")
        return await self._client.get_account_status(request_id)
