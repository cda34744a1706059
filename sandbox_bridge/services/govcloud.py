"""Commercial-side GovCloud account creation, as exposed by the bridge API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sandbox_bridge.config import settings
from sandbox_bridge.errors import UpstreamServiceError, ValidationError


def _timestamp(value: Any) -> str:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return datetime.now(timezone.utc).isoformat()


@dataclass
class GovCloudCreationStatus:
    request_id: str
    status: str
    create_time: str
    govcloud_account_id: str | None = None
    commercial_account_id: str | None = None
    message: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "requestId": self.request_id,
            "status": self.status,
            "createTime": self.create_time,
        }
        if self.govcloud_account_id:
            payload["govCloudAccountId"] = self.govcloud_account_id
        if self.commercial_account_id:
            payload["commercialAccountId"] = self.commercial_account_id
        if self.message:
            payload["message"] = self.message
        return payload


class GovCloudAccountService:
    """Wrap ``CreateGovCloudAccount`` in the commercial management account."""

    def __init__(self, organizations_client: Any | None = None) -> None:
        self._client = organizations_client

    def _organizations(self):
        return self._client or boto3.client("organizations", region_name=settings.aws_region)

    async def create_account(
        self,
        *,
        account_name: str,
        email: str,
        role_name: str | None = None,
        iam_user_access_to_billing: str = "DENY",
    ) -> GovCloudCreationStatus:
        return await self._run(
            self._create_account_sync, account_name, email, role_name or settings.bridge_role_name, iam_user_access_to_billing
        )

    async def describe_creation(self, request_id: str) -> GovCloudCreationStatus:
        if not request_id:
            raise ValidationError("requestId is required")
        return await self._run(self._describe_sync, request_id)

    async def _run(self, func, *args) -> GovCloudCreationStatus:
        try:
            return await asyncio.to_thread(func, *args)
        except ClientError as exc:
            raise UpstreamServiceError(str(exc)) from exc
        except BotoCoreError as exc:
            raise UpstreamServiceError(str(exc)) from exc

    def _create_account_sync(
        self, account_name: str, email: str, role_name: str, billing: str
    ) -> GovCloudCreationStatus:
        response = self._organizations().create_gov_cloud_account(
            Email=email,
            AccountName=account_name,
            RoleName=role_name,
            IamUserAccessToBilling=billing,
        )
        status = response.get("CreateAccountStatus", {})
        request_id = status.get("Id")
        if not request_id:
            raise UpstreamServiceError("Failed to get create account request ID")
        return GovCloudCreationStatus(
            request_id=request_id,
            status=status.get("State", "IN_PROGRESS"),
            create_time=_timestamp(status.get("RequestedTimestamp")),
        )

    def _describe_sync(self, request_id: str) -> GovCloudCreationStatus:
        response = self._organizations().describe_create_account_status(CreateAccountRequestId=request_id)
        status = response.get("CreateAccountStatus", {})
        state = status.get("State", "UNKNOWN")
        return GovCloudCreationStatus(
            request_id=request_id,
            status=state,
            create_time=_timestamp(status.get("CompletedTimestamp")),
            govcloud_account_id=status.get("GovCloudAccountId"),
            commercial_account_id=status.get("AccountId"),
            message=status.get("FailureReason") if state == "FAILED" else None,
        )
