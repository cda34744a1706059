"""HTTP client for the commercial bridge API.

GovCloud-side callers cannot reach commercial Organizations directly, so
account creation goes through the bridge API, which holds its own
commercial credentials.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from sandbox_bridge.config import settings
from sandbox_bridge.errors import ConfigurationError, UpstreamServiceError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


@dataclass
class CreationHandle:
    request_id: str
    status: str
    create_time: str | None = None
    message: str | None = None


@dataclass
class CreationStatus:
    request_id: str
    status: str
    govcloud_account_id: str | None = None
    commercial_account_id: str | None = None
    create_time: str | None = None
    message: str | None = None


@dataclass
class InvitationAcceptance:
    status: str
    handshake_id: str
    govcloud_account_id: str
    handshake_state: str | None = None


def _status_marker(response: httpx.Response) -> str | None:
    """The ``status`` field of an error body, e.g. ``NOT_FOUND`` for a gone handshake."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("status"), str):
        return body["status"]
    return None


class AccountCreationClient(Protocol):
    """Capability needed by the creation initiator, independent of transport."""

    async def create_account(self, account_name: str, email: str) -> CreationHandle: ...

    async def get_account_status(self, request_id: str) -> CreationStatus: ...


class CommercialBridgeClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        api_key: str | None = None,
        api_key_secret_arn: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        secrets_client: Any | None = None,
    ) -> None:
        configured_url = base_url or (str(settings.bridge_api_url) if settings.bridge_api_url else None)
        self._base_url = configured_url.rstrip("/") if configured_url else None
        self._api_key = api_key or settings.bridge_api_key
        self._api_key_secret_arn = api_key_secret_arn or settings.bridge_api_key_secret_arn
        self._timeout = timeout or settings.bridge_api_timeout_seconds
        self._transport = transport
        self._secrets_client = secrets_client

    async def _resolve_api_key(self) -> str | None:
        if self._api_key:
            return self._api_key
        if not self._api_key_secret_arn:
            return None

        def _fetch() -> str:
            client = self._secrets_client or boto3.client("secretsmanager", region_name=settings.govcloud_region)
            response = client.get_secret_value(SecretId=self._api_key_secret_arn)
            secret = response.get("SecretString")
            if not secret:
                raise ConfigurationError(
                    "bridge API key secret has no string value", secret_arn=self._api_key_secret_arn
                )
            return secret

        try:
            self._api_key = await asyncio.to_thread(_fetch)
        except (ClientError, BotoCoreError) as exc:
            raise UpstreamServiceError(f"could not read bridge API key: {exc}") from exc
        return self._api_key

    async def _request(self, method: str, path: str, *, json: dict[str, Any] | None = None) -> dict[str, Any]:
        if not self._base_url:
            raise ConfigurationError("ISB_BRIDGE_API_URL is not configured")

        headers = {"Content-Type": "application/json"}
        api_key = await self._resolve_api_key()
        if api_key:
            headers[API_KEY_HEADER] = api_key

        async with httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        ) as client:
            try:
                response = await client.request(method, path, json=json, headers=headers)
            except httpx.HTTPError as exc:
                raise UpstreamServiceError(f"commercial bridge request failed: {exc}") from exc

        if response.is_error:
            logger.error(
                "commercial bridge API error",
                extra={"path": path, "status": response.status_code, "body": response.text},
            )
            raise UpstreamServiceError(
                f"commercial bridge returned {response.status_code}: {response.text}",
                status_code=response.status_code,
                upstream_status=_status_marker(response),
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamServiceError("commercial bridge returned a non-JSON body") from exc

    async def create_account(
        self, account_name: str, email: str, *, role_name: str | None = None
    ) -> CreationHandle:
        logger.info("creating GovCloud account via commercial bridge", extra={"account_name": account_name})
        data = await self._request(
            "POST",
            "/govcloud-accounts",
            json={
                "accountName": account_name,
                "email": email,
                "roleName": role_name or settings.bridge_role_name,
            },
        )
        try:
            return CreationHandle(
                request_id=data["requestId"],
                status=data["status"],
                create_time=data.get("createTime"),
                message=data.get("message"),
            )
        except KeyError as exc:
            raise UpstreamServiceError(f"commercial bridge response missing {exc}") from exc

    async def get_account_status(self, request_id: str) -> CreationStatus:
        data = await self._request("GET", f"/govcloud-accounts/{request_id}")
        return CreationStatus(
            request_id=data.get("requestId", request_id),
            status=data.get("status", "UNKNOWN"),
            govcloud_account_id=data.get("govCloudAccountId"),
            commercial_account_id=data.get("commercialAccountId"),
            create_time=data.get("createTime"),
            message=data.get("message"),
        )

    async def accept_invitation(
        self,
        *,
        govcloud_account_id: str,
        handshake_id: str,
        govcloud_region: str,
        commercial_linked_account_id: str,
    ) -> InvitationAcceptance:
        logger.info(
            "requesting commercial bridge to accept GovCloud invitation",
            extra={"govcloud_account_id": govcloud_account_id, "handshake_id": handshake_id},
        )
        data = await self._request(
            "POST",
            "/accept-invitation",
            json={
                "govCloudAccountId": govcloud_account_id,
                "handshakeId": handshake_id,
                "govCloudRegion": govcloud_region,
                "commercialLinkedAccountId": commercial_linked_account_id,
            },
        )
        return InvitationAcceptance(
            status=data.get("status", "ACCEPTED"),
            handshake_id=data.get("handshakeId", handshake_id),
            govcloud_account_id=data.get("govCloudAccountId", govcloud_account_id),
            handshake_state=data.get("handshakeState"),
        )
