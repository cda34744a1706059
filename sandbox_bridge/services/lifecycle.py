"""Organization, Identity Center and event side effects of registering an account.

Every call here is safe to repeat: moves into the OU the account is already
in, duplicate assignments and re-sent invitations are all treated as done.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from sandbox_bridge.config import settings
from sandbox_bridge.errors import ConfigurationError, UpstreamServiceError
from sandbox_bridge.services.sts import CredentialChain

logger = logging.getLogger(__name__)

ALREADY_JOINED = "already-joined"
ACCOUNT_REGISTERED_EVENT = "AccountRegistered"


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class AccountLifecycleService:
    def __init__(self, chain: CredentialChain | None = None, *, region: str | None = None) -> None:
        self._region = region or settings.govcloud_region
        self._chain = chain or CredentialChain(region=self._region)

    def _organizations(self):
        session = self._chain.session_for(
            [settings.intermediate_role_arn, settings.org_mgt_role_arn], session_base="IsbOrgManagement"
        )
        return session.client("organizations", region_name=self._region)

    def _sso_admin(self):
        session = self._chain.session_for(
            [settings.intermediate_role_arn, settings.idc_role_arn], session_base="IsbIdentityCenter"
        )
        return session.client("sso-admin", region_name=self._region)

    def _events(self):
        return self._chain.session_for([], session_base="IsbEvents").client("events", region_name=self._region)

    async def _run(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except ClientError as exc:
            raise UpstreamServiceError(
                f"{func.__name__.strip('_')} failed: {exc}", error_code=_error_code(exc)
            ) from exc
        except BotoCoreError as exc:
            raise UpstreamServiceError(f"{func.__name__.strip('_')} failed: {exc}") from exc

    async def invite_account(self, account_id: str) -> str:
        """Invite ``account_id`` into the organization and return the handshake id."""
        return await self._run(self._invite_account, account_id)

    async def register_account(
        self, account_id: str, account_name: str | None, commercial_account_id: str | None
    ) -> None:
        await self._run(self._move_to_sandbox_ou, account_id)
        await self._run(self._assign_identity_center, account_id)
        await self._run(self._publish_registered, account_id, account_name, commercial_account_id)

    def _invite_account(self, account_id: str) -> str:
        client = self._organizations()
        try:
            response = client.invite_account_to_organization(Target={"Id": account_id, "Type": "ACCOUNT"})
        except ClientError as exc:
            message = exc.response.get("Error", {}).get("Message", "")
            if _error_code(exc) == "DuplicateAccountException" or "already a member" in message:
                logger.info("account already in organization", extra={"account_id": account_id})
                return ALREADY_JOINED
            raise
        return response["Handshake"]["Id"]

    def _move_to_sandbox_ou(self, account_id: str) -> None:
        if not settings.sandbox_ou_id:
            raise ConfigurationError("ISB_SANDBOX_OU_ID is not configured")

        client = self._organizations()
        parents = client.list_parents(ChildId=account_id)["Parents"]
        current = parents[0]["Id"] if parents else None
        if current == settings.sandbox_ou_id:
            return
        try:
            client.move_account(
                AccountId=account_id,
                SourceParentId=current,
                DestinationParentId=settings.sandbox_ou_id,
            )
        except ClientError as exc:
            if _error_code(exc) != "DuplicateAccountException":
                raise
        logger.info("account moved to sandbox OU", extra={"account_id": account_id, "ou_id": settings.sandbox_ou_id})

    def _assign_identity_center(self, account_id: str) -> None:
        if not settings.idc_instance_arn:
            logger.info("identity center assignment not configured", extra={"account_id": account_id})
            return

        client = self._sso_admin()
        try:
            response = client.create_account_assignment(
                InstanceArn=settings.idc_instance_arn,
                TargetId=account_id,
                TargetType="AWS_ACCOUNT",
                PermissionSetArn=settings.idc_permission_set_arn,
                PrincipalType="GROUP",
                PrincipalId=settings.idc_group_id,
            )
        except ClientError as exc:
            if _error_code(exc) == "ConflictException":
                return
            raise

        status = response.get("AccountAssignmentCreationStatus", {})
        if status.get("Status") == "FAILED":
            raise UpstreamServiceError(
                f"identity center assignment failed: {status.get('FailureReason', 'unknown reason')}",
                account_id=account_id,
            )

    def _publish_registered(
        self, account_id: str, account_name: str | None, commercial_account_id: str | None
    ) -> None:
        detail: dict[str, Any] = {
            "accountId": account_id,
            "accountName": account_name,
            "commercialLinkedAccountId": commercial_account_id,
            "registeredAt": datetime.now(timezone.utc).isoformat(),
        }
        response = self._events().put_events(
            Entries=[
                {
                    "Source": f"{settings.isb_namespace}.sandbox-bridge",
                    "DetailType": ACCOUNT_REGISTERED_EVENT,
                    "Detail": json.dumps(detail),
                    "EventBusName": settings.isb_event_bus,
                }
            ]
        )
        if response.get("FailedEntryCount"):
            raise UpstreamServiceError("AccountRegistered event was not accepted", account_id=account_id)
