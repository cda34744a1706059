from __future__ import annotations

import logging

from django.http import HttpRequest
from django.views.decorators.csrf import csrf_exempt
from pydantic import ValidationError

from sandbox_bridge.app import get_services
from sandbox_bridge.errors import SandboxBridgeError
from sandbox_bridge.schemas import GovCloudAccountCreateRequest, first_error
from sandbox_bridge_app.views.utils import (
    api_key_required,
    exception_response,
    json_error,
    json_response,
    method_not_allowed,
    parse_json_body,
)


logger = logging.getLogger("sandbox_bridge.audit")


@csrf_exempt
@api_key_required
async def create_govcloud_account(request: HttpRequest):
    if request.method != "POST":
        return method_not_allowed("POST")

    try:
        payload = await parse_json_body(request)
        model = GovCloudAccountCreateRequest.model_validate(payload)
    except ValidationError as exc:
        return json_error(first_error(exc), kind="ValidationError", status=400)
    except ValueError as exc:
        return json_error(str(exc), kind="ValidationError", status=400)

    try:
        status = await get_services().govcloud_accounts.create_account(
            account_name=model.account_name,
            email=model.email,
            role_name=model.role_name,
            iam_user_access_to_billing=model.iam_user_access_to_billing,
        )
    except SandboxBridgeError as exc:
        return exception_response(exc, error="Failed to create GovCloud account")

    logger.info(
        "govcloud_account_requested",
        extra={"request_id": status.request_id, "account_name": model.account_name, "state": status.status},
    )
    return json_response(status.to_payload(), status=200 if status.status == "SUCCEEDED" else 202)


@csrf_exempt
@api_key_required
async def govcloud_account_status(request: HttpRequest, request_id: str):
    if request.method != "GET":
        return method_not_allowed("GET")

    try:
        status = await get_services().govcloud_accounts.describe_creation(request_id)
    except SandboxBridgeError as exc:
        return exception_response(exc, error="Failed to get account status")

    return json_response(status.to_payload())


__all__ = ["create_govcloud_account", "govcloud_account_status"]
