from __future__ import annotations

import logging

from django.http import HttpRequest
from django.views.decorators.csrf import csrf_exempt
from pydantic import ValidationError

from sandbox_bridge.app import get_services
from sandbox_bridge.schemas import AcceptInvitationRequest, first_error
from sandbox_bridge_app.views.utils import (
    api_key_required,
    json_error,
    json_response,
    method_not_allowed,
    parse_json_body,
)


logger = logging.getLogger("sandbox_bridge.audit")


@csrf_exempt
@api_key_required
async def accept_invitation(request: HttpRequest):
    if request.method != "POST":
        return method_not_allowed("POST")

    try:
        payload = await parse_json_body(request)
        model = AcceptInvitationRequest.model_validate(payload)
    except ValidationError as exc:
        return json_error(first_error(exc), kind="ValidationError", status=400)
    except ValueError as exc:
        return json_error(str(exc), kind="ValidationError", status=400)

    result = await get_services().handshakes.accept_handshake(
        model.gov_cloud_account_id,
        model.handshake_id,
        model.gov_cloud_region,
        model.commercial_linked_account_id,
    )

    logger.info(
        "invitation_acceptance_handled",
        extra={
            "govcloud_account_id": model.gov_cloud_account_id,
            "handshake_id": model.handshake_id,
            "outcome": result.status.value,
            "status_code": result.status_code,
        },
    )
    return json_response(result.to_payload(), status=result.status_code)


__all__ = ["accept_invitation"]
