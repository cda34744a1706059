from __future__ import annotations

import logging

from django.http import HttpRequest
from django.views.decorators.csrf import csrf_exempt
from pydantic import ValidationError

from sandbox_bridge.app import get_services
from sandbox_bridge.errors import SandboxBridgeError
from sandbox_bridge.schemas import CostInformationResponse, CostQuery, first_error
from sandbox_bridge_app.views.utils import (
    api_key_required,
    exception_response,
    json_error,
    json_response,
    method_not_allowed,
)


logger = logging.getLogger("sandbox_bridge.audit")

FAILURE_MESSAGE = "Failed to retrieve cost information"


@csrf_exempt
@api_key_required
async def cost_information(request: HttpRequest):
    if request.method != "GET":
        return method_not_allowed("GET")

    try:
        query = CostQuery.model_validate(request.GET.dict())
    except ValidationError as exc:
        return json_error(first_error(exc), kind="ValidationError", status=400)

    try:
        report = await get_services().costs.cost_information(query)
    except SandboxBridgeError as exc:
        logger.warning(
            "cost_information_failed",
            extra={"linked_account_id": query.linked_account_id, "kind": exc.kind},
        )
        return exception_response(exc, error=FAILURE_MESSAGE)

    response = CostInformationResponse.model_validate(report.to_payload())
    return json_response(response.to_wire())


__all__ = ["cost_information"]
