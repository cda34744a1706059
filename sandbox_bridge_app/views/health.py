from __future__ import annotations

from django.http import HttpRequest
from django.views.decorators.csrf import csrf_exempt

from sandbox_bridge_app.views.utils import json_response, method_not_allowed


@csrf_exempt
async def health(request: HttpRequest):
    if request.method != "GET":
        return method_not_allowed("GET")

    from sandbox_bridge import get_version
    from sandbox_bridge.config import settings

    payload = {
        "status": "ok",
        "environment": settings.environment,
        "version": get_version(),
    }
    return json_response(payload)


__all__ = ["health"]
