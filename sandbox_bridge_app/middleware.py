"""Cross-origin headers for browser callers of the bridge endpoints."""

from __future__ import annotations

from asgiref.sync import iscoroutinefunction
from django.http import HttpRequest, HttpResponse
from django.utils.decorators import sync_and_async_middleware

from sandbox_bridge.config import settings
from sandbox_bridge_app.views.utils import json_response

ALLOWED_HEADERS = "Content-Type, x-api-key"
ALLOWED_METHODS = "GET, POST, OPTIONS"


def _is_preflight(request: HttpRequest) -> bool:
    return request.method == "OPTIONS"


def _with_cors(response: HttpResponse) -> HttpResponse:
    response["Access-Control-Allow-Origin"] = settings.cors_allow_origin
    response["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
    response["Access-Control-Allow-Methods"] = ALLOWED_METHODS
    return response


@sync_and_async_middleware
def cors_middleware(get_response):
    if iscoroutinefunction(get_response):

        async def middleware(request: HttpRequest) -> HttpResponse:
            if _is_preflight(request):
                return _with_cors(json_response({}))
            return _with_cors(await get_response(request))

    else:

        def middleware(request: HttpRequest) -> HttpResponse:
            if _is_preflight(request):
                return _with_cors(json_response({}))
            return _with_cors(get_response(request))

    return middleware


__all__ = ["cors_middleware"]
