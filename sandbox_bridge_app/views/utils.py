from __future__ import annotations

import functools
import hmac
import inspect
import json
from typing import Any

from django.http import HttpRequest, JsonResponse

from sandbox_bridge.config import settings
from sandbox_bridge.errors import ConflictError, SandboxBridgeError, ValidationError


def json_response(data: Any, *, status: int = 200) -> JsonResponse:
    """Return a JSON response with UTF-8 safe dumps settings."""
    return JsonResponse(data, status=status, safe=False, json_dumps_params={"ensure_ascii": False})


def json_error(error: str, *, status: int, message: str | None = None, kind: str | None = None) -> JsonResponse:
    """Return the ``{error, message, kind}`` envelope shared by every endpoint."""
    payload: dict[str, Any] = {"error": error}
    if message is not None:
        payload["message"] = message
    if kind is not None:
        payload["kind"] = kind
    return json_response(payload, status=status)


def method_not_allowed(*permitted: str) -> JsonResponse:
    response = json_error("Method not allowed", kind="MethodNotAllowed", status=405)
    response["Allow"] = ", ".join(permitted)
    return response


def error_status(exc: SandboxBridgeError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, ConflictError):
        return 409
    return 500


def exception_response(exc: SandboxBridgeError, *, error: str | None = None) -> JsonResponse:
    return json_error(error or exc.message, message=exc.message, kind=exc.kind, status=error_status(exc))


def api_key_required(view):
    """Reject requests without the configured ``x-api-key`` header.

    Open when no key is configured, which is how local development runs.
    """

    @functools.wraps(view)
    async def wrapper(request: HttpRequest, *args, **kwargs):
        expected = settings.bridge_api_key
        if expected:
            supplied = request.headers.get("x-api-key") or ""
            if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
                return json_error("Unauthorized", kind="AuthenticationError", status=401)
        return await view(request, *args, **kwargs)

    return wrapper


async def read_body(request: HttpRequest) -> bytes:
    """Read and normalise the request body into bytes."""
    body = request.body
    if inspect.isawaitable(body):
        body = await body
    if isinstance(body, str):
        body = body.encode("utf-8")
    return body or b""


async def parse_json_body(request: HttpRequest) -> Any:
    """Parse the incoming body as JSON, returning {} for empty bodies."""
    body = await read_body(request)
    if not body:
        return {}
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid JSON body") from exc
    if not isinstance(payload, dict):
        raise ValueError("request body must be a JSON object")
    return payload


__all__ = [
    "json_response",
    "json_error",
    "method_not_allowed",
    "error_status",
    "exception_response",
    "api_key_required",
    "read_body",
    "parse_json_body",
]
