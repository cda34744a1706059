"""Build an OpenAPI/Swagger document for the Sandbox Bridge API."""

from __future__ import annotations

from typing import Any, Dict, Optional

from sandbox_bridge import get_version
from sandbox_bridge.schemas import (
    AcceptInvitationRequest,
    AcceptInvitationResponse,
    CostInformationResponse,
    GovCloudAccountCreateRequest,
    GovCloudAccountStatusResponse,
)

Schema = Dict[str, Any]


def _model_schema(model: type) -> Schema:
    return model.model_json_schema(by_alias=True, ref_template="#/components/schemas/{model}")


def _json_ref(schema_name: str) -> Schema:
    return {"$ref": f"#/components/schemas/{schema_name}"}


def _json_response(schema_name: str, *, example: Dict[str, Any] | None = None) -> Dict[str, Any]:
    content: Dict[str, Any] = {
        "schema": _json_ref(schema_name),
    }
    if example is not None:
        content["example"] = example
    return {
        "application/json": content,
    }


def _error_response(description: str) -> Dict[str, Any]:
    return {
        "description": description,
        "content": _json_response("ErrorResponse"),
    }


def _success_response(schema_name: str, description: str, status: str = "200") -> Dict[str, Any]:
    return {
        status: {
            "description": description,
            "content": _json_response(schema_name),
        }
    }


def _collect_components(models: dict[str, type]) -> Dict[str, Schema]:
    schemas: Dict[str, Schema] = {}
    for name, model in models.items():
        schema = _model_schema(model)
        # Nested models land in $defs; hoist them so the refs resolve.
        schemas.update(schema.pop("$defs", {}))
        schemas[name] = schema
    return schemas


def build_openapi_schema(*, server_url: Optional[str] = None) -> Dict[str, Any]:
    """Return an OpenAPI 3.0 specification for the bridge's HTTP surface."""
    component_models: dict[str, type] = {
        "AcceptInvitationRequest": AcceptInvitationRequest,
        "AcceptInvitationResponse": AcceptInvitationResponse,
        "CostInformationResponse": CostInformationResponse,
        "GovCloudAccountCreateRequest": GovCloudAccountCreateRequest,
        "GovCloudAccountStatusResponse": GovCloudAccountStatusResponse,
    }

    components = {"schemas": _collect_components(component_models)}
    components["schemas"]["ErrorResponse"] = {
        "type": "object",
        "required": ["error"],
        "properties": {
            "error": {"type": "string", "description": "Human readable summary of the failure."},
            "message": {"type": "string", "description": "Underlying cause, when known."},
            "kind": {"type": "string", "example": "ValidationError"},
        },
    }
    components["schemas"]["HealthResponse"] = {
        "type": "object",
        "required": ["status", "environment", "version"],
        "properties": {
            "status": {"type": "string", "example": "ok"},
            "environment": {"type": "string", "example": "dev"},
            "version": {"type": "string", "example": "0.1.0"},
        },
    }
    components["securitySchemes"] = {
        "ApiKey": {"type": "apiKey", "in": "header", "name": "x-api-key"},
    }

    secured = [{"ApiKey": []}]
    unauthorized = {"401": _error_response("Missing or mismatched x-api-key header.")}

    paths: Dict[str, Any] = {
        "/health": {
            "get": {
                "operationId": "healthProbe",
                "summary": "Health check endpoint",
                "tags": ["Health"],
                "responses": _success_response("HealthResponse", "Service is reachable."),
            }
        },
        "/accept-invitation": {
            "post": {
                "operationId": "acceptInvitation",
                "summary": "Accept an organization handshake on behalf of a GovCloud account.",
                "tags": ["Invitations"],
                "security": secured,
                "requestBody": {
                    "required": True,
                    "content": _json_response(
                        "AcceptInvitationRequest",
                        example={
                            "govCloudAccountId": "210987654321",
                            "handshakeId": "h-abc123",
                            "govCloudRegion": "us-gov-west-1",
                            "commercialLinkedAccountId": "123456789012",
                        },
                    ),
                },
                "responses": {
                    **_success_response("AcceptInvitationResponse", "Handshake accepted or already accepted."),
                    "400": _error_response("Required fields missing."),
                    "500": _error_response(
                        "Role assumption or acceptance failed. A gone handshake adds status NOT_FOUND or EXPIRED."
                    ),
                    **unauthorized,
                },
            }
        },
        "/cost-information": {
            "get": {
                "operationId": "costInformation",
                "summary": "Summarise unblended cost per service for a linked account.",
                "tags": ["Costs"],
                "security": secured,
                "parameters": [
                    {"name": "linkedAccountId", "in": "query", "required": True, "schema": {"type": "string"}},
                    {
                        "name": "startDate",
                        "in": "query",
                        "required": True,
                        "schema": {"type": "string", "format": "date"},
                    },
                    {
                        "name": "endDate",
                        "in": "query",
                        "required": True,
                        "schema": {"type": "string", "format": "date"},
                    },
                    {
                        "name": "granularity",
                        "in": "query",
                        "required": False,
                        "schema": {"type": "string", "enum": ["DAILY", "MONTHLY"], "default": "DAILY"},
                    },
                    {"name": "region", "in": "query", "required": False, "schema": {"type": "string"}},
                ],
                "responses": {
                    **_success_response("CostInformationResponse", "Cost summary."),
                    "400": _error_response("Invalid query parameters."),
                    "500": _error_response("Cost Explorer query failed."),
                    **unauthorized,
                },
            }
        },
        "/govcloud-accounts": {
            "post": {
                "operationId": "createGovCloudAccount",
                "summary": "Start creating a GovCloud account paired with a commercial account.",
                "tags": ["Accounts"],
                "security": secured,
                "requestBody": {
                    "required": True,
                    "content": _json_response(
                        "GovCloudAccountCreateRequest",
                        example={"accountName": "sandbox-042", "email": "sandbox-042@example.com"},
                    ),
                },
                "responses": {
                    **_success_response("GovCloudAccountStatusResponse", "Creation already succeeded."),
                    **_success_response("GovCloudAccountStatusResponse", "Creation started.", status="202"),
                    "400": _error_response("Invalid input payload."),
                    "500": _error_response("Organizations rejected the request."),
                    **unauthorized,
                },
            }
        },
        "/govcloud-accounts/{requestId}": {
            "get": {
                "operationId": "govCloudAccountStatus",
                "summary": "Report the state of a GovCloud account creation request.",
                "tags": ["Accounts"],
                "security": secured,
                "parameters": [
                    {"name": "requestId", "in": "path", "required": True, "schema": {"type": "string"}},
                ],
                "responses": {
                    **_success_response("GovCloudAccountStatusResponse", "Creation status."),
                    "500": _error_response("Organizations rejected the request."),
                    **unauthorized,
                },
            }
        },
    }

    effective_server = server_url or "http://localhost:8000"

    document: Dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {
            "title": "Sandbox Bridge API",
            "version": get_version(),
            "description": "Cross-partition bridge used to create, join and meter GovCloud sandbox accounts.",
        },
        "servers": [
            {"url": effective_server, "description": "API base URL"},
        ],
        "paths": paths,
        "components": components,
        "tags": [
            {"name": "Health"},
            {"name": "Invitations"},
            {"name": "Costs"},
            {"name": "Accounts"},
        ],
    }
    return document


__all__ = ["build_openapi_schema"]
