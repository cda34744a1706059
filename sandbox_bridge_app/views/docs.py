from __future__ import annotations

from django.http import HttpRequest, HttpResponse
from django.urls import reverse

from sandbox_bridge_app.openapi import build_openapi_schema
from sandbox_bridge_app.views.utils import json_response, method_not_allowed


SWAGGER_UI_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Sandbox Bridge API Docs</title>
    <link rel="stylesheet" type="text/css" href="https://unpkg.com/swagger-ui-dist@5/swagger-ui.css" />
    <style>
      body {{ margin: 0; padding: 0; }}
    </style>
  </head>
  <body>
    <div id="swagger-ui"></div>
    <script src="https://unpkg.com/swagger-ui-dist@5/swagger-ui-bundle.js"></script>
    <script>
      window.onload = function () {{
        window.ui = SwaggerUIBundle({{
          url: "{document_url}",
          dom_id: "#swagger-ui",
          presets: [SwaggerUIBundle.presets.apis],
          layout: "BaseLayout",
          persistAuthorization: true,
        }});
      }};
    </script>
  </body>
</html>
"""


async def openapi_document(request: HttpRequest):
    if request.method != "GET":
        return method_not_allowed("GET")

    server_url = request.build_absolute_uri("/").rstrip("/")
    return json_response(build_openapi_schema(server_url=server_url))


async def swagger_ui(request: HttpRequest):
    if request.method != "GET":
        return method_not_allowed("GET")

    # x-api-key entered in the UI is kept in the browser only.
    document_url = request.build_absolute_uri(reverse("openapi-json"))
    return HttpResponse(SWAGGER_UI_TEMPLATE.format(document_url=document_url), content_type="text/html")


__all__ = ["openapi_document", "swagger_ui"]
