"""Root URL configuration for the Sandbox Bridge Django project."""

from __future__ import annotations

from django.urls import include, path

from sandbox_bridge_app import views as bridge_views

urlpatterns = [
    path("openapi.json", bridge_views.openapi_document, name="openapi-json"),
    path("docs", bridge_views.swagger_ui, name="swagger-ui"),
    path("docs/", bridge_views.swagger_ui),
    path("", include("sandbox_bridge_app.urls")),
]
