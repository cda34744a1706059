from __future__ import annotations

from django.apps import AppConfig


class SandboxBridgeAppConfig(AppConfig):
    name = "sandbox_bridge_app"
    verbose_name = "Sandbox Bridge"
