"""Write the Sandbox Bridge OpenAPI document to disk or stdout."""

from __future__ import annotations

import json
from pathlib import Path

from django.core.management.base import BaseCommand

from sandbox_bridge_app.openapi import build_openapi_schema


class Command(BaseCommand):
    help = "Write the bridge OpenAPI document to openapi.json, a given path, or '-' for stdout."

    def add_arguments(self, parser) -> None:  # pragma: no cover - Django wires parser.
        parser.add_argument("--output", default="openapi.json", help="Target path, or '-' for stdout.")
        parser.add_argument("--server-url", default=None, help="Base URL listed under servers.")

    def handle(self, *args, **options) -> None:
        rendered = json.dumps(build_openapi_schema(server_url=options.get("server_url")), indent=2) + "\n"
        if options["output"] == "-":
            self.stdout.write(rendered, ending="")
            return

        output_path = Path(options["output"]).expanduser()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(rendered, encoding="utf-8")
        self.stdout.write(self.style.SUCCESS(f"OpenAPI document written to {output_path}"))
