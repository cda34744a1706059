"""CLI helpers exposed as console scripts."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Iterable, Sequence

from django.core.management import execute_from_command_line


def _configure_django() -> None:
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "sandbox_bridge_site.settings")


def _manage_py() -> Path:
    return Path(__file__).resolve().parents[1] / "manage.py"


def _run_command(argv: Iterable[str]) -> None:
    args = list(argv)
    args[0] = str(_manage_py())
    sys.argv = args
    execute_from_command_line(args)


def run_dev_server() -> None:
    """Run Django's autoreloading development server."""
    _configure_django()
    host = os.environ.get("ISB_DEV_HOST", "0.0.0.0")
    port = os.environ.get("ISB_DEV_PORT", "8000")
    _run_command(["manage.py", "runserver", f"{host}:{port}"])


def run_prod_server() -> None:
    """Launch gunicorn for production-style serving."""
    _configure_django()
    from gunicorn.app.wsgiapp import WSGIApplication

    bind = os.environ.get("ISB_GUNICORN_BIND", "0.0.0.0:8000")
    workers = os.environ.get("ISB_GUNICORN_WORKERS", "4")

    sys.argv = [
        "gunicorn",
        "sandbox_bridge_site.wsgi:application",
        "--bind",
        bind,
        "--workers",
        workers,
    ]
    WSGIApplication().run()


def _read_event(raw: str | None) -> dict[str, Any]:
    if raw is None:
        return {}
    if raw == "-":
        raw = sys.stdin.read()
    event = json.loads(raw or "{}")
    if not isinstance(event, dict):
        raise ValueError("step input must be a JSON object")
    return event


def invoke_step(argv: Sequence[str] | None = None) -> None:
    """Run one orchestrator step locally: ``sandbox-bridge-step <step-name> '<json>'``.

    Pass ``-`` as the payload to read it from stdin. The step output is
    printed as JSON; a failed step prints its error envelope to stderr and
    exits non-zero.
    """
    from sandbox_bridge.app import redis_lifespan
    from sandbox_bridge.errors import SandboxBridgeError
    from sandbox_bridge.steps import STEPS, run_step

    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] not in STEPS:
        print(f"usage: sandbox-bridge-step {{{','.join(STEPS)}}} [JSON | -]", file=sys.stderr)
        raise SystemExit(2)

    try:
        event = _read_event(args[1] if len(args) > 1 else None)
    except ValueError as exc:
        print(f"invalid step input: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    async def _main() -> dict[str, Any]:
        async with redis_lifespan():
            return await run_step(args[0], event)

    try:
        result = asyncio.run(_main())
    except SandboxBridgeError as exc:
        print(json.dumps(exc.to_dict(), default=str), file=sys.stderr)
        raise SystemExit(1) from exc
    print(json.dumps(result, indent=2))


__all__ = ["run_dev_server", "run_prod_server", "invoke_step"]
