"""Module entrypoint: ``python -m sandbox_bridge <step-name> '<json>'``."""

from __future__ import annotations

from sandbox_bridge.cli import invoke_step


if __name__ == "__main__":  # pragma: no cover
    invoke_step()
