"""Error taxonomy shared by services, steps and views.

Every error carries a ``kind`` (the class name, which is also what the
orchestrator matches on) and a ``retryable`` flag. ``context`` holds
correlation fields such as account ids; it never holds credentials.
"""

from __future__ import annotations

from typing import Any


class SandboxBridgeError(Exception):
    """Base class for domain failures."""

    retryable = False

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "retryable": self.retryable, **self.context}


class ValidationError(SandboxBridgeError):
    """Missing or malformed input. Never retried."""


class ConfigurationError(SandboxBridgeError):
    """The process is missing configuration required for an operation."""


class TrustEstablishmentError(SandboxBridgeError):
    """A role assumption in a credential chain was rejected."""

    retryable = True

    def __init__(self, message: str, *, hop: int, role_arn: str, **context: Any) -> None:
        super().__init__(message, hop=hop, role_arn=role_arn, **context)
        self.hop = hop
        self.role_arn = role_arn


class UpstreamServiceError(SandboxBridgeError):
    """A remote provider call failed for a reason other than trust."""

    retryable = True

    def __init__(self, message: str, *, status_code: int | None = None, **context: Any) -> None:
        super().__init__(message, status_code=status_code, **context)
        self.status_code = status_code


class ConflictError(SandboxBridgeError):
    """Stored state cannot be reconciled with the request. Needs an operator."""


__all__ = [
    "SandboxBridgeError",
    "ValidationError",
    "ConfigurationError",
    "TrustEstablishmentError",
    "UpstreamServiceError",
    "ConflictError",
]
