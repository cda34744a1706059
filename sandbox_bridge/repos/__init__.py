"""Repositories for persistent state."""

from .accounts import SandboxAccountRepository
from .models import AccountStatus, SandboxAccount

__all__ = ["AccountStatus", "SandboxAccount", "SandboxAccountRepository"]
