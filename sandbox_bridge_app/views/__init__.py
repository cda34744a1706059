from __future__ import annotations

from .api import (
    accept_invitation,
    cost_information,
    create_govcloud_account,
    govcloud_account_status,
)
from .docs import openapi_document, swagger_ui
from .health import health

__all__ = [
    "health",
    "openapi_document",
    "swagger_ui",
    "accept_invitation",
    "cost_information",
    "create_govcloud_account",
    "govcloud_account_status",
]
