from __future__ import annotations

from .accounts import create_govcloud_account, govcloud_account_status
from .costs import cost_information
from .invitations import accept_invitation

__all__ = [
    "accept_invitation",
    "cost_information",
    "create_govcloud_account",
    "govcloud_account_status",
]
