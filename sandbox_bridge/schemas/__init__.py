"""Pydantic schema exports."""

from .accounts import GovCloudAccountCreateRequest, GovCloudAccountStatusResponse
from .base import CamelModel, first_error
from .costs import CostBreakdownItem, CostInformationResponse, CostQuery
from .invitations import AcceptInvitationRequest, AcceptInvitationResponse

__all__ = [
    "CamelModel",
    "first_error",
    "GovCloudAccountCreateRequest",
    "GovCloudAccountStatusResponse",
    "CostQuery",
    "CostBreakdownItem",
    "CostInformationResponse",
    "AcceptInvitationRequest",
    "AcceptInvitationResponse",
]
