"""Accept-invitation request/response schemas."""

from __future__ import annotations

from .base import CamelModel


class AcceptInvitationRequest(CamelModel):
    # Presence is checked by the handshake service so every caller gets the same 400.
    gov_cloud_account_id: str | None = None
    handshake_id: str | None = None
    gov_cloud_region: str | None = None
    commercial_linked_account_id: str | None = None


class AcceptInvitationResponse(CamelModel):
    status: str
    handshake_id: str
    gov_cloud_account_id: str
    handshake_state: str | None = None
