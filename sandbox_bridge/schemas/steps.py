"""Payloads exchanged with the orchestrator's step invocations."""

from __future__ import annotations

from pydantic import Field

from .base import CamelModel


class InitiateCreationInput(CamelModel):
    account_name: str
    email: str


class InitiateCreationOutput(CamelModel):
    request_id: str
    status: str
    account_name: str
    email: str


class CheckStatusInput(CamelModel):
    request_id: str = Field(min_length=1)
    account_name: str
    email: str


class CheckStatusOutput(CamelModel):
    request_id: str
    status: str
    gov_cloud_account_id: str | None = None
    commercial_account_id: str | None = None
    account_name: str
    email: str
    message: str | None = None


class AccountStepInput(CamelModel):
    gov_cloud_account_id: str = Field(min_length=1)
    commercial_account_id: str | None = None
    account_name: str | None = None


class SendInvitationOutput(CamelModel):
    gov_cloud_account_id: str
    commercial_account_id: str | None = None
    handshake_id: str
    account_name: str | None = None


class AcceptInvitationInput(AccountStepInput):
    handshake_id: str = Field(min_length=1)
    gov_cloud_region: str | None = None


class AcceptInvitationOutput(CamelModel):
    gov_cloud_account_id: str
    commercial_account_id: str | None = None
    account_name: str | None = None
    handshake_state: str | None = None


class RegisterInput(AccountStepInput):
    pass


class RegisterOutput(CamelModel):
    gov_cloud_account_id: str
    commercial_account_id: str | None = None
    status: str
    message: str
