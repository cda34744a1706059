"""GovCloud account creation schemas."""

from __future__ import annotations

import re
from typing import Literal

from pydantic import Field, field_validator

from .base import CamelModel

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class GovCloudAccountCreateRequest(CamelModel):
    account_name: str | None = Field(default=None, validate_default=True)
    email: str | None = Field(default=None, validate_default=True)
    role_name: str | None = None
    iam_user_access_to_billing: Literal["ALLOW", "DENY"] = "DENY"

    @field_validator("account_name")
    @classmethod
    def require_name(cls, value: str | None) -> str:
        if not value or not value.strip():
            raise ValueError("accountName is required")
        return value

    @field_validator("email")
    @classmethod
    def require_email(cls, value: str | None) -> str:
        if not value or not EMAIL_PATTERN.match(value):
            raise ValueError("Valid email is required")
        return value


class GovCloudAccountStatusResponse(CamelModel):
    request_id: str
    status: str
    create_time: str
    gov_cloud_account_id: str | None = None
    commercial_account_id: str | None = None
    message: str | None = None
