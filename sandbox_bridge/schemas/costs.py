"""Cost information query/response schemas."""

from __future__ import annotations

import re
from datetime import date
from typing import Literal

from pydantic import Field, ValidationInfo, field_validator, model_validator

from .base import CamelModel

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _is_valid_date(value: str) -> bool:
    if not _DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


class CostQuery(CamelModel):
    linked_account_id: str | None = Field(default=None, validate_default=True)
    start_date: str | None = Field(default=None, validate_default=True)
    end_date: str | None = Field(default=None, validate_default=True)
    granularity: Literal["DAILY", "MONTHLY"] = "DAILY"
    region: str | None = None

    @field_validator("linked_account_id")
    @classmethod
    def require_account(cls, value: str | None) -> str:
        if not value:
            raise ValueError("linkedAccountId is required")
        return value

    @field_validator("start_date", "end_date")
    @classmethod
    def require_date(cls, value: str | None, info: ValidationInfo) -> str:
        name = "startDate" if info.field_name == "start_date" else "endDate"
        if not value or not _is_valid_date(value):
            raise ValueError(f"{name} is required and must be in YYYY-MM-DD format")
        return value

    @model_validator(mode="after")
    def ordered_range(self) -> "CostQuery":
        if date.fromisoformat(self.start_date) > date.fromisoformat(self.end_date):
            raise ValueError("startDate must be before endDate")
        return self


class CostBreakdownItem(CamelModel):
    service: str
    cost: float


class CostInformationResponse(CamelModel):
    linked_account_id: str
    start_date: str
    end_date: str
    total_cost: float
    currency: str = "USD"
    breakdown: list[CostBreakdownItem]
