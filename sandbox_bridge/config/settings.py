"""Application settings using Pydantic settings management."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AnyHttpUrl, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment configuration for the sandbox account bridge."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="ISB_")

    app_name: str = Field(default="innovation-sandbox-bridge")
    environment: str = Field(default="dev")

    redis_url: str = Field(default="redis://localhost:6379/0")

    aws_region: str = Field(default="us-east-1", description="Commercial region used for STS and Cost Explorer.")
    govcloud_region: str = Field(default="us-gov-west-1")
    commercial_partition: str = Field(default="aws")
    govcloud_partition: str = Field(default="aws-us-gov")

    bridge_role_name: str = Field(
        default="OrganizationAccountAccessRole",
        description="Role trusted by both halves of a linked commercial/GovCloud account pair.",
    )
    bridge_session_name: str = Field(default="BridgeToGovCloud")
    assume_role_duration_seconds: int = Field(default=3600, ge=900, le=43200)

    bridge_api_url: Optional[AnyHttpUrl] = Field(
        default=None,
        description="Base URL of the commercial bridge API used to create GovCloud accounts.",
    )
    bridge_api_key: Optional[str] = Field(
        default=None,
        description="Shared API key. Callers send it as x-api-key; the bridge API enforces it when set.",
    )
    bridge_api_key_secret_arn: Optional[str] = Field(default=None)
    bridge_api_timeout_seconds: float = Field(default=30.0)

    intermediate_role_arn: Optional[str] = Field(default=None)
    org_mgt_role_arn: Optional[str] = Field(default=None)
    idc_role_arn: Optional[str] = Field(default=None)

    sandbox_ou_id: Optional[str] = Field(default=None)
    idc_instance_arn: Optional[str] = Field(default=None)
    idc_group_id: Optional[str] = Field(default=None)
    idc_permission_set_arn: Optional[str] = Field(default=None)

    isb_namespace: str = Field(default="isb")
    isb_event_bus: str = Field(default="default")

    cors_allow_origin: str = Field(default="*")

    django_secret_key: str = Field(default="insecure-dev-key")
    django_debug: bool = Field(
        default=False,
        description="Mirror Django's DEBUG flag so both settings derive from the same env var.",
    )

    def role_arn(self, account_id: str, *, partition: str | None = None, role_name: str | None = None) -> str:
        partition = partition or self.commercial_partition
        role_name = role_name or self.bridge_role_name
        return f"arn:{partition}:iam::{account_id}:role/{role_name}"

    @model_validator(mode="after")
    def validate_role_arns(self) -> "Settings":
        for name in ("intermediate_role_arn", "org_mgt_role_arn", "idc_role_arn"):
            value = getattr(self, name)
            if value and not value.startswith("arn:"):
                raise ValueError(f"ISB_{name.upper()} must be a full IAM role ARN.")

        idc_fields = (self.idc_instance_arn, self.idc_group_id, self.idc_permission_set_arn)
        if any(idc_fields) and not all(idc_fields):
            raise ValueError(
                "ISB_IDC_INSTANCE_ARN, ISB_IDC_GROUP_ID and ISB_IDC_PERMISSION_SET_ARN must be set together."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
