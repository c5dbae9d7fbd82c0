"""Provider configuration model."""

from __future__ import annotations

from botocore.config import Config
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .schema import Block, valid_region_name


class ProviderConfig(BaseModel):
    """Connection settings shared by every service client."""

    model_config = ConfigDict(extra="forbid")

    region: str | None = None
    profile: str | None = None
    access_key: str | None = None
    secret_key: str | None = None
    token: str | None = None
    endpoints: Block[dict[str, str]] = Field(default_factory=dict)
    use_fips_endpoint: bool = False
    max_retries: int = 25

    check_region = field_validator("region")(valid_region_name)

    def endpoint(self, service: str) -> str:
        """Return the custom endpoint for a service package, or ''."""
        return self.endpoints.get(service, "")

    def botocore_config(self, *, use_fips_endpoint: bool | None = None) -> Config:
        fips = self.use_fips_endpoint if use_fips_endpoint is None else use_fips_endpoint
        return Config(
            retries={"max_attempts": self.max_retries, "mode": "standard"},
            use_fips_endpoint=fips,
        )
