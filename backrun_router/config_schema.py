"""
Configuration schema validation using Pydantic
"""

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from web3 import Web3

from .constants import (
    BPS_DENOMINATOR,
    DEFAULT_ADMIN_SHARE_BPS,
    DEFAULT_CONFIG_ID,
    ZERO_ADDRESS,
)
from .exceptions import ConfigurationError
from .utils import is_valid_bytes32


def _checksum(value: Any, field: str) -> str:
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ValueError(f"{field} is not a valid address: {value!r}")
    return Web3.to_checksum_address(value)


class RevenueConfig(BaseModel):
    """
    Recipients and basis-point weights of one revenue split.

    Shares plus the dust share must add up to exactly 10000 bps. Recipients may
    repeat; zero-address recipients and zero weights are rejected.
    """

    recipients: List[str] = Field(default_factory=list)
    shares_bps: List[int] = Field(default_factory=list)
    dust_share_bps: int = Field(ge=0, le=BPS_DENOMINATOR)

    @field_validator("recipients")
    @classmethod
    def validate_recipients(cls, v):
        normalized = []
        for recipient in v:
            address = _checksum(recipient, "recipient")
            if address == ZERO_ADDRESS:
                raise ValueError("recipient cannot be the zero address")
            normalized.append(address)
        return normalized

    @field_validator("shares_bps")
    @classmethod
    def validate_shares(cls, v):
        for share in v:
            if share <= 0:
                raise ValueError(f"share must be positive: {share}")
            if share > BPS_DENOMINATOR:
                raise ValueError(f"share exceeds {BPS_DENOMINATOR} bps: {share}")
        return v

    @model_validator(mode="after")
    def validate_totals(self):
        if len(self.recipients) != len(self.shares_bps):
            raise ValueError(
                f"{len(self.recipients)} recipients but {len(self.shares_bps)} shares"
            )
        total = sum(self.shares_bps) + self.dust_share_bps
        if total != BPS_DENOMINATOR:
            raise ValueError(
                f"shares plus dust share must total {BPS_DENOMINATOR} bps, got {total}"
            )
        return self

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }


class RouterSettings(BaseModel):
    """Deployment settings for one router instance."""

    admin: str
    default_admin_share_bps: int = Field(
        default=DEFAULT_ADMIN_SHARE_BPS,
        ge=0,
        le=BPS_DENOMINATOR,
        description="Admin share of the default revenue config",
    )
    max_route_hops: int = Field(default=8, ge=1, le=64)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    revenue_configs: Dict[str, RevenueConfig] = Field(default_factory=dict)

    @field_validator("admin")
    @classmethod
    def validate_admin(cls, v):
        address = _checksum(v, "admin")
        if address == ZERO_ADDRESS:
            raise ValueError("admin cannot be the zero address")
        return address

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator("revenue_configs")
    @classmethod
    def validate_config_ids(cls, v):
        normalized = {}
        for config_id, config in v.items():
            if not is_valid_bytes32(config_id):
                raise ValueError(f"config id is not bytes32: {config_id!r}")
            if config_id.lower() == DEFAULT_CONFIG_ID:
                raise ValueError("the zero config id is reserved for the default config")
            normalized[config_id.lower()] = config
        return normalized

    model_config = {
        "extra": "forbid",
    }


def validate_revenue_config(config_dict: Dict[str, Any]) -> RevenueConfig:
    """
    Validate a revenue config dictionary

    Raises:
        ConfigurationError: If the config would violate the split invariant
    """
    try:
        return RevenueConfig(**config_dict)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid revenue config: {e}", {"errors": e.errors(include_url=False)}
        ) from e


def validate_router_settings(settings_dict: Dict[str, Any]) -> RouterSettings:
    """Validate a router settings dictionary, raising ConfigurationError."""
    try:
        return RouterSettings(**settings_dict)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid router settings: {e}", {"errors": e.errors(include_url=False)}
        ) from e
