# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_tailscale

"""
Process-level settings for the coreason-tailscale backend.
"""

from datetime import timedelta

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "https://api.tailscale.com"
DEFAULT_KEY_LIFETIME = timedelta(days=90)


class BackendSettings(BaseSettings):
    """
    Settings for the Tailscale backend.

    These describe how this process talks to the upstream API and which
    optional key capabilities it exposes. Tenant credentials are not settings;
    they live in the config store.

    Attributes:
        http_timeout (float): Timeout in seconds for all upstream HTTP calls.
        enable_reusable_keys (bool): Whether requests may ask for reusable keys.
        enable_key_lifetime (bool): Whether requests may set a key lifetime and
            an expiry is sent upstream.
        default_key_lifetime (timedelta): Lifetime used when a request omits one.
    """

    model_config = SettingsConfigDict(
        env_prefix="COREASON_TAILSCALE_",
        case_sensitive=False,
    )

    http_timeout: float = Field(default=10.0, description="Timeout in seconds for upstream HTTP calls.")
    enable_reusable_keys: bool = True
    enable_key_lifetime: bool = True
    default_key_lifetime: timedelta = DEFAULT_KEY_LIFETIME

    @field_validator("http_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout must be greater than zero")
        return v

    @field_validator("default_key_lifetime")
    @classmethod
    def validate_lifetime(cls, v: timedelta) -> timedelta:
        if v < timedelta(seconds=1):
            raise ValueError("default_key_lifetime must be at least one second")
        return v
