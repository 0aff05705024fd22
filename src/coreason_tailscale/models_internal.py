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
Wire models for the Tailscale API.
These are not exposed in the public API.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from coreason_tailscale.models import IssuedKey, KeyCapabilities


class CreateCapabilities(BaseModel):
    model_config = ConfigDict(extra="ignore")

    reusable: bool = False
    ephemeral: bool = False
    preauthorized: bool = False
    tags: list[str] | None = None


class DeviceCapabilities(BaseModel):
    model_config = ConfigDict(extra="ignore")

    create: CreateCapabilities = Field(default_factory=CreateCapabilities)


class WireCapabilities(BaseModel):
    """
    Nested capability object as sent to and returned by ``/api/v2/tailnet/{tailnet}/keys``.
    """

    model_config = ConfigDict(extra="ignore")

    devices: DeviceCapabilities = Field(default_factory=DeviceCapabilities)

    @classmethod
    def from_capabilities(cls, capabilities: KeyCapabilities) -> "WireCapabilities":
        return cls(
            devices=DeviceCapabilities(
                create=CreateCapabilities(
                    reusable=capabilities.reusable,
                    ephemeral=capabilities.ephemeral,
                    preauthorized=capabilities.preauthorized,
                    tags=list(capabilities.tags),
                )
            )
        )


class CreateKeyRequest(BaseModel):
    capabilities: WireCapabilities
    expiry_seconds: int | None = Field(default=None, serialization_alias="expirySeconds")


class KeyResponse(BaseModel):
    """
    Key object returned by the Tailscale API.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    key: str = ""
    created: datetime | None = None
    expires: datetime | None = None
    capabilities: WireCapabilities = Field(default_factory=WireCapabilities)

    def to_issued_key(self) -> IssuedKey:
        create = self.capabilities.devices.create
        return IssuedKey(
            id=self.id,
            key=self.key,
            expires=self.expires,
            capabilities=KeyCapabilities(
                tags=tuple(create.tags or ()),
                reusable=create.reusable,
                ephemeral=create.ephemeral,
                preauthorized=create.preauthorized,
            ),
        )
