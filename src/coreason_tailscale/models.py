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
Data models for the coreason-tailscale package.
"""

import re
from datetime import datetime, timedelta
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from coreason_tailscale.config import DEFAULT_API_URL

DEFAULT_OAUTH_SCOPES = ("devices",)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|d|h|m|s)")
_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}


def split_comma_list(v: Any) -> Any:
    """Accepts "a, b" as well as ["a", "b"]. Empty items are dropped from the string form."""
    if v is None:
        return []
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


def parse_duration(v: Any) -> Any:
    """
    Parses a key lifetime.

    Accepts a timedelta, a number of seconds, or a duration string such as
    "90d", "1h30m", "3600s" or "3600". Anything else is handed to pydantic
    unchanged so it reports the type error.
    """
    if isinstance(v, timedelta) or v is None:
        return v
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        try:
            return timedelta(seconds=v)
        except OverflowError as e:
            raise ValueError(f"Duration '{v}' is too large") from e
    if not isinstance(v, str):
        return v

    text = v.strip().lower()
    if re.fullmatch(r"\d+", text):
        return parse_duration(int(text))

    parts = _DURATION_PART.findall(text)
    if not parts or "".join(n + u for n, u in parts) != text:
        raise ValueError(f"Invalid duration '{v}'")

    total = timedelta()
    try:
        for number, unit in parts:
            total += float(number) * _DURATION_UNITS[unit]
    except OverflowError as e:
        raise ValueError(f"Duration '{v}' is too large") from e
    return total


CommaList = Annotated[list[str], BeforeValidator(split_comma_list)]
Duration = Annotated[timedelta, BeforeValidator(parse_duration)]


class Configuration(BaseModel):
    """
    The tenant configuration persisted by the backend.

    One instance exists per backend and is stored as JSON under a fixed key.
    Emptiness rules are enforced by the ConfigurationManager on update, not
    here, so that each violated rule produces its own error.

    Secret fields are redacted from ``repr()`` and ``str()``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    tailnet: str = Field(..., description="The name of the Tailscale Tailnet.")
    api_key: str = Field(
        default="",
        description="The API key to use for authenticating with the Tailscale API. Takes precedence over OAuth.",
    )
    api_url: str = Field(default=DEFAULT_API_URL, description="The URL of the Tailscale API.")
    oauth_client_id: str = Field(
        default="", description="The OAuth client ID to use for authenticating with the Tailscale API."
    )
    oauth_client_secret: str = Field(
        default="", description="The OAuth client secret to use for authenticating with the Tailscale API."
    )
    oauth_scopes: CommaList = Field(
        default_factory=lambda: list(DEFAULT_OAUTH_SCOPES),
        description="OAuth scopes to request. Must match the scopes configured for the used credentials.",
    )

    @field_validator("oauth_scopes", mode="before")
    @classmethod
    def default_oauth_scopes(cls, v: Any) -> Any:
        """An explicit null falls back to the default scopes instead of an empty scope."""
        if v is None:
            return list(DEFAULT_OAUTH_SCOPES)
        return v

    def __repr__(self) -> str:
        return (
            f"Configuration(tailnet={self.tailnet!r}, "
            f"api_key={'<REDACTED>' if self.api_key else ''!r}, "
            f"api_url={self.api_url!r}, "
            f"oauth_client_id={self.oauth_client_id!r}, "
            f"oauth_client_secret={'<REDACTED>' if self.oauth_client_secret else ''!r}, "
            f"oauth_scopes={self.oauth_scopes!r})"
        )

    def __str__(self) -> str:
        return self.__repr__()


class KeyRequest(BaseModel):
    """
    Capabilities requested for a new authentication key.

    Attributes:
        tags (list[str]): Tags to apply to the device that uses the key, in the order supplied.
        preauthorized (bool): If true, devices added with this key do not require authorization.
        ephemeral (bool): If true, devices are removed after inactivity or when they disconnect.
        reusable (bool): If true, the key can be used for multiple, different devices.
        lifetime (timedelta | None): Key lifetime (>= 1s). None means the backend default.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    tags: CommaList = Field(default_factory=list)
    preauthorized: bool = False
    ephemeral: bool = False
    reusable: bool = False
    lifetime: Duration | None = None

    @field_validator("lifetime")
    @classmethod
    def validate_lifetime(cls, v: timedelta | None) -> timedelta | None:
        if v is not None and v < timedelta(seconds=1):
            raise ValueError("lifetime must be at least one second")
        return v


class KeyCapabilities(BaseModel):
    """
    The device-creation capabilities attached to an authentication key.
    """

    model_config = ConfigDict(frozen=True)

    tags: tuple[str, ...] = ()
    reusable: bool = False
    ephemeral: bool = False
    preauthorized: bool = False


class IssuedKey(BaseModel):
    """
    An authentication key returned by the Tailscale API.

    The capability flags are the ones the upstream confirmed, not the ones
    that were requested.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    key: str
    expires: datetime | None = None
    capabilities: KeyCapabilities

    def __repr__(self) -> str:
        return f"IssuedKey(id={self.id!r}, key='<REDACTED>', expires={self.expires!r}, capabilities={self.capabilities!r})"

    def __str__(self) -> str:
        return self.__repr__()

    def to_response(self) -> dict[str, Any]:
        """Flattens the key into the response shape returned to callers."""
        return {
            "id": self.id,
            "key": self.key,
            "expires": self.expires.isoformat() if self.expires else None,
            "tags": list(self.capabilities.tags),
            "reusable": self.capabilities.reusable,
            "ephemeral": self.capabilities.ephemeral,
            "preauthorized": self.capabilities.preauthorized,
        }
