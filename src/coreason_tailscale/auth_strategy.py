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
Upstream authentication strategies and their resolution from the stored configuration.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from coreason_tailscale.exceptions import AuthNotConfiguredError
from coreason_tailscale.models import Configuration


class AuthMethod(StrEnum):
    API_KEY = "api_key"
    OAUTH = "oauth"


class APIKeyStrategy(BaseModel):
    """Authenticates with a static API key."""

    model_config = ConfigDict(frozen=True)

    method: AuthMethod = AuthMethod.API_KEY
    api_key: str

    def __repr__(self) -> str:
        return "APIKeyStrategy(api_key='<REDACTED>')"


class OAuthStrategy(BaseModel):
    """Authenticates with OAuth client credentials."""

    model_config = ConfigDict(frozen=True)

    method: AuthMethod = AuthMethod.OAUTH
    client_id: str
    client_secret: str
    scopes: tuple[str, ...]

    def __repr__(self) -> str:
        return f"OAuthStrategy(client_id={self.client_id!r}, client_secret='<REDACTED>', scopes={self.scopes!r})"


AuthStrategy = APIKeyStrategy | OAuthStrategy


def has_oauth_credentials(configuration: Configuration) -> bool:
    return bool(configuration.oauth_client_id and configuration.oauth_client_secret)


def has_usable_auth(configuration: Configuration) -> bool:
    """
    Whether the configuration carries at least one complete authentication strategy.

    Used both when a configuration is written and when a key is generated, so
    a configuration accepted on update is always usable on generate.
    """
    return bool(configuration.api_key) or has_oauth_credentials(configuration)


def resolve_auth_strategy(configuration: Configuration) -> AuthStrategy:
    """
    Selects the upstream authentication strategy.

    A non-empty API key always wins and any OAuth fields are ignored.
    Otherwise a complete OAuth client id/secret pair is used with the
    configured scopes.

    Args:
        configuration: The stored configuration.

    Returns:
        AuthStrategy: The strategy to authenticate the upstream call with.

    Raises:
        AuthNotConfiguredError: If neither strategy is usable.
    """
    if configuration.api_key:
        return APIKeyStrategy(api_key=configuration.api_key)

    if has_oauth_credentials(configuration):
        return OAuthStrategy(
            client_id=configuration.oauth_client_id,
            client_secret=configuration.oauth_client_secret,
            scopes=tuple(configuration.oauth_scopes),
        )

    raise AuthNotConfiguredError(
        "configuration has neither a non-empty api_key nor a non-empty oauth_client_id and oauth_client_secret"
    )
