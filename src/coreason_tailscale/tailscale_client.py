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
Async client for the Tailscale API key-creation endpoint.
"""

from contextlib import AbstractAsyncContextManager
from datetime import timedelta
from typing import Any, Protocol
from urllib.parse import quote

import httpx
from authlib.integrations.base_client import OAuthError
from authlib.integrations.httpx_client import AsyncOAuth2Client
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from pydantic import ValidationError

from coreason_tailscale.auth_strategy import AuthStrategy, OAuthStrategy
from coreason_tailscale.exceptions import UpstreamError
from coreason_tailscale.models import IssuedKey, KeyCapabilities
from coreason_tailscale.models_internal import CreateKeyRequest, KeyResponse, WireCapabilities
from coreason_tailscale.utils.logger import logger

TOKEN_PATH = "/api/v2/oauth/token"


class UpstreamAPI(Protocol):
    """The single upstream operation the key issuer depends on."""

    async def create_key(self, capabilities: KeyCapabilities, expiry: timedelta | None = None) -> IssuedKey: ...


class UpstreamClientFactory(Protocol):
    """Builds an upstream client for one request. The client is closed when the context exits."""

    def __call__(
        self, base_url: str, tailnet: str, strategy: AuthStrategy, timeout: float
    ) -> AbstractAsyncContextManager[UpstreamAPI]: ...


def _error_message(response: httpx.Response) -> str:
    """Extracts the upstream error message, falling back to the raw body."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text or response.reason_phrase


def _raise_for_upstream_status(response: httpx.Response) -> httpx.Response:
    if response.status_code >= 400:
        raise UpstreamError(_error_message(response), status_code=response.status_code)
    return response


class TailscaleClient:
    """
    Creates authentication keys through the Tailscale API.

    Authenticates with HTTP basic auth (API key as user name) for the API key
    strategy, or with a bearer token from the OAuth client-credentials grant
    for the OAuth strategy. Tokens are fetched once per client and never
    shared between clients.

    Attributes:
        base_url (str): The Tailscale API base URL.
        tailnet (str): The tailnet keys are created in.
        strategy (AuthStrategy): The authentication strategy in use.
    """

    def __init__(
        self,
        base_url: str,
        tailnet: str,
        strategy: AuthStrategy,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the TailscaleClient.

        Args:
            base_url: The Tailscale API base URL (e.g., https://api.tailscale.com).
            tailnet: The tailnet name.
            strategy: The resolved authentication strategy.
            timeout: Timeout in seconds for each HTTP call.
            transport: Optional transport, mainly for tests.
        """
        self.base_url = base_url.rstrip("/")
        self.tailnet = tailnet
        self.strategy = strategy
        self._client = self._build_client(timeout, transport)
        HTTPXClientInstrumentor().instrument_client(self._client)

    @property
    def token_url(self) -> str:
        return f"{self.base_url}{TOKEN_PATH}"

    @property
    def keys_url(self) -> str:
        return f"{self.base_url}/api/v2/tailnet/{quote(self.tailnet, safe='')}/keys"

    def _build_client(self, timeout: float, transport: httpx.AsyncBaseTransport | None) -> httpx.AsyncClient:
        kwargs: dict[str, Any] = {"timeout": timeout, "headers": {"Accept": "application/json"}}
        if transport is not None:
            kwargs["transport"] = transport

        if isinstance(self.strategy, OAuthStrategy):
            client = AsyncOAuth2Client(
                client_id=self.strategy.client_id,
                client_secret=self.strategy.client_secret,
                scope=" ".join(self.strategy.scopes),
                token_endpoint=self.token_url,
                grant_type="client_credentials",
                **kwargs,
            )
            client.register_compliance_hook("access_token_response", _raise_for_upstream_status)
            return client

        return httpx.AsyncClient(auth=httpx.BasicAuth(self.strategy.api_key, ""), **kwargs)

    async def __aenter__(self) -> "TailscaleClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self._client.aclose()

    async def _ensure_token(self) -> None:
        """
        Runs the client-credentials grant if this client uses OAuth and holds no token yet.

        Raises:
            UpstreamError: If the token endpoint rejects the credentials or cannot be reached.
        """
        if not isinstance(self._client, AsyncOAuth2Client) or self._client.token:
            return

        logger.debug(f"Requesting OAuth token from {self.token_url}")
        try:
            token = await self._client.fetch_token(self.token_url, grant_type="client_credentials")
        except OAuthError as e:
            raise UpstreamError(f"OAuth token request failed: {e}") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamError(_error_message(e.response), status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"OAuth token request failed: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"Invalid OAuth token response: {e}") from e

        if not token or "access_token" not in token:
            raise UpstreamError("OAuth token response missing 'access_token' field")

    async def create_key(self, capabilities: KeyCapabilities, expiry: timedelta | None = None) -> IssuedKey:
        """
        Creates an authentication key.

        Args:
            capabilities: The device-creation capabilities for the key.
            expiry: Key lifetime. When None the upstream default applies.

        Returns:
            IssuedKey: The key as returned by the upstream.

        Raises:
            UpstreamError: If the request fails or the upstream returns an error or a malformed body.
        """
        await self._ensure_token()

        payload = CreateKeyRequest(
            capabilities=WireCapabilities.from_capabilities(capabilities),
            expiry_seconds=int(expiry.total_seconds()) if expiry is not None else None,
        )
        body = payload.model_dump(mode="json", by_alias=True, exclude_none=True)

        try:
            response = await self._client.post(self.keys_url, json=body)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Request to Tailscale API failed: {e}") from e

        _raise_for_upstream_status(response)

        try:
            return KeyResponse.model_validate_json(response.content).to_issued_key()
        except ValidationError as e:
            raise UpstreamError(f"Invalid response from Tailscale API: {e}", status_code=response.status_code) from e
