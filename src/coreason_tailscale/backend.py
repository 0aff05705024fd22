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
Backend service object wiring the configuration manager and key issuer to the request paths.
"""

from collections.abc import Awaitable, Callable, Mapping
from enum import StrEnum
from typing import Any, TypeVar

import anyio
from pydantic import BaseModel, ValidationError

from coreason_tailscale import __version__
from coreason_tailscale.config import BackendSettings
from coreason_tailscale.config_manager import ConfigurationManager
from coreason_tailscale.exceptions import RequestSchemaError, UnsupportedOperationError
from coreason_tailscale.key_issuer import KeyIssuer
from coreason_tailscale.models import Configuration, KeyRequest
from coreason_tailscale.storage import ConfigStore
from coreason_tailscale.tailscale_client import UpstreamClientFactory

BACKEND_HELP = "The Tailscale backend is used to generate Tailscale authentication keys for a configured Tailnet"

ModelT = TypeVar("ModelT", bound=BaseModel)


class Operation(StrEnum):
    READ = "read"
    UPDATE = "update"


def parse_fields(model: type[ModelT], data: Mapping[str, Any] | None) -> ModelT:
    """
    Parses raw request fields into their typed model.

    Raises:
        RequestSchemaError: If a field is missing or cannot be coerced.
    """
    try:
        return model.model_validate(dict(data or {}))
    except ValidationError as e:
        raise RequestSchemaError(f"Invalid request fields: {e}") from e


class TailscaleBackendAsync:
    """
    Async implementation of the Tailscale backend (The Core).

    Collaborators are injected so that independent backend instances can
    coexist, each with its own store.

    Attributes:
        help (str): Help text reported to the host.
        running_version (str): The package version reported to the host.
    """

    help = BACKEND_HELP
    running_version = __version__

    def __init__(
        self,
        store: ConfigStore,
        settings: BackendSettings | None = None,
        client_factory: UpstreamClientFactory | None = None,
    ) -> None:
        """
        Initialize the backend.

        Args:
            store: The config store holding the backend configuration.
            settings: Process-level settings. Loaded from the environment if not provided.
            client_factory: Builds upstream clients. Defaults to `TailscaleClient`.
        """
        self.settings = settings or BackendSettings()
        self.config_manager = ConfigurationManager(store)
        self.key_issuer = KeyIssuer(store, self.settings, client_factory=client_factory)
        self._routes: dict[tuple[str, Operation], Callable[[Mapping[str, Any] | None], Awaitable[dict[str, Any]]]] = {
            ("config", Operation.READ): self._read_config,
            ("config", Operation.UPDATE): self._update_config,
            ("key", Operation.READ): self._generate_key,
        }

    async def __aenter__(self) -> "TailscaleBackendAsync":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        return None

    async def read_configuration(self) -> dict[str, Any]:
        """
        Returns every stored configuration field, secrets included.

        Raises:
            NotConfiguredError: If no configuration has been stored.
            ConfigDecodeError: If the stored configuration is malformed.
        """
        configuration = await self.config_manager.read_configuration()
        return configuration.model_dump()

    async def update_configuration(self, configuration: Configuration) -> dict[str, Any]:
        """
        Validates and stores a new configuration. Returns an empty acknowledgement.

        Raises:
            InvalidConfigError: If the configuration violates a validation rule.
        """
        await self.config_manager.update_configuration(configuration)
        return {}

    async def generate_key(self, request: KeyRequest) -> dict[str, Any]:
        """
        Generates an authentication key and returns it in response form.

        Raises:
            RequestSchemaError, NotConfiguredError, ConfigDecodeError, AuthNotConfiguredError, UpstreamError
        """
        key = await self.key_issuer.generate_key(request)
        return key.to_response()

    async def _read_config(self, data: Mapping[str, Any] | None) -> dict[str, Any]:
        return await self.read_configuration()

    async def _update_config(self, data: Mapping[str, Any] | None) -> dict[str, Any]:
        return await self.update_configuration(parse_fields(Configuration, data))

    async def _generate_key(self, data: Mapping[str, Any] | None) -> dict[str, Any]:
        return await self.generate_key(parse_fields(KeyRequest, data))

    async def handle_request(
        self, path: str, operation: str, data: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        Dispatches a raw request to its handler.

        Args:
            path: The request path ("config" or "key").
            operation: The operation ("read" or "update").
            data: Raw request fields.

        Returns:
            dict[str, Any]: The response body.

        Raises:
            UnsupportedOperationError: If the path/operation pair is not served.
            RequestSchemaError: If the fields cannot be parsed.
        """
        try:
            route = self._routes[(path.strip("/"), Operation(operation))]
        except (KeyError, ValueError) as e:
            raise UnsupportedOperationError(f"unsupported operation '{operation}' on path '{path}'") from e
        return await route(data)


class TailscaleBackend:
    """
    Sync facade for TailscaleBackendAsync.
    Each call runs the async operation to completion.
    """

    def __init__(
        self,
        store: ConfigStore,
        settings: BackendSettings | None = None,
        client_factory: UpstreamClientFactory | None = None,
    ) -> None:
        self._async = TailscaleBackendAsync(store, settings=settings, client_factory=client_factory)

    def __enter__(self) -> "TailscaleBackend":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        anyio.run(self._async.__aexit__, exc_type, exc_val, exc_tb)

    def read_configuration(self) -> dict[str, Any]:
        return anyio.run(self._async.read_configuration)

    def update_configuration(self, configuration: Configuration) -> dict[str, Any]:
        return anyio.run(self._async.update_configuration, configuration)

    def generate_key(self, request: KeyRequest) -> dict[str, Any]:
        return anyio.run(self._async.generate_key, request)

    def handle_request(self, path: str, operation: str, data: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return anyio.run(self._async.handle_request, path, operation, data)
