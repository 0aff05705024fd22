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
KeyIssuer component for generating Tailscale authentication keys.
"""

from datetime import timedelta

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from coreason_tailscale.auth_strategy import AuthMethod, resolve_auth_strategy
from coreason_tailscale.config import BackendSettings
from coreason_tailscale.exceptions import RequestSchemaError, TailscaleBackendError, UpstreamError
from coreason_tailscale.models import IssuedKey, KeyCapabilities, KeyRequest
from coreason_tailscale.storage import ConfigStore, load_configuration
from coreason_tailscale.tailscale_client import TailscaleClient, UpstreamClientFactory
from coreason_tailscale.utils.logger import logger

tracer = trace.get_tracer(__name__)


def build_capabilities(request: KeyRequest, settings: BackendSettings) -> KeyCapabilities:
    """
    Maps a key request onto the capability descriptor sent upstream.

    ``reusable`` is only carried when reusable keys are enabled.
    """
    return KeyCapabilities(
        tags=tuple(request.tags),
        reusable=request.reusable if settings.enable_reusable_keys else False,
        ephemeral=request.ephemeral,
        preauthorized=request.preauthorized,
    )


def check_feature_fields(request: KeyRequest, settings: BackendSettings) -> None:
    """
    Rejects explicitly supplied fields whose feature flag is off.

    Raises:
        RequestSchemaError: If `reusable` or `lifetime` was set while disabled.
    """
    disabled = []
    if not settings.enable_reusable_keys:
        disabled.append("reusable")
    if not settings.enable_key_lifetime:
        disabled.append("lifetime")
    for field in disabled:
        if field in request.model_fields_set:
            raise RequestSchemaError(f"field '{field}' is not supported by this backend")


def resolve_expiry(request: KeyRequest, settings: BackendSettings) -> timedelta | None:
    """Key expiry to send upstream, or None when key lifetimes are disabled."""
    if not settings.enable_key_lifetime:
        return None
    return request.lifetime or settings.default_key_lifetime


class KeyIssuer:
    """
    Issues authentication keys for the configured tailnet.

    The configuration is read from the store on every call; nothing is cached
    between requests and nothing is retried.

    Attributes:
        store (ConfigStore): The config store holding the backend configuration.
        settings (BackendSettings): Process-level settings.
    """

    def __init__(
        self,
        store: ConfigStore,
        settings: BackendSettings,
        client_factory: UpstreamClientFactory | None = None,
    ) -> None:
        """
        Initialize the KeyIssuer.

        Args:
            store: The config store to read the configuration from.
            settings: Process-level settings (timeouts and feature flags).
            client_factory: Builds the upstream client. Defaults to `TailscaleClient`.
        """
        self.store = store
        self.settings = settings
        self.client_factory: UpstreamClientFactory = client_factory or TailscaleClient

    async def generate_key(self, request: KeyRequest) -> IssuedKey:
        """
        Generates a new authentication key.

        Emits an OpenTelemetry span `tailscale.generate_key`.

        Args:
            request: The requested key capabilities.

        Returns:
            IssuedKey: The key with the capabilities confirmed by the upstream.

        Raises:
            RequestSchemaError: If a disabled field was supplied.
            NotConfiguredError: If no configuration has been stored.
            ConfigDecodeError: If the stored configuration is malformed.
            AuthNotConfiguredError: If the configuration has no usable authentication strategy.
            UpstreamError: If the Tailscale API call fails.
        """
        with tracer.start_as_current_span("tailscale.generate_key") as span:
            try:
                check_feature_fields(request, self.settings)

                configuration = await load_configuration(self.store)

                strategy = resolve_auth_strategy(configuration)
                if strategy.method is AuthMethod.OAUTH:
                    logger.debug("Using oauth client credentials for authentication")
                else:
                    logger.debug("Using api key for authentication")
                span.set_attribute("tailscale.auth_method", str(strategy.method))

                capabilities = build_capabilities(request, self.settings)
                expiry = resolve_expiry(request, self.settings)
                span.set_attribute("tailscale.key.ephemeral", capabilities.ephemeral)
                span.set_attribute("tailscale.key.reusable", capabilities.reusable)
                span.set_attribute("tailscale.key.preauthorized", capabilities.preauthorized)
                span.set_attribute("tailscale.key.tag_count", len(capabilities.tags))

                async with self.client_factory(
                    configuration.api_url, configuration.tailnet, strategy, self.settings.http_timeout
                ) as client:
                    key = await client.create_key(capabilities, expiry)

                logger.info(f"Issued key {key.id} for tailnet {configuration.tailnet}")
                span.set_attribute("tailscale.key.id", key.id)
                span.set_status(Status(StatusCode.OK))
                return key

            except UpstreamError as e:
                logger.error(f"Key generation failed upstream (status={e.status_code}): {e}")
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise
            except TailscaleBackendError as e:
                logger.warning(f"Key generation failed: {e}")
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise
