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
ConfigurationManager component for validating and persisting the backend configuration.
"""

from coreason_tailscale.auth_strategy import has_usable_auth
from coreason_tailscale.exceptions import InvalidConfigError
from coreason_tailscale.models import Configuration
from coreason_tailscale.storage import CONFIG_STORAGE_KEY, ConfigStore, encode_configuration, load_configuration
from coreason_tailscale.utils.logger import logger


class ConfigurationManager:
    """
    Reads and writes the single stored configuration.

    Every update replaces the whole object; there is no partial update.
    """

    def __init__(self, store: ConfigStore) -> None:
        self.store = store

    async def read_configuration(self) -> Configuration:
        """
        Reads the stored configuration, secrets included.

        Raises:
            NotConfiguredError: If no configuration has been stored.
            ConfigDecodeError: If the stored configuration is malformed.
        """
        return await load_configuration(self.store)

    def validate(self, configuration: Configuration) -> None:
        """
        Checks the update rules in order. The first violated rule is raised.

        Raises:
            InvalidConfigError: If the tailnet is empty, no authentication
                strategy is complete, or the API URL is empty.
        """
        if not configuration.tailnet:
            raise InvalidConfigError("tailnet", "provided tailnet cannot be empty")
        if not has_usable_auth(configuration):
            raise InvalidConfigError(
                "api_key",
                "must either provide a non-empty api_key or a non-empty oauth_client_id and oauth_client_secret",
            )
        if not configuration.api_url:
            raise InvalidConfigError("api_url", "provided api_url cannot be empty")

    async def update_configuration(self, configuration: Configuration) -> None:
        """
        Validates and stores the configuration, overwriting any previous one.

        Args:
            configuration: The complete configuration to store.

        Raises:
            InvalidConfigError: If validation fails. Nothing is written in that case.
        """
        try:
            self.validate(configuration)
        except InvalidConfigError as e:
            logger.warning(f"Rejected configuration update ({e.field}): {e}")
            raise

        await self.store.put(CONFIG_STORAGE_KEY, encode_configuration(configuration))
        logger.info(f"Stored configuration for tailnet {configuration.tailnet}")
