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
Config store interface and the shared configuration read path.
"""

from typing import Protocol

from pydantic import ValidationError

from coreason_tailscale.exceptions import ConfigDecodeError, NotConfiguredError
from coreason_tailscale.models import Configuration

CONFIG_STORAGE_KEY = "config"


class ConfigStore(Protocol):
    """Protocol for the key-value store that persists the backend configuration."""

    async def get(self, key: str) -> bytes | None:
        """
        Returns the value stored under key, or None if nothing is stored.
        """
        ...

    async def put(self, key: str, value: bytes) -> None:
        """
        Stores value under key, replacing any previous value.
        """
        ...


class MemoryConfigStore:
    """
    In-memory implementation of ConfigStore.
    Not shared between processes.
    """

    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}

    async def get(self, key: str) -> bytes | None:
        return self._entries.get(key)

    async def put(self, key: str, value: bytes) -> None:
        self._entries[key] = value


async def load_configuration(store: ConfigStore) -> Configuration:
    """
    Reads and decodes the stored configuration.

    Args:
        store: The config store to read from.

    Returns:
        Configuration: The decoded configuration.

    Raises:
        NotConfiguredError: If no configuration has been stored.
        ConfigDecodeError: If the stored bytes do not decode into a Configuration.
    """
    entry = await store.get(CONFIG_STORAGE_KEY)
    if entry is None:
        raise NotConfiguredError("configuration has not been set")

    try:
        return Configuration.model_validate_json(entry)
    except ValidationError as e:
        raise ConfigDecodeError(f"Stored configuration is not valid: {e}") from e


def encode_configuration(configuration: Configuration) -> bytes:
    """Serializes a configuration into the stored JSON form."""
    return configuration.model_dump_json().encode("utf-8")
