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
Tailscale authentication-key issuance backend: stores tailnet credentials and issues device auth keys.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .backend import TailscaleBackend, TailscaleBackendAsync
from .config import BackendSettings
from .config_manager import ConfigurationManager
from .exceptions import (
    AuthNotConfiguredError,
    ConfigDecodeError,
    InvalidConfigError,
    NotConfiguredError,
    RequestSchemaError,
    TailscaleBackendError,
    UnsupportedOperationError,
    UpstreamError,
    error_response,
)
from .key_issuer import KeyIssuer
from .models import Configuration, IssuedKey, KeyCapabilities, KeyRequest
from .storage import ConfigStore, MemoryConfigStore
from .tailscale_client import TailscaleClient

__all__ = [
    "AuthNotConfiguredError",
    "BackendSettings",
    "ConfigDecodeError",
    "ConfigStore",
    "Configuration",
    "ConfigurationManager",
    "InvalidConfigError",
    "IssuedKey",
    "KeyCapabilities",
    "KeyIssuer",
    "KeyRequest",
    "MemoryConfigStore",
    "NotConfiguredError",
    "RequestSchemaError",
    "TailscaleBackend",
    "TailscaleBackendAsync",
    "TailscaleBackendError",
    "TailscaleClient",
    "UnsupportedOperationError",
    "UpstreamError",
    "error_response",
]
