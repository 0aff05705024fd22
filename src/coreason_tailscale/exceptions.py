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
Custom exceptions for the coreason-tailscale package.

Every exception carries a stable ``code`` so callers can shape a structured
error response without matching on message text.
"""

from typing import Any


class TailscaleBackendError(Exception):
    """Base exception for all coreason-tailscale errors."""

    code: str = "backend_error"


class NotConfiguredError(TailscaleBackendError):
    """Raised when the configuration is read before it has ever been written."""

    code = "not_configured"


class ConfigDecodeError(TailscaleBackendError):
    """Raised when the stored configuration cannot be decoded into its model."""

    code = "decode_error"


class InvalidConfigError(TailscaleBackendError):
    """
    Raised when a configuration update violates a validation rule.

    Attributes:
        field (str): The configuration field that failed validation.
    """

    code = "invalid_config"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class AuthNotConfiguredError(TailscaleBackendError):
    """Raised when the stored configuration has no usable authentication strategy."""

    code = "auth_not_configured"


class UpstreamError(TailscaleBackendError):
    """
    Raised when the Tailscale API call fails.

    The upstream message is kept verbatim. ``status_code`` is None for
    transport-level failures where no HTTP response was received.
    """

    code = "upstream_error"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RequestSchemaError(TailscaleBackendError):
    """Raised when request fields cannot be parsed into their typed model."""

    code = "request_schema_error"


class UnsupportedOperationError(TailscaleBackendError):
    """Raised when a path/operation combination is not served by the backend."""

    code = "unsupported_operation"


def error_response(exc: TailscaleBackendError) -> dict[str, Any]:
    """
    Shapes a backend error into a structured response body.

    Args:
        exc: The error raised while handling a request.

    Returns:
        dict[str, Any]: ``{"error": <code>, "message": <text>}`` plus
        ``status_code`` for upstream errors and ``field`` for invalid config.
    """
    body: dict[str, Any] = {"error": exc.code, "message": str(exc)}
    if isinstance(exc, UpstreamError) and exc.status_code is not None:
        body["status_code"] = exc.status_code
    if isinstance(exc, InvalidConfigError):
        body["field"] = exc.field
    return body
