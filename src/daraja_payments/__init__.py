"""
Public facade for the Daraja (M-Pesa) client package.

The module intentionally re-exports the most useful pieces for integrators so
they can ``from daraja_payments import ...`` without navigating the package.
"""

from .api import create_gateway_client, execute
from .core import (
    LIVE,
    SANDBOX,
    AccessToken,
    ConfigError,
    Credentials,
    DarajaConfig,
    DarajaError,
    GatewayClient,
    GatewayResponse,
    InvalidEnvironmentError,
    InvalidOperationCodeError,
    MalformedResponseError,
    MissingCredentialsError,
    MissingFieldError,
    Operation,
    OperationNotAllowedError,
    RejectCode,
    TokenGenerationError,
    TokenManager,
    TransportError,
    build_accept_response,
    build_payload,
    build_reject_response,
    derive_password,
    encrypt_initiator_password,
    format_timestamp,
    load_daraja_config,
    load_env_file,
    read_callback_body,
    render_acknowledgement,
    resolve_base_url,
)

__all__ = (
    "AccessToken",
    "ConfigError",
    "Credentials",
    "DarajaConfig",
    "DarajaError",
    "GatewayClient",
    "GatewayResponse",
    "InvalidEnvironmentError",
    "InvalidOperationCodeError",
    "LIVE",
    "MalformedResponseError",
    "MissingCredentialsError",
    "MissingFieldError",
    "Operation",
    "OperationNotAllowedError",
    "RejectCode",
    "SANDBOX",
    "TokenGenerationError",
    "TokenManager",
    "TransportError",
    "build_accept_response",
    "build_payload",
    "build_reject_response",
    "create_gateway_client",
    "derive_password",
    "encrypt_initiator_password",
    "execute",
    "format_timestamp",
    "load_daraja_config",
    "load_env_file",
    "read_callback_body",
    "render_acknowledgement",
    "resolve_base_url",
)
