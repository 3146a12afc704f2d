"""
Core primitives that implement the Daraja request and token lifecycle.
"""

from .callbacks import (
    RejectCode,
    build_accept_response,
    build_reject_response,
    read_callback_body,
    render_acknowledgement,
)
from .client import GatewayClient, GatewayResponse
from .config import Credentials, DarajaConfig, load_daraja_config
from .environment import (
    LIVE,
    SANDBOX,
    DarajaEnvironment,
    build_environment,
    load_env_file,
    resolve_base_url,
)
from .errors import (
    ConfigError,
    DarajaError,
    InvalidEnvironmentError,
    InvalidOperationCodeError,
    MalformedResponseError,
    MissingCredentialsError,
    MissingFieldError,
    OperationNotAllowedError,
    TokenGenerationError,
    TransportError,
)
from .password import derive_password, format_timestamp
from .payloads import Operation, build_payload, endpoint_path
from .security import encrypt_initiator_password, load_certificate
from .token import AccessToken, TokenManager

__all__ = [
    "AccessToken",
    "ConfigError",
    "Credentials",
    "DarajaConfig",
    "DarajaEnvironment",
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
    "build_environment",
    "build_payload",
    "build_reject_response",
    "derive_password",
    "encrypt_initiator_password",
    "endpoint_path",
    "format_timestamp",
    "load_certificate",
    "load_daraja_config",
    "load_env_file",
    "read_callback_body",
    "render_acknowledgement",
    "resolve_base_url",
]
