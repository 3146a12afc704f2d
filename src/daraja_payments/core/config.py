"""
Configuration objects and helpers for the Daraja client.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .environment import SANDBOX, build_environment, normalize_environment
from .errors import ConfigError, MissingCredentialsError
from .security import encrypt_initiator_password, load_certificate

__all__ = [
    "Credentials",
    "DarajaConfig",
    "load_daraja_config",
]

_PARAMETER_TO_ENV_KEY = {
    "consumer_key": "DARAJA_CONSUMER_KEY",
    "consumer_secret": "DARAJA_CONSUMER_SECRET",
    "environment": "DARAJA_ENVIRONMENT",
    "timeout_seconds": "DARAJA_TIMEOUT_SECONDS",
    "token_leeway_seconds": "DARAJA_TOKEN_LEEWAY_SECONDS",
    "short_code": "DARAJA_SHORT_CODE",
    "pass_key": "DARAJA_PASS_KEY",
    "initiator": "DARAJA_INITIATOR",
    "security_credential": "DARAJA_SECURITY_CREDENTIAL",
    "initiator_password": "DARAJA_INITIATOR_PASSWORD",
    "certificate_path": "DARAJA_CERTIFICATE_PATH",
    "callback_url": "DARAJA_CALLBACK_URL",
    "result_url": "DARAJA_RESULT_URL",
    "queue_timeout_url": "DARAJA_QUEUE_TIMEOUT_URL",
}

# Config fields that double as request parameter defaults.
_DEFAULT_PARAMETERS = (
    "short_code",
    "pass_key",
    "initiator",
    "security_credential",
    "callback_url",
    "result_url",
    "queue_timeout_url",
)


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class Credentials:
    """
    Consumer key/secret pair bound to one environment.

    Instances are immutable and hashable; the token cache is keyed on them.
    """

    consumer_key: str
    consumer_secret: str = field(repr=False)
    environment: str = SANDBOX

    def __post_init__(self) -> None:
        if not self.consumer_key or not self.consumer_secret:
            raise MissingCredentialsError(
                "Both the consumer key and the consumer secret are required"
            )
        object.__setattr__(self, "environment", normalize_environment(self.environment))


def _parse_int(values: Mapping[str, str], key: str, default: str) -> int:
    raw = values.get(key, default)
    try:
        number = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer, got '{raw}'") from exc
    if number < 0:
        raise ConfigError(f"{key} must not be negative")
    return number


def _optional(values: Mapping[str, str], key: str) -> Optional[str]:
    value = values.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class DarajaConfig:
    credentials: Credentials
    timeout_seconds: int = 30
    token_leeway_seconds: int = 60
    short_code: Optional[str] = None
    pass_key: Optional[str] = field(default=None, repr=False)
    initiator: Optional[str] = None
    security_credential: Optional[str] = field(default=None, repr=False)
    callback_url: Optional[str] = None
    result_url: Optional[str] = None
    queue_timeout_url: Optional[str] = None

    @property
    def environment(self) -> str:
        return self.credentials.environment

    def parameter_defaults(self) -> Dict[str, str]:
        """
        Deployer-wide values used when a request omits them.
        """
        defaults: Dict[str, str] = {}
        for name in _DEFAULT_PARAMETERS:
            value = getattr(self, name)
            if value is not None:
                defaults[name] = value
        return defaults

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "DarajaConfig":
        credentials = Credentials(
            consumer_key=(values.get("DARAJA_CONSUMER_KEY") or "").strip(),
            consumer_secret=(values.get("DARAJA_CONSUMER_SECRET") or "").strip(),
            environment=values.get("DARAJA_ENVIRONMENT", SANDBOX),
        )

        security_credential = _optional(values, "DARAJA_SECURITY_CREDENTIAL")
        initiator_password = _optional(values, "DARAJA_INITIATOR_PASSWORD")
        certificate_path = _optional(values, "DARAJA_CERTIFICATE_PATH")
        if security_credential is None and initiator_password is not None:
            if certificate_path is None:
                raise ConfigError(
                    "DARAJA_CERTIFICATE_PATH is required to encrypt DARAJA_INITIATOR_PASSWORD"
                )
            security_credential = encrypt_initiator_password(
                initiator_password, load_certificate(certificate_path)
            )

        return cls(
            credentials=credentials,
            timeout_seconds=_parse_int(values, "DARAJA_TIMEOUT_SECONDS", "30"),
            token_leeway_seconds=_parse_int(values, "DARAJA_TOKEN_LEEWAY_SECONDS", "60"),
            short_code=_optional(values, "DARAJA_SHORT_CODE"),
            pass_key=_optional(values, "DARAJA_PASS_KEY"),
            initiator=_optional(values, "DARAJA_INITIATOR"),
            security_credential=security_credential,
            callback_url=_optional(values, "DARAJA_CALLBACK_URL"),
            result_url=_optional(values, "DARAJA_RESULT_URL"),
            queue_timeout_url=_optional(values, "DARAJA_QUEUE_TIMEOUT_URL"),
        )

    @classmethod
    def from_env(
        cls,
        *,
        env_file: Optional[str] = ".env",
        overrides: Optional[Mapping[str, str]] = None,
        base: Optional[Mapping[str, str]] = None,
        **parameters: Any,
    ) -> "DarajaConfig":
        merged_overrides = dict(overrides or {})
        for key, value in parameters.items():
            try:
                env_key = _PARAMETER_TO_ENV_KEY[key]
            except KeyError as exc:
                raise TypeError(f"Unknown configuration parameter '{key}'") from exc
            if value is not None:
                merged_overrides[env_key] = _stringify(value)

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        return cls.from_mapping(environment.variables)


def load_daraja_config(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    **parameters: Any,
) -> DarajaConfig:
    """
    Convenience wrapper that mirrors :meth:`DarajaConfig.from_env`.

    The configuration can be provided entirely through environment variables,
    a ``.env`` file, keyword arguments named after the ``DARAJA_*`` keys
    (``consumer_key=...``, ``short_code=...``), or any combination of the three.
    """
    return DarajaConfig.from_env(
        env_file=env_file,
        overrides=overrides,
        base=base,
        **parameters,
    )
