"""
Environment routing and the helpers that assemble configuration variables.

``resolve_base_url`` is the only place that interprets the ``sandbox``/``live``
mode strings; everything else works with the resolved base URL. The ``.env``
helpers understand simple ``KEY=VALUE`` files, allow callers to layer
overrides, and ultimately return a plain mapping that can be fed into
:class:`daraja_payments.core.config.DarajaConfig`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional

from .errors import InvalidEnvironmentError

__all__ = [
    "BASE_URLS",
    "LIVE",
    "SANDBOX",
    "DarajaEnvironment",
    "build_environment",
    "load_env_file",
    "normalize_environment",
    "resolve_base_url",
]

SANDBOX = "sandbox"
LIVE = "live"

BASE_URLS: Mapping[str, str] = {
    SANDBOX: "https://sandbox.safaricom.co.ke",
    LIVE: "https://api.safaricom.co.ke",
}


def normalize_environment(environment: str) -> str:
    if not isinstance(environment, str):
        raise InvalidEnvironmentError(
            f"Environment must be 'sandbox' or 'live', got {environment!r}"
        )
    value = environment.strip().lower()
    if value not in BASE_URLS:
        raise InvalidEnvironmentError(
            f"Environment must be 'sandbox' or 'live', got {environment!r}"
        )
    return value


def resolve_base_url(environment: str) -> str:
    """Return the gateway base URL for ``environment``."""
    return BASE_URLS[normalize_environment(environment)]


def _parse_env_file(path: Path) -> Dict[str, str]:
    values: Dict[str, str] = {}
    try:
        data = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return values

    for raw_line in data.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        values[key.strip()] = value
    return values


def load_env_file(
    path: str = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Load environment variables from ``path`` into ``environ``.

    Existing keys are preserved. The merged mapping is returned so callers can
    inspect the resulting values.
    """
    target: MutableMapping[str, str] = environ if environ is not None else os.environ
    values = _parse_env_file(Path(path))
    for key, value in values.items():
        target.setdefault(key, value)
    return dict(target)


@dataclass(frozen=True)
class DarajaEnvironment:
    """
    A resolved set of environment variables used to configure the client.
    """

    variables: Mapping[str, str]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.variables.get(key, default)


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> DarajaEnvironment:
    """
    Assemble a :class:`DarajaEnvironment` from multiple sources.

    ``base`` defaults to :data:`os.environ`. ``env_file`` is optional; set it to
    ``None`` to skip file loading entirely. ``overrides`` always win.
    """
    merged: Dict[str, str] = dict(os.environ if base is None else base)

    if env_file is not None:
        for key, value in _parse_env_file(Path(env_file)).items():
            merged.setdefault(key, value)

    if overrides:
        merged.update(overrides)

    return DarajaEnvironment(variables=merged)
