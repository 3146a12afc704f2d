"""
Public, high-level helpers for talking to the Daraja API.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

import requests

from .core.client import GatewayClient, GatewayResponse
from .core.config import DarajaConfig, load_daraja_config
from .core.payloads import Operation

__all__ = [
    "create_gateway_client",
    "execute",
]


def create_gateway_client(
    *,
    config: Optional[DarajaConfig] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    **parameters: Any,
) -> GatewayClient:
    """
    Construct a :class:`GatewayClient`.

    Callers can either supply a ready-made :class:`DarajaConfig` or let the
    helper assemble one from environment data and keyword arguments such as
    ``consumer_key=...`` or ``environment="live"``.
    """
    if config is not None:
        extras = (overrides, base, *parameters.values())
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built DarajaConfig or individual parameters, not both."
            )
        cfg = config
    else:
        cfg = load_daraja_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            **parameters,
        )
    return GatewayClient(cfg, session=session)


def execute(
    operation: Union[Operation, str],
    params: Optional[Mapping[str, Any]] = None,
    *,
    version: Optional[str] = None,
    config: Optional[DarajaConfig] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
) -> GatewayResponse:
    """
    One-shot convenience wrapper: build a client and run a single operation.
    """
    client = create_gateway_client(
        config=config,
        session=session,
        env_file=env_file,
        overrides=overrides,
    )
    return client.execute(operation, params, version=version)
