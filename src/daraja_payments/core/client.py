"""
HTTP client for the Daraja API.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

import requests

from .config import Credentials, DarajaConfig
from .environment import LIVE, resolve_base_url
from .errors import (
    MalformedResponseError,
    MissingCredentialsError,
    OperationNotAllowedError,
    TransportError,
)
from .payloads import (
    Operation,
    accepted_parameters,
    build_payload,
    coerce_operation,
    endpoint_path,
)
from .token import TokenManager

__all__ = [
    "GatewayClient",
    "GatewayResponse",
]


def _first_present(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


@dataclass(frozen=True)
class GatewayResponse:
    """
    Parsed gateway reply.

    STK push queries carry both ``ResponseCode`` (request accepted) and
    ``ResultCode`` (payment outcome); the outcome takes precedence.
    """

    result_code: Any
    result_description: Optional[str]
    raw: Dict[str, Any]

    @property
    def succeeded(self) -> bool:
        return self.result_code is not None and str(self.result_code).strip() == "0"

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "GatewayResponse":
        return cls(
            result_code=_first_present(payload, "ResultCode", "ResponseCode", "errorCode"),
            result_description=_first_present(
                payload, "ResultDesc", "ResponseDescription", "errorMessage"
            ),
            raw=payload,
        )


def _transport_error(url: str, response: requests.Response) -> TransportError:
    body = response.text
    error_code = error_message = None
    if body:
        try:
            envelope = json.loads(body)
        except ValueError:
            envelope = None
        if isinstance(envelope, dict):
            error_code = envelope.get("errorCode")
            error_message = envelope.get("errorMessage")
    return TransportError(
        f"Gateway responded with {response.status_code} for {url}",
        status=response.status_code,
        body=body,
        error_code=error_code,
        error_message=error_message,
    )


def _post_json(
    session: requests.Session,
    url: str,
    body: Dict[str, Any],
    *,
    token: str,
    timeout: float,
) -> Dict[str, Any]:
    headers = {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    try:
        response = session.post(url, json=body, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        raise TransportError(f"Request to {url} failed: {exc}") from exc

    if not 200 <= response.status_code < 300:
        raise _transport_error(url, response)
    try:
        payload = response.json()
    except ValueError as exc:
        raise MalformedResponseError(
            f"Failed to parse JSON from gateway at {url}: {response.text!r}"
        ) from exc
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"Expected a JSON object from {url}, got {payload!r}")
    return payload


class GatewayClient:
    """
    Executes Daraja operations for one set of credentials.

    Accepts either a full :class:`DarajaConfig` or bare :class:`Credentials`.
    The bearer token is cached inside the client's :class:`TokenManager`.
    """

    def __init__(
        self,
        config: Union[DarajaConfig, Credentials],
        *,
        session: Optional[requests.Session] = None,
        token_manager: Optional[TokenManager] = None,
    ) -> None:
        if config is None:
            raise MissingCredentialsError(
                "GatewayClient needs a DarajaConfig or Credentials instance"
            )
        if isinstance(config, Credentials):
            config = DarajaConfig(credentials=config)
        elif not isinstance(config, DarajaConfig):
            raise TypeError(
                f"Expected DarajaConfig or Credentials, got {type(config).__name__}"
            )
        self.config = config
        self.session = session or requests.Session()
        self.base_url = resolve_base_url(config.environment)
        self.tokens = token_manager or TokenManager(
            self.session,
            timeout=config.timeout_seconds,
            leeway=config.token_leeway_seconds,
        )

    @property
    def credentials(self) -> Credentials:
        return self.config.credentials

    def access_token(self) -> str:
        return self.tokens.ensure_token(self.credentials).value

    def _merge_defaults(self, operation: Operation, params: Mapping[str, Any]) -> Dict[str, Any]:
        accepted = accepted_parameters(operation)
        merged = {
            key: value
            for key, value in self.config.parameter_defaults().items()
            if key in accepted
        }
        merged.update({key: value for key, value in params.items() if value is not None})
        return merged

    def execute(
        self,
        operation: Union[Operation, str],
        params: Optional[Mapping[str, Any]] = None,
        *,
        version: Optional[str] = None,
    ) -> GatewayResponse:
        """
        Build, authenticate and send one operation.

        Non-zero result codes are returned, not raised; callers inspect
        :attr:`GatewayResponse.succeeded`.
        """
        op = coerce_operation(operation)
        if op is Operation.SIMULATE_C2B and self.config.environment == LIVE:
            raise OperationNotAllowedError(
                "C2B simulation is only available in the sandbox environment"
            )

        url = f"{self.base_url}{endpoint_path(op, version)}"
        body = build_payload(op, self._merge_defaults(op, params or {}))
        token = self.access_token()

        logging.info("Submitting %s request to %s", op.value, url)
        logging.debug("Payload keys for %s: %s", op.value, ", ".join(body))
        payload = _post_json(
            self.session,
            url,
            body,
            token=token,
            timeout=self.config.timeout_seconds,
        )
        return GatewayResponse.from_response(payload)

    def register_callbacks(self, *, version: str, **params: Any) -> GatewayResponse:
        return self.execute(Operation.REGISTER_CALLBACKS, params, version=version)

    def simulate_c2b(self, *, version: str, **params: Any) -> GatewayResponse:
        return self.execute(Operation.SIMULATE_C2B, params, version=version)

    def reverse_transaction(self, **params: Any) -> GatewayResponse:
        return self.execute(Operation.REVERSE_TRANSACTION, params)

    def send_b2c(self, **params: Any) -> GatewayResponse:
        return self.execute(Operation.SEND_B2C, params)

    def send_b2b(self, **params: Any) -> GatewayResponse:
        return self.execute(Operation.SEND_B2B, params)

    def query_account_balance(self, **params: Any) -> GatewayResponse:
        return self.execute(Operation.QUERY_ACCOUNT_BALANCE, params)

    def query_transaction_status(self, **params: Any) -> GatewayResponse:
        return self.execute(Operation.QUERY_TRANSACTION_STATUS, params)

    def initiate_push(self, **params: Any) -> GatewayResponse:
        """Send an STK push (Lipa Na M-Pesa Online) prompt to the payer's phone."""
        return self.execute(Operation.INITIATE_PUSH, params)

    def query_push(self, **params: Any) -> GatewayResponse:
        return self.execute(Operation.QUERY_PUSH, params)
