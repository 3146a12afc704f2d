"""
Helpers for the validation and confirmation URLs the gateway calls back.

The gateway does not sign its callbacks, so bodies are decoded and handed
back untouched. Restricting callers to the gateway's source addresses is
left to the network layer of the deploying application.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Tuple, Union

from .errors import InvalidOperationCodeError, MalformedResponseError

__all__ = [
    "ACKNOWLEDGEMENT_HEADERS",
    "CallbackPayload",
    "RejectCode",
    "build_accept_response",
    "build_reject_response",
    "read_callback_body",
    "render_acknowledgement",
]

# Decoded JSON exactly as the gateway sent it.
CallbackPayload = Any

ACKNOWLEDGEMENT_HEADERS = {"Content-Type": "application/json"}


class RejectCode(str, Enum):
    INVALID_MSISDN = "C2B00011"
    INVALID_ACCOUNT_NUMBER = "C2B00012"
    INVALID_AMOUNT = "C2B00013"
    INVALID_KYC_DETAILS = "C2B00014"
    OTHER = "C2B00016"


def build_accept_response() -> Dict[str, Any]:
    return {"ResultCode": 0, "ResultDesc": "Accepted"}


def build_reject_response(code: Union[RejectCode, str] = RejectCode.OTHER) -> Dict[str, Any]:
    """
    Response telling the gateway to cancel a C2B payment during validation.
    """
    try:
        reject_code = RejectCode(code)
    except ValueError as exc:
        raise InvalidOperationCodeError(f"Unknown rejection code '{code}'") from exc
    return {"ResultCode": reject_code.value, "ResultDesc": "Rejected"}


def read_callback_body(raw: Union[bytes, bytearray, str]) -> CallbackPayload:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedResponseError("Callback body is not valid UTF-8") from exc
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise MalformedResponseError(f"Callback body is not valid JSON: {raw!r}") from exc


def render_acknowledgement(body: Dict[str, Any]) -> Tuple[int, Dict[str, str], str]:
    """
    Return ``(status, headers, text)`` for the HTTP reply to a callback.
    """
    return 200, dict(ACKNOWLEDGEMENT_HEADERS), json.dumps(body)
