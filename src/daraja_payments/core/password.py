"""
Lipa Na M-Pesa Online password derivation.
"""

from __future__ import annotations

import base64
from datetime import datetime
from typing import Optional

__all__ = ["TIMESTAMP_FORMAT", "derive_password", "format_timestamp"]

# 24-hour clock; the gateway rejects passwords built from 12-hour stamps.
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Render ``moment`` (local now by default) as ``YYYYMMDDHHmmss``."""
    moment = datetime.now() if moment is None else moment
    return moment.strftime(TIMESTAMP_FORMAT)


def derive_password(short_code: str, pass_key: str, timestamp: str) -> str:
    """
    Return ``base64(short_code + pass_key + timestamp)``.

    The same timestamp must be sent alongside the password in the request.
    """
    raw = f"{short_code}{pass_key}{timestamp}".encode("utf-8")
    return base64.b64encode(raw).decode("ascii")
