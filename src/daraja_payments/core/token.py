"""
OAuth access-token generation and caching.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import requests
from requests.auth import HTTPBasicAuth

from .config import Credentials
from .environment import resolve_base_url
from .errors import TokenGenerationError

__all__ = ["AccessToken", "DEFAULT_TOKEN_LIFETIME", "TOKEN_PATH", "TokenManager"]

TOKEN_PATH = "/oauth/v1/generate"

# Lifetime the gateway documents for its bearer tokens.
DEFAULT_TOKEN_LIFETIME = 3599


@dataclass(frozen=True)
class AccessToken:
    value: str = field(repr=False)
    obtained_at: float
    expires_in: int = DEFAULT_TOKEN_LIFETIME

    def expires_at(self, leeway: float = 0) -> float:
        # Leeway never eats more than half of a short-lived token.
        leeway = min(leeway, self.expires_in / 2)
        return self.obtained_at + self.expires_in - leeway

    def is_expired(self, now: float, leeway: float = 0) -> bool:
        return now >= self.expires_at(leeway)


def _parse_lifetime(raw: Any) -> int:
    try:
        lifetime = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_TOKEN_LIFETIME
    return lifetime if lifetime > 0 else DEFAULT_TOKEN_LIFETIME


class TokenManager:
    """
    Lazily obtains bearer tokens and keeps one live token per credentials.

    Refreshes for the same :class:`Credentials` are serialised, so callers
    racing on an expired token share the single request that replaces it.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        timeout: float = 30,
        leeway: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout
        self.leeway = leeway
        self._clock = clock
        self._tokens: Dict[Credentials, AccessToken] = {}
        self._locks: Dict[Credentials, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, credentials: Credentials) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(credentials)
            if lock is None:
                lock = self._locks[credentials] = threading.Lock()
            return lock

    def cached(self, credentials: Credentials) -> Optional[AccessToken]:
        """Return the cached token if it is still valid."""
        token = self._tokens.get(credentials)
        if token is None or token.is_expired(self._clock(), self.leeway):
            return None
        return token

    def invalidate(self, credentials: Credentials) -> None:
        with self._lock_for(credentials):
            self._tokens.pop(credentials, None)

    def ensure_token(self, credentials: Credentials) -> AccessToken:
        token = self.cached(credentials)
        if token is not None:
            return token

        with self._lock_for(credentials):
            # Another caller may have refreshed while we waited for the lock.
            token = self.cached(credentials)
            if token is not None:
                return token
            token = self._request_token(credentials)
            self._tokens[credentials] = token
            return token

    def _request_token(self, credentials: Credentials) -> AccessToken:
        url = f"{resolve_base_url(credentials.environment)}{TOKEN_PATH}"
        logging.info("Requesting access token from %s", url)
        started = self._clock()
        try:
            response = self.session.get(
                url,
                params={"grant_type": "client_credentials"},
                auth=HTTPBasicAuth(credentials.consumer_key, credentials.consumer_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TokenGenerationError(f"Token request to {url} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise TokenGenerationError(
                f"Token endpoint responded with {response.status_code}",
                status=response.status_code,
                body=response.text,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise TokenGenerationError(
                "Token endpoint returned a non-JSON body",
                status=response.status_code,
                body=response.text,
            ) from exc

        value = payload.get("access_token") if isinstance(payload, dict) else None
        if not value:
            raise TokenGenerationError(
                "Token endpoint response has no access_token",
                status=response.status_code,
                body=response.text,
            )
        return AccessToken(
            value=value,
            obtained_at=started,
            expires_in=_parse_lifetime(payload.get("expires_in")),
        )
