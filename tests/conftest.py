"""
Shared fixtures and helpers for the Daraja client tests.
"""

import json
from unittest.mock import Mock

import pytest
import requests

from daraja_payments.core.config import Credentials, DarajaConfig


def mock_http_response(json_data=None, status_code=200, text=None):
    """Return a mock requests.Response. ``json_data=None`` means a non-JSON body."""
    resp = Mock()
    resp.status_code = status_code
    if json_data is None:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
        resp.text = "" if text is None else text
    else:
        resp.json.return_value = json_data
        resp.text = json.dumps(json_data) if text is None else text
    return resp


def token_response(value="daraja_tok_abc", expires_in="3599"):
    return mock_http_response({"access_token": value, "expires_in": expires_in})


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def credentials():
    return Credentials("test_consumer_key", "test_consumer_secret", "sandbox")


@pytest.fixture
def live_credentials():
    return Credentials("test_consumer_key", "test_consumer_secret", "live")


@pytest.fixture
def config(credentials):
    return DarajaConfig(
        credentials=credentials,
        short_code="174379",
        pass_key="test_passkey",
        initiator="testapi",
        security_credential="encrypted_cred_b64==",
        callback_url="https://example.com/mpesa/callback",
        result_url="https://example.com/mpesa/result",
        queue_timeout_url="https://example.com/mpesa/timeout",
    )


@pytest.fixture
def session():
    session = Mock(spec=requests.Session)
    session.get.return_value = token_response()
    return session


@pytest.fixture
def clock():
    return FakeClock()
