import json
from unittest.mock import Mock, patch

import pytest
import requests

from conftest import mock_http_response, token_response
from daraja_payments.cli import build_parser, run_cli

CREDENTIALS = [
    "--env-file", "does-not-exist.env",
    "--set", "DARAJA_CONSUMER_KEY=key",
    "--set", "DARAJA_CONSUMER_SECRET=secret",
    "--set", "DARAJA_SHORT_CODE=174379",
    "--set", "DARAJA_PASS_KEY=pk",
]


@pytest.fixture
def session():
    session = Mock(spec=requests.Session)
    session.get.return_value = token_response()
    with patch("daraja_payments.cli.requests.Session", return_value=session):
        yield session


def test_parser_rejects_unknown_operation():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["refund"])


def test_token_command(session):
    assert run_cli(["token", *CREDENTIALS]) == 0
    session.get.assert_called_once()


def test_operation_prints_response(session, capsys):
    session.post.return_value = mock_http_response(
        {"ResultCode": "0", "ResultDesc": "The service request is processed successfully."}
    )

    code = run_cli(
        ["query_push", *CREDENTIALS, "--param", "checkout_request_id=ws_CO_1"]
    )

    assert code == 0
    assert json.loads(capsys.readouterr().out)["ResultCode"] == "0"
    assert session.post.call_args[1]["json"]["CheckoutRequestID"] == "ws_CO_1"


def test_non_zero_result_code_exits_1(session):
    session.post.return_value = mock_http_response(
        {"ResultCode": "1032", "ResultDesc": "Request cancelled by user"}
    )
    assert run_cli(["query_push", *CREDENTIALS, "--param", "checkout_request_id=x"]) == 1


def test_cancelled_push_query_exits_1(session):
    session.post.return_value = mock_http_response(
        {
            "ResponseCode": "0",
            "ResponseDescription": "The service request has been accepted successfully",
            "MerchantRequestID": "29115-34620561-1",
            "CheckoutRequestID": "ws_CO_1",
            "ResultCode": "1032",
            "ResultDesc": "Request cancelled by user",
        }
    )
    assert run_cli(["query_push", *CREDENTIALS, "--param", "checkout_request_id=ws_CO_1"]) == 1


def test_missing_credentials_exit_1(session, monkeypatch):
    monkeypatch.delenv("DARAJA_CONSUMER_SECRET", raising=False)
    assert run_cli(["token", "--env-file", "does-not-exist.env",
                    "--set", "DARAJA_CONSUMER_KEY=key"]) == 1


def test_unknown_param_exit_1(session):
    assert run_cli(["query_push", *CREDENTIALS, "--param", "nope=1"]) == 1
    session.post.assert_not_called()
