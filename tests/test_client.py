from unittest.mock import Mock

import pytest
import requests

from conftest import mock_http_response
from daraja_payments.core.client import GatewayClient, GatewayResponse
from daraja_payments.core.config import DarajaConfig
from daraja_payments.core.errors import (
    MalformedResponseError,
    MissingCredentialsError,
    MissingFieldError,
    OperationNotAllowedError,
    TokenGenerationError,
    TransportError,
)
from daraja_payments.core.payloads import Operation

STK_ACCEPTED = {
    "MerchantRequestID": "29115-34620561-1",
    "CheckoutRequestID": "ws_CO_191220191020363925",
    "ResponseCode": "0",
    "ResponseDescription": "Success. Request accepted for processing",
    "CustomerMessage": "Success. Request accepted for processing",
}

STK_QUERY_CANCELLED = {
    "ResponseCode": "0",
    "ResponseDescription": "The service request has been accepted successfully",
    "MerchantRequestID": "29115-34620561-1",
    "CheckoutRequestID": "ws_CO_191220191020363925",
    "ResultCode": "1032",
    "ResultDesc": "Request cancelled by user",
}


@pytest.fixture
def client(config, session):
    return GatewayClient(config, session=session)


class TestExecute:
    def test_stk_push_posts_signed_payload(self, client, session):
        session.post.return_value = mock_http_response(STK_ACCEPTED)

        response = client.initiate_push(
            phone_number="254708374149",
            amount=1,
            account_reference="ORD-1",
            transaction_desc="Order",
        )

        assert response.succeeded
        assert response.get("CheckoutRequestID") == "ws_CO_191220191020363925"
        args, kwargs = session.post.call_args
        assert args[0] == "https://sandbox.safaricom.co.ke/mpesa/stkpush/v1/processrequest"
        assert kwargs["headers"]["Authorization"] == "Bearer daraja_tok_abc"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        body = kwargs["json"]
        assert body["BusinessShortCode"] == "174379"
        assert body["PartyB"] == "174379"
        assert body["CallBackURL"] == "https://example.com/mpesa/callback"
        assert len(body["Timestamp"]) == 14

    def test_token_is_fetched_once_for_several_calls(self, client, session):
        session.post.return_value = mock_http_response(STK_ACCEPTED)
        for _ in range(3):
            client.query_push(checkout_request_id="ws_CO_1")
        assert session.get.call_count == 1
        assert session.post.call_count == 3

    def test_caller_params_override_defaults(self, client, session):
        session.post.return_value = mock_http_response({"ResponseCode": "0"})
        client.query_account_balance(party_a="600999", remarks="Balance")
        body = session.post.call_args[1]["json"]
        assert body["PartyA"] == "600999"
        assert body["Initiator"] == "testapi"
        assert body["ResultURL"] == "https://example.com/mpesa/result"

    def test_operation_may_be_named_by_string(self, client, session):
        session.post.return_value = mock_http_response({"ResponseCode": "0"})
        client.execute(
            "send_b2c",
            {"command_id": "BusinessPayment", "amount": 10, "party_b": "254708374149",
             "remarks": "Pay"},
        )
        assert session.post.call_args[0][0].endswith("/mpesa/b2c/v1/paymentrequest")

    def test_register_callbacks_uses_requested_version(self, client, session):
        session.post.return_value = mock_http_response(
            {"ResponseCode": "0", "ResponseDescription": "success"}
        )
        client.register_callbacks(version="v1", confirmation_url="https://example.com/c")
        assert session.post.call_args[0][0] == (
            "https://sandbox.safaricom.co.ke/mpesa/c2b/v1/registerurl"
        )

    def test_versioned_operation_without_version_fails_before_io(self, client, session):
        with pytest.raises(MissingFieldError):
            client.execute(Operation.REGISTER_CALLBACKS, {"confirmation_url": "https://x"})
        session.get.assert_not_called()
        session.post.assert_not_called()

    def test_builder_errors_happen_before_io(self, client, session):
        with pytest.raises(MissingFieldError):
            client.send_b2c(command_id="BusinessPayment", amount=10)
        session.get.assert_not_called()
        session.post.assert_not_called()

    def test_non_zero_result_code_is_returned(self, client, session):
        session.post.return_value = mock_http_response(
            {"ResultCode": "1032", "ResultDesc": "Request cancelled by user"}
        )
        response = client.query_push(checkout_request_id="ws_CO_1")
        assert not response.succeeded
        assert response.result_code == "1032"
        assert response.result_description == "Request cancelled by user"


    def test_cancelled_push_query_is_not_success(self, client, session):
        session.post.return_value = mock_http_response(STK_QUERY_CANCELLED)
        response = client.query_push(checkout_request_id="ws_CO_191220191020363925")
        assert not response.succeeded
        assert response.result_code == "1032"
        assert response.result_description == "Request cancelled by user"

class TestSimulateC2B:
    def test_live_environment_is_refused_without_io(self, live_credentials, session):
        client = GatewayClient(DarajaConfig(credentials=live_credentials), session=session)
        with pytest.raises(OperationNotAllowedError):
            client.simulate_c2b(
                version="v2", short_code="600000", amount=1, msisdn="254708374149"
            )
        session.get.assert_not_called()
        session.post.assert_not_called()

    def test_sandbox_simulation(self, client, session):
        session.post.return_value = mock_http_response({"ResponseCode": "0"})
        client.simulate_c2b(version="v2", amount=1, msisdn="254708374149")
        args, kwargs = session.post.call_args
        assert args[0] == "https://sandbox.safaricom.co.ke/mpesa/c2b/v2/simulate"
        assert kwargs["json"]["ShortCode"] == "174379"


class TestFailures:
    def test_http_500_with_empty_body(self, client, session):
        session.post.return_value = mock_http_response(None, status_code=500, text="")
        with pytest.raises(TransportError) as excinfo:
            client.query_push(checkout_request_id="ws_CO_1")
        assert excinfo.value.status == 500
        assert excinfo.value.body == ""
        assert excinfo.value.error_code is None

    def test_gateway_error_envelope_is_exposed(self, client, session):
        session.post.return_value = mock_http_response(
            {
                "requestId": "11728-2929992-1",
                "errorCode": "400.002.02",
                "errorMessage": "Bad Request - Invalid Amount",
            },
            status_code=400,
        )
        with pytest.raises(TransportError) as excinfo:
            client.query_push(checkout_request_id="ws_CO_1")
        assert excinfo.value.status == 400
        assert excinfo.value.error_code == "400.002.02"
        assert excinfo.value.error_message == "Bad Request - Invalid Amount"

    def test_timeout_is_a_transport_error(self, client, session):
        session.post.side_effect = requests.Timeout("read timed out")
        with pytest.raises(TransportError) as excinfo:
            client.query_push(checkout_request_id="ws_CO_1")
        assert excinfo.value.status is None

    def test_non_json_success_body(self, client, session):
        session.post.return_value = mock_http_response(None, text="<html></html>")
        with pytest.raises(MalformedResponseError):
            client.query_push(checkout_request_id="ws_CO_1")

    def test_non_object_json_body(self, client, session):
        session.post.return_value = mock_http_response(["not", "an", "object"])
        with pytest.raises(MalformedResponseError):
            client.query_push(checkout_request_id="ws_CO_1")

    def test_token_failure_stops_the_call(self, client, session):
        session.get.return_value = mock_http_response(None, status_code=401)
        with pytest.raises(TokenGenerationError):
            client.query_push(checkout_request_id="ws_CO_1")
        session.post.assert_not_called()

    def test_no_automatic_retry(self, client, session):
        session.post.return_value = mock_http_response(None, status_code=503)
        with pytest.raises(TransportError):
            client.query_push(checkout_request_id="ws_CO_1")
        assert session.post.call_count == 1


def test_client_accepts_bare_credentials(credentials):
    session = Mock(spec=requests.Session)
    client = GatewayClient(credentials, session=session)
    assert client.base_url == "https://sandbox.safaricom.co.ke"
    assert client.config.timeout_seconds == 30



def test_client_requires_config():
    with pytest.raises(MissingCredentialsError):
        GatewayClient(None, session=Mock(spec=requests.Session))


def test_client_rejects_plain_mapping():
    with pytest.raises(TypeError):
        GatewayClient({"consumer_key": "k", "consumer_secret": "s"})

class TestGatewayResponse:
    def test_reads_response_code(self):
        response = GatewayResponse.from_response(STK_ACCEPTED)
        assert response.result_code == "0"
        assert response.result_description == "Success. Request accepted for processing"
        assert response.succeeded

    def test_reads_result_code(self):
        response = GatewayResponse.from_response({"ResultCode": 0, "ResultDesc": "ok"})
        assert response.succeeded

    def test_result_code_wins_over_response_code(self):
        response = GatewayResponse.from_response(STK_QUERY_CANCELLED)
        assert response.result_code == "1032"
        assert response.result_description == "Request cancelled by user"
        assert not response.succeeded

    def test_missing_code(self):
        response = GatewayResponse.from_response({"foo": "bar"})
        assert response.result_code is None
        assert not response.succeeded
