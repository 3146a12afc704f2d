"""
Helpers for constructing the JSON payloads sent to the Daraja API.

Each :class:`Operation` owns a fixed, ordered list of gateway keys. Callers
pass snake_case parameters; :func:`build_payload` maps them onto the literal
gateway field names, fills documented defaults, and rejects missing required
values and unknown enumerated tags before anything reaches the network.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Tuple, Union

from .errors import InvalidOperationCodeError, MissingFieldError
from .password import derive_password, format_timestamp

__all__ = [
    "B2B_COMMAND_IDS",
    "B2C_COMMAND_IDS",
    "C2B_COMMAND_IDS",
    "Operation",
    "RESPONSE_TYPES",
    "accepted_parameters",
    "build_payload",
    "coerce_operation",
    "endpoint_path",
]


class Operation(Enum):
    REGISTER_CALLBACKS = "register_callbacks"
    SIMULATE_C2B = "simulate_c2b"
    REVERSE_TRANSACTION = "reverse_transaction"
    SEND_B2C = "send_b2c"
    SEND_B2B = "send_b2b"
    QUERY_ACCOUNT_BALANCE = "query_account_balance"
    QUERY_TRANSACTION_STATUS = "query_transaction_status"
    INITIATE_PUSH = "initiate_push"
    QUERY_PUSH = "query_push"


RESPONSE_TYPES = frozenset({"Cancelled", "Completed"})
C2B_COMMAND_IDS = frozenset({"CustomerPayBillOnline", "CustomerBuyGoodsOnline"})
B2C_COMMAND_IDS = frozenset({"SalaryPayment", "BusinessPayment", "PromotionPayment"})
B2B_COMMAND_IDS = frozenset(
    {
        "BusinessPayBill",
        "BusinessBuyGoods",
        "MerchantToMerchantTransfer",
        "MerchantTransferFromMerchantToWorking",
        "MerchantServicesMMFAccountTransfer",
        "AgencyFloatAdvance",
    }
)


@dataclass(frozen=True)
class _Field:
    key: str
    param: str
    required: bool = True
    default: Any = None
    choices: Optional[FrozenSet[str]] = None
    # Parameter consulted when ``param`` is absent.
    fallback: Optional[str] = None
    convert: Optional[Callable[[Any], Any]] = None
    derived: bool = False


@dataclass(frozen=True)
class _OperationSpec:
    paths: Mapping[Optional[str], str]
    fields: Tuple[_Field, ...]
    extra_params: FrozenSet[str] = frozenset()
    prepare: Optional[Callable[[Dict[str, Any], Optional[datetime], str], None]] = None
    validate: Optional[Callable[[Dict[str, Any]], None]] = None

    @property
    def parameters(self) -> FrozenSet[str]:
        names = set(self.extra_params)
        for entry in self.fields:
            if entry.derived:
                continue
            names.add(entry.param)
            if entry.fallback:
                names.add(entry.fallback)
        return frozenset(names)


def _fixed(key: str, value: str) -> _Field:
    return _Field(key, "command_id", default=value, choices=frozenset({value}))


def _initiator_fields(initiator_key: str = "Initiator") -> Tuple[_Field, ...]:
    return (
        _Field(initiator_key, "initiator"),
        _Field("SecurityCredential", "security_credential"),
    )


def _result_fields() -> Tuple[_Field, ...]:
    return (
        _Field("QueueTimeOutURL", "queue_timeout_url"),
        _Field("ResultURL", "result_url"),
    )


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require(values: Mapping[str, Any], param: str, key: str, operation: str) -> Any:
    value = values.get(param)
    if _is_missing(value):
        raise MissingFieldError(key, operation)
    return value


def _derive_push_credentials(
    values: Dict[str, Any], now: Optional[datetime], operation: str
) -> None:
    short_code = _require(values, "short_code", "BusinessShortCode", operation)
    pass_key = _require(values, "pass_key", "Password", operation)
    timestamp = values.get("timestamp") or format_timestamp(now)
    values["timestamp"] = timestamp
    values["password"] = derive_password(str(short_code), pass_key, timestamp)


def _validate_b2b(payload: Dict[str, Any]) -> None:
    if payload["CommandID"] == "BusinessPayBill" and _is_missing(payload["AccountReference"]):
        raise MissingFieldError("AccountReference", Operation.SEND_B2B.value)


_PUSH_CREDENTIAL_FIELDS = (
    _Field("BusinessShortCode", "short_code"),
    _Field("Password", "password", derived=True),
    _Field("Timestamp", "timestamp", derived=True),
)

_SPECS: Dict[Operation, _OperationSpec] = {
    Operation.REGISTER_CALLBACKS: _OperationSpec(
        paths={
            "v1": "/mpesa/c2b/v1/registerurl",
            "v2": "/mpesa/c2b/v2/registerurl",
        },
        fields=(
            _Field("ShortCode", "short_code"),
            _Field("ResponseType", "response_type", default="Cancelled", choices=RESPONSE_TYPES),
            _Field("ConfirmationURL", "confirmation_url"),
            _Field("ValidationURL", "validation_url", required=False),
        ),
    ),
    Operation.SIMULATE_C2B: _OperationSpec(
        paths={
            "v1": "/mpesa/c2b/v1/simulate",
            "v2": "/mpesa/c2b/v2/simulate",
        },
        fields=(
            _Field("ShortCode", "short_code"),
            _Field(
                "CommandID",
                "command_id",
                default="CustomerPayBillOnline",
                choices=C2B_COMMAND_IDS,
            ),
            _Field("Amount", "amount"),
            _Field("Msisdn", "msisdn"),
            _Field("BillRefNumber", "bill_ref_number", required=False),
        ),
    ),
    Operation.REVERSE_TRANSACTION: _OperationSpec(
        paths={None: "/mpesa/reversal/v1/request"},
        fields=(
            *_initiator_fields(),
            _fixed("CommandID", "TransactionReversal"),
            _Field("TransactionID", "transaction_id"),
            _Field("Amount", "amount"),
            _Field("ReceiverParty", "receiver_party"),
            _Field("ReceiverIdentifierType", "receiver_identifier_type", default=11),
            _Field("ResultURL", "result_url"),
            _Field("QueueTimeOutURL", "queue_timeout_url"),
            _Field("Remarks", "remarks"),
            _Field("Occasion", "occasion", required=False),
        ),
    ),
    Operation.SEND_B2C: _OperationSpec(
        paths={None: "/mpesa/b2c/v1/paymentrequest"},
        fields=(
            *_initiator_fields("InitiatorName"),
            _Field("CommandID", "command_id", choices=B2C_COMMAND_IDS),
            _Field("Amount", "amount"),
            _Field("PartyA", "party_a", fallback="short_code"),
            _Field("PartyB", "party_b"),
            _Field("Remarks", "remarks"),
            *_result_fields(),
            _Field("Occasion", "occasion", required=False),
        ),
    ),
    Operation.SEND_B2B: _OperationSpec(
        paths={None: "/mpesa/b2b/v1/paymentrequest"},
        fields=(
            *_initiator_fields(),
            _Field("CommandID", "command_id", choices=B2B_COMMAND_IDS),
            _Field("SenderIdentifierType", "sender_identifier_type", default=4),
            # Misspelt by the gateway; sent verbatim.
            _Field("RecieverIdentifierType", "receiver_identifier_type", default=4),
            _Field("Amount", "amount"),
            _Field("PartyA", "party_a", fallback="short_code"),
            _Field("PartyB", "party_b"),
            _Field("AccountReference", "account_reference", required=False),
            _Field("Remarks", "remarks"),
            *_result_fields(),
        ),
        validate=_validate_b2b,
    ),
    Operation.QUERY_ACCOUNT_BALANCE: _OperationSpec(
        paths={None: "/mpesa/accountbalance/v1/query"},
        fields=(
            *_initiator_fields(),
            _fixed("CommandID", "AccountBalance"),
            _Field("PartyA", "party_a", fallback="short_code"),
            _Field("IdentifierType", "identifier_type", default=4),
            _Field("Remarks", "remarks"),
            *_result_fields(),
        ),
    ),
    Operation.QUERY_TRANSACTION_STATUS: _OperationSpec(
        paths={None: "/mpesa/transactionstatus/v1/query"},
        fields=(
            *_initiator_fields(),
            _fixed("CommandID", "TransactionStatusQuery"),
            _Field("TransactionID", "transaction_id"),
            _Field("PartyA", "party_a", fallback="short_code"),
            _Field("IdentifierType", "identifier_type", default=4),
            _Field("ResultURL", "result_url"),
            _Field("QueueTimeOutURL", "queue_timeout_url"),
            _Field("Remarks", "remarks"),
            _Field("Occasion", "occasion", required=False),
        ),
    ),
    Operation.INITIATE_PUSH: _OperationSpec(
        paths={None: "/mpesa/stkpush/v1/processrequest"},
        fields=(
            *_PUSH_CREDENTIAL_FIELDS,
            _Field(
                "TransactionType",
                "transaction_type",
                default="CustomerPayBillOnline",
                choices=C2B_COMMAND_IDS,
            ),
            _Field("Amount", "amount", convert=str),
            _Field("PartyA", "phone_number"),
            _Field("PartyB", "party_b", fallback="short_code"),
            _Field("PhoneNumber", "phone_number"),
            _Field("CallBackURL", "callback_url"),
            _Field("AccountReference", "account_reference"),
            _Field("TransactionDesc", "transaction_desc"),
        ),
        extra_params=frozenset({"pass_key", "timestamp"}),
        prepare=_derive_push_credentials,
    ),
    Operation.QUERY_PUSH: _OperationSpec(
        paths={None: "/mpesa/stkpushquery/v1/query"},
        fields=(
            *_PUSH_CREDENTIAL_FIELDS,
            _Field("CheckoutRequestID", "checkout_request_id"),
        ),
        extra_params=frozenset({"pass_key", "timestamp"}),
        prepare=_derive_push_credentials,
    ),
}


def coerce_operation(operation: Union[Operation, str]) -> Operation:
    if isinstance(operation, Operation):
        return operation
    try:
        return Operation(str(operation).strip().lower())
    except ValueError as exc:
        raise InvalidOperationCodeError(f"Unknown operation '{operation}'") from exc


def accepted_parameters(operation: Union[Operation, str]) -> FrozenSet[str]:
    """Return the parameter names :func:`build_payload` accepts for ``operation``."""
    return _SPECS[coerce_operation(operation)].parameters


def endpoint_path(operation: Union[Operation, str], version: Optional[str] = None) -> str:
    """
    Return the path suffix for ``operation``.

    ``register_callbacks`` and ``simulate_c2b`` exist in ``v1`` and ``v2``
    flavours and need an explicit ``version``; every other operation has a
    single endpoint and takes none.
    """
    op = coerce_operation(operation)
    paths = _SPECS[op].paths
    if None in paths:
        if version is not None:
            raise InvalidOperationCodeError(f"{op.value} does not take an API version")
        return paths[None]
    if version is None:
        raise MissingFieldError("version", op.value)
    try:
        return paths[version.strip().lower()]
    except KeyError as exc:
        raise InvalidOperationCodeError(
            f"Unknown API version '{version}' for {op.value}; expected one of "
            f"{', '.join(sorted(p for p in paths if p))}"
        ) from exc


def build_payload(
    operation: Union[Operation, str],
    params: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Build the request body for ``operation`` from snake_case ``params``.

    ``now`` pins the clock used for STK push timestamps.
    """
    op = coerce_operation(operation)
    spec = _SPECS[op]

    unknown = set(params) - spec.parameters
    if unknown:
        raise TypeError(
            f"{op.value} got unexpected parameter(s): {', '.join(sorted(unknown))}"
        )

    values: Dict[str, Any] = dict(params)
    if spec.prepare is not None:
        spec.prepare(values, now, op.value)

    payload: Dict[str, Any] = {}
    for field in spec.fields:
        value = values.get(field.param)
        if _is_missing(value) and field.fallback:
            value = values.get(field.fallback)
        if _is_missing(value):
            value = field.default
        if _is_missing(value):
            if field.required:
                raise MissingFieldError(field.key, op.value)
            value = None
        if field.choices is not None and value not in field.choices:
            raise InvalidOperationCodeError(
                f"{field.key} for {op.value} must be one of "
                f"{', '.join(sorted(field.choices))}; got '{value}'"
            )
        if value is not None and field.convert is not None:
            value = field.convert(value)
        payload[field.key] = value

    if spec.validate is not None:
        spec.validate(payload)
    return payload
