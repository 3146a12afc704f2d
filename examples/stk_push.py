"""
Minimal script that uses the public API to send an STK push and poll it.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time

from daraja_payments import DarajaError, create_gateway_client, format_timestamp


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send an STK push using the SDK API")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing DARAJA_* settings",
    )
    parser.add_argument("--phone-number", required=True, help="Payer MSISDN, e.g. 254708374149")
    parser.add_argument("--amount", required=True, help="Amount to request")
    parser.add_argument(
        "--account-reference",
        default="Test",
        help="Reference shown on the payer's prompt",
    )
    parser.add_argument(
        "--description",
        default="Payment",
        help="Transaction description sent with the prompt",
    )
    parser.add_argument(
        "--poll-seconds",
        type=int,
        default=0,
        help="Wait this long, then query the push status once (default: skip)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        client = create_gateway_client(env_file=args.env_file)
    except DarajaError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    timestamp = format_timestamp()
    try:
        response = client.initiate_push(
            phone_number=args.phone_number,
            amount=args.amount,
            account_reference=args.account_reference,
            transaction_desc=args.description,
            timestamp=timestamp,
        )
    except DarajaError as exc:
        logging.error("STK push failed: %s", exc)
        return 1

    if not response.succeeded:
        logging.error("Gateway rejected the push: %s", response.raw)
        return 1

    checkout_id = response.get("CheckoutRequestID")
    logging.info("Push accepted. CheckoutRequestID: %s", checkout_id)

    if args.poll_seconds <= 0:
        return 0

    time.sleep(args.poll_seconds)
    try:
        status = client.query_push(checkout_request_id=checkout_id, timestamp=timestamp)
    except DarajaError as exc:
        logging.error("Push status query failed: %s", exc)
        return 1

    logging.info("Push status %s: %s", status.result_code, status.result_description)
    return 0 if status.succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
