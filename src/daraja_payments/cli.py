"""
Command-line interface for exercising the Daraja APIs.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Iterable, Sequence, Tuple

import requests

from .api import create_gateway_client
from .core.errors import DarajaError
from .core.payloads import Operation

TOKEN_COMMAND = "token"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _key_value(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Values must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Key must not be empty")
    return key, val


def _collect(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    collected: dict[str, str] = {}
    for key, value in pairs:
        collected[key] = value
    return collected


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="daraja-payments",
        description="Execute a single Daraja (M-Pesa) API operation",
    )
    parser.add_argument(
        "operation",
        choices=[TOKEN_COMMAND, *(op.value for op in Operation)],
        help="Operation to run, or 'token' to check that credentials work",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing DARAJA_* settings (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_key_value,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--param",
        action="append",
        type=_key_value,
        metavar="NAME=VALUE",
        default=None,
        help="Request parameter, e.g. --param phone_number=254708374149",
    )
    parser.add_argument(
        "--api-version",
        choices=["v1", "v2"],
        default=None,
        help="Endpoint version for register_callbacks and simulate_c2b",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = _collect(args.set or ())

    try:
        client = create_gateway_client(
            env_file=args.env_file,
            overrides=overrides,
            session=requests.Session(),
        )
    except DarajaError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    if args.operation == TOKEN_COMMAND:
        try:
            client.access_token()
        except DarajaError as exc:
            logging.error("Token generation failed: %s", exc)
            return 1
        logging.info("Obtained an access token for the %s environment", client.config.environment)
        return 0

    try:
        response = client.execute(
            args.operation,
            _collect(args.param or ()),
            version=args.api_version,
        )
    except (DarajaError, TypeError) as exc:
        logging.error("%s request failed: %s", args.operation, exc)
        return 1

    print(json.dumps(response.raw, indent=2, sort_keys=True))
    if not response.succeeded:
        logging.error(
            "Gateway returned result code %s: %s",
            response.result_code,
            response.result_description,
        )
        return 1
    return 0


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
