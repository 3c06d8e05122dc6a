"""
Command-line interface for exercising the EuPlatesc client.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Sequence, Tuple

import requests

from .core.client import EuPlatescClient, GatewayResponse, TransportError
from .core.config import ConfigError, ValidationError, load_client_config
from .core.operations import OPERATIONS, FieldKind, get_operation
from .core.payloads import ExtraParameters, Frequency, Order


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )


def _key_value(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Expected KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Key must not be empty")
    return key, val


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"'{value}' is not a number") from exc


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"'{value}' is not a YYYY-MM-DD date") from exc


def _collect_pairs(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    collected: dict[str, str] = {}
    for key, value in pairs:
        collected[key] = value
    return collected


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="euplatesc",
        description="Build signed EuPlatesc requests and call the manager API",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing EUPLATESC_* settings (default: .env)",
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
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    pay = commands.add_parser("payment-url", help="Print a signed payment page URL")
    pay.add_argument("--amount", type=_decimal, required=True)
    pay.add_argument("--currency", required=True)
    pay.add_argument("--invoice-id", required=True)
    pay.add_argument("--description", required=True)
    pay.add_argument("--frequency-days", type=int, help="Make the payment recurring")
    pay.add_argument("--expires-at", type=_iso_date, help="Recurrence expiry (YYYY-MM-DD)")
    pay.add_argument("--success-url")
    pay.add_argument("--failed-url")
    pay.add_argument("--silent-url")
    pay.add_argument("--lang")

    status = commands.add_parser("status", help="Check the status of a transaction")
    status.add_argument("--epid")
    status.add_argument("--invoice-id")

    call = commands.add_parser("call", help="Invoke any manager API operation")
    call.add_argument("operation", choices=sorted(OPERATIONS))
    call.add_argument(
        "--param",
        action="append",
        type=_key_value,
        metavar="NAME=VALUE",
        default=None,
        help="Operation parameter; dates use YYYY-MM-DD",
    )

    verify = commands.add_parser(
        "verify-callback", help="Check the signature of a return callback"
    )
    verify.add_argument("fields", nargs="+", type=_key_value, metavar="KEY=VALUE")
    return parser


def _operation_params(operation_name: str, pairs: Dict[str, str]) -> Dict[str, Any]:
    operation = get_operation(operation_name)
    kinds = {spec.param: spec.kind for spec in operation.fields}
    params: Dict[str, Any] = {}
    for name, raw in pairs.items():
        kind = kinds.get(name)
        try:
            if kind is FieldKind.AMOUNT:
                params[name] = _decimal(raw)
            elif kind is FieldKind.DATE:
                params[name] = _iso_date(raw)
            else:
                params[name] = raw
        except argparse.ArgumentTypeError as exc:
            raise ValidationError(f"Invalid value for {name}: {exc}") from exc
    return params


def _print_response(response: GatewayResponse) -> int:
    print(json.dumps(response.raw, indent=2, ensure_ascii=False))
    if response.error is not None:
        logging.error("Gateway error %s: %s", response.ecode, response.error)
        return 1
    return 0


def _run_command(client: EuPlatescClient, args: argparse.Namespace) -> int:
    if args.command == "payment-url":
        frequency = None
        if args.frequency_days is not None or args.expires_at is not None:
            frequency = Frequency(
                days=args.frequency_days if args.frequency_days is not None else 30,
                expires_at=args.expires_at,
            )
        order = Order(
            amount=args.amount,
            currency=args.currency,
            invoice_id=args.invoice_id,
            description=args.description,
            frequency=frequency,
            extra=ExtraParameters(
                success_url=args.success_url,
                failed_url=args.failed_url,
                silent_url=args.silent_url,
                lang=args.lang,
            ),
        )
        print(client.payment_url(order))
        return 0

    if args.command == "status":
        return _print_response(
            client.check_status(epid=args.epid, invoice_id=args.invoice_id)
        )

    if args.command == "call":
        params = _operation_params(args.operation, _collect_pairs(args.param or ()))
        return _print_response(client.call(args.operation, **params))

    result = client.verify_callback(_collect_pairs(args.fields))
    print(json.dumps({"status": result.status, "action": result.action, "message": result.message}))
    return 0 if result.success else 1


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = _collect_pairs(args.set or ())

    try:
        config = load_client_config(env_file=args.env_file, overrides=overrides)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    client = EuPlatescClient(config, session=requests.Session())
    try:
        return _run_command(client, args)
    except ValidationError as exc:
        logging.error("Invalid request: %s", exc)
        return 1
    except (TransportError, requests.RequestException) as exc:
        logging.error("Request to the manager API failed: %s", exc)
        return 1


def main() -> None:
    sys.exit(run_cli())
