"""
Minimal script that checks a transaction and refunds it through the public API.
"""

from __future__ import annotations

import argparse
import logging
import sys
from decimal import Decimal

from euplatesc import ConfigError, TransportError, ValidationError, create_client


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Refund an EuPlatesc transaction")
    parser.add_argument("epid", help="Gateway transaction id (ep_id)")
    parser.add_argument("amount", type=Decimal, help="Amount to refund, e.g. 12.50")
    parser.add_argument("reason", help="Reason recorded with the refund")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing EUPLATESC_* settings",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Check the transaction status but do not refund",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        client = create_client(env_file=args.env_file)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    try:
        status = client.check_status(epid=args.epid)
    except TransportError as exc:
        logging.error("Status request failed: %s", exc)
        return 1

    if status.error is not None:
        logging.error("Cannot refund %s: %s (ecode %s)", args.epid, status.error, status.ecode)
        return 1
    logging.info("Transaction %s: %s", args.epid, status.success)

    if args.dry_run:
        logging.info("Dry run requested; skipping refund.")
        return 0

    try:
        refund = client.refund(args.epid, args.amount, args.reason)
    except (ValidationError, TransportError) as exc:
        logging.error("Refund request failed: %s", exc)
        return 1

    if refund.error is not None:
        logging.error("Refund rejected: %s (ecode %s)", refund.error, refund.ecode)
        return 1

    logging.info("Refund accepted: %s", refund.success)
    return 0


if __name__ == "__main__":
    sys.exit(main())
