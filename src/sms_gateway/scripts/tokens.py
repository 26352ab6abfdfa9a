# src/sms_gateway/scripts/tokens.py
"""
Generate request tokens for the SMS gateway.

This is the trusted client's half of the protocol: it builds the command
payload, encrypts it with the shared key (when one is given) and prints the
URL-safe value for the `data` parameter, or the full request URL.
"""

import argparse
import time
from urllib.parse import quote_from_bytes, urlencode

from sms_gateway.services.crypto import encrypt_payload

DEFAULT_TTL_SECONDS = 60


def build_payload(number: str, message: str, expires_at: int) -> bytes:
    """Return the plain command payload.

    Args:
        number: Destination phone number
        message: SMS text
        expires_at: Unix timestamp after which the gateway refuses the command
    """
    return urlencode(
        {"valid": expires_at, "sendNumber": number, "sendMsg": message}
    ).encode("utf-8")


def build_token(payload: bytes, key: str | None = None) -> str:
    """Return the percent-encoded `data` value for a payload.

    Without a key the payload is sent as is, for gateways in insecure mode.
    """
    raw = encrypt_payload(key.encode("utf-8"), payload) if key else payload
    return quote_from_bytes(raw, safe="")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build an SMS gateway request token")
    parser.add_argument("--key", default=None, help="shared AES key (omit for insecure mode)")
    parser.add_argument("--number", required=True, help="destination phone number")
    parser.add_argument("--message", required=True, help="SMS text")
    parser.add_argument(
        "--ttl",
        type=int,
        default=DEFAULT_TTL_SECONDS,
        help=f"seconds the command stays valid (default {DEFAULT_TTL_SECONDS})",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="print a full request URL, e.g. http://127.0.0.1:8080",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    payload = build_payload(args.number, args.message, int(time.time()) + args.ttl)
    token = build_token(payload, args.key)
    if args.base_url:
        print(f"{args.base_url.rstrip('/')}/send?data={token}")
    else:
        print(token)


if __name__ == "__main__":
    main()
