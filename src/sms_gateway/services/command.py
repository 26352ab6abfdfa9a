"""Parsing and validation of decoded command payloads."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import parse_qsl

from sms_gateway.core.errors import InvalidFormatError, MissingFieldError, ParseError

FIELD_VALID = "valid"
FIELD_NUMBER = "sendNumber"
FIELD_MESSAGE = "sendMsg"

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_INTEGER = re.compile(r"[+-]?[0-9]+")

# Expiry timestamps are signed 64-bit seconds.
EXPIRY_MIN = -(2**63)
EXPIRY_MAX = 2**63 - 1


@dataclass(frozen=True)
class Command:
    """A parsed SMS command."""

    expires_at: int
    destination: str
    message: str


class FieldValidator(Protocol):
    """Hook for deployment-specific checks on destination and message."""

    def check_destination(self, destination: str) -> None: ...

    def check_message(self, message: str) -> None: ...


class PermissiveValidator:
    """Accept any non-empty destination and message."""

    def check_destination(self, destination: str) -> None:
        if not destination:
            raise InvalidFormatError(FIELD_NUMBER, "empty value")

    def check_message(self, message: str) -> None:
        if not message:
            raise InvalidFormatError(FIELD_MESSAGE, "empty value")


class RegexValidator(PermissiveValidator):
    """Require destinations to match a pattern and cap message length."""

    def __init__(
        self,
        destination_pattern: str | None = None,
        max_message_length: int | None = None,
    ) -> None:
        self._pattern = re.compile(destination_pattern) if destination_pattern else None
        self._max_message_length = max_message_length

    def check_destination(self, destination: str) -> None:
        super().check_destination(destination)
        if self._pattern is not None and not self._pattern.fullmatch(destination):
            raise InvalidFormatError(FIELD_NUMBER, "does not match destination pattern")

    def check_message(self, message: str) -> None:
        super().check_message(message)
        if self._max_message_length is not None and len(message) > self._max_message_length:
            raise InvalidFormatError(
                FIELD_MESSAGE,
                f"{len(message)} characters exceeds limit of {self._max_message_length}",
            )


def build_validator(
    destination_pattern: str | None = None,
    max_message_length: int | None = None,
) -> FieldValidator:
    """Return the validator for the configured rules."""
    if destination_pattern is None and max_message_length is None:
        return PermissiveValidator()
    return RegexValidator(destination_pattern, max_message_length)


def parse_query(payload: bytes) -> dict[str, str]:
    """Parse `key=value&...` text, keeping the first value of repeated keys.

    Raises:
        ParseError: If the payload is not UTF-8, uses `;` separators or holds
            a malformed percent escape
    """
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as err:
        raise ParseError(f"payload is not UTF-8: {err}") from err

    if ";" in text:
        raise ParseError("invalid semicolon separator in query")
    match = _BAD_ESCAPE.search(text)
    if match:
        raise ParseError(f"invalid URL escape at offset {match.start()}")

    params: dict[str, str] = {}
    try:
        pairs = parse_qsl(text, keep_blank_values=True, errors="strict")
    except UnicodeDecodeError as err:
        raise ParseError(f"percent-decoded value is not UTF-8: {err}") from err
    for key, value in pairs:
        params.setdefault(key, value)
    return params


def parse_expiry(value: str) -> int:
    """Parse the `valid` field as a base-10, signed 64-bit timestamp."""
    if not _INTEGER.fullmatch(value):
        raise InvalidFormatError(FIELD_VALID, f"{value!r} is not an integer")
    expires_at = int(value)
    if not EXPIRY_MIN <= expires_at <= EXPIRY_MAX:
        raise InvalidFormatError(FIELD_VALID, f"{value!r} is out of range")
    return expires_at


def parse_command(payload: bytes, validator: FieldValidator | None = None) -> Command:
    """Build a `Command` from a decoded payload.

    All three fields are required; `destination` and `message` are handed
    to `validator` (the permissive default when omitted).

    Raises:
        ParseError: If the payload is not a well-formed query string
        MissingFieldError: If `valid`, `sendNumber` or `sendMsg` is absent
        InvalidFormatError: If `valid` is not an integer or a field fails
            validation
    """
    params = parse_query(payload)

    valid = params.get(FIELD_VALID)
    if not valid:
        raise MissingFieldError(FIELD_VALID)
    if FIELD_NUMBER not in params:
        raise MissingFieldError(FIELD_NUMBER)
    if FIELD_MESSAGE not in params:
        raise MissingFieldError(FIELD_MESSAGE)

    expires_at = parse_expiry(valid)
    destination = params[FIELD_NUMBER]
    message = params[FIELD_MESSAGE]

    checker = validator or PermissiveValidator()
    checker.check_destination(destination)
    checker.check_message(message)

    return Command(expires_at=expires_at, destination=destination, message=message)
