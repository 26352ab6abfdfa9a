"""Tests for command payload parsing and field validation."""

import pytest

from sms_gateway.core.errors import InvalidFormatError, MissingFieldError, ParseError
from sms_gateway.services.command import (
    Command,
    PermissiveValidator,
    RegexValidator,
    build_validator,
    parse_command,
    parse_query,
)


def test_parse_command_extracts_fields() -> None:
    command = parse_command(b"valid=9999999999&sendNumber=555&sendMsg=hello")
    assert command == Command(expires_at=9999999999, destination="555", message="hello")


def test_parse_command_percent_decodes_values() -> None:
    command = parse_command(b"sendMsg=hello+there%21%20%C3%A9&valid=10&sendNumber=%2B4912345")
    assert command.message == "hello there! é"
    assert command.destination == "+4912345"


def test_parse_query_keeps_first_of_repeated_keys() -> None:
    assert parse_query(b"a=1&a=2&b=") == {"a": "1", "b": ""}


@pytest.mark.parametrize(
    ("payload", "field"),
    [
        (b"sendNumber=555&sendMsg=hello", "valid"),
        (b"valid=&sendNumber=555&sendMsg=hello", "valid"),
        (b"valid=10&sendMsg=hello", "sendNumber"),
        (b"valid=10&sendNumber=555", "sendMsg"),
        (b"", "valid"),
    ],
)
def test_parse_command_names_missing_field(payload: bytes, field: str) -> None:
    with pytest.raises(MissingFieldError) as exc_info:
        parse_command(payload)
    assert exc_info.value.field == field


@pytest.mark.parametrize("valid", ["soon", "12.5", "1_000", " 10", "0x10"])
def test_parse_command_rejects_non_integer_expiry(valid: str) -> None:
    with pytest.raises(InvalidFormatError) as exc_info:
        parse_command(f"valid={valid}&sendNumber=555&sendMsg=hi".encode())
    assert exc_info.value.field == "valid"


def test_parse_command_accepts_signed_expiry() -> None:
    assert parse_command(b"valid=-5&sendNumber=1&sendMsg=x").expires_at == -5
    assert parse_command(b"valid=%2B5&sendNumber=1&sendMsg=x").expires_at == 5


@pytest.mark.parametrize(
    "valid",
    ["9223372036854775808", "-9223372036854775809", "99999999999999999999999999"],
)
def test_parse_command_rejects_expiry_outside_int64(valid: str) -> None:
    with pytest.raises(InvalidFormatError) as exc_info:
        parse_command(f"valid={valid}&sendNumber=1&sendMsg=x".encode())
    assert exc_info.value.field == "valid"
    assert "out of range" in str(exc_info.value)


def test_parse_command_accepts_int64_bounds() -> None:
    upper = parse_command(b"valid=9223372036854775807&sendNumber=1&sendMsg=x")
    lower = parse_command(b"valid=-9223372036854775808&sendNumber=1&sendMsg=x")
    assert upper.expires_at == 2**63 - 1
    assert lower.expires_at == -(2**63)


@pytest.mark.parametrize(
    "payload",
    [
        b"valid=10;sendNumber=555&sendMsg=hi",
        b"valid=10&sendNumber=555&sendMsg=100%",
        b"valid=10&sendNumber=555&sendMsg=%zz",
        b"valid=10&sendNumber=555&sendMsg=\xff\xfe",
        b"valid=10&sendNumber=555&sendMsg=%ff",
    ],
)
def test_parse_command_rejects_malformed_payload(payload: bytes) -> None:
    with pytest.raises(ParseError):
        parse_command(payload)


def test_permissive_validator_rejects_empty_values() -> None:
    with pytest.raises(InvalidFormatError) as exc_info:
        parse_command(b"valid=10&sendNumber=&sendMsg=hi")
    assert exc_info.value.field == "sendNumber"

    with pytest.raises(InvalidFormatError) as exc_info:
        parse_command(b"valid=10&sendNumber=555&sendMsg=")
    assert exc_info.value.field == "sendMsg"


def test_parse_command_uses_injected_validator() -> None:
    class RejectAll:
        def check_destination(self, destination: str) -> None:
            raise InvalidFormatError("sendNumber", "blocked")

        def check_message(self, message: str) -> None:
            pass

    with pytest.raises(InvalidFormatError, match="blocked"):
        parse_command(b"valid=10&sendNumber=555&sendMsg=hi", RejectAll())


def test_regex_validator_enforces_rules() -> None:
    validator = RegexValidator(r"\+?[0-9]{3,15}", max_message_length=5)
    validator.check_destination("+4912345")
    validator.check_message("hello")

    with pytest.raises(InvalidFormatError, match="pattern"):
        validator.check_destination("call-me")
    with pytest.raises(InvalidFormatError, match="exceeds"):
        validator.check_message("hello!")


def test_build_validator_defaults_to_permissive() -> None:
    assert type(build_validator()) is PermissiveValidator
    assert isinstance(build_validator(max_message_length=160), RegexValidator)
