"""Error taxonomy for the command pipeline.

Every failure inside the pipeline is a `GatewayError` carrying the
`RejectionReason` it maps to. Reasons are logged, never shown to callers.
"""

from __future__ import annotations

from enum import Enum


class RejectionReason(str, Enum):
    """Internal reason a request was rejected."""

    DECODE_FAILED = "decode_failed"
    MALFORMED_PAYLOAD = "malformed_payload"
    MISSING_FIELD = "missing_field"
    INVALID_FIELD = "invalid_field"
    EXPIRED = "expired"
    REPLAY = "replay"
    REPLAY_STORE_FAILED = "replay_store_failed"
    RELAY_FAILED = "relay_failed"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"


class GatewayError(RuntimeError):
    """Base exception raised by the command pipeline."""

    reason: RejectionReason = RejectionReason.INTERNAL_ERROR


class DecodeError(GatewayError):
    """Raised when the request token cannot be decrypted or decoded."""

    reason = RejectionReason.DECODE_FAILED


class ParseError(GatewayError):
    """Raised when the decoded payload is not a well-formed query string."""

    reason = RejectionReason.MALFORMED_PAYLOAD


class MissingFieldError(GatewayError):
    """Raised when a required command field is absent."""

    reason = RejectionReason.MISSING_FIELD

    def __init__(self, field: str) -> None:
        super().__init__(f"missing {field} parameter")
        self.field = field


class InvalidFormatError(GatewayError):
    """Raised when a command field is present but not acceptable."""

    reason = RejectionReason.INVALID_FIELD

    def __init__(self, field: str, detail: str) -> None:
        super().__init__(f"wrong {field} parameter: {detail}")
        self.field = field


class ExpiredError(GatewayError):
    """Raised when a command's expiry lies in the past."""

    reason = RejectionReason.EXPIRED

    def __init__(self, expires_at: int, now: int) -> None:
        super().__init__(f"valid parameter is in the past ({expires_at} < {now})")
        self.expires_at = expires_at
        self.now = now


class ReplayError(GatewayError):
    """Raised when a payload was already accepted within its validity window."""

    reason = RejectionReason.REPLAY

    def __init__(self) -> None:
        super().__init__("replay plaintext")


class ReplayStoreError(GatewayError):
    """Raised when the shared replay cache cannot be reached or refuses a write."""

    reason = RejectionReason.REPLAY_STORE_FAILED


class RelayWriteError(GatewayError):
    """Raised when the downstream channel fails to take a frame."""

    reason = RejectionReason.RELAY_FAILED
