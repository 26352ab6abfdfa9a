# src/sms_gateway/services/__init__.py
"""Command pipeline services for the SMS gateway."""

from .command import Command, PermissiveValidator, RegexValidator, parse_command
from .crypto import PassthroughDecoder, SymmetricDecoder, build_decoder
from .freshness import check_freshness
from .pipeline import CommandPipeline, get_pipeline
from .relay import CommandRelay, SerialChannel, encode_frame
from .replay import RedisReplayGuard, ReplayGuard

__all__ = [
    "Command",
    "CommandPipeline",
    "CommandRelay",
    "PassthroughDecoder",
    "PermissiveValidator",
    "RedisReplayGuard",
    "RegexValidator",
    "ReplayGuard",
    "SerialChannel",
    "SymmetricDecoder",
    "build_decoder",
    "check_freshness",
    "encode_frame",
    "get_pipeline",
    "parse_command",
]
