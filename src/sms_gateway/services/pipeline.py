"""Request-authentication pipeline from raw token to relayed frame."""

from __future__ import annotations

import logging
from collections.abc import Callable
from threading import Lock

from sms_gateway.core.errors import MissingFieldError
from sms_gateway.core.settings import settings
from sms_gateway.services.command import (
    Command,
    FieldValidator,
    PermissiveValidator,
    build_validator,
    parse_command,
)
from sms_gateway.services.crypto import PayloadDecoder, build_decoder
from sms_gateway.services.freshness import check_freshness, wall_clock
from sms_gateway.services.relay import CommandRelay, close_command_relay, get_command_relay
from sms_gateway.services.replay import ReplayStore, get_replay_guard, reset_replay_guard

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


class CommandPipeline:
    """Validates request tokens and relays the commands they carry.

    Stages run in order and the first failure propagates as a
    `GatewayError`. A payload is recorded as seen only after it passed the
    freshness gate, and relayed only after it was recorded.
    """

    def __init__(
        self,
        decoder: PayloadDecoder,
        replay_guard: ReplayStore,
        relay: CommandRelay,
        validator: FieldValidator | None = None,
        clock: Clock = wall_clock,
    ) -> None:
        self.decoder = decoder
        self.replay_guard = replay_guard
        self.relay = relay
        self.validator = validator or PermissiveValidator()
        self.clock = clock

    def process(self, data: bytes | None) -> Command:
        """Run a raw request token through every stage.

        Args:
            data: The `data` request parameter as raw bytes

        Returns:
            The command that was relayed

        Raises:
            GatewayError: Subclass naming the stage that rejected the request
        """
        if not data:
            raise MissingFieldError("data")

        payload = self.decoder.decode(data)
        command = parse_command(payload, self.validator)

        now = self.clock()
        check_freshness(command.expires_at, now)
        self.replay_guard.check_and_insert(payload, command.expires_at, now)

        self.relay.relay(command)
        logger.debug("Accepted command valid until %d", command.expires_at)
        return command


_pipeline: CommandPipeline | None = None
_pipeline_lock = Lock()


def get_pipeline() -> CommandPipeline:
    """Return the process-wide pipeline built from settings.

    Safe to call from concurrent request threads; the pipeline and the
    resources it holds are built once.
    """
    global _pipeline
    with _pipeline_lock:
        if _pipeline is None:
            _pipeline = CommandPipeline(
                decoder=build_decoder(settings.key_bytes),
                replay_guard=get_replay_guard(),
                relay=get_command_relay(),
                validator=build_validator(
                    settings.destination_pattern, settings.max_message_length
                ),
            )
        return _pipeline


def reset_pipeline() -> None:
    """Tear down the process-wide pipeline and the resources it holds."""
    global _pipeline
    with _pipeline_lock:
        _pipeline = None
        close_command_relay()
        reset_replay_guard()
