"""Relay of accepted commands to the serial SMS device.

The device reads frames of the form `::<number>::<message>::\\n`.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Protocol

import serial

from sms_gateway.core.errors import RelayWriteError
from sms_gateway.core.settings import settings
from sms_gateway.services.command import Command

logger = logging.getLogger(__name__)

FRAME_MARKER = "::"
FRAME_TERMINATOR = "\n"


class DownstreamChannel(Protocol):
    """Exclusive byte sink in front of the SMS hardware."""

    def write(self, frame: bytes) -> None: ...

    def close(self) -> None: ...


def encode_frame(destination: str, message: str) -> bytes:
    """Encode a destination and message as a device frame."""
    text = f"{FRAME_MARKER}{destination}{FRAME_MARKER}{message}{FRAME_MARKER}{FRAME_TERMINATOR}"
    return text.encode("utf-8")


class SerialChannel:
    """Downstream channel writing frames to a serial port."""

    def __init__(self, port: str, baudrate: int = 9600, timeout: float | None = None) -> None:
        """Open the serial port.

        Args:
            port: Device name, e.g. `/dev/ttyUSB0` or `COM3`
            baudrate: Line speed expected by the device
            timeout: Write timeout in seconds; None blocks until written

        Raises:
            serial.SerialException: If the port cannot be opened
        """
        self.port = port
        self._serial = serial.Serial(port=port, baudrate=baudrate, write_timeout=timeout)

    def write(self, frame: bytes) -> None:
        try:
            written = self._serial.write(frame)
            self._serial.flush()
        except (serial.SerialException, OSError) as err:
            raise RelayWriteError(f"error sending data to serial port {self.port}: {err}") from err
        if written is not None and written != len(frame):
            raise RelayWriteError(f"short write to {self.port}: {written} of {len(frame)} bytes")

    def close(self) -> None:
        self._serial.close()


class CommandRelay:
    """Encodes commands and forwards them to the downstream channel.

    With no channel the relay still encodes the frame and reports success;
    acceptance of a command never waits for a delivery acknowledgment.
    """

    def __init__(self, channel: DownstreamChannel | None = None) -> None:
        self._channel = channel
        self._write_lock = Lock()

    @property
    def enabled(self) -> bool:
        return self._channel is not None

    def relay(self, command: Command) -> bytes:
        """Send `command` downstream and return the frame.

        Raises:
            RelayWriteError: If the channel rejects the frame
        """
        frame = encode_frame(command.destination, command.message)
        if self._channel is None:
            logger.debug("No downstream channel configured; frame not sent")
            return frame

        # One writer at a time; frames must not interleave.
        with self._write_lock:
            try:
                self._channel.write(frame)
            except RelayWriteError:
                raise
            except OSError as err:
                raise RelayWriteError(f"error sending data to downstream channel: {err}") from err

        logger.info("Sent message to sms device: %r", frame)
        return frame

    def close(self) -> None:
        if self._channel is not None:
            self._channel.close()


_command_relay: CommandRelay | None = None
_command_relay_lock = Lock()


def get_command_relay() -> CommandRelay:
    """Return the process-wide relay, opening the serial port on first use."""
    global _command_relay
    with _command_relay_lock:
        if _command_relay is None:
            channel: DownstreamChannel | None = None
            if settings.serial_port:
                logger.info(
                    "Opening serial port %s at %d baud",
                    settings.serial_port,
                    settings.serial_baudrate,
                )
                channel = SerialChannel(
                    settings.serial_port,
                    baudrate=settings.serial_baudrate,
                    timeout=settings.serial_timeout_seconds,
                )
            else:
                logger.warning("No serial port configured; commands will not reach a device")
            _command_relay = CommandRelay(channel)
        return _command_relay


def close_command_relay() -> None:
    """Close and forget the process-wide relay."""
    global _command_relay
    with _command_relay_lock:
        if _command_relay is not None:
            _command_relay.close()
            _command_relay = None
