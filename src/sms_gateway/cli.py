"""Command line entry point: `sms-gateway --listen :8080 --name /dev/ttyUSB0 --key ...`."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

import uvicorn

from sms_gateway.core.logging import configure_logging
from sms_gateway.core.settings import Settings, settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Relay encrypted one-time SMS commands to a serial device"
    )
    parser.add_argument("--logpath", default=None, help="directory for smsserver.log")
    parser.add_argument("--listen", default=None, help="listen address (default :8080)")
    parser.add_argument("--name", default=None, help="serial device of the SMS modem")
    parser.add_argument("--baud", type=int, default=None, help="serial baud rate (default 9600)")
    parser.add_argument("--key", default=None, help="16, 24 or 32 byte AES key")
    return parser


def apply_overrides(args: argparse.Namespace, target: Settings | None = None) -> Settings:
    """Copy the flags that were given onto `target` (the global settings by default)."""
    if target is None:
        target = settings
    overrides = {
        "log_path": args.logpath,
        "listen": args.listen,
        "serial_port": args.name,
        "serial_baudrate": args.baud,
        "aes_key": args.key,
    }
    for field, value in overrides.items():
        if value is not None:
            setattr(target, field, value)
    return target


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    apply_overrides(args)
    configure_logging(settings)

    from sms_gateway.main import app

    logger.info("Starting SMS gateway on %s", settings.listen)
    uvicorn.run(
        app,
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
