"""Application settings and configuration.

This module defines all configuration options for the SMS gateway.
Settings are loaded from environment variables (or an `.env` file) with
defaults that start the gateway in its most permissive mode: no key
(plaintext commands), no serial device (relay is a no-op) and an in-memory
replay cache.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LISTEN_HOST = "0.0.0.0"


class Settings(BaseSettings):
    """Gateway settings loaded from environment variables.

    Command line flags (see `sms_gateway.cli`) are applied on top of these
    values by assignment, which is validated like construction.
    """

    # Application metadata
    app_name: str = Field(default="SMS Gateway", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Shared AES secret; empty means insecure (plaintext) mode
    aes_key: str | None = Field(default=None, alias="SMS_GATEWAY_KEY")

    # Logging
    log_path: str | None = Field(default=None, alias="SMS_GATEWAY_LOG_PATH")
    log_level: str = Field(default="INFO", alias="SMS_GATEWAY_LOG_LEVEL")

    # HTTP listener, Go-style "host:port" (":8080" binds every interface)
    listen: str = Field(default=":8080", alias="SMS_GATEWAY_LISTEN")

    # Downstream serial device; empty disables the physical relay
    serial_port: str | None = Field(default=None, alias="SMS_GATEWAY_SERIAL_PORT")
    serial_baudrate: int = Field(default=9600, alias="SMS_GATEWAY_SERIAL_BAUDRATE")
    serial_timeout_seconds: float = Field(
        default=5.0,
        alias="SMS_GATEWAY_SERIAL_TIMEOUT_SECONDS",
    )

    # Replay protection backend
    replay_backend: Literal["memory", "redis"] = Field(
        default="memory",
        alias="SMS_GATEWAY_REPLAY_BACKEND",
    )
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")
    redis_key_prefix: str = Field(default="sms-gateway:replay:", alias="REDIS_KEY_PREFIX")

    # Optional stricter field validation
    destination_pattern: str | None = Field(
        default=None,
        alias="SMS_GATEWAY_DESTINATION_PATTERN",
    )
    max_message_length: int | None = Field(
        default=None,
        alias="SMS_GATEWAY_MAX_MESSAGE_LENGTH",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator(
        "aes_key",
        "log_path",
        "serial_port",
        "destination_pattern",
        "max_message_length",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def key_bytes(self) -> bytes | None:
        """Return the shared secret as raw bytes, or None in insecure mode."""
        if self.aes_key is None:
            return None
        return self.aes_key.encode("utf-8")

    @property
    def listen_host(self) -> str:
        """Return the host part of `listen`, defaulting to all interfaces."""
        host, _, _ = self.listen.rpartition(":")
        host = host.strip("[]")
        return host or DEFAULT_LISTEN_HOST

    @property
    def listen_port(self) -> int:
        """Return the port part of `listen`.

        Raises:
            ValueError: If the listen address carries no numeric port
        """
        _, sep, port = self.listen.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"Invalid listen address: {self.listen!r}")
        return int(port)


settings = Settings()  # type: ignore[call-arg]
