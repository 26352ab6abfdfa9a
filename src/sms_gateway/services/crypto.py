# src/sms_gateway/services/crypto.py
"""Symmetric decoding of request tokens.

A token is `IV || AES-CFB(key, IV, base64(payload))`. The gateway reverses
the transform; `encrypt_payload` is the trusted client's side of it.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
from typing import Protocol

from cryptography.hazmat.decrepit.ciphers.modes import CFB
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

from sms_gateway.core.errors import DecodeError

logger = logging.getLogger(__name__)

BLOCK_SIZE = algorithms.AES.block_size // 8
VALID_KEY_SIZES = frozenset({16, 24, 32})


class PayloadDecoder(Protocol):
    """Turns a raw request token into the decoded command payload."""

    def decode(self, raw: bytes) -> bytes: ...


class SymmetricDecoder:
    """AES-CFB decoder for tokens prefixed with their IV."""

    def __init__(self, key: bytes) -> None:
        self._key = key

    @property
    def key_valid(self) -> bool:
        return len(self._key) in VALID_KEY_SIZES

    def decode(self, raw: bytes) -> bytes:
        """Decrypt and base64-decode a request token.

        Args:
            raw: IV followed by the ciphertext body

        Returns:
            The decoded command payload

        Raises:
            DecodeError: If the key size is invalid, the token is shorter than
                one block, or the decrypted body is not valid base64
        """
        if not self.key_valid:
            raise DecodeError(f"invalid key size {len(self._key)}")

        if len(raw) < BLOCK_SIZE:
            raise DecodeError("ciphertext too short")

        iv, body = raw[:BLOCK_SIZE], raw[BLOCK_SIZE:]
        decryptor = Cipher(algorithms.AES(self._key), CFB(iv)).decryptor()
        text = decryptor.update(body) + decryptor.finalize()
        try:
            return base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as err:
            raise DecodeError(f"invalid base64 body: {err}") from err


class PassthroughDecoder:
    """Insecure mode: the request token is the payload itself."""

    def decode(self, raw: bytes) -> bytes:
        return raw


def build_decoder(key: bytes | None) -> PayloadDecoder:
    """Return the decoder for the configured key.

    No key selects the insecure passthrough mode; this is an explicit choice
    made once at startup, never a fallback for a failed decryption.
    """
    if not key:
        logger.warning("No AES key configured; accepting plaintext commands (insecure mode)")
        return PassthroughDecoder()

    decoder = SymmetricDecoder(key)
    if not decoder.key_valid:
        logger.error(
            "Configured AES key is %d bytes (expected one of %s); every request will be rejected",
            len(key),
            sorted(VALID_KEY_SIZES),
        )
    return decoder


def encrypt_payload(key: bytes, payload: bytes, iv: bytes | None = None) -> bytes:
    """Produce a request token for `payload` the way a trusted client does.

    Args:
        key: Shared AES key (16, 24 or 32 bytes)
        payload: Plain command payload, e.g. `valid=...&sendNumber=...&sendMsg=...`
        iv: Optional initialization vector; random when omitted

    Returns:
        IV followed by the encrypted base64 text of the payload
    """
    if len(key) not in VALID_KEY_SIZES:
        raise ValueError(f"AES keys must be 16, 24 or 32 bytes, got {len(key)}")
    if iv is None:
        iv = os.urandom(BLOCK_SIZE)
    if len(iv) != BLOCK_SIZE:
        raise ValueError(f"IV must be {BLOCK_SIZE} bytes")
    encryptor = Cipher(algorithms.AES(key), CFB(iv)).encryptor()
    body = encryptor.update(base64.b64encode(payload)) + encryptor.finalize()
    return iv + body
