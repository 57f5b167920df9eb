"""Fresh key and IV generation for attachment encryption.

The IV doubles as the initial AES-CTR counter block: only its first 8 bytes
are random, the last 8 start at zero so the counter never wraps into another
session's keystream.
"""
from __future__ import annotations

import logging
import os

from mediacrypt.core.exceptions import RandomnessUnavailableError


logger = logging.getLogger(__name__)

KEY_SIZE = 32
IV_SIZE = 16
IV_RANDOM_SIZE = 8


def wipe_buffer(buf: bytearray) -> None:
    """Overwrite a mutable secret buffer with zeros in place."""
    for i in range(len(buf)):
        buf[i] = 0


def _random_bytes(length: int) -> bytes:
    try:
        return os.urandom(length)
    except (OSError, NotImplementedError) as e:
        logger.critical("OS random source failed, refusing to generate a key")
        raise RandomnessUnavailableError("Can't generate randomness") from e


class KeyMaterial:
    """A 256-bit AES key and a 128-bit CTR IV held in wipeable buffers."""

    __slots__ = ("key", "iv")

    def __init__(self, key: bytearray, iv: bytearray):
        self.key = key
        self.iv = iv

    def wipe(self) -> None:
        wipe_buffer(self.key)
        wipe_buffer(self.iv)

    def __enter__(self) -> "KeyMaterial":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __repr__(self) -> str:
        return f"KeyMaterial(key=<{len(self.key)} bytes>, iv=<{len(self.iv)} bytes>)"


def generate_key_material() -> KeyMaterial:
    """
    Generate a fresh key and IV from the OS random source.

    Raises :class:`RandomnessUnavailableError` if the random source fails.
    Nothing is returned in that case, so a caller can never end up
    encrypting with a partial or predictable key.
    """
    key = bytearray(_random_bytes(KEY_SIZE))
    iv = bytearray(IV_SIZE)
    try:
        iv[:IV_RANDOM_SIZE] = _random_bytes(IV_RANDOM_SIZE)
    except RandomnessUnavailableError:
        wipe_buffer(key)
        raise
    return KeyMaterial(key, iv)
