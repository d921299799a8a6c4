"""Per-message nonce generation and validation."""

import os

from .byteops import BytesLike
from .types import NONCE_SIZE


def generate_nonce() -> bytes:
    """
    Generate a fresh 8-byte nonce from the OS CSPRNG.

    The nonce is not secret but must be unpredictable; it is mixed into the
    IV derivation so a fresh one is required for every protected message.
    ``os.urandom`` is safe to call from multiple threads.
    """
    return os.urandom(NONCE_SIZE)


def validate_nonce(nonce: BytesLike) -> None:
    """Raise ValueError unless ``nonce`` is exactly 8 bytes."""
    if not isinstance(nonce, (bytes, bytearray, memoryview)):
        raise ValueError("nonce must be bytes")
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"nonce must be exactly {NONCE_SIZE} bytes, got {len(nonce)}")
