"""HMAC-SHA256 primitive."""

from typing import Iterable

from cryptography.hazmat.primitives import hmac
from cryptography.hazmat.primitives.hashes import SHA256

from .byteops import BytesLike
from .types import HASH_LEN


def hmac_sha256(key: BytesLike, data: BytesLike) -> bytes:
    """
    Compute HMAC-SHA256 over a single buffer.

    Args:
        key: Secret key (any length)
        data: Input data

    Returns:
        32-byte tag
    """
    return hmac_sha256_parts(key, (data,))


def hmac_sha256_parts(key: BytesLike, parts: Iterable[BytesLike]) -> bytes:
    """
    Compute HMAC-SHA256 over an ordered sequence of buffers.

    Each part is fed to the MAC in order, which gives the same tag as
    MAC(key, part0 || part1 || ...) without building the concatenation.

    Args:
        key: Secret key (any length)
        parts: Buffers appended in order

    Returns:
        32-byte tag
    """
    h = hmac.HMAC(key, SHA256())
    for i, part in enumerate(parts):
        if not isinstance(part, (bytes, bytearray, memoryview)):
            raise ValueError(f"parts[{i}] must be bytes-like")
        h.update(part)
    tag = h.finalize()
    if len(tag) != HASH_LEN:
        raise RuntimeError("HMAC-SHA256 returned unexpected length")
    return tag
