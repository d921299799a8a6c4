"""Low-level byte helpers shared across the protocol.

- Fixed-width big-endian integer encoding for the window field.
- Canonical standard Base64 (with padding) for binary wire fields.
- Constant-time equality for tag checks.
- ``SecretBytes``, an owned buffer that can be scrubbed.
"""

import base64
import binascii
import re
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

_WHITESPACE = re.compile(r"[ \t\n\r\f\v]+")
_U64_MAX = (1 << 64) - 1


def u64be(value: int) -> bytes:
    """
    Encode a non-negative integer as 8 bytes, most significant byte first.

    Args:
        value: Integer in 0..2^64-1

    Returns:
        8-byte big-endian encoding

    Raises:
        ValueError: If value is negative or does not fit in 64 bits
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("u64be expects an integer")
    if value < 0:
        raise ValueError("u64be expects a non-negative integer")
    if value > _U64_MAX:
        raise ValueError("u64be value does not fit in 64 bits")
    return value.to_bytes(8, byteorder="big")


def constant_time_equals(a: BytesLike, b: BytesLike) -> bool:
    """
    Compare two byte strings in time proportional to the longer input.

    The accumulator is seeded with the XOR of the lengths and every byte
    position up to the longer length is folded in, so there is no early
    exit and no branch on byte equality.
    """
    len_a = len(a)
    len_b = len(b)
    diff = len_a ^ len_b
    for i in range(max(len_a, len_b)):
        ai = a[i] if i < len_a else 0
        bi = b[i] if i < len_b else 0
        diff |= ai ^ bi
    return diff == 0


def to_base64(data: BytesLike) -> str:
    """Encode bytes as standard Base64 with '=' padding."""
    return base64.b64encode(bytes(data)).decode("ascii")


def from_base64_strict(text: str) -> bytes:
    """
    Decode standard Base64 leniently on layout, strictly on alphabet.

    ASCII whitespace anywhere in the input is removed and missing '=' padding is
    added up to a multiple of 4. Whatever remains must be valid standard
    Base64.

    Raises:
        ValueError: If the normalized input is not valid Base64
    """
    if not isinstance(text, str):
        raise ValueError("Base64 input must be a string")
    normalized = _normalize_b64(text)
    try:
        return base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Invalid Base64 input") from e


def _normalize_b64(text: str) -> str:
    """Strip whitespace and pad to a multiple of 4 characters."""
    trimmed = _WHITESPACE.sub("", text)
    remainder = len(trimmed) % 4
    if remainder == 0:
        return trimmed
    return trimmed + "=" * (4 - remainder)


class SecretBytes:
    """An owned, mutable secret buffer that can be overwritten with zeros.

    Use as a context manager to guarantee scrubbing on every exit path:

        with SecretBytes(compute_tag()) as tag:
            ok = constant_time_equals(tag.view(), received)
    """

    __slots__ = ("_buf",)

    def __init__(self, data: BytesLike) -> None:
        self._buf = bytearray(data)

    def view(self) -> memoryview:
        """Read-only view over the current contents."""
        return memoryview(self._buf).toreadonly()

    def to_bytes(self) -> bytes:
        """Immutable copy of the contents."""
        return bytes(self._buf)

    def scrub(self) -> None:
        """Overwrite the buffer with zeros."""
        for i in range(len(self._buf)):
            self._buf[i] = 0

    @property
    def is_zero(self) -> bool:
        return not any(self._buf)

    def __len__(self) -> int:
        return len(self._buf)

    def __enter__(self) -> "SecretBytes":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.scrub()

    def __repr__(self) -> str:
        return f"SecretBytes(<{len(self._buf)} bytes>)"
