"""Transport-facing helpers for wire headers and body.

These helpers do not perform HTTP. They merge application headers with the
protocol headers and parse received headers back into a SecureMessage.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .message import SecureMessage
from .types import RESERVED_HEADERS, InvalidMessageError

_RESERVED_LOWER = frozenset(key.lower() for key in RESERVED_HEADERS)


@dataclass(frozen=True)
class WireParts:
    """Headers and body ready to hand to a transport."""
    headers: Mapping[str, str]
    body: str


def to_wire(message: SecureMessage, extra_headers: Optional[Mapping[str, str]] = None) -> WireParts:
    """
    Serialize a message, merging optional application headers.

    Args:
        message: Message to serialize
        extra_headers: Application headers (auth, tracing, ...)

    Returns:
        WireParts with a read-only headers mapping

    Raises:
        InvalidMessageError: If an extra header collides with a protocol
            header (case-insensitive)
    """
    merged = dict(message.to_wire_headers())
    for key, value in (extra_headers or {}).items():
        if is_reserved_header(key):
            raise InvalidMessageError() from ValueError(
                f"extra header cannot override reserved key: {key}"
            )
        merged[key] = value

    return WireParts(headers=MappingProxyType(merged), body=message.to_wire_body())


def parse_wire(headers: Mapping[str, Any], body: Any) -> SecureMessage:
    """Parse wire headers/body into a format-validated SecureMessage."""
    return SecureMessage.from_wire(headers, body)


def is_reserved_header(key: str) -> bool:
    """Whether ``key`` names a protocol header (case-insensitive)."""
    return key.lower() in _RESERVED_LOWER
