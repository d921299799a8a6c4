"""Secure message model and wire encoding.

Wire format (four headers + body, all text):
    v     protocol version, canonical decimal (>= 1)
    w     time window, canonical decimal (>= 0)
    n     nonce, standard Base64 with padding (8 bytes)
    c     ciphertext, standard Base64 with padding (>= 1 byte)
    body  tag, standard Base64 with padding (32 bytes)

This module only checks format. It does not verify the tag or decrypt.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .byteops import BytesLike, from_base64_strict, to_base64
from .nonce import validate_nonce
from .types import (
    HEADER_CIPHERTEXT,
    HEADER_NONCE,
    HEADER_VERSION,
    HEADER_WINDOW,
    TAG_SIZE,
    InvalidMessageError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SecureMessage:
    """Protected message {version, window, nonce, ciphertext, tag}.

    Construction validates every field and raises InvalidMessageError on any
    violation, so an instance always satisfies the invariants. Binary
    fields are copied into immutable ``bytes``.
    """

    version: int
    window: int
    nonce: bytes = field(repr=False)
    ciphertext: bytes = field(repr=False)
    tag: bytes = field(repr=False)

    def __post_init__(self) -> None:
        try:
            _validate_parts(self.version, self.window, self.nonce, self.ciphertext, self.tag)
        except ValueError as e:
            raise InvalidMessageError() from e

        object.__setattr__(self, "nonce", bytes(self.nonce))
        object.__setattr__(self, "ciphertext", bytes(self.ciphertext))
        object.__setattr__(self, "tag", bytes(self.tag))

    @classmethod
    def from_parts(
        cls,
        version: int,
        window: int,
        nonce: BytesLike,
        ciphertext: BytesLike,
        tag: BytesLike,
    ) -> "SecureMessage":
        """
        Build a message from already-decoded parts.

        Raises:
            InvalidMessageError: If any invariant is violated
        """
        return cls(version=version, window=window, nonce=nonce, ciphertext=ciphertext, tag=tag)

    @classmethod
    def from_wire(cls, headers: Mapping[str, Any], body: Any) -> "SecureMessage":
        """
        Parse a message from wire headers and body.

        All four headers must be present and be strings before any field is
        decoded.

        Args:
            headers: Mapping containing "v", "w", "n", "c"
            body: Base64 tag

        Returns:
            Format-validated SecureMessage (not yet authenticated)

        Raises:
            InvalidMessageError: If any field is missing, mistyped or malformed
        """
        try:
            if not isinstance(headers, Mapping):
                raise ValueError("headers must be a mapping")
            raw = {key: headers.get(key) for key in (HEADER_VERSION, HEADER_WINDOW, HEADER_NONCE, HEADER_CIPHERTEXT)}
            missing = [key for key, value in raw.items() if value is None]
            if missing:
                raise ValueError(f"missing required headers: {', '.join(missing)}")
            if not all(isinstance(value, str) for value in raw.values()):
                raise ValueError("wire headers must be strings")
            if not isinstance(body, str):
                raise ValueError("wire body must be a string")

            version = _parse_canonical_int(raw[HEADER_VERSION], "v")
            window = _parse_canonical_int(raw[HEADER_WINDOW], "w")
            nonce = from_base64_strict(raw[HEADER_NONCE])
            ciphertext = from_base64_strict(raw[HEADER_CIPHERTEXT])
            tag = from_base64_strict(body)
        except ValueError as e:
            logger.debug("Rejected wire message: %s", e)
            raise InvalidMessageError() from e

        return cls.from_parts(version, window, nonce, ciphertext, tag)

    def to_wire_headers(self) -> dict:
        """Serialize the four protocol headers."""
        return {
            HEADER_VERSION: str(self.version),
            HEADER_WINDOW: str(self.window),
            HEADER_NONCE: to_base64(self.nonce),
            HEADER_CIPHERTEXT: to_base64(self.ciphertext),
        }

    def to_wire_body(self) -> str:
        """Serialize the tag as the wire body."""
        return to_base64(self.tag)

    def copy_with(
        self,
        version: Optional[int] = None,
        window: Optional[int] = None,
        nonce: Optional[BytesLike] = None,
        ciphertext: Optional[BytesLike] = None,
        tag: Optional[BytesLike] = None,
    ) -> "SecureMessage":
        """Return a revalidated copy with the given fields replaced."""
        return SecureMessage.from_parts(
            self.version if version is None else version,
            self.window if window is None else window,
            self.nonce if nonce is None else nonce,
            self.ciphertext if ciphertext is None else ciphertext,
            self.tag if tag is None else tag,
        )

    def __repr__(self) -> str:
        return (
            f"SecureMessage(version={self.version}, window={self.window}, "
            f"ciphertext=<{len(self.ciphertext)} bytes>)"
        )


def _validate_parts(version: Any, window: Any, nonce: Any, ciphertext: Any, tag: Any) -> None:
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        raise ValueError("protocol version must be an integer >= 1")
    if isinstance(window, bool) or not isinstance(window, int) or window < 0:
        raise ValueError("window must be a non-negative integer")
    validate_nonce(nonce)
    if not isinstance(ciphertext, (bytes, bytearray, memoryview)) or len(ciphertext) == 0:
        raise ValueError("ciphertext must be non-empty bytes")
    if not isinstance(tag, (bytes, bytearray, memoryview)) or len(tag) != TAG_SIZE:
        raise ValueError(f"tag must be {TAG_SIZE} bytes")


def _parse_canonical_int(text: str, name: str) -> int:
    """Parse a decimal integer whose canonical rendering equals ``text``."""
    try:
        value = int(text, 10)
    except ValueError:
        raise ValueError(f"{name} is not a decimal integer") from None
    if str(value) != text:
        raise ValueError(f"{name} is not in canonical decimal form")
    return value
