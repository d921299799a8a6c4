"""Type definitions for the OTP crypto protocol."""

from enum import Enum
from typing import Optional


# Protocol constants
PROTOCOL_VERSION = 1
DEFAULT_WINDOW_SECONDS = 30
DEFAULT_SKEW_WINDOWS = 0
MAX_SKEW_WINDOWS = 2
MIN_MASTER_KEY_SIZE = 32

# Sizes
NONCE_SIZE = 8
IV_SIZE = 16
TAG_SIZE = 32
KEY_SIZE = 32
HASH_LEN = 32

# Derivation labels
IV_LABEL = b"iv"
TAG_LABEL = b"tag"

# Recommended HKDF info (binds derived keys to this protocol)
DEFAULT_HKDF_INFO = b"otp-crypto/v1"

# Wire header keys
HEADER_VERSION = "v"
HEADER_WINDOW = "w"
HEADER_NONCE = "n"
HEADER_CIPHERTEXT = "c"
RESERVED_HEADERS = (HEADER_VERSION, HEADER_WINDOW, HEADER_NONCE, HEADER_CIPHERTEXT)


class FailureKind(Enum):
    """Closed set of failure kinds surfaced by the protocol engine."""
    INVALID_MESSAGE = "invalid_message"
    WINDOW_OUT_OF_RANGE = "window_out_of_range"
    AUTHENTICATION_FAILED = "authentication_failed"
    DECRYPTION_FAILED = "decryption_failed"
    INTERNAL_ERROR = "internal_error"

    @property
    def description(self) -> str:
        """Fixed, non-leaking description for this kind."""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    FailureKind.INVALID_MESSAGE: "Invalid message",
    FailureKind.WINDOW_OUT_OF_RANGE: "Expired or not yet valid",
    FailureKind.AUTHENTICATION_FAILED: "Authentication failed",
    FailureKind.DECRYPTION_FAILED: "Decryption failed",
    FailureKind.INTERNAL_ERROR: "Internal error",
}


# Exception types
class OtpCryptoError(Exception):
    """Base exception for OTP crypto failures.

    The message is always the fixed description of ``kind``. The underlying
    cause, if any, is only available as ``__cause__`` and must not be sent
    to the peer.
    """

    kind: FailureKind = FailureKind.INTERNAL_ERROR

    def __init__(self, kind: Optional[FailureKind] = None) -> None:
        if kind is not None:
            self.kind = kind
        super().__init__(self.kind.description)

    @property
    def code(self) -> str:
        """Stable error code (e.g. ``"invalid_message"``)."""
        return self.kind.value

    @classmethod
    def for_kind(cls, kind: FailureKind) -> "OtpCryptoError":
        """Create the exception subclass matching ``kind``."""
        return _BY_KIND[kind]()

    @classmethod
    def wrap(cls, exc: BaseException, kind: FailureKind) -> "OtpCryptoError":
        """Return ``exc`` if already classified, else a new ``kind`` error chained to it."""
        if isinstance(exc, OtpCryptoError):
            return exc
        err = cls.for_kind(kind)
        err.__cause__ = exc
        return err


class InvalidMessageError(OtpCryptoError):
    """Malformed wire fields, bad lengths or version mismatch."""
    kind = FailureKind.INVALID_MESSAGE


class WindowOutOfRangeError(OtpCryptoError):
    """Message window is outside the accepted skew."""
    kind = FailureKind.WINDOW_OUT_OF_RANGE


class AuthenticationFailedError(OtpCryptoError):
    """Tag verification failed."""
    kind = FailureKind.AUTHENTICATION_FAILED


class DecryptionFailedError(OtpCryptoError):
    """Cipher or padding failure after authentication succeeded."""
    kind = FailureKind.DECRYPTION_FAILED


class InternalCryptoError(OtpCryptoError):
    """Unexpected failure not otherwise classified."""
    kind = FailureKind.INTERNAL_ERROR


_BY_KIND = {
    FailureKind.INVALID_MESSAGE: InvalidMessageError,
    FailureKind.WINDOW_OUT_OF_RANGE: WindowOutOfRangeError,
    FailureKind.AUTHENTICATION_FAILED: AuthenticationFailedError,
    FailureKind.DECRYPTION_FAILED: DecryptionFailedError,
    FailureKind.INTERNAL_ERROR: InternalCryptoError,
}
