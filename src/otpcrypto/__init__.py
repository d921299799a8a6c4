"""
OTP Crypto - time-windowed message protection

Python implementation of the OTP crypto protocol: HKDF-SHA256 key derivation,
derived per-message IVs, AES-256-CBC + HMAC-SHA256 (Encrypt-then-MAC) and a
text wire encoding shared with independent implementations.
"""

from .byteops import (
    u64be,
    constant_time_equals,
    to_base64,
    from_base64_strict,
    SecretBytes,
)
from .mac import hmac_sha256, hmac_sha256_parts
from .hkdf import extract, expand, derive_keys, DerivedKeys
from .nonce import generate_nonce, validate_nonce
from .derivation import derive_iv, derive_tag
from .cipher import CipherError
from .config import (
    OtpCryptoConfig,
    TimeProvider,
    SystemTimeProvider,
    FixedTimeProvider,
    initialize,
    instance,
    is_initialized,
    reset,
)
from .message import SecureMessage
from .wire import WireParts, to_wire, parse_wire, is_reserved_header
from .pipeline import ProtectionPipeline, VerificationPipeline
from .types import (
    PROTOCOL_VERSION,
    DEFAULT_WINDOW_SECONDS,
    DEFAULT_SKEW_WINDOWS,
    DEFAULT_HKDF_INFO,
    NONCE_SIZE,
    IV_SIZE,
    TAG_SIZE,
    KEY_SIZE,
    RESERVED_HEADERS,
    FailureKind,
    OtpCryptoError,
    InvalidMessageError,
    WindowOutOfRangeError,
    AuthenticationFailedError,
    DecryptionFailedError,
    InternalCryptoError,
)

__version__ = "0.1.0"

__all__ = [
    # Bytes
    "u64be",
    "constant_time_equals",
    "to_base64",
    "from_base64_strict",
    "SecretBytes",
    # MAC
    "hmac_sha256",
    "hmac_sha256_parts",
    # Key derivation
    "extract",
    "expand",
    "derive_keys",
    "DerivedKeys",
    # Nonce
    "generate_nonce",
    "validate_nonce",
    # Derivation
    "derive_iv",
    "derive_tag",
    # Cipher
    "CipherError",
    # Config
    "OtpCryptoConfig",
    "TimeProvider",
    "SystemTimeProvider",
    "FixedTimeProvider",
    "initialize",
    "instance",
    "is_initialized",
    "reset",
    # Message
    "SecureMessage",
    # Wire
    "WireParts",
    "to_wire",
    "parse_wire",
    "is_reserved_header",
    # Pipelines
    "ProtectionPipeline",
    "VerificationPipeline",
    # Constants
    "PROTOCOL_VERSION",
    "DEFAULT_WINDOW_SECONDS",
    "DEFAULT_SKEW_WINDOWS",
    "DEFAULT_HKDF_INFO",
    "NONCE_SIZE",
    "IV_SIZE",
    "TAG_SIZE",
    "KEY_SIZE",
    "RESERVED_HEADERS",
    # Errors
    "FailureKind",
    "OtpCryptoError",
    "InvalidMessageError",
    "WindowOutOfRangeError",
    "AuthenticationFailedError",
    "DecryptionFailedError",
    "InternalCryptoError",
]
