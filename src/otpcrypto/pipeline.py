"""Protection (outbound) and verification (inbound) pipelines.

Outbound:
    1) w = current window
    2) n = fresh 8-byte nonce
    3) iv = derive_iv(mac_key, w, n)
    4) c = AES-256-CBC(enc_key, iv, plaintext)
    5) tag = derive_tag(mac_key, w, n, c)
    6) SecureMessage(version, w, n, c, tag)

Inbound, strictly in this order, each step final on failure:
    1) version must equal the configured version      -> invalid message
    2) |w - current window| <= skew                    -> window out of range
    3) recomputed tag == message tag (constant time)   -> authentication failed
    4) decrypt with the IV rebuilt from (w, n)         -> decryption failed

Only the transmitted window is used to rebuild the IV and tag; the skew is
purely a freshness bound. Decryption is never attempted before the tag has
been verified.
"""

import logging
from typing import Any, Callable, Mapping, Optional

from . import cipher
from .byteops import BytesLike, SecretBytes, constant_time_equals
from .config import OtpCryptoConfig
from .derivation import derive_iv, derive_tag
from .hkdf import derive_keys
from .message import SecureMessage
from .nonce import generate_nonce, validate_nonce
from .types import (
    AuthenticationFailedError,
    DecryptionFailedError,
    InternalCryptoError,
    InvalidMessageError,
    OtpCryptoError,
    WindowOutOfRangeError,
)

logger = logging.getLogger(__name__)

NonceSource = Callable[[], bytes]


class _KeyedPipeline:
    """Holds a config reference and the keys derived from it.

    Keys are derived once at construction and reused for every message.
    ``close()`` scrubs them; a closed pipeline refuses further work.
    """

    def __init__(self, config: OtpCryptoConfig) -> None:
        if not isinstance(config, OtpCryptoConfig):
            raise TypeError("config must be an OtpCryptoConfig")
        self._config = config
        self._keys = derive_keys(config.master_key, config.salt, config.info)
        self._closed = False

    @property
    def config(self) -> OtpCryptoConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Scrub the cached keys."""
        self._keys.scrub()
        self._closed = True

    def _require_open(self) -> None:
        if self.closed:
            raise RuntimeError("pipeline is closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ProtectionPipeline(_KeyedPipeline):
    """Turns plaintext into an authenticated SecureMessage.

    Example usage:
        ```python
        config = OtpCryptoConfig(master_key=key, info=DEFAULT_HKDF_INFO)
        with ProtectionPipeline(config) as pipeline:
            message = pipeline.protect(b"ping")
            headers, body = message.to_wire_headers(), message.to_wire_body()
        ```
    """

    def __init__(self, config: OtpCryptoConfig, nonce_source: Optional[NonceSource] = None) -> None:
        """
        Args:
            config: Protocol configuration (kept by reference).
            nonce_source: Callable returning a fresh 8-byte nonce; defaults
                to the OS CSPRNG.
        """
        super().__init__(config)
        self._nonce_source = nonce_source or generate_nonce

    def protect(self, plaintext: BytesLike) -> SecureMessage:
        """
        Encrypt and authenticate ``plaintext``.

        Raises:
            InvalidMessageError: If plaintext is empty or not bytes
            InternalCryptoError: On any failure while building the message
        """
        if not isinstance(plaintext, (bytes, bytearray, memoryview)) or len(plaintext) == 0:
            raise InvalidMessageError() from ValueError("plaintext must be non-empty bytes")

        try:
            self._require_open()
            return self._protect(plaintext)
        except Exception as e:
            logger.warning("protect failed: %s", type(e).__name__)
            raise InternalCryptoError() from e

    def protect_text(self, text: str) -> SecureMessage:
        """Protect the UTF-8 encoding of ``text``."""
        return self.protect(text.encode("utf-8"))

    def _protect(self, plaintext: BytesLike) -> SecureMessage:
        window = self._config.current_window()

        nonce = bytes(self._nonce_source())
        validate_nonce(nonce)

        enc_key, mac_key = self._keys.key_views()
        with SecretBytes(derive_iv(mac_key, window, nonce)) as iv:
            ciphertext = cipher.encrypt(enc_key, iv.view(), plaintext)

        tag = derive_tag(mac_key, window, nonce, ciphertext)

        return SecureMessage.from_parts(
            self._config.protocol_version,
            window,
            nonce,
            ciphertext,
            tag,
        )


class VerificationPipeline(_KeyedPipeline):
    """Verifies and decrypts SecureMessages."""

    def unprotect(self, message: SecureMessage) -> bytes:
        """
        Verify ``message`` and return its plaintext.

        Raises:
            InvalidMessageError: If the message is not a SecureMessage or
                carries a different protocol version
            WindowOutOfRangeError: If the window is outside the skew
            AuthenticationFailedError: If the tag does not verify
            DecryptionFailedError: If decryption fails after authentication
            InternalCryptoError: On any other failure
        """
        try:
            self._require_open()
            if not isinstance(message, SecureMessage):
                raise InvalidMessageError() from TypeError("expected a SecureMessage")

            self._check_version(message)
            self._check_freshness(message)
            self._verify_tag(message)
            return self._decrypt(message)
        except OtpCryptoError as e:
            logger.debug("unprotect rejected message: %s", e.code)
            raise
        except Exception as e:
            logger.warning("unprotect failed unexpectedly: %s", type(e).__name__)
            raise InternalCryptoError() from e

    def unprotect_text(self, message: SecureMessage) -> str:
        """Unprotect and decode the plaintext as UTF-8."""
        plaintext = self.unprotect(message)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionFailedError() from e

    def unprotect_wire(self, headers: Mapping[str, Any], body: Any) -> bytes:
        """Parse wire headers/body and unprotect the resulting message."""
        return self.unprotect(SecureMessage.from_wire(headers, body))

    def _check_version(self, message: SecureMessage) -> None:
        expected = self._config.protocol_version
        if message.version != expected:
            raise InvalidMessageError() from ValueError(
                f"unsupported protocol version {message.version} (expected {expected})"
            )

    def _check_freshness(self, message: SecureMessage) -> None:
        current = self._config.current_window()
        skew = self._config.skew_windows
        if abs(message.window - current) > skew:
            raise WindowOutOfRangeError() from ValueError(
                f"received window {message.window} outside tolerance of current {current} (+/-{skew})"
            )

    def _verify_tag(self, message: SecureMessage) -> None:
        _, mac_key = self._keys.key_views()
        computed = derive_tag(mac_key, message.window, message.nonce, message.ciphertext)
        with SecretBytes(computed) as expected:
            if not constant_time_equals(expected.view(), message.tag):
                raise AuthenticationFailedError()

    def _decrypt(self, message: SecureMessage) -> bytes:
        enc_key, mac_key = self._keys.key_views()
        try:
            with SecretBytes(derive_iv(mac_key, message.window, message.nonce)) as iv:
                return cipher.decrypt(enc_key, iv.view(), message.ciphertext)
        except (cipher.CipherError, ValueError) as e:
            raise DecryptionFailedError() from e
