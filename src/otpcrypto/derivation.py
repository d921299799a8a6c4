"""Deterministic IV and tag derivation.

    iv  = HMAC-SHA256(mac_key, "iv"  || u64be(window) || nonce)[:16]
    tag = HMAC-SHA256(mac_key, "tag" || u64be(window) || nonce || ciphertext)

The IV is never sent; both sides rebuild it from the same inputs, so the
label bytes, the 8-byte big-endian window and the truncation point are part
of the protocol.
"""

from .byteops import BytesLike, u64be
from .mac import hmac_sha256_parts
from .nonce import validate_nonce
from .types import IV_LABEL, IV_SIZE, TAG_LABEL


def derive_iv(mac_key: BytesLike, window: int, nonce: BytesLike) -> bytes:
    """
    Derive the 16-byte AES-CBC IV for a (window, nonce) pair.

    Args:
        mac_key: HMAC key from HKDF (non-empty)
        window: Non-negative time window index
        nonce: 8-byte nonce

    Returns:
        16-byte IV

    Raises:
        ValueError: If any input is malformed
    """
    _check_common(mac_key, window, nonce)
    full = hmac_sha256_parts(mac_key, (IV_LABEL, u64be(window), nonce))
    return full[:IV_SIZE]


def derive_tag(mac_key: BytesLike, window: int, nonce: BytesLike, ciphertext: BytesLike) -> bytes:
    """
    Compute the 32-byte authentication tag over the ciphertext.

    Args:
        mac_key: HMAC key from HKDF (non-empty)
        window: Non-negative time window index
        nonce: 8-byte nonce
        ciphertext: Non-empty ciphertext

    Returns:
        32-byte tag

    Raises:
        ValueError: If any input is malformed
    """
    _check_common(mac_key, window, nonce)
    if len(ciphertext) == 0:
        raise ValueError("ciphertext must not be empty")
    return hmac_sha256_parts(mac_key, (TAG_LABEL, u64be(window), nonce, ciphertext))


def _check_common(mac_key: BytesLike, window: int, nonce: BytesLike) -> None:
    if isinstance(window, bool) or not isinstance(window, int) or window < 0:
        raise ValueError("window must be a non-negative integer")
    validate_nonce(nonce)
    if len(mac_key) == 0:
        raise ValueError("mac_key must not be empty")
