"""HKDF-SHA256 (RFC 5869) key derivation.

    PRK = HMAC(salt or 32 zero bytes, IKM)
    OKM = HKDF-Expand(PRK, info, L)

The master key is expanded to 64 bytes and split into an AES-256 key and an
HMAC-SHA256 key.
"""

from typing import Optional, Tuple

from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.kdf.hkdf import HKDF, HKDFExpand

from .byteops import BytesLike, SecretBytes
from .mac import hmac_sha256
from .types import HASH_LEN, KEY_SIZE

MAX_OKM_LENGTH = 255 * HASH_LEN


class DerivedKeys:
    """Encryption and MAC keys (32 bytes each) derived from a master key."""

    __slots__ = ("_enc_key", "_mac_key")

    def __init__(self, enc_key: BytesLike, mac_key: BytesLike) -> None:
        if len(enc_key) != KEY_SIZE:
            raise ValueError(f"enc_key must be {KEY_SIZE} bytes, got {len(enc_key)}")
        if len(mac_key) != KEY_SIZE:
            raise ValueError(f"mac_key must be {KEY_SIZE} bytes, got {len(mac_key)}")
        self._enc_key = SecretBytes(enc_key)
        self._mac_key = SecretBytes(mac_key)

    @property
    def enc_key(self) -> bytes:
        """32-byte AES-256 key."""
        return self._enc_key.to_bytes()

    @property
    def mac_key(self) -> bytes:
        """32-byte HMAC-SHA256 key."""
        return self._mac_key.to_bytes()

    def key_views(self) -> Tuple[memoryview, memoryview]:
        """Read-only (enc_key, mac_key) views without making copies."""
        return self._enc_key.view(), self._mac_key.view()

    @property
    def is_scrubbed(self) -> bool:
        return self._enc_key.is_zero and self._mac_key.is_zero

    def scrub(self) -> None:
        """Overwrite both keys with zeros."""
        self._enc_key.scrub()
        self._mac_key.scrub()

    def __repr__(self) -> str:
        return "DerivedKeys(<redacted>)"


def extract(ikm: BytesLike, salt: Optional[BytesLike] = None) -> bytes:
    """
    HKDF extract step.

    Args:
        ikm: Input keying material
        salt: Optional salt; None or empty means 32 zero bytes

    Returns:
        32-byte pseudorandom key
    """
    used_salt = salt if salt else bytes(HASH_LEN)
    return hmac_sha256(used_salt, ikm)


def expand(prk: BytesLike, info: Optional[BytesLike], length: int) -> bytes:
    """
    HKDF expand step.

    Args:
        prk: 32-byte pseudorandom key from extract()
        info: Optional context information
        length: Output length, 1..255*32

    Returns:
        Output keying material of the requested length

    Raises:
        ValueError: If prk is not 32 bytes or length is out of range
    """
    if len(prk) != HASH_LEN:
        raise ValueError(f"PRK must be {HASH_LEN} bytes, got {len(prk)}")
    if length <= 0 or length > MAX_OKM_LENGTH:
        raise ValueError(f"length must be in 1..{MAX_OKM_LENGTH}")

    hkdf_expand = HKDFExpand(
        algorithm=SHA256(),
        length=length,
        info=bytes(info) if info else None,
    )
    return hkdf_expand.derive(prk)


def derive_keys(
    master_key: BytesLike,
    salt: Optional[BytesLike] = None,
    info: Optional[BytesLike] = None,
) -> DerivedKeys:
    """
    Derive the encryption and MAC keys from a master key.

    Deterministic: the same (master_key, salt, info) always yields the same
    keys, which is what lets independent endpoints agree without exchanging
    them.

    Args:
        master_key: Shared secret (length is enforced by the config layer)
        salt: Optional HKDF salt
        info: Optional HKDF info

    Returns:
        DerivedKeys with enc_key = OKM[0:32] and mac_key = OKM[32:64]
    """
    hkdf = HKDF(
        algorithm=SHA256(),
        length=2 * KEY_SIZE,
        salt=bytes(salt) if salt else None,
        info=bytes(info) if info else None,
    )
    with SecretBytes(hkdf.derive(master_key)) as okm:
        view = okm.view()
        return DerivedKeys(view[:KEY_SIZE], view[KEY_SIZE:])
