"""AES-256-CBC with PKCS#7 padding.

This module neither derives keys/IVs nor authenticates. Callers must verify
the tag before calling ``decrypt``.
"""

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .byteops import BytesLike
from .types import IV_SIZE, KEY_SIZE

_BLOCK_BITS = 128


class CipherError(Exception):
    """Raised when decryption fails for any reason (padding, key, layout)."""
    pass


def encrypt(enc_key: BytesLike, iv: BytesLike, plaintext: BytesLike) -> bytes:
    """
    Encrypt with AES-256-CBC and PKCS#7 padding.

    Args:
        enc_key: 32-byte key
        iv: 16-byte IV
        plaintext: Data to encrypt

    Returns:
        Ciphertext, a non-empty multiple of 16 bytes

    Raises:
        ValueError: If the key or IV length is wrong
    """
    _require_key_iv(enc_key, iv)

    padder = padding.PKCS7(_BLOCK_BITS).padder()
    padded = padder.update(plaintext) + padder.finalize()

    encryptor = Cipher(algorithms.AES(enc_key), modes.CBC(iv)).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def decrypt(enc_key: BytesLike, iv: BytesLike, ciphertext: BytesLike) -> bytes:
    """
    Decrypt AES-256-CBC and strip PKCS#7 padding.

    Args:
        enc_key: 32-byte key
        iv: 16-byte IV
        ciphertext: Data to decrypt

    Returns:
        Plaintext

    Raises:
        ValueError: If the key or IV length is wrong
        CipherError: On any decryption failure; bad padding and a wrong key
            are indistinguishable
    """
    _require_key_iv(enc_key, iv)

    try:
        decryptor = Cipher(algorithms.AES(enc_key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        raise CipherError("Decryption failed") from e


def _require_key_iv(enc_key: BytesLike, iv: BytesLike) -> None:
    if len(enc_key) != KEY_SIZE:
        raise ValueError(f"enc_key must be {KEY_SIZE} bytes, got {len(enc_key)}")
    if len(iv) != IV_SIZE:
        raise ValueError(f"iv must be {IV_SIZE} bytes, got {len(iv)}")
