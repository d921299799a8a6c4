"""Tests for IV/tag derivation, nonces and the block cipher."""

import hashlib
import hmac

import pytest
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from otpcrypto.derivation import derive_iv, derive_tag
from otpcrypto.nonce import generate_nonce, validate_nonce
from otpcrypto import cipher
from otpcrypto.byteops import to_base64
from otpcrypto.cipher import CipherError
from .test_vectors import (
    FIXED_NONCE_HEX,
    FIXED_WINDOW,
    PING_ENC_KEY_HEX,
    PING_MAC_KEY_HEX,
    PING_IV_HEX,
    PING_WIRE_HEADERS,
    AES_CBC_KEY_HEX,
    AES_CBC_IV_HEX,
    AES_CBC_PLAINTEXT_HEX,
    AES_CBC_CIPHERTEXT_HEX,
)

MAC_KEY = bytes(range(32, 64))
NONCE = bytes.fromhex(FIXED_NONCE_HEX)


def _reference_hmac(key: bytes, data: bytes) -> bytes:
    return hmac.new(key, data, hashlib.sha256).digest()


class TestIvDerivation:
    """Test the derived, never-transmitted IV."""

    def test_layout(self) -> None:
        """IV = HMAC(mac_key, "iv" || u64be(window) || nonce)[:16]."""
        expected = _reference_hmac(
            MAC_KEY, b"iv" + FIXED_WINDOW.to_bytes(8, "big") + NONCE
        )[:16]
        assert derive_iv(MAC_KEY, FIXED_WINDOW, NONCE) == expected

    def test_known_answer(self) -> None:
        mac_key = bytes.fromhex(PING_MAC_KEY_HEX)
        assert derive_iv(mac_key, FIXED_WINDOW, NONCE).hex() == PING_IV_HEX

    def test_deterministic(self) -> None:
        assert derive_iv(MAC_KEY, 7, NONCE) == derive_iv(MAC_KEY, 7, NONCE)

    def test_inputs_change_iv(self) -> None:
        base = derive_iv(MAC_KEY, 7, NONCE)
        assert derive_iv(MAC_KEY, 8, NONCE) != base
        assert derive_iv(MAC_KEY, 7, bytes(8)) != base
        assert derive_iv(bytes(32), 7, NONCE) != base

    def test_window_zero(self) -> None:
        assert len(derive_iv(MAC_KEY, 0, NONCE)) == 16

    @pytest.mark.parametrize(
        "mac_key,window,nonce",
        [
            (MAC_KEY, -1, NONCE),
            (MAC_KEY, 1, bytes(7)),
            (MAC_KEY, 1, bytes(9)),
            (b"", 1, NONCE),
        ],
    )
    def test_rejects_bad_inputs(self, mac_key, window, nonce) -> None:
        with pytest.raises(ValueError):
            derive_iv(mac_key, window, nonce)


class TestTagDerivation:
    """Test the Encrypt-then-MAC tag."""

    def test_layout(self) -> None:
        """tag = HMAC(mac_key, "tag" || u64be(window) || nonce || ciphertext)."""
        ciphertext = b"\xaa" * 32
        expected = _reference_hmac(
            MAC_KEY, b"tag" + FIXED_WINDOW.to_bytes(8, "big") + NONCE + ciphertext
        )
        tag = derive_tag(MAC_KEY, FIXED_WINDOW, NONCE, ciphertext)
        assert tag == expected
        assert len(tag) == 32

    def test_iv_and_tag_are_domain_separated(self) -> None:
        """The IV is not a prefix of a tag over the same (window, nonce)."""
        iv = derive_iv(MAC_KEY, 1, NONCE)
        tag = derive_tag(MAC_KEY, 1, NONCE, b"\x00")
        assert tag[:16] != iv

    def test_rejects_empty_ciphertext(self) -> None:
        with pytest.raises(ValueError, match="ciphertext"):
            derive_tag(MAC_KEY, 1, NONCE, b"")

    def test_rejects_bad_nonce(self) -> None:
        with pytest.raises(ValueError, match="nonce"):
            derive_tag(MAC_KEY, 1, bytes(7), b"\x00")


class TestNonce:
    """Test nonce generation and validation."""

    def test_generate(self) -> None:
        nonce = generate_nonce()
        assert isinstance(nonce, bytes)
        assert len(nonce) == 8

    def test_generate_is_unpredictable(self) -> None:
        nonces = {generate_nonce() for _ in range(64)}
        assert len(nonces) == 64

    def test_validate(self) -> None:
        validate_nonce(bytes(8))
        with pytest.raises(ValueError, match="8 bytes"):
            validate_nonce(bytes(7))
        with pytest.raises(ValueError):
            validate_nonce("12345678")  # type: ignore[arg-type]


class TestCipher:
    """Test AES-256-CBC with PKCS#7 padding."""

    def test_nist_first_block(self) -> None:
        """First ciphertext block matches NIST SP 800-38A; padding adds a block."""
        ciphertext = cipher.encrypt(
            bytes.fromhex(AES_CBC_KEY_HEX),
            bytes.fromhex(AES_CBC_IV_HEX),
            bytes.fromhex(AES_CBC_PLAINTEXT_HEX),
        )
        assert len(ciphertext) == 32
        assert ciphertext[:16].hex() == AES_CBC_CIPHERTEXT_HEX

    @pytest.mark.parametrize("length", [1, 15, 16, 17, 100])
    def test_round_trip(self, length: int) -> None:
        key, iv = bytes(range(32)), bytes(range(16))
        plaintext = bytes([length % 256]) * length
        ciphertext = cipher.encrypt(key, iv, plaintext)
        assert len(ciphertext) % 16 == 0
        assert len(ciphertext) > length
        assert cipher.decrypt(key, iv, ciphertext) == plaintext

    def test_rejects_bad_key_or_iv(self) -> None:
        with pytest.raises(ValueError, match="enc_key"):
            cipher.encrypt(bytes(16), bytes(16), b"x")
        with pytest.raises(ValueError, match="iv"):
            cipher.encrypt(bytes(32), bytes(12), b"x")
        with pytest.raises(ValueError, match="iv"):
            cipher.decrypt(bytes(32), bytes(8), bytes(16))

    def test_bad_padding_and_bad_layout_are_one_error(self) -> None:
        """Bad padding and truncated input surface as the same error."""
        key, iv = bytes(range(32)), bytes(range(16))
        ciphertext = cipher.encrypt(key, iv, b"secret payload")

        # A block that decrypts to all zeros can never carry valid PKCS#7 padding
        raw = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        unpadded = raw.update(bytes(16)) + raw.finalize()

        failures = []
        for attempt in (
            lambda: cipher.decrypt(key, iv, unpadded),
            lambda: cipher.decrypt(key, iv, ciphertext[:-1]),
        ):
            with pytest.raises(CipherError) as excinfo:
                attempt()
            failures.append(str(excinfo.value))

        assert failures == ["Decryption failed", "Decryption failed"]

    def test_known_answer_ping(self) -> None:
        ciphertext = cipher.encrypt(
            bytes.fromhex(PING_ENC_KEY_HEX),
            bytes.fromhex(PING_IV_HEX),
            b"ping",
        )
        assert to_base64(ciphertext) == PING_WIRE_HEADERS["c"]

    def test_read_only_views(self) -> None:
        """Keys and IVs are accepted as read-only views without copies."""
        key, iv = bytes(range(32)), bytes(range(16))
        key_view = memoryview(bytearray(key)).toreadonly()
        iv_view = memoryview(bytearray(iv)).toreadonly()

        ciphertext = cipher.encrypt(key_view, iv_view, memoryview(b"payload"))
        assert ciphertext == cipher.encrypt(key, iv, b"payload")
        assert cipher.decrypt(key_view, iv_view, ciphertext) == b"payload"
