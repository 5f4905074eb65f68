"""
Symmetric primitives for post-quantum envelopes.

This module provides:
- SecureKey: Key wrapper with redacted repr and best-effort zeroization
- EncryptedPayload: AEAD output split into nonce, ciphertext and tag
- AesGcmCipher: AES-256-GCM encryption/decryption operations
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import CryptoError

# Cryptographic constants
AES_256_KEY_SIZE: int = 32  # 256 bits
NONCE_SIZE: int = 12  # 96 bits (standard for AES-GCM)
TAG_SIZE: int = 16  # 128 bits (authentication tag)


class SecureKey:
    """
    Secret key wrapper with memory cleanup on deletion.

    Holds content keys as well as KEM and signature private keys. Uses
    bytearray internally for mutable zeroing in __del__. Python's garbage
    collector doesn't guarantee immediate cleanup, and ``as_bytes`` hands out
    immutable copies, so this is best-effort zeroization.
    """

    __slots__ = ("_bytes",)

    def __init__(self, key_bytes: bytes | bytearray) -> None:
        if not isinstance(key_bytes, (bytes, bytearray)):
            raise CryptoError("Key must be bytes or bytearray")
        self._bytes = bytearray(key_bytes)

    @classmethod
    def generate(cls, size: int = AES_256_KEY_SIZE) -> SecureKey:
        """Generate a cryptographically secure random key (32 bytes by default)."""
        return cls(secrets.token_bytes(size))

    def as_bytes(self) -> bytes:
        """Return key as immutable bytes."""
        return bytes(self._bytes)

    def __len__(self) -> int:
        return len(self._bytes)

    def __repr__(self) -> str:
        """Redacted representation to prevent accidental key disclosure."""
        return "SecureKey([REDACTED])"

    def __del__(self) -> None:
        """Zero memory on deletion (best-effort)."""
        if hasattr(self, "_bytes"):
            for i in range(len(self._bytes)):
                self._bytes[i] = 0


@dataclass(frozen=True)
class EncryptedPayload:
    """
    AES-GCM output with the authentication tag kept separate.

    The envelope wire format carries nonce, ciphertext and tag as three
    distinct fields.
    """

    nonce: bytes  # 12 bytes
    ciphertext: bytes  # same length as the plaintext
    tag: bytes  # 16 bytes

    def to_aead_blob(self) -> bytes:
        """
        Convert to AEAD blob format: nonce || ciphertext || tag.

        For AES-256-GCM wrapping a 32-byte content key: 12 + 32 + 16 = 60 bytes.
        """
        return self.nonce + self.ciphertext + self.tag

    @classmethod
    def from_aead_blob(cls, blob: bytes) -> EncryptedPayload:
        """
        Parse from AEAD blob format: nonce || ciphertext || tag.

        Raises:
            CryptoError: If blob is too small
        """
        min_size = NONCE_SIZE + TAG_SIZE
        if len(blob) < min_size:
            raise CryptoError(
                f"AEAD blob too small: expected at least {min_size} bytes, got {len(blob)}"
            )
        return cls(
            nonce=blob[:NONCE_SIZE],
            ciphertext=blob[NONCE_SIZE:-TAG_SIZE],
            tag=blob[-TAG_SIZE:],
        )


class AesGcmCipher:
    """
    AES-256-GCM authenticated encryption.

    Provides static methods for encryption and decryption with optional
    Additional Authenticated Data (AAD) for binding.
    """

    @staticmethod
    def encrypt(
        key: SecureKey,
        plaintext: bytes,
        aad: Optional[bytes] = None,
    ) -> EncryptedPayload:
        """
        Encrypt plaintext with AES-256-GCM under a fresh random nonce.

        Args:
            key: 32-byte encryption key
            plaintext: Data to encrypt
            aad: Optional Additional Authenticated Data for binding

        Returns:
            EncryptedPayload with nonce, ciphertext and tag

        Raises:
            CryptoError: If key size is invalid or encryption fails
        """
        if len(key) != AES_256_KEY_SIZE:
            raise CryptoError(
                f"Invalid key size: expected {AES_256_KEY_SIZE}, got {len(key)}"
            )

        nonce = secrets.token_bytes(NONCE_SIZE)
        aesgcm = AESGCM(key.as_bytes())

        try:
            sealed = aesgcm.encrypt(nonce, plaintext, aad)
        except Exception as e:
            raise CryptoError(f"Encryption error: {e}") from e

        return EncryptedPayload(
            nonce=nonce,
            ciphertext=sealed[:-TAG_SIZE],
            tag=sealed[-TAG_SIZE:],
        )

    @staticmethod
    def decrypt(
        key: SecureKey,
        encrypted: EncryptedPayload,
        aad: Optional[bytes] = None,
    ) -> bytes:
        """
        Decrypt and authenticate with AES-256-GCM.

        Args:
            key: 32-byte decryption key
            encrypted: EncryptedPayload with nonce, ciphertext and tag
            aad: Optional Additional Authenticated Data (must match encryption)

        Returns:
            Decrypted plaintext bytes

        Raises:
            CryptoError: If key/nonce/tag size is invalid or authentication fails
        """
        if len(key) != AES_256_KEY_SIZE:
            raise CryptoError(
                f"Invalid key size: expected {AES_256_KEY_SIZE}, got {len(key)}"
            )

        if len(encrypted.nonce) != NONCE_SIZE:
            raise CryptoError(
                f"Invalid nonce size: expected {NONCE_SIZE}, got {len(encrypted.nonce)}"
            )

        if len(encrypted.tag) != TAG_SIZE:
            raise CryptoError(
                f"Invalid tag size: expected {TAG_SIZE}, got {len(encrypted.tag)}"
            )

        aesgcm = AESGCM(key.as_bytes())

        try:
            return aesgcm.decrypt(
                encrypted.nonce, encrypted.ciphertext + encrypted.tag, aad
            )
        except InvalidTag:
            # Generic error to prevent oracle attacks
            raise CryptoError("Decryption failed") from None


def generate_random_bytes(length: int) -> bytes:
    """Generate cryptographically secure random bytes."""
    return secrets.token_bytes(length)
