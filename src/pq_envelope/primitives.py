"""
Post-quantum primitive adapters.

This module provides:
- KemScheme / SignatureScheme: Abstract interfaces the envelope protocols consume
- MlKem: ML-KEM (FIPS 203) via kyber-py
- MlDsa: ML-DSA (FIPS 204) via dilithium-py
- PrimitiveSuite: KEM + signature pairing plus per-recipient content-key wrapping

Content-key wrapping:
    A KEM produces its own random shared secret, so the envelope's content key
    is wrapped under a key derived from that secret:

        encapsulated_key = kem_ciphertext || nonce(12) || wrapped_key(32) || tag(16)

    The wrapping key is HKDF-SHA256(shared_secret, info=WRAP_INFO || recipient_id)
    and the recipient id is also bound as AEAD associated data.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Tuple

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from dilithium_py.ml_dsa import ML_DSA_44, ML_DSA_65, ML_DSA_87
from kyber_py.ml_kem import ML_KEM_512, ML_KEM_768, ML_KEM_1024

from .crypto import (
    AES_256_KEY_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    AesGcmCipher,
    EncryptedPayload,
    SecureKey,
)
from .errors import ConfigError, CryptoError

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)

DEFAULT_KEM_ALGORITHM = "ML-KEM-1024"
DEFAULT_SIGNATURE_ALGORITHM = "ML-DSA-65"

WRAP_INFO = b"pq-envelope/v1/content-key-wrap/"
WRAPPED_KEY_SIZE = NONCE_SIZE + AES_256_KEY_SIZE + TAG_SIZE

# name -> (implementation, public key size, ciphertext size)
_KEM_PARAMETER_SETS: Dict[str, Tuple[object, int, int]] = {
    "ML-KEM-512": (ML_KEM_512, 800, 768),
    "ML-KEM-768": (ML_KEM_768, 1184, 1088),
    "ML-KEM-1024": (ML_KEM_1024, 1568, 1568),
}

# name -> (implementation, public key size, signature size)
_SIGNATURE_PARAMETER_SETS: Dict[str, Tuple[object, int, int]] = {
    "ML-DSA-44": (ML_DSA_44, 1312, 2420),
    "ML-DSA-65": (ML_DSA_65, 1952, 3309),
    "ML-DSA-87": (ML_DSA_87, 2592, 4627),
}

KEM_ALGORITHMS = tuple(_KEM_PARAMETER_SETS)
SIGNATURE_ALGORITHMS = tuple(_SIGNATURE_PARAMETER_SETS)


class KemScheme(ABC):
    """Key-encapsulation mechanism interface."""

    name: str
    public_key_size: int
    ciphertext_size: int

    @abstractmethod
    def keygen(self) -> Tuple[bytes, bytes]:
        """Return (public_key, private_key)."""
        ...

    @abstractmethod
    def encapsulate(self, public_key: bytes) -> Tuple[bytes, bytes]:
        """Return (kem_ciphertext, shared_secret)."""
        ...

    @abstractmethod
    def decapsulate(self, private_key: bytes, kem_ciphertext: bytes) -> bytes:
        """Return the shared secret."""
        ...


class SignatureScheme(ABC):
    """Digital signature interface."""

    name: str
    public_key_size: int
    signature_size: int

    @abstractmethod
    def keygen(self) -> Tuple[bytes, bytes]:
        """Return (public_key, private_key)."""
        ...

    @abstractmethod
    def sign(self, private_key: bytes, digest: bytes) -> bytes:
        """Sign a digest."""
        ...

    @abstractmethod
    def verify(self, public_key: bytes, digest: bytes, signature: bytes) -> bool:
        """Return True only for a valid signature; never raises on malformed input."""
        ...


class MlKem(KemScheme):
    """ML-KEM (CRYSTALS-Kyber, NIST FIPS 203) backed by kyber-py."""

    def __init__(self, name: str = DEFAULT_KEM_ALGORITHM) -> None:
        try:
            impl, pk_size, ct_size = _KEM_PARAMETER_SETS[name]
        except KeyError:
            raise ConfigError(
                f"Unsupported KEM {name!r}; expected one of {', '.join(KEM_ALGORITHMS)}"
            ) from None
        self.name = name
        self.public_key_size = pk_size
        self.ciphertext_size = ct_size
        self._kem = impl

    def keygen(self) -> Tuple[bytes, bytes]:
        ek, dk = self._kem.keygen()
        logger.debug("%s keypair: ek=%dB dk=%dB", self.name, len(ek), len(dk))
        return ek, dk

    def encapsulate(self, public_key: bytes) -> Tuple[bytes, bytes]:
        if len(public_key) != self.public_key_size:
            raise CryptoError(
                f"Invalid {self.name} public key size: expected "
                f"{self.public_key_size}, got {len(public_key)}"
            )
        try:
            # kyber-py returns (shared_secret, ciphertext)
            shared_secret, kem_ciphertext = self._kem.encaps(public_key)
        except ValueError as e:
            raise CryptoError(f"{self.name} encapsulation failed: {e}") from e
        return kem_ciphertext, shared_secret

    def decapsulate(self, private_key: bytes, kem_ciphertext: bytes) -> bytes:
        if len(kem_ciphertext) != self.ciphertext_size:
            raise CryptoError(
                f"Invalid {self.name} ciphertext size: expected "
                f"{self.ciphertext_size}, got {len(kem_ciphertext)}"
            )
        try:
            return self._kem.decaps(private_key, kem_ciphertext)
        except ValueError as e:
            raise CryptoError(f"{self.name} decapsulation failed: {e}") from e

    def __repr__(self) -> str:
        return f"MlKem({self.name})"


class MlDsa(SignatureScheme):
    """ML-DSA (CRYSTALS-Dilithium, NIST FIPS 204) backed by dilithium-py."""

    def __init__(self, name: str = DEFAULT_SIGNATURE_ALGORITHM) -> None:
        try:
            impl, pk_size, sig_size = _SIGNATURE_PARAMETER_SETS[name]
        except KeyError:
            raise ConfigError(
                f"Unsupported signature scheme {name!r}; expected one of "
                f"{', '.join(SIGNATURE_ALGORITHMS)}"
            ) from None
        self.name = name
        self.public_key_size = pk_size
        self.signature_size = sig_size
        self._dsa = impl

    def keygen(self) -> Tuple[bytes, bytes]:
        pk, sk = self._dsa.keygen()
        logger.debug("%s keypair: pk=%dB sk=%dB", self.name, len(pk), len(sk))
        return pk, sk

    def sign(self, private_key: bytes, digest: bytes) -> bytes:
        try:
            return self._dsa.sign(private_key, digest)
        except ValueError as e:
            raise CryptoError(f"{self.name} signing failed: {e}") from e

    def verify(self, public_key: bytes, digest: bytes, signature: bytes) -> bool:
        if len(public_key) != self.public_key_size:
            return False
        if len(signature) != self.signature_size:
            return False
        try:
            return bool(self._dsa.verify(public_key, digest, signature))
        except Exception as e:
            # Malformed key or signature encodings are rejections, not errors
            logger.debug("%s verify rejected malformed input: %s", self.name, e)
            return False

    def __repr__(self) -> str:
        return f"MlDsa({self.name})"


def _derive_wrapping_key(shared_secret: bytes, recipient_id: str) -> SecureKey:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=AES_256_KEY_SIZE,
        salt=None,
        info=WRAP_INFO + recipient_id.encode("utf-8"),
    )
    return SecureKey(hkdf.derive(shared_secret))


@dataclass(frozen=True)
class PrimitiveSuite:
    """The KEM and signature scheme an envelope service operates with."""

    kem: KemScheme
    signature: SignatureScheme

    @classmethod
    def default(cls) -> PrimitiveSuite:
        """ML-KEM-1024 + ML-DSA-65."""
        return cls.from_names(DEFAULT_KEM_ALGORITHM, DEFAULT_SIGNATURE_ALGORITHM)

    @classmethod
    def from_names(cls, kem: str, signature: str) -> PrimitiveSuite:
        return cls(kem=MlKem(kem), signature=MlDsa(signature))

    @classmethod
    def from_settings(cls, settings: Settings) -> PrimitiveSuite:
        return cls.from_names(settings.kem_algorithm, settings.signature_algorithm)

    @property
    def encapsulated_key_size(self) -> int:
        return self.kem.ciphertext_size + WRAPPED_KEY_SIZE

    def encapsulate_content_key(
        self, public_key: bytes, content_key: SecureKey, recipient_id: str
    ) -> bytes:
        """
        Encapsulate a content key for one recipient.

        Raises:
            CryptoError: If the public key is rejected or wrapping fails
        """
        kem_ciphertext, shared_secret = self.kem.encapsulate(public_key)
        wrapping_key = _derive_wrapping_key(shared_secret, recipient_id)
        wrapped = AesGcmCipher.encrypt(
            wrapping_key, content_key.as_bytes(), recipient_id.encode("utf-8")
        )
        return kem_ciphertext + wrapped.to_aead_blob()

    def decapsulate_content_key(
        self, private_key: SecureKey, encapsulated_key: bytes, recipient_id: str
    ) -> SecureKey:
        """
        Recover the content key from a recipient entry.

        ML-KEM decapsulation never fails outright on a mangled ciphertext
        (implicit rejection yields an unrelated secret), so tampering
        surfaces here as an unwrap authentication failure.

        Raises:
            CryptoError: If the entry is malformed or does not unwrap
        """
        if len(encapsulated_key) != self.encapsulated_key_size:
            raise CryptoError(
                f"Invalid encapsulated key size: expected "
                f"{self.encapsulated_key_size}, got {len(encapsulated_key)}"
            )
        kem_ciphertext = encapsulated_key[: self.kem.ciphertext_size]
        wrapped = EncryptedPayload.from_aead_blob(encapsulated_key[self.kem.ciphertext_size:])

        shared_secret = self.kem.decapsulate(private_key.as_bytes(), kem_ciphertext)
        wrapping_key = _derive_wrapping_key(shared_secret, recipient_id)
        content_key = AesGcmCipher.decrypt(wrapping_key, wrapped, recipient_id.encode("utf-8"))
        return SecureKey(content_key)

    def __str__(self) -> str:
        return f"{self.kem.name} + {self.signature.name}"
