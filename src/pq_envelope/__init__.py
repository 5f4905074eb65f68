"""
Post-Quantum Envelope Library

Multi-recipient, sender-authenticated envelope encryption built on ML-KEM
key encapsulation, ML-DSA signatures and AES-256-GCM.

Quick Start
-----------
```python
from pq_envelope import EnvelopeService

service = EnvelopeService.new()

alice = service.generate_sender("alice")
bob = service.generate_recipient("bob")
carol = service.generate_recipient("carol")

# Seal once for every recipient
envelope = service.seal(b"hello", "alice", [bob, carol])
wire = envelope.to_bytes()

# Each recipient opens with their own key and a sender allow-list
plaintext = service.open(wire, "bob", [alice])
assert plaintext == b"hello"
```

Key Features
------------
- **ML-KEM**: Post-quantum content-key encapsulation per recipient
- **ML-DSA**: Post-quantum sender signatures, verified before any decryption
- **AES-256-GCM**: One payload ciphertext shared by all recipients
- **Caller-supplied trust**: Sender allow-list passed on every open
- **Thread-safe registry**: Concurrent key generation and lookup
- **Memory Security**: Best-effort key zeroization on deletion
"""

__version__ = "0.1.0"

# =============================================================================
# Crypto Exports
# =============================================================================

from .crypto import (
    AES_256_KEY_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    AesGcmCipher,
    EncryptedPayload,
    SecureKey,
    generate_random_bytes,
)

# =============================================================================
# Error Exports
# =============================================================================

from .errors import (
    ConfigError,
    CryptoError,
    DecapsulationFailedError,
    DuplicateIdentifierError,
    EncapsulationFailedError,
    EnvelopeError,
    ErrorKind,
    InvalidIdentifierError,
    NoRecipientsError,
    OpenError,
    PayloadAuthenticationFailedError,
    RecipientNotAddressedError,
    SealError,
    SerializationError,
    SignatureInvalidError,
    UnknownIdentifierError,
    UnknownRecipientError,
    UnknownSenderError,
    UntrustedSenderError,
)

# =============================================================================
# Primitive Exports
# =============================================================================

from .primitives import (
    KEM_ALGORITHMS,
    SIGNATURE_ALGORITHMS,
    KemScheme,
    MlDsa,
    MlKem,
    PrimitiveSuite,
    SignatureScheme,
)

# =============================================================================
# Envelope Exports
# =============================================================================

from .envelope import (
    WIRE_VERSION,
    Envelope,
    RecipientEntry,
    RecipientIdentity,
    SenderIdentity,
    canonical_digest,
)

# =============================================================================
# Registry / Service Exports (Primary API)
# =============================================================================

from .registry import KeyRegistry, RecipientKeyPair, RegistryStats, SenderKeyPair
from .service import EnvelopeService

# =============================================================================
# Config Exports
# =============================================================================

from .config import Settings, configure_logging, load_settings

# =============================================================================
# Public API
# =============================================================================

__all__ = [
    # Version
    "__version__",
    # Crypto
    "AES_256_KEY_SIZE",
    "NONCE_SIZE",
    "TAG_SIZE",
    "AesGcmCipher",
    "EncryptedPayload",
    "SecureKey",
    "generate_random_bytes",
    # Errors
    "ConfigError",
    "CryptoError",
    "DecapsulationFailedError",
    "DuplicateIdentifierError",
    "EncapsulationFailedError",
    "EnvelopeError",
    "ErrorKind",
    "InvalidIdentifierError",
    "NoRecipientsError",
    "OpenError",
    "PayloadAuthenticationFailedError",
    "RecipientNotAddressedError",
    "SealError",
    "SerializationError",
    "SignatureInvalidError",
    "UnknownIdentifierError",
    "UnknownRecipientError",
    "UnknownSenderError",
    "UntrustedSenderError",
    # Primitives
    "KEM_ALGORITHMS",
    "SIGNATURE_ALGORITHMS",
    "KemScheme",
    "MlDsa",
    "MlKem",
    "PrimitiveSuite",
    "SignatureScheme",
    # Envelope
    "WIRE_VERSION",
    "Envelope",
    "RecipientEntry",
    "RecipientIdentity",
    "SenderIdentity",
    "canonical_digest",
    # Registry / Service
    "KeyRegistry",
    "RecipientKeyPair",
    "RegistryStats",
    "SenderKeyPair",
    "EnvelopeService",
    # Config
    "Settings",
    "configure_logging",
    "load_settings",
]
