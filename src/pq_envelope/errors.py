"""
Exception classes for post-quantum envelope operations.

Every exception carries a ``kind`` tag so callers can branch on the failure
category (for auditing, metrics, or user-facing messages) without matching
on message text.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Closed set of failure categories."""

    INVALID_IDENTIFIER = "InvalidIdentifier"
    DUPLICATE_IDENTIFIER = "DuplicateIdentifier"
    UNKNOWN_IDENTIFIER = "UnknownIdentifier"
    UNKNOWN_SENDER = "UnknownSender"
    UNKNOWN_RECIPIENT = "UnknownRecipient"
    NO_RECIPIENTS = "NoRecipients"
    RECIPIENT_NOT_ADDRESSED = "RecipientNotAddressed"
    UNTRUSTED_SENDER = "UntrustedSender"
    SIGNATURE_INVALID = "SignatureInvalid"
    ENCAPSULATION_FAILED = "EncapsulationFailed"
    DECAPSULATION_FAILED = "DecapsulationFailed"
    PAYLOAD_AUTHENTICATION_FAILED = "PayloadAuthenticationFailed"
    SERIALIZATION_FAILED = "SerializationFailed"
    CRYPTO = "Crypto"
    CONFIG = "Config"

    def __str__(self) -> str:
        return self.value


class EnvelopeError(Exception):
    """Base exception for all envelope operations."""

    kind: ErrorKind = ErrorKind.CRYPTO


class InvalidIdentifierError(EnvelopeError):
    """Identifier is empty or not a string."""

    kind = ErrorKind.INVALID_IDENTIFIER


class DuplicateIdentifierError(EnvelopeError):
    """Identifier is already registered."""

    kind = ErrorKind.DUPLICATE_IDENTIFIER

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Identifier already registered: {identifier!r}")
        self.identifier = identifier


class UnknownIdentifierError(EnvelopeError):
    """Identifier not found in the key registry."""

    kind = ErrorKind.UNKNOWN_IDENTIFIER

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Unknown identifier: {identifier!r}")
        self.identifier = identifier


class SealError(EnvelopeError):
    """Sealing a message failed."""


class OpenError(EnvelopeError):
    """Opening an envelope failed."""


class UnknownSenderError(UnknownIdentifierError, SealError):
    """Sender has no keypair in the registry."""

    kind = ErrorKind.UNKNOWN_SENDER


class UnknownRecipientError(UnknownIdentifierError, OpenError):
    """Recipient has no keypair in the registry."""

    kind = ErrorKind.UNKNOWN_RECIPIENT


class NoRecipientsError(SealError):
    """Seal was called with an empty recipient list."""

    kind = ErrorKind.NO_RECIPIENTS


class EncapsulationFailedError(SealError):
    """Content key could not be encapsulated for a recipient."""

    kind = ErrorKind.ENCAPSULATION_FAILED

    def __init__(self, recipient_id: str, reason: Optional[str] = None) -> None:
        message = f"Encapsulation failed for recipient {recipient_id!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.recipient_id = recipient_id


class RecipientNotAddressedError(OpenError):
    """Envelope carries no entry for the opening recipient."""

    kind = ErrorKind.RECIPIENT_NOT_ADDRESSED


class UntrustedSenderError(OpenError):
    """Envelope sender is not on the caller's allow-list."""

    kind = ErrorKind.UNTRUSTED_SENDER


class SignatureInvalidError(OpenError):
    """Envelope signature does not verify against the allow-listed key."""

    kind = ErrorKind.SIGNATURE_INVALID


class DecapsulationFailedError(OpenError):
    """Content key could not be recovered from the recipient entry."""

    kind = ErrorKind.DECAPSULATION_FAILED


class PayloadAuthenticationFailedError(OpenError):
    """Payload integrity tag did not verify."""

    kind = ErrorKind.PAYLOAD_AUTHENTICATION_FAILED


class SerializationError(EnvelopeError):
    """Serialization or deserialization error."""

    kind = ErrorKind.SERIALIZATION_FAILED


class CryptoError(EnvelopeError):
    """Cryptographic primitive failed (AEAD, KEM, signature, key generation)."""

    kind = ErrorKind.CRYPTO


class ConfigError(EnvelopeError):
    """Configuration error."""

    kind = ErrorKind.CONFIG
