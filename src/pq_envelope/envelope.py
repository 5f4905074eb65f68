"""
Envelope wire types and codec.

This module provides:
- Envelope: Sealed multi-recipient message
- RecipientEntry: Per-recipient encapsulated content key
- RecipientIdentity / SenderIdentity: Shareable public projections of keypairs
- canonical_digest: Byte string the sender's signature is computed over

Wire format (msgpack, binary type enabled, field order fixed):

    Envelope          {v, sender_id, recipients: [[recipient_id, encapsulated_key], ...],
                       nonce, ciphertext, tag, signature}
    RecipientIdentity {id, kem_public}
    SenderIdentity    {id, sign_public}
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import msgpack

from .errors import SerializationError

WIRE_VERSION = 1
DIGEST_DOMAIN = "pq-envelope/digest"

_ENVELOPE_FIELDS = ("v", "sender_id", "recipients", "nonce", "ciphertext", "tag", "signature")
_RECIPIENT_IDENTITY_FIELDS = ("id", "kem_public")
_SENDER_IDENTITY_FIELDS = ("id", "sign_public")


# =============================================================================
# Codec helpers
# =============================================================================


def _pack(obj: Any, what: str) -> bytes:
    try:
        return msgpack.packb(obj, use_bin_type=True)
    except Exception as e:
        raise SerializationError(f"Failed to serialize {what}: {e}") from e


def _unpack(data: bytes, what: str) -> Any:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise SerializationError(f"{what} must be bytes, got {type(data).__name__}")
    try:
        return msgpack.unpackb(bytes(data), raw=False, strict_map_key=True)
    except Exception as e:
        raise SerializationError(f"Failed to deserialize {what}: {e}") from e


def _expect_map(obj: Any, fields: Tuple[str, ...], what: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise SerializationError(f"{what} must be a map")
    if set(obj) != set(fields):
        missing = sorted(set(fields) - set(obj))
        extra = sorted(set(obj) - set(fields), key=str)
        raise SerializationError(f"{what} fields mismatch: missing={missing} extra={extra}")
    return obj


def _expect_str(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value:
        raise SerializationError(f"{field} must be a non-empty string")
    return value


def _expect_bytes(value: Any, field: str) -> bytes:
    if not isinstance(value, bytes):
        raise SerializationError(f"{field} must be binary")
    return value


# =============================================================================
# Public identities
# =============================================================================


@dataclass(frozen=True)
class RecipientIdentity:
    """Exportable projection of a recipient keypair."""

    id: str
    kem_public: bytes

    def to_bytes(self) -> bytes:
        return _pack({"id": self.id, "kem_public": self.kem_public}, "recipient identity")

    @classmethod
    def from_bytes(cls, data: bytes) -> RecipientIdentity:
        obj = _expect_map(
            _unpack(data, "recipient identity"),
            _RECIPIENT_IDENTITY_FIELDS,
            "recipient identity",
        )
        return cls(
            id=_expect_str(obj["id"], "id"),
            kem_public=_expect_bytes(obj["kem_public"], "kem_public"),
        )


@dataclass(frozen=True)
class SenderIdentity:
    """Exportable projection of a sender keypair."""

    id: str
    sign_public: bytes

    def to_bytes(self) -> bytes:
        return _pack({"id": self.id, "sign_public": self.sign_public}, "sender identity")

    @classmethod
    def from_bytes(cls, data: bytes) -> SenderIdentity:
        obj = _expect_map(
            _unpack(data, "sender identity"),
            _SENDER_IDENTITY_FIELDS,
            "sender identity",
        )
        return cls(
            id=_expect_str(obj["id"], "id"),
            sign_public=_expect_bytes(obj["sign_public"], "sign_public"),
        )


# =============================================================================
# Envelope
# =============================================================================


def canonical_digest(
    sender_id: str,
    recipient_ids: Iterable[str],
    nonce: bytes,
    ciphertext: bytes,
    tag: bytes,
    version: int = WIRE_VERSION,
) -> bytes:
    """
    Compute the digest the sender signs.

    msgpack length-prefixes every string and binary field, so the encoding of
    this fixed-shape list is unambiguous; SHA3-512 compresses it.
    """
    encoded = _pack(
        [DIGEST_DOMAIN, version, sender_id, list(recipient_ids), nonce, ciphertext, tag],
        "digest input",
    )
    return hashlib.sha3_512(encoded).digest()


@dataclass(frozen=True)
class RecipientEntry:
    """Content key encapsulated for one recipient."""

    recipient_id: str
    encapsulated_key: bytes


@dataclass(frozen=True)
class Envelope:
    """Sealed message addressed to one or more recipients."""

    sender_id: str
    recipients: Tuple[RecipientEntry, ...]
    nonce: bytes
    ciphertext: bytes
    tag: bytes
    signature: bytes
    version: int = WIRE_VERSION

    def recipient_ids(self) -> List[str]:
        """Recipient ids in envelope order (duplicates preserved)."""
        return [entry.recipient_id for entry in self.recipients]

    def entry_for(self, recipient_id: str) -> Optional[RecipientEntry]:
        """First entry addressed to recipient_id, or None."""
        for entry in self.recipients:
            if entry.recipient_id == recipient_id:
                return entry
        return None

    def digest(self) -> bytes:
        """Recompute the canonical digest from this envelope's fields."""
        return canonical_digest(
            self.sender_id,
            self.recipient_ids(),
            self.nonce,
            self.ciphertext,
            self.tag,
            version=self.version,
        )

    def to_bytes(self) -> bytes:
        """Serialize envelope to its msgpack wire form."""
        return _pack(
            {
                "v": self.version,
                "sender_id": self.sender_id,
                "recipients": [
                    [entry.recipient_id, entry.encapsulated_key] for entry in self.recipients
                ],
                "nonce": self.nonce,
                "ciphertext": self.ciphertext,
                "tag": self.tag,
                "signature": self.signature,
            },
            "envelope",
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> Envelope:
        """
        Deserialize envelope from its msgpack wire form.

        Raises:
            SerializationError: If the data is not a well-formed envelope
        """
        obj = _expect_map(_unpack(data, "envelope"), _ENVELOPE_FIELDS, "envelope")

        version = obj["v"]
        if not isinstance(version, int) or isinstance(version, bool):
            raise SerializationError("v must be an integer")
        if version != WIRE_VERSION:
            raise SerializationError(f"Unsupported envelope version: {version}")

        raw_recipients = obj["recipients"]
        if not isinstance(raw_recipients, list) or not raw_recipients:
            raise SerializationError("recipients must be a non-empty array")

        recipients: List[RecipientEntry] = []
        for index, item in enumerate(raw_recipients):
            if not isinstance(item, list) or len(item) != 2:
                raise SerializationError(f"recipients[{index}] must be a pair")
            recipients.append(
                RecipientEntry(
                    recipient_id=_expect_str(item[0], f"recipients[{index}].recipient_id"),
                    encapsulated_key=_expect_bytes(
                        item[1], f"recipients[{index}].encapsulated_key"
                    ),
                )
            )

        return cls(
            sender_id=_expect_str(obj["sender_id"], "sender_id"),
            recipients=tuple(recipients),
            nonce=_expect_bytes(obj["nonce"], "nonce"),
            ciphertext=_expect_bytes(obj["ciphertext"], "ciphertext"),
            tag=_expect_bytes(obj["tag"], "tag"),
            signature=_expect_bytes(obj["signature"], "signature"),
            version=version,
        )
