"""
In-process key registry.

This module provides:
- KeyRegistry: Thread-safe store of recipient (KEM) and sender (signature) keypairs
- RecipientKeyPair / SenderKeyPair: Full keypairs, private halves wrapped in SecureKey
- RegistryStats: Key counts

Each map has its own lock. Key generation happens outside the lock; only the
duplicate check and insert are serialized. Lookups hand back the immutable
keypair, so no lock is held while the caller runs a cryptographic primitive.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .crypto import SecureKey
from .envelope import RecipientIdentity, SenderIdentity
from .errors import (
    DuplicateIdentifierError,
    InvalidIdentifierError,
    UnknownRecipientError,
    UnknownSenderError,
)
from .primitives import PrimitiveSuite

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecipientKeyPair:
    """Recipient KEM keypair."""

    id: str
    kem_public: bytes
    kem_private: SecureKey = field(repr=False)

    def identity(self) -> RecipientIdentity:
        return RecipientIdentity(id=self.id, kem_public=self.kem_public)


@dataclass(frozen=True)
class SenderKeyPair:
    """Sender signing keypair."""

    id: str
    sign_public: bytes
    sign_private: SecureKey = field(repr=False)

    def identity(self) -> SenderIdentity:
        return SenderIdentity(id=self.id, sign_public=self.sign_public)


@dataclass
class RegistryStats:
    """Key statistics."""

    recipients: int
    senders: int
    kem_algorithm: str
    signature_algorithm: str


def check_identifier(identifier: object) -> str:
    """
    Validate an identifier.

    Raises:
        InvalidIdentifierError: If identifier is empty, not a string, or not
            encodable as UTF-8 (lone surrogates)
    """
    if not isinstance(identifier, str) or not identifier:
        raise InvalidIdentifierError(f"Identifier must be a non-empty string, got {identifier!r}")
    try:
        identifier.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidIdentifierError(f"Identifier is not valid UTF-8: {identifier!r}") from e
    return identifier


class KeyRegistry:
    """
    Registry of recipient and sender keypairs.

    Identifiers are unique per map: registering an id twice raises
    DuplicateIdentifierError and leaves the original keypair in place.
    A recipient and a sender may share the same id.
    """

    def __init__(self, suite: Optional[PrimitiveSuite] = None) -> None:
        self._suite = suite if suite is not None else PrimitiveSuite.default()
        self._recipients: Dict[str, RecipientKeyPair] = {}
        self._senders: Dict[str, SenderKeyPair] = {}
        self._recipients_lock = threading.Lock()
        self._senders_lock = threading.Lock()

    @property
    def suite(self) -> PrimitiveSuite:
        return self._suite

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def generate_recipient(self, recipient_id: str) -> RecipientIdentity:
        """
        Generate and store a KEM keypair.

        Returns:
            The public projection of the new keypair

        Raises:
            InvalidIdentifierError: If recipient_id is empty or not a string
            DuplicateIdentifierError: If recipient_id is already registered
        """
        check_identifier(recipient_id)
        with self._recipients_lock:
            if recipient_id in self._recipients:
                raise DuplicateIdentifierError(recipient_id)

        public, private = self._suite.kem.keygen()
        keypair = RecipientKeyPair(
            id=recipient_id, kem_public=public, kem_private=SecureKey(private)
        )

        with self._recipients_lock:
            # Re-check: another thread may have registered the id during keygen
            if recipient_id in self._recipients:
                raise DuplicateIdentifierError(recipient_id)
            self._recipients[recipient_id] = keypair

        logger.info("Registered recipient %r (%s)", recipient_id, self._suite.kem.name)
        return keypair.identity()

    def generate_sender(self, sender_id: str) -> SenderIdentity:
        """
        Generate and store a signing keypair.

        Returns:
            The public projection of the new keypair

        Raises:
            InvalidIdentifierError: If sender_id is empty or not a string
            DuplicateIdentifierError: If sender_id is already registered
        """
        check_identifier(sender_id)
        with self._senders_lock:
            if sender_id in self._senders:
                raise DuplicateIdentifierError(sender_id)

        public, private = self._suite.signature.keygen()
        keypair = SenderKeyPair(
            id=sender_id, sign_public=public, sign_private=SecureKey(private)
        )

        with self._senders_lock:
            if sender_id in self._senders:
                raise DuplicateIdentifierError(sender_id)
            self._senders[sender_id] = keypair

        logger.info("Registered sender %r (%s)", sender_id, self._suite.signature.name)
        return keypair.identity()

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def lookup_recipient_private(self, recipient_id: str) -> RecipientKeyPair:
        """
        Get a recipient's full keypair. For the open protocol only.

        Raises:
            UnknownRecipientError: If recipient_id is not registered
        """
        with self._recipients_lock:
            keypair = self._recipients.get(recipient_id)
        if keypair is None:
            raise UnknownRecipientError(recipient_id)
        return keypair

    def lookup_sender_private(self, sender_id: str) -> SenderKeyPair:
        """
        Get a sender's full keypair. For the seal protocol only.

        Raises:
            UnknownSenderError: If sender_id is not registered
        """
        with self._senders_lock:
            keypair = self._senders.get(sender_id)
        if keypair is None:
            raise UnknownSenderError(sender_id)
        return keypair

    def recipient_identity(self, recipient_id: str) -> RecipientIdentity:
        """Public projection of a registered recipient."""
        return self.lookup_recipient_private(recipient_id).identity()

    def sender_identity(self, sender_id: str) -> SenderIdentity:
        """Public projection of a registered sender."""
        return self.lookup_sender_private(sender_id).identity()

    def recipient_ids(self) -> List[str]:
        with self._recipients_lock:
            return sorted(self._recipients)

    def sender_ids(self) -> List[str]:
        with self._senders_lock:
            return sorted(self._senders)

    def stats(self) -> RegistryStats:
        with self._recipients_lock:
            recipients = len(self._recipients)
        with self._senders_lock:
            senders = len(self._senders)
        return RegistryStats(
            recipients=recipients,
            senders=senders,
            kem_algorithm=self._suite.kem.name,
            signature_algorithm=self._suite.signature.name,
        )
