"""
Seal and open protocols.

This module provides:
- EnvelopeService: Seals a message once for many recipients and opens it per recipient

Seal:
    1. Resolve the sender's signing key from the registry
    2. Generate a fresh content key
    3. AES-256-GCM encrypt the plaintext (sender id bound as AAD)
    4. Encapsulate the content key for every recipient (all-or-nothing)
    5. Sign the canonical digest {version, sender id, recipient ids, nonce, ciphertext, tag}

Open:
    1. Resolve the recipient's KEM key from the registry
    2. Locate the recipient's entry
    3. Recompute the canonical digest
    4. Match the sender id against the caller's allow-list
    5. Verify the signature
    6. Decapsulate the content key
    7. Decrypt and authenticate the payload

Steps 6 and 7 are unreachable unless step 5 succeeded: a forged envelope is
never decapsulated or decrypted. The allow-list is supplied per call and is
never stored in the registry.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Union

from .config import Settings
from .crypto import AesGcmCipher, EncryptedPayload, SecureKey
from .envelope import (
    Envelope,
    RecipientEntry,
    RecipientIdentity,
    SenderIdentity,
    canonical_digest,
)
from .errors import (
    CryptoError,
    DecapsulationFailedError,
    EncapsulationFailedError,
    NoRecipientsError,
    PayloadAuthenticationFailedError,
    RecipientNotAddressedError,
    SignatureInvalidError,
    UnknownRecipientError,
    UnknownSenderError,
    UntrustedSenderError,
)
from .primitives import PrimitiveSuite
from .registry import KeyRegistry, check_identifier

logger = logging.getLogger(__name__)


def _payload_aad(sender_id: str) -> bytes:
    return sender_id.encode("utf-8")


def _trusted_keys(allowed_senders: Iterable[SenderIdentity], sender_id: str) -> List[bytes]:
    """Every allow-listed public key for sender_id, in allow-list order."""
    return [identity.sign_public for identity in allowed_senders if identity.id == sender_id]


class EnvelopeService:
    """
    Multi-recipient, sender-authenticated envelope encryption.

    Wraps a KeyRegistry and uses the registry's primitive suite. Seal and
    open never mutate registry state.
    """

    def __init__(self, registry: KeyRegistry) -> None:
        self._registry = registry

    @classmethod
    def new(cls, settings: Optional[Settings] = None) -> EnvelopeService:
        """
        Create a service with a fresh, empty registry.

        Args:
            settings: Algorithm selection (defaults to ML-KEM-1024 + ML-DSA-65)
        """
        suite = PrimitiveSuite.from_settings(settings) if settings else PrimitiveSuite.default()
        return cls(KeyRegistry(suite))

    @property
    def registry(self) -> KeyRegistry:
        return self._registry

    @property
    def suite(self) -> PrimitiveSuite:
        return self._registry.suite

    def generate_recipient(self, recipient_id: str) -> RecipientIdentity:
        return self._registry.generate_recipient(recipient_id)

    def generate_sender(self, sender_id: str) -> SenderIdentity:
        return self._registry.generate_sender(sender_id)

    # -------------------------------------------------------------------------
    # Seal
    # -------------------------------------------------------------------------

    def seal(
        self,
        plaintext: bytes,
        sender_id: str,
        recipients: Sequence[RecipientIdentity],
    ) -> Envelope:
        """
        Encrypt plaintext once for every recipient and sign it as sender_id.

        Args:
            plaintext: Message bytes
            sender_id: Registered sender identifier
            recipients: Recipient public identities, in envelope order.
                Duplicates produce redundant, equally valid entries.

        Returns:
            The sealed Envelope

        Raises:
            NoRecipientsError: If recipients is empty
            InvalidIdentifierError: If a recipient id is empty or not valid UTF-8
            UnknownSenderError: If sender_id is not registered
            EncapsulationFailedError: If any recipient's key is unusable
        """
        if not recipients:
            raise NoRecipientsError("At least one recipient is required")
        for recipient in recipients:
            check_identifier(recipient.id)

        suite = self.suite
        try:
            sender = self._registry.lookup_sender_private(sender_id)
        except UnknownSenderError:
            logger.warning("SEAL (%r): sender not registered", sender_id)
            raise

        recipient_ids = [recipient.id for recipient in recipients]
        logger.debug("SEAL (%r -> %s): encrypting payload", sender_id, recipient_ids)

        content_key = SecureKey.generate()
        payload = AesGcmCipher.encrypt(content_key, plaintext, _payload_aad(sender_id))

        entries: List[RecipientEntry] = []
        for recipient in recipients:
            try:
                encapsulated_key = suite.encapsulate_content_key(
                    recipient.kem_public, content_key, recipient.id
                )
            except CryptoError as e:
                logger.warning(
                    "SEAL (%r): encapsulation failed for recipient %r", sender_id, recipient.id
                )
                raise EncapsulationFailedError(recipient.id, str(e)) from e
            entries.append(
                RecipientEntry(recipient_id=recipient.id, encapsulated_key=encapsulated_key)
            )
        del content_key

        digest = canonical_digest(
            sender_id, recipient_ids, payload.nonce, payload.ciphertext, payload.tag
        )
        signature = suite.signature.sign(sender.sign_private.as_bytes(), digest)

        envelope = Envelope(
            sender_id=sender_id,
            recipients=tuple(entries),
            nonce=payload.nonce,
            ciphertext=payload.ciphertext,
            tag=payload.tag,
            signature=signature,
        )
        logger.info(
            "SEAL (%r): sealed %d bytes for %d recipient(s)",
            sender_id,
            len(plaintext),
            len(entries),
        )
        return envelope

    # -------------------------------------------------------------------------
    # Open
    # -------------------------------------------------------------------------

    def open(
        self,
        envelope: Union[Envelope, bytes],
        recipient_id: str,
        allowed_senders: Iterable[SenderIdentity],
    ) -> bytes:
        """
        Verify and decrypt an envelope for one recipient.

        Args:
            envelope: Envelope or its serialized wire form
            recipient_id: Registered recipient identifier opening the envelope
            allowed_senders: Sender identities trusted for this call

        Returns:
            The plaintext

        Raises:
            SerializationError: If envelope bytes are malformed
            UnknownRecipientError: If recipient_id is not registered
            RecipientNotAddressedError: If the envelope has no entry for recipient_id
            UntrustedSenderError: If the envelope's sender id is not allow-listed
            SignatureInvalidError: If the signature does not verify
            DecapsulationFailedError: If the content key cannot be recovered
            PayloadAuthenticationFailedError: If the payload tag does not verify
        """
        if not isinstance(envelope, Envelope):
            envelope = Envelope.from_bytes(envelope)

        suite = self.suite
        sender_id = envelope.sender_id
        try:
            recipient = self._registry.lookup_recipient_private(recipient_id)
        except UnknownRecipientError:
            logger.warning("OPEN (for %r): recipient not registered", recipient_id)
            raise

        entry = envelope.entry_for(recipient_id)
        if entry is None:
            logger.warning("OPEN (for %r from %r): recipient not addressed", recipient_id, sender_id)
            raise RecipientNotAddressedError(
                f"Envelope from {sender_id!r} is not addressed to {recipient_id!r}"
            )

        digest = envelope.digest()

        trusted_keys = _trusted_keys(allowed_senders, sender_id)
        if not trusted_keys:
            logger.warning("OPEN (for %r): sender %r is not allow-listed", recipient_id, sender_id)
            raise UntrustedSenderError(f"Sender {sender_id!r} is not in the allow-list")

        # Several keys may share an id while a sender key is being rotated
        if not any(
            suite.signature.verify(public_key, digest, envelope.signature)
            for public_key in trusted_keys
        ):
            logger.warning(
                "OPEN (for %r): signature verification FAILED for sender %r",
                recipient_id,
                sender_id,
            )
            raise SignatureInvalidError(f"Signature from {sender_id!r} does not verify")
        logger.debug("OPEN (for %r): signature verified for sender %r", recipient_id, sender_id)

        try:
            content_key = suite.decapsulate_content_key(
                recipient.kem_private, entry.encapsulated_key, recipient_id
            )
        except CryptoError as e:
            logger.warning("OPEN (for %r from %r): decapsulation failed", recipient_id, sender_id)
            raise DecapsulationFailedError(
                f"Could not recover content key for {recipient_id!r}"
            ) from e

        payload = EncryptedPayload(
            nonce=envelope.nonce, ciphertext=envelope.ciphertext, tag=envelope.tag
        )
        try:
            plaintext = AesGcmCipher.decrypt(content_key, payload, _payload_aad(sender_id))
        except CryptoError as e:
            logger.warning(
                "OPEN (for %r from %r): payload authentication failed", recipient_id, sender_id
            )
            raise PayloadAuthenticationFailedError("Payload authentication failed") from e

        logger.info(
            "OPEN (for %r): opened %d bytes from %r", recipient_id, len(plaintext), sender_id
        )
        return plaintext
