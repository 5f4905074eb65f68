"""
Tests for the in-process key registry.
"""

import threading
from typing import List

import pytest

from pq_envelope import (
    DuplicateIdentifierError,
    ErrorKind,
    InvalidIdentifierError,
    KeyRegistry,
    PrimitiveSuite,
    RecipientIdentity,
    SenderIdentity,
    UnknownIdentifierError,
    UnknownRecipientError,
    UnknownSenderError,
)


class TestGeneration:
    def test_generate_recipient(self, registry: KeyRegistry) -> None:
        identity = registry.generate_recipient("bob")

        assert isinstance(identity, RecipientIdentity)
        assert identity.id == "bob"
        assert len(identity.kem_public) == registry.suite.kem.public_key_size
        assert registry.recipient_identity("bob") == identity

    def test_generate_sender(self, registry: KeyRegistry) -> None:
        identity = registry.generate_sender("alice")

        assert isinstance(identity, SenderIdentity)
        assert len(identity.sign_public) == registry.suite.signature.public_key_size
        assert registry.sender_identity("alice") == identity

    def test_duplicate_recipient_keeps_original(self, registry: KeyRegistry) -> None:
        original = registry.generate_recipient("bob")

        with pytest.raises(DuplicateIdentifierError) as exc_info:
            registry.generate_recipient("bob")

        assert exc_info.value.identifier == "bob"
        assert exc_info.value.kind is ErrorKind.DUPLICATE_IDENTIFIER
        assert registry.recipient_identity("bob") == original

    def test_duplicate_sender(self, registry: KeyRegistry) -> None:
        registry.generate_sender("alice")
        with pytest.raises(DuplicateIdentifierError):
            registry.generate_sender("alice")

    def test_recipient_and_sender_namespaces_are_separate(self, registry: KeyRegistry) -> None:
        registry.generate_recipient("alice")
        registry.generate_sender("alice")

        assert registry.recipient_ids() == ["alice"]
        assert registry.sender_ids() == ["alice"]

    @pytest.mark.parametrize("bad_id", ["", None, 42, "b\udc00ob"])
    def test_invalid_identifier(self, registry: KeyRegistry, bad_id: object) -> None:
        with pytest.raises(InvalidIdentifierError):
            registry.generate_recipient(bad_id)  # type: ignore[arg-type]
        with pytest.raises(InvalidIdentifierError):
            registry.generate_sender(bad_id)  # type: ignore[arg-type]
        assert registry.stats().recipients == 0
        assert registry.stats().senders == 0

    def test_keypairs_are_distinct(self, registry: KeyRegistry) -> None:
        bob = registry.generate_recipient("bob")
        carol = registry.generate_recipient("carol")
        assert bob.kem_public != carol.kem_public


class TestLookup:
    def test_unknown_recipient(self, registry: KeyRegistry) -> None:
        with pytest.raises(UnknownRecipientError) as exc_info:
            registry.lookup_recipient_private("nobody")

        assert isinstance(exc_info.value, UnknownIdentifierError)
        assert exc_info.value.kind is ErrorKind.UNKNOWN_RECIPIENT

    def test_unknown_sender(self, registry: KeyRegistry) -> None:
        with pytest.raises(UnknownSenderError) as exc_info:
            registry.lookup_sender_private("nobody")
        assert exc_info.value.identifier == "nobody"

    def test_sender_is_not_a_recipient(self, registry: KeyRegistry) -> None:
        registry.generate_sender("alice")
        with pytest.raises(UnknownRecipientError):
            registry.lookup_recipient_private("alice")

    def test_private_keys_hidden_in_repr(self, registry: KeyRegistry) -> None:
        registry.generate_recipient("bob")
        keypair = registry.lookup_recipient_private("bob")
        assert "kem_private" not in repr(keypair)
        assert keypair.identity() == registry.recipient_identity("bob")

    def test_stats(self, registry: KeyRegistry, fast_suite: PrimitiveSuite) -> None:
        registry.generate_recipient("bob")
        registry.generate_recipient("carol")
        registry.generate_sender("alice")

        stats = registry.stats()
        assert stats.recipients == 2
        assert stats.senders == 1
        assert stats.kem_algorithm == fast_suite.kem.name
        assert stats.signature_algorithm == fast_suite.signature.name
        assert registry.recipient_ids() == ["bob", "carol"]


class TestConcurrency:
    def test_duplicate_race_has_one_winner(self, registry: KeyRegistry) -> None:
        barrier = threading.Barrier(6)
        successes: List[RecipientIdentity] = []
        failures: List[Exception] = []

        def worker() -> None:
            barrier.wait()
            try:
                successes.append(registry.generate_recipient("shared"))
            except DuplicateIdentifierError as e:
                failures.append(e)

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(successes) == 1
        assert len(failures) == 5
        assert registry.recipient_identity("shared") == successes[0]

    def test_concurrent_distinct_ids(self, registry: KeyRegistry) -> None:
        threads = [
            threading.Thread(target=registry.generate_sender, args=(f"sender-{i}",))
            for i in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert registry.sender_ids() == sorted(f"sender-{i}" for i in range(8))
