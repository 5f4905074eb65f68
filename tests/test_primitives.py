"""
Tests for the ML-KEM / ML-DSA adapters and content-key wrapping.
"""

import pytest

from pq_envelope import (
    ConfigError,
    CryptoError,
    MlDsa,
    MlKem,
    PrimitiveSuite,
    SecureKey,
    Settings,
)
from pq_envelope.primitives import WRAPPED_KEY_SIZE


class TestMlKem:
    def test_encapsulate_decapsulate(self, fast_suite: PrimitiveSuite) -> None:
        kem = fast_suite.kem
        public, private = kem.keygen()

        kem_ciphertext, shared_secret = kem.encapsulate(public)

        assert len(public) == kem.public_key_size
        assert len(kem_ciphertext) == kem.ciphertext_size
        assert kem.decapsulate(private, kem_ciphertext) == shared_secret

    def test_rejects_wrong_public_key_size(self, fast_suite: PrimitiveSuite) -> None:
        with pytest.raises(CryptoError, match="public key size"):
            fast_suite.kem.encapsulate(b"\x00" * 10)

    def test_rejects_wrong_ciphertext_size(self, fast_suite: PrimitiveSuite) -> None:
        _, private = fast_suite.kem.keygen()
        with pytest.raises(CryptoError, match="ciphertext size"):
            fast_suite.kem.decapsulate(private, b"\x00" * 10)

    def test_unknown_parameter_set(self) -> None:
        with pytest.raises(ConfigError, match="Unsupported KEM"):
            MlKem("ML-KEM-2048")


class TestMlDsa:
    def test_sign_verify(self, fast_suite: PrimitiveSuite) -> None:
        dsa = fast_suite.signature
        public, private = dsa.keygen()

        signature = dsa.sign(private, b"digest")

        assert len(signature) == dsa.signature_size
        assert dsa.verify(public, b"digest", signature)
        assert not dsa.verify(public, b"other digest", signature)

    def test_verify_wrong_key(self, fast_suite: PrimitiveSuite) -> None:
        dsa = fast_suite.signature
        _, private = dsa.keygen()
        other_public, _ = dsa.keygen()
        assert not dsa.verify(other_public, b"digest", dsa.sign(private, b"digest"))

    def test_verify_malformed_input_returns_false(self, fast_suite: PrimitiveSuite) -> None:
        dsa = fast_suite.signature
        public, private = dsa.keygen()
        signature = dsa.sign(private, b"digest")

        assert not dsa.verify(public, b"digest", signature[:-1])
        assert not dsa.verify(public[:10], b"digest", signature)
        assert not dsa.verify(public, b"digest", b"\xff" * dsa.signature_size)

    def test_unknown_parameter_set(self) -> None:
        with pytest.raises(ConfigError, match="Unsupported signature"):
            MlDsa("ML-DSA-99")


class TestPrimitiveSuite:
    def test_default(self) -> None:
        suite = PrimitiveSuite.default()
        assert suite.kem.name == "ML-KEM-1024"
        assert suite.signature.name == "ML-DSA-65"
        assert str(suite) == "ML-KEM-1024 + ML-DSA-65"

    def test_from_settings(self) -> None:
        suite = PrimitiveSuite.from_settings(
            Settings(kem_algorithm="ML-KEM-768", signature_algorithm="ML-DSA-87")
        )
        assert suite.kem.name == "ML-KEM-768"
        assert suite.signature.name == "ML-DSA-87"

    def test_content_key_round_trip(self, fast_suite: PrimitiveSuite) -> None:
        public, private = fast_suite.kem.keygen()
        content_key = SecureKey.generate()

        encapsulated = fast_suite.encapsulate_content_key(public, content_key, "bob")
        assert len(encapsulated) == fast_suite.encapsulated_key_size
        assert fast_suite.encapsulated_key_size == fast_suite.kem.ciphertext_size + WRAPPED_KEY_SIZE

        recovered = fast_suite.decapsulate_content_key(SecureKey(private), encapsulated, "bob")
        assert recovered.as_bytes() == content_key.as_bytes()

    def test_content_key_bound_to_recipient_id(self, fast_suite: PrimitiveSuite) -> None:
        public, private = fast_suite.kem.keygen()
        encapsulated = fast_suite.encapsulate_content_key(public, SecureKey.generate(), "bob")

        with pytest.raises(CryptoError):
            fast_suite.decapsulate_content_key(SecureKey(private), encapsulated, "carol")

    def test_content_key_wrong_private_key(self, fast_suite: PrimitiveSuite) -> None:
        public, _ = fast_suite.kem.keygen()
        _, other_private = fast_suite.kem.keygen()
        encapsulated = fast_suite.encapsulate_content_key(public, SecureKey.generate(), "bob")

        with pytest.raises(CryptoError):
            fast_suite.decapsulate_content_key(SecureKey(other_private), encapsulated, "bob")

    def test_content_key_truncated(self, fast_suite: PrimitiveSuite) -> None:
        public, private = fast_suite.kem.keygen()
        encapsulated = fast_suite.encapsulate_content_key(public, SecureKey.generate(), "bob")

        with pytest.raises(CryptoError, match="encapsulated key size"):
            fast_suite.decapsulate_content_key(SecureKey(private), encapsulated[:-1], "bob")

    def test_encapsulations_are_randomized(self, fast_suite: PrimitiveSuite) -> None:
        public, _ = fast_suite.kem.keygen()
        content_key = SecureKey.generate()
        first = fast_suite.encapsulate_content_key(public, content_key, "bob")
        second = fast_suite.encapsulate_content_key(public, content_key, "bob")
        assert first != second
