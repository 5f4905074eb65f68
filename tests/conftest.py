"""
Pytest configuration and fixtures for post-quantum envelope tests.

The smallest parameter sets keep the pure-Python primitives fast; the
protocol logic is identical across parameter sets.
"""

from __future__ import annotations

import pytest

from pq_envelope import (
    EnvelopeService,
    KeyRegistry,
    PrimitiveSuite,
    RecipientIdentity,
    SenderIdentity,
)
from pq_envelope.config import ENV_KEM, ENV_LOG_LEVEL, ENV_SIGNATURE


@pytest.fixture(scope="session")
def fast_suite() -> PrimitiveSuite:
    """ML-KEM-512 + ML-DSA-44."""
    return PrimitiveSuite.from_names("ML-KEM-512", "ML-DSA-44")


@pytest.fixture
def registry(fast_suite: PrimitiveSuite) -> KeyRegistry:
    """Create an empty key registry."""
    return KeyRegistry(fast_suite)


@pytest.fixture
def service(registry: KeyRegistry) -> EnvelopeService:
    """Create an envelope service over an empty registry."""
    return EnvelopeService(registry)


@pytest.fixture
def alice(service: EnvelopeService) -> SenderIdentity:
    return service.generate_sender("alice")


@pytest.fixture
def bob(service: EnvelopeService) -> RecipientIdentity:
    return service.generate_recipient("bob")


@pytest.fixture
def carol(service: EnvelopeService) -> RecipientIdentity:
    return service.generate_recipient("carol")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove configuration variables, restoring them after the test."""
    for name in (ENV_KEM, ENV_SIGNATURE, ENV_LOG_LEVEL):
        # setenv first so teardown also removes anything load_dotenv writes
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch
