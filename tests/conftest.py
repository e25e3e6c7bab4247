"""
Pytest configuration and shared fixtures for nostrcore tests.

Provides:
- Deterministic signers (fixed secret keys, zero auxiliary randomness)
- An event factory producing correctly signed events
- An in-memory EventStore and a call-counting verifier
- Custom pytest markers for test categorization
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

import pytest

from nostrcore.crypto.schnorr import SchnorrSigner, SchnorrVerifier
from nostrcore.models import Event, Filter
from nostrcore.protocol.matcher import FilterMatcher
from nostrcore.protocol.signing import build_unsigned, sign_event


# BIP-340 test vector 0 secret key, and an arbitrary second key
ALICE_SECRET = "0000000000000000000000000000000000000000000000000000000000000003"
BOB_SECRET = "b7e151628aed2a6abf7158809cf4f3c762e7160f38b4da56a784d9045190cfef"

BASE_TIME = 1_700_000_000


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Keys
# ============================================================================


@pytest.fixture
def alice() -> SchnorrSigner:
    return SchnorrSigner.from_hex(ALICE_SECRET, deterministic=True)


@pytest.fixture
def bob() -> SchnorrSigner:
    return SchnorrSigner.from_hex(BOB_SECRET, deterministic=True)


# ============================================================================
# Events
# ============================================================================


EventFactory = Callable[..., Event]


@pytest.fixture
def make_event(alice: SchnorrSigner) -> EventFactory:
    """Build a signed event; any field can be overridden by keyword."""

    def _make(
        kind: int = 1,
        content: str = "hello",
        tags: Iterable[Sequence[str]] = (),
        created_at: int = BASE_TIME,
        signer: SchnorrSigner | None = None,
    ) -> Event:
        unsigned = build_unsigned(kind, content, signer or alice, tags, created_at)
        return sign_event(unsigned, signer or alice)

    return _make


@pytest.fixture
def sample_event(make_event: EventFactory) -> Event:
    return make_event(tags=[["e", "a" * 64], ["p", "b" * 64, "wss://relay.example.com"]])


@pytest.fixture
def sample_event_dict(sample_event: Event) -> dict[str, Any]:
    return sample_event.to_dict()


# ============================================================================
# Collaborators
# ============================================================================


class CountingVerifier:
    """Wraps the real verifier and counts how often it is consulted."""

    def __init__(self) -> None:
        self.calls = 0
        self._inner = SchnorrVerifier()

    def verify(self, pubkey: bytes, digest: bytes, sig: bytes, /) -> bool:
        self.calls += 1
        return self._inner.verify(pubkey, digest, sig)


class MemoryStore:
    """In-memory EventStore keyed by event id."""

    def __init__(self, events: Iterable[Event] = ()) -> None:
        self.events: dict[str, Event] = {e.id: e for e in events}
        self._matcher = FilterMatcher()

    async def save(self, event: Event) -> bool:
        if event.id in self.events:
            return False
        self.events[event.id] = event
        return True

    async def query(self, filters: Sequence[Filter]) -> list[Event]:
        return [e for e in self.events.values() if self._matcher.matches_any(e, filters)]

    async def count(self, filters: Sequence[Filter]) -> int:
        return len(await self.query(filters))


@pytest.fixture
def counting_verifier() -> CountingVerifier:
    return CountingVerifier()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "slow: marks tests as slow running")
