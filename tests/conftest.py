"""Global test fixtures for the PoI test suite."""

from __future__ import annotations

import os

import pytest

from poi.core.config import clear_config_cache
from poi.credentials import (
    EventBus,
    ManualClock,
    MemoryAgentRegistry,
    MemoryCredentialStore,
    ProofOfIntelligence,
    ProtocolParameters,
    reset_credential_store,
    solve_challenge,
)

AGENT = "0x" + "a1" * 20
OTHER_AGENT = "0x" + "b2" * 20
STRANGER = "0x" + "c3" * 20
ADMIN = "0x" + "d4" * 20

GENESIS_TIME = 1_700_000_000


# ============================================================================
# Global state
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Reset the config and store singletons between tests."""
    clear_config_cache()
    reset_credential_store()
    yield
    clear_config_cache()
    reset_credential_store()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all POI_ environment variables."""
    for key in list(os.environ.keys()):
        if key.startswith("POI_"):
            monkeypatch.delenv(key, raising=False)


# ============================================================================
# Engine collaborators
# ============================================================================


@pytest.fixture
def params():
    return ProtocolParameters()


@pytest.fixture
def clock():
    return ManualClock(sequence_number=1, timestamp=GENESIS_TIME)


@pytest.fixture
def registry():
    return MemoryAgentRegistry({AGENT: 1, OTHER_AGENT: 1})


@pytest.fixture
def store():
    return MemoryCredentialStore()


@pytest.fixture
def events():
    return EventBus(history_size=100)


@pytest.fixture
def engine(clock, registry, store, params, events):
    return ProofOfIntelligence(clock=clock, registry=registry, store=store, params=params, events=events)


@pytest.fixture
def solve(engine):
    """Return a function answering an identity's current challenge correctly."""

    def _solve(identity: str) -> bytes:
        return solve_challenge(engine.get_challenge(identity), identity)

    return _solve


@pytest.fixture
def wrong_answer(solve):
    """Return a function producing an answer that differs from the expected one."""

    def _wrong(identity: str) -> bytes:
        correct = solve(identity)
        return bytes([correct[0] ^ 0xFF]) + correct[1:]

    return _wrong


@pytest.fixture
def verified_agent(engine, solve):
    """AGENT holding a credential issued at GENESIS_TIME."""
    engine.request_challenge(AGENT)
    engine.submit_answer(AGENT, solve(AGENT))
    return AGENT
