"""Tests for poi.credentials.ledger - clocks and the agent registry."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from poi.core.config import PoISettings
from poi.core.exceptions import ValidationException
from poi.credentials import (
    AgentRegistry,
    ClockSource,
    LedgerSnapshot,
    ManualClock,
    MemoryAgentRegistry,
    SystemClock,
)

AGENT = "0x" + "a1" * 20
OTHER_AGENT = "0x" + "b2" * 20


class TestManualClock:
    def test_satisfies_protocol(self):
        assert isinstance(ManualClock(), ClockSource)

    def test_snapshot(self):
        snapshot = ManualClock(sequence_number=5, timestamp=1000).snapshot()

        assert isinstance(snapshot, LedgerSnapshot)
        assert snapshot.sequence_number == 5
        assert snapshot.timestamp == 1000
        assert len(snapshot.randomness) == 32

    def test_randomness_stable_within_sequence(self):
        clock = ManualClock()
        first = clock.snapshot().randomness
        clock.set(timestamp=clock.timestamp + 5)

        assert clock.snapshot().randomness == first

    def test_randomness_changes_across_sequences(self):
        clock = ManualClock()
        first = clock.snapshot().randomness
        clock.advance_blocks()

        assert clock.snapshot().randomness != first

    def test_reproducible(self):
        assert ManualClock().snapshot() == ManualClock().snapshot()

    def test_advance_blocks(self):
        clock = ManualClock(sequence_number=1, timestamp=1000, block_time=12)
        snapshot = clock.advance_blocks(10)

        assert snapshot.sequence_number == 11
        assert snapshot.timestamp == 1120

    def test_advance_time(self):
        clock = ManualClock(sequence_number=1, timestamp=1000, block_time=12)
        snapshot = clock.advance_time(3600)

        assert snapshot.timestamp == 4600
        assert snapshot.sequence_number == 301

    def test_cannot_go_backwards(self):
        clock = ManualClock(sequence_number=10, timestamp=1000)

        with pytest.raises(ValidationException):
            clock.set(sequence_number=9)
        with pytest.raises(ValidationException):
            clock.set(timestamp=999)
        with pytest.raises(ValidationException):
            clock.advance_blocks(-1)
        with pytest.raises(ValidationException):
            clock.advance_time(-1)

    def test_invalid_block_time(self):
        with pytest.raises(ValidationException):
            ManualClock(block_time=0)


class TestSystemClock:
    def test_sequence_from_wall_time(self):
        clock = SystemClock(block_time=12, genesis_timestamp=1000, beacon_secret=b"secret")
        with patch("poi.credentials.ledger.time.time", return_value=1000 + 12 * 50 + 5):
            snapshot = clock.snapshot()

        assert snapshot.sequence_number == 50
        assert snapshot.timestamp == 1605

    def test_randomness_keyed_by_secret(self):
        first = SystemClock(beacon_secret=b"one")
        second = SystemClock(beacon_secret=b"two")
        with patch("poi.credentials.ledger.time.time", return_value=1200):
            assert first.snapshot().randomness == first.snapshot().randomness
            assert first.snapshot().randomness != second.snapshot().randomness

    def test_missing_secret_warns(self, caplog):
        with caplog.at_level("WARNING", logger="poi.credentials.ledger"):
            SystemClock()
        assert "beacon secret" in caplog.text

    def test_from_config(self, clean_env):
        settings = PoISettings(block_time_seconds=2, genesis_timestamp=100, beacon_secret="s3cret")
        clock = SystemClock.from_config(settings)
        with patch("poi.credentials.ledger.time.time", return_value=120):
            assert clock.snapshot().sequence_number == 10


class TestMemoryAgentRegistry:
    def test_satisfies_protocol(self):
        assert isinstance(MemoryAgentRegistry(), AgentRegistry)

    def test_membership(self):
        registry = MemoryAgentRegistry({AGENT: 2})

        assert registry.balance_of(AGENT) == 2
        assert registry.balance_of(OTHER_AGENT) == 0
        assert AGENT in registry
        assert OTHER_AGENT not in registry

    def test_case_insensitive(self):
        registry = MemoryAgentRegistry({"0x" + "A1" * 20: 1})
        assert registry.balance_of(AGENT) == 1

    def test_register_and_unregister(self):
        registry = MemoryAgentRegistry()
        registry.register(AGENT)
        registry.register(AGENT)
        assert registry.balance_of(AGENT) == 2

        registry.unregister(AGENT)
        assert registry.balance_of(AGENT) == 0

    def test_negative_balance_rejected(self):
        with pytest.raises(ValidationException):
            MemoryAgentRegistry().set_balance(AGENT, -1)

    def test_invalid_identity_rejected(self):
        with pytest.raises(ValidationException):
            MemoryAgentRegistry().register("0x1234")

    def test_from_config(self, clean_env):
        settings = PoISettings(registered_agents=f"{AGENT}, {OTHER_AGENT} ,")
        registry = MemoryAgentRegistry.from_config(settings)

        assert AGENT in registry
        assert OTHER_AGENT in registry
