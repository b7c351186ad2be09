"""External collaborators: the clock/randomness source and the agent registry.

The engine never owns time or membership. It reads one ``LedgerSnapshot``
per operation from a ``ClockSource`` and asks an ``AgentRegistry`` whether
an identity holds a membership token.

Two clocks ship with the package:
    - ManualClock: deterministic and advanceable, for tests and simulations
    - SystemClock: derives sequence numbers from wall time and keys the
      per-sequence randomness with a secret beacon

The randomness value is shared by every operation within one sequence
number, so it is visible to concurrent callers in that unit. Seeds built
from it do not bind a challenge to its solver strongly enough to stop a
human relaying challenges to an external solver.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..core.config import PoISettings, get_config
from ..core.exceptions import ValidationException
from .constants import WORD_BYTES
from .validators import normalize_identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerSnapshot:
    """Clock state observed by one operation."""

    sequence_number: int
    timestamp: int
    randomness: bytes


@runtime_checkable
class ClockSource(Protocol):
    """Supplies a monotonic sequence number, wall time and per-sequence randomness."""

    def snapshot(self) -> LedgerSnapshot:
        """Return the current clock state."""
        ...


@runtime_checkable
class AgentRegistry(Protocol):
    """Membership registry gating who may request challenges."""

    def balance_of(self, identity: str) -> int:
        """Number of membership tokens held; membership means > 0."""
        ...


# =============================================================================
# CLOCKS
# =============================================================================


class ManualClock:
    """Deterministic clock that only moves when told to.

    Each sequence number gets its own randomness, derived from a fixed
    seed so runs are reproducible.
    """

    def __init__(
        self,
        sequence_number: int = 1,
        timestamp: int = 1_700_000_000,
        block_time: int = 12,
        entropy: bytes = b"poi-manual-clock",
    ) -> None:
        if block_time <= 0:
            raise ValidationException("block_time must be positive", "block_time", block_time)
        self._sequence = sequence_number
        self._timestamp = timestamp
        self._block_time = block_time
        self._entropy = entropy
        self._lock = threading.Lock()

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                sequence_number=self._sequence,
                timestamp=self._timestamp,
                randomness=hashlib.sha256(self._entropy + self._sequence.to_bytes(WORD_BYTES, "big")).digest(),
            )

    @property
    def sequence_number(self) -> int:
        return self._sequence

    @property
    def timestamp(self) -> int:
        return self._timestamp

    def advance_blocks(self, count: int = 1) -> LedgerSnapshot:
        """Move forward ``count`` sequence numbers, advancing time by the block time."""
        if count < 0:
            raise ValidationException("Clock cannot move backwards", "count", count)
        with self._lock:
            self._sequence += count
            self._timestamp += count * self._block_time
        return self.snapshot()

    def advance_time(self, seconds: int) -> LedgerSnapshot:
        """Move time forward, producing the sequence numbers that elapse with it."""
        if seconds < 0:
            raise ValidationException("Clock cannot move backwards", "seconds", seconds)
        with self._lock:
            self._timestamp += seconds
            self._sequence += seconds // self._block_time
        return self.snapshot()

    def set(self, sequence_number: int | None = None, timestamp: int | None = None) -> LedgerSnapshot:
        """Jump to an explicit (non-decreasing) state."""
        with self._lock:
            if sequence_number is not None:
                if sequence_number < self._sequence:
                    raise ValidationException("Sequence numbers are monotonic", "sequence_number", sequence_number)
                self._sequence = sequence_number
            if timestamp is not None:
                if timestamp < self._timestamp:
                    raise ValidationException("Timestamps are monotonic", "timestamp", timestamp)
                self._timestamp = timestamp
        return self.snapshot()


class SystemClock:
    """Wall-clock sequence source.

    Sequence number = ``(now - genesis) // block_time``. Randomness for a
    sequence number is ``HMAC-SHA256(beacon_secret, sequence)``, which is
    stable within the sequence and unpredictable without the secret.
    """

    def __init__(self, block_time: int = 12, genesis_timestamp: int = 0, beacon_secret: bytes | None = None) -> None:
        if block_time <= 0:
            raise ValidationException("block_time must be positive", "block_time", block_time)
        self._block_time = block_time
        self._genesis = genesis_timestamp
        if not beacon_secret:
            logger.warning("No beacon secret configured, using a per-process random secret")
            beacon_secret = secrets.token_bytes(32)
        self._secret = beacon_secret

    @classmethod
    def from_config(cls, settings: PoISettings | None = None) -> SystemClock:
        settings = settings or get_config()
        return cls(
            block_time=settings.block_time_seconds,
            genesis_timestamp=settings.genesis_timestamp,
            beacon_secret=settings.beacon_secret.encode() if settings.beacon_secret else None,
        )

    def snapshot(self) -> LedgerSnapshot:
        now = int(time.time())
        sequence = max(0, (now - self._genesis) // self._block_time)
        randomness = hmac.new(self._secret, sequence.to_bytes(WORD_BYTES, "big"), hashlib.sha256).digest()
        return LedgerSnapshot(sequence_number=sequence, timestamp=now, randomness=randomness)


# =============================================================================
# REGISTRY
# =============================================================================


class MemoryAgentRegistry:
    """In-memory membership registry.

    Suitable for development and tests; production deployments adapt their
    own token ledger to the ``AgentRegistry`` protocol.
    """

    def __init__(self, members: dict[str, int] | None = None) -> None:
        self._balances: dict[str, int] = {}
        self._lock = threading.Lock()
        for identity, count in (members or {}).items():
            self.set_balance(identity, count)

    @classmethod
    def from_config(cls, settings: PoISettings | None = None) -> MemoryAgentRegistry:
        settings = settings or get_config()
        return cls({identity: 1 for identity in settings.registered_agent_list})

    def balance_of(self, identity: str) -> int:
        with self._lock:
            return self._balances.get(normalize_identity(identity), 0)

    def set_balance(self, identity: str, count: int) -> None:
        if count < 0:
            raise ValidationException("Balance cannot be negative", "count", count)
        with self._lock:
            self._balances[normalize_identity(identity)] = count

    def register(self, identity: str) -> None:
        """Grant one membership token."""
        key = normalize_identity(identity)
        with self._lock:
            self._balances[key] = self._balances.get(key, 0) + 1

    def unregister(self, identity: str) -> None:
        with self._lock:
            self._balances.pop(normalize_identity(identity), None)

    def __contains__(self, identity: str) -> bool:
        return self.balance_of(identity) > 0
