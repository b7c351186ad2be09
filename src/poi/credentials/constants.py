"""Constants for the credential protocol.

The prime table and packing widths are part of the answer format shared
with off-chain solvers and must never change. Lifecycle timings are
configurable through ``PoISettings`` and frozen into ``ProtocolParameters``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.config import PoISettings

# First 50 primes, 1-indexed by lookup (PRIMES[0] is prime #1)
PRIMES: tuple[int, ...] = (
    2, 3, 5, 7, 11, 13, 17, 19, 23, 29,
    31, 37, 41, 43, 47, 53, 59, 61, 67, 71,
    73, 79, 83, 89, 97, 101, 103, 107, 109, 113,
    127, 131, 137, 139, 149, 151, 157, 163, 167, 173,
    179, 181, 191, 193, 197, 199, 211, 223, 227, 229,
)  # fmt: skip

PRIME_LOOKUP_MODULUS = 20
FIBONACCI_MODULUS = 20
BRANCH_SEQUENCE_MODULUS = 7
BRANCH_SEQUENCE_THRESHOLD = 3
FALLBACK_TAG = b"fallback"

WORD_BYTES = 32
UINT256_MAX = (1 << 256) - 1

DAY_SECONDS = 86400


@dataclass(frozen=True)
class ProtocolParameters:
    """Lifecycle parameters the engine runs with.

    Defaults are the protocol values; tests and deployments may override
    them through ``PoISettings``.
    """

    validity_period: int = 7 * DAY_SECONDS
    grace_period: int = 1 * DAY_SECONDS
    maintenance_window: int = 2 * DAY_SECONDS
    initial_cooldown: int = 3600
    maintenance_cooldown: int = 1800
    initial_challenge_window: int = 50
    maintenance_challenge_window: int = 25
    initial_reputation: int = 50
    reputation_reward: int = 5
    reputation_penalty: int = 10
    max_reputation: int = 100

    @classmethod
    def from_settings(cls, settings: PoISettings) -> ProtocolParameters:
        return cls(
            validity_period=settings.validity_period_seconds,
            grace_period=settings.grace_period_seconds,
            maintenance_window=settings.maintenance_window_seconds,
            initial_cooldown=settings.initial_cooldown_seconds,
            maintenance_cooldown=settings.maintenance_cooldown_seconds,
            initial_challenge_window=settings.initial_challenge_window,
            maintenance_challenge_window=settings.maintenance_challenge_window,
            initial_reputation=settings.initial_reputation,
            reputation_reward=settings.reputation_reward,
            reputation_penalty=settings.reputation_penalty,
            max_reputation=settings.max_reputation,
        )

    def cooldown_for(self, is_maintenance: bool) -> int:
        return self.maintenance_cooldown if is_maintenance else self.initial_cooldown

    def challenge_window_for(self, is_maintenance: bool) -> int:
        return self.maintenance_challenge_window if is_maintenance else self.initial_challenge_window
