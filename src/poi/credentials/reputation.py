"""Reputation scoring.

Reputation lives on the credential, starts at 50 on issuance and only ever
moves by three deltas: +5 per successful maintenance, -10 per failed
maintenance, and a reset to 0 on decay. It is clamped to [0, 100].
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .constants import ProtocolParameters
from .models import Credential

logger = logging.getLogger(__name__)


def clamp_reputation(value: int, max_reputation: int = 100) -> int:
    return max(0, min(max_reputation, value))


def calculate_reward(reputation: int, params: ProtocolParameters) -> int:
    """Reputation after a successful maintenance."""
    return clamp_reputation(reputation + params.reputation_reward, params.max_reputation)


def calculate_penalty(reputation: int, params: ProtocolParameters) -> int:
    """Reputation after a failed maintenance."""
    return clamp_reputation(reputation - params.reputation_penalty, params.max_reputation)


@dataclass(frozen=True)
class ReputationChange:
    """One applied reputation delta."""

    old: int
    new: int
    reason: str

    @property
    def delta(self) -> int:
        return self.new - self.old


class ReputationEngine:
    """Applies reputation deltas to a credential record in place."""

    def __init__(self, params: ProtocolParameters):
        self.params = params

    def initial(self) -> int:
        return self.params.initial_reputation

    def reward(self, credential: Credential) -> ReputationChange:
        return self._apply(credential, calculate_reward(credential.reputation, self.params), "maintenance_passed")

    def penalize(self, credential: Credential, reason: str = "maintenance_failed") -> ReputationChange:
        return self._apply(credential, calculate_penalty(credential.reputation, self.params), reason)

    def reset(self, credential: Credential) -> ReputationChange:
        return self._apply(credential, 0, "decayed")

    def _apply(self, credential: Credential, new: int, reason: str) -> ReputationChange:
        change = ReputationChange(old=credential.reputation, new=new, reason=reason)
        credential.reputation = new
        logger.debug(f"Reputation {change.old} -> {change.new} ({reason})")
        return change
