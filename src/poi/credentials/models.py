"""Data models for the credential protocol.

Contains the per-identity records (Challenge, Credential), the global
counters, and the value objects returned to callers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from .enums import ChallengeType, CredentialState, SubmissionOutcome
from .validators import bytes32_hex, coerce_bytes32

# ============================================================================
# Per-identity records
# ============================================================================


@dataclass
class Challenge:
    """The single live puzzle issued to an identity.

    ``issued_sequence`` / ``issued_timestamp`` are the snapshot the expected
    answer is recomputed from, so verification does not depend on when
    within the window the answer arrives.
    """

    challenge_type: ChallengeType
    seed: bytes
    deadline: int
    issued_sequence: int
    issued_timestamp: int
    completed: bool = False
    is_maintenance: bool = False

    def is_expired(self, sequence_number: int) -> bool:
        return sequence_number > self.deadline

    def is_live(self, sequence_number: int) -> bool:
        """Open and still answerable at ``sequence_number``."""
        return not self.completed and not self.is_expired(sequence_number)

    @property
    def seed_hex(self) -> str:
        return bytes32_hex(self.seed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "challenge_type": int(self.challenge_type),
            "seed": self.seed_hex,
            "deadline": self.deadline,
            "issued_sequence": self.issued_sequence,
            "issued_timestamp": self.issued_timestamp,
            "completed": self.completed,
            "is_maintenance": self.is_maintenance,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Challenge:
        return cls(
            challenge_type=ChallengeType(int(data["challenge_type"])),
            seed=coerce_bytes32(data["seed"], "seed"),
            deadline=int(data["deadline"]),
            issued_sequence=int(data["issued_sequence"]),
            issued_timestamp=int(data["issued_timestamp"]),
            completed=bool(data.get("completed", False)),
            is_maintenance=bool(data.get("is_maintenance", False)),
        )


@dataclass
class Credential:
    """Proof-of-intelligence credential held by an identity."""

    issued_at: int
    expires_at: int
    challenge_type: ChallengeType
    sequence_solved: int
    valid: bool
    maintenance_count: int = 0
    last_maintained: int = 0
    reputation: int = 0
    revoked_at: int | None = None
    revocation_reason: str | None = None

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    @property
    def is_decayed(self) -> bool:
        """Invalidated by lapse rather than by revocation."""
        return not self.valid and not self.is_revoked

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["challenge_type"] = int(self.challenge_type)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Credential:
        revoked_at = data.get("revoked_at")
        return cls(
            issued_at=int(data["issued_at"]),
            expires_at=int(data["expires_at"]),
            challenge_type=ChallengeType(int(data["challenge_type"])),
            sequence_solved=int(data["sequence_solved"]),
            valid=bool(data["valid"]),
            maintenance_count=int(data.get("maintenance_count", 0)),
            last_maintained=int(data.get("last_maintained", 0)),
            reputation=int(data.get("reputation", 0)),
            revoked_at=int(revoked_at) if revoked_at is not None else None,
            revocation_reason=data.get("revocation_reason"),
        )


# ============================================================================
# Global counters
# ============================================================================

STAT_FIELDS = ("issued", "passed", "failed", "renewals", "decayed")


@dataclass(frozen=True)
class ProtocolStats:
    """Global counters, each bumped once per terminal event."""

    issued: int = 0
    passed: int = 0
    failed: int = 0
    renewals: int = 0
    decayed: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProtocolStats:
        return cls(**{name: int(data.get(name, 0)) for name in STAT_FIELDS})


# ============================================================================
# Values returned to callers
# ============================================================================


@dataclass(frozen=True)
class ChallengeTicket:
    """What a requester needs to solve its new challenge."""

    seed: bytes
    challenge_type: ChallengeType
    deadline: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "seed": bytes32_hex(self.seed),
            "challenge_type": int(self.challenge_type),
            "deadline": self.deadline,
        }


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of ``submit_answer``.

    A result always means the challenge was consumed and the outcome
    recorded; rejected submissions raise a precondition error instead.
    """

    outcome: SubmissionOutcome
    challenge_type: ChallengeType
    is_maintenance: bool
    reputation: int | None = None
    expires_at: int | None = None

    @property
    def success(self) -> bool:
        return self.outcome == SubmissionOutcome.PASSED

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "outcome": self.outcome.value,
            "challenge_type": int(self.challenge_type),
            "is_maintenance": self.is_maintenance,
            "reputation": self.reputation,
            "expires_at": self.expires_at,
        }


@dataclass(frozen=True)
class CredentialStatus:
    """All read-only views of one identity, taken at a single instant."""

    identity: str
    state: CredentialState
    has_valid_poi: bool
    in_grace_period: bool
    is_verified_agent: bool
    days_until_expiry: int
    needs_maintenance: bool
    credential: Credential | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "state": self.state.value,
            "has_valid_poi": self.has_valid_poi,
            "in_grace_period": self.in_grace_period,
            "is_verified_agent": self.is_verified_agent,
            "days_until_expiry": self.days_until_expiry,
            "needs_maintenance": self.needs_maintenance,
            "credential": self.credential.to_dict() if self.credential else None,
        }
