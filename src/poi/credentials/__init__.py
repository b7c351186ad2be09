"""Proof-of-Intelligence credential protocol.

This package implements the credential lifecycle where:
- Registered agents request deterministic puzzles seeded from clock randomness
- A correct answer within the deadline issues a time-limited credential
- Credentials are renewed by maintenance puzzles inside a renewal window
- Neglected credentials pass through a grace period and then decay
- Reputation rises with renewals, falls with failed renewals, resets on decay

Submodules:
- constants: Prime table, packing widths, lifecycle parameters
- enums: Challenge types, credential states, outcomes, event types
- models: Challenge and credential records, returned value objects
- puzzles: The four puzzle families and their expected answers
- generator: Seed derivation and challenge construction
- verifier: Constant-time answer checks
- state: Read-time projection of credentials onto lifecycle states
- reputation: Reputation deltas
- rate_limit: Per-identity cooldowns
- store: Memory and Redis record stores
- stats: Global counters
- events: Transition notifications
- ledger: Clock and registry collaborators
- service: ProofOfIntelligence engine
"""

from .constants import PRIMES, ProtocolParameters

from .enums import (
    ChallengeType,
    CredentialState,
    EventType,
    SubmissionOutcome,
)

from .models import (
    Challenge,
    ChallengeTicket,
    Credential,
    CredentialStatus,
    ProtocolStats,
    SubmissionResult,
)

from .puzzles import (
    challenge_type_for_seed,
    expected_answer,
    fibonacci,
    get_nth_prime,
    keccak256,
    solve_challenge,
)

from .generator import ChallengeGenerator, derive_seed

from .verifier import AnswerVerifier

from .state import (
    credential_state,
    days_until_expiry,
    has_valid_poi,
    is_decay_eligible,
    is_in_grace_period,
    needs_maintenance,
)

from .reputation import (
    ReputationChange,
    ReputationEngine,
    calculate_penalty,
    calculate_reward,
    clamp_reputation,
)

from .rate_limit import CooldownLimiter

from .store import (
    CredentialStore,
    MemoryCredentialStore,
    RedisCredentialStore,
    get_credential_store,
    reset_credential_store,
)

from .stats import StatsAggregator

from .events import EventBus, ProtocolEvent

from .ledger import (
    AgentRegistry,
    ClockSource,
    LedgerSnapshot,
    ManualClock,
    MemoryAgentRegistry,
    SystemClock,
)

from .service import (
    AllowListRevocationPolicy,
    OpenRevocationPolicy,
    ProofOfIntelligence,
    RevocationPolicy,
)

__all__ = [
    # Constants
    "PRIMES",
    "ProtocolParameters",
    # Enums
    "ChallengeType",
    "CredentialState",
    "EventType",
    "SubmissionOutcome",
    # Records
    "Challenge",
    "Credential",
    # Results
    "ChallengeTicket",
    "CredentialStatus",
    "ProtocolStats",
    "SubmissionResult",
    # Puzzles
    "challenge_type_for_seed",
    "expected_answer",
    "fibonacci",
    "get_nth_prime",
    "keccak256",
    "solve_challenge",
    # Generation and verification
    "ChallengeGenerator",
    "derive_seed",
    "AnswerVerifier",
    # State projection
    "credential_state",
    "days_until_expiry",
    "has_valid_poi",
    "is_decay_eligible",
    "is_in_grace_period",
    "needs_maintenance",
    # Reputation
    "ReputationChange",
    "ReputationEngine",
    "calculate_penalty",
    "calculate_reward",
    "clamp_reputation",
    # Rate limiting
    "CooldownLimiter",
    # Storage
    "CredentialStore",
    "MemoryCredentialStore",
    "RedisCredentialStore",
    "get_credential_store",
    "reset_credential_store",
    "StatsAggregator",
    # Events
    "EventBus",
    "ProtocolEvent",
    # Collaborators
    "AgentRegistry",
    "ClockSource",
    "LedgerSnapshot",
    "ManualClock",
    "MemoryAgentRegistry",
    "SystemClock",
    # Engine
    "AllowListRevocationPolicy",
    "OpenRevocationPolicy",
    "ProofOfIntelligence",
    "RevocationPolicy",
]
