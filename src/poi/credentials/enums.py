"""Enums for the credential protocol."""

from enum import Enum, IntEnum


class ChallengeType(IntEnum):
    """Puzzle family of a challenge. Values are part of the wire format."""
    PRIME_LOOKUP = 1       # keccak(seed ‖ nth prime)
    CONDITIONAL = 2        # branch on the issuance snapshot
    FIBONACCI_XOR = 3      # keccak(seed XOR fib)
    HASH_CHAIN = 4         # three chained hashes


class CredentialState(str, Enum):
    """Projected lifecycle state of an identity's credential."""
    NONE = "none"                    # Never verified
    VALID = "valid"                  # Valid, outside the renewal window
    EXPIRING_SOON = "expiring_soon"  # Valid, renewal window open
    GRACE = "grace"                  # Expired but still renewable
    DECAYED = "decayed"              # Lapsed, or grace over awaiting decay
    REVOKED = "revoked"              # Administratively invalidated


class SubmissionOutcome(str, Enum):
    """Terminal outcome of one submitted answer."""
    PASSED = "passed"
    WRONG_ANSWER = "wrong_answer"
    DEADLINE_MISSED = "deadline_missed"
    CREDENTIAL_LAPSED = "credential_lapsed"  # Correct, but credential died mid-challenge


class EventType(str, Enum):
    """Notifications emitted on state transitions."""
    CHALLENGE_ISSUED = "challenge_issued"
    CHALLENGE_PASSED = "challenge_passed"
    CHALLENGE_FAILED = "challenge_failed"
    CREDENTIAL_ISSUED = "credential_issued"
    CREDENTIAL_RENEWED = "credential_renewed"
    CREDENTIAL_DECAYED = "credential_decayed"
    CREDENTIAL_REVOKED = "credential_revoked"
    REPUTATION_UPDATED = "reputation_updated"
