"""Deterministic puzzle families and their expected answers.

Every answer is a Keccak-256 digest over tightly packed fields: 32-byte
words are written as-is, integers as 32-byte big-endian words, addresses
as their 20 raw bytes and strings as their UTF-8 bytes. The encoding is
shared with off-chain solvers, so it is fixed.

``expected_answer`` is a pure function of
``(challenge_type, seed, identity, issued_sequence, issued_timestamp)``;
it never looks at the current time.
"""

from __future__ import annotations

from Crypto.Hash import keccak

from ..core.exceptions import PrimeIndexOutOfRange, UnknownChallengeType, ValidationException
from .constants import (
    BRANCH_SEQUENCE_MODULUS,
    BRANCH_SEQUENCE_THRESHOLD,
    FALLBACK_TAG,
    FIBONACCI_MODULUS,
    PRIME_LOOKUP_MODULUS,
    PRIMES,
    UINT256_MAX,
    WORD_BYTES,
)
from .enums import ChallengeType
from .models import Challenge
from .validators import coerce_bytes32, identity_bytes

# ============================================================================
# Hashing and packing
# ============================================================================


def keccak256(*parts: bytes) -> bytes:
    """Keccak-256 (pre-standard SHA-3 padding) over the concatenated parts."""
    digest = keccak.new(digest_bits=256)
    for part in parts:
        digest.update(part)
    return digest.digest()


def encode_uint256(value: int) -> bytes:
    """Pack an integer as a 32-byte big-endian word."""
    if value < 0 or value > UINT256_MAX:
        raise ValidationException("Value does not fit in 256 bits", "value", value)
    return value.to_bytes(WORD_BYTES, "big")


def seed_to_int(seed: bytes) -> int:
    return int.from_bytes(seed, "big")


# ============================================================================
# Number tables
# ============================================================================


def get_nth_prime(n: int) -> int:
    """Return the n-th prime from the fixed 50-entry table (1-indexed).

    Raises:
        PrimeIndexOutOfRange: If n is outside [1, 50].
    """
    if n < 1 or n > len(PRIMES):
        raise PrimeIndexOutOfRange(n)
    return PRIMES[n - 1]


def fibonacci(n: int) -> int:
    """Iterative Fibonacci with F(0)=0, F(1)=1."""
    if n < 0:
        raise ValidationException("Fibonacci index cannot be negative", "n", n)
    a, b = 0, 1
    for _ in range(n):
        a, b = b, a + b
    return a


# ============================================================================
# Puzzle families
# ============================================================================


def _prime_lookup(seed: bytes) -> bytes:
    prime = get_nth_prime(seed_to_int(seed) % PRIME_LOOKUP_MODULUS + 1)
    return keccak256(seed, encode_uint256(prime))


def _conditional(seed: bytes, identity: bytes, issued_sequence: int, issued_timestamp: int) -> bytes:
    if issued_sequence % BRANCH_SEQUENCE_MODULUS < BRANCH_SEQUENCE_THRESHOLD:
        return keccak256(identity, seed)
    if issued_timestamp % 2 == 0:
        return keccak256(encode_uint256(issued_sequence), seed)
    return keccak256(FALLBACK_TAG, seed, identity)


def _fibonacci_xor(seed: bytes) -> bytes:
    seed_int = seed_to_int(seed)
    fib = fibonacci(seed_int % FIBONACCI_MODULUS)
    return keccak256(encode_uint256(seed_int ^ fib))


def _hash_chain(seed: bytes, identity: bytes, issued_sequence: int, issued_timestamp: int) -> bytes:
    h1 = keccak256(seed, identity)
    h2 = keccak256(h1, encode_uint256(issued_sequence))
    return keccak256(h2, encode_uint256(issued_timestamp))


def challenge_type_for_seed(seed: bytes) -> ChallengeType:
    """Uniform rotation over the four families: ``seed mod 4 + 1``."""
    return ChallengeType(seed_to_int(seed) % len(ChallengeType) + 1)


def expected_answer(
    challenge_type: int,
    seed: bytes | str,
    identity: str,
    issued_sequence: int,
    issued_timestamp: int,
) -> bytes:
    """Recompute the answer a challenge expects.

    Args:
        challenge_type: Puzzle family (1-4)
        seed: 32-byte seed (raw or 0x hex)
        identity: Address the challenge was issued to
        issued_sequence: Sequence number at issuance
        issued_timestamp: Timestamp at issuance

    Returns:
        The 32-byte expected answer.

    Raises:
        UnknownChallengeType: If the type is not 1-4.
    """
    try:
        kind = ChallengeType(int(challenge_type))
    except (TypeError, ValueError):
        raise UnknownChallengeType(challenge_type) from None

    seed_bytes = coerce_bytes32(seed, "seed")

    if kind is ChallengeType.PRIME_LOOKUP:
        return _prime_lookup(seed_bytes)
    if kind is ChallengeType.CONDITIONAL:
        return _conditional(seed_bytes, identity_bytes(identity), issued_sequence, issued_timestamp)
    if kind is ChallengeType.FIBONACCI_XOR:
        return _fibonacci_xor(seed_bytes)
    return _hash_chain(seed_bytes, identity_bytes(identity), issued_sequence, issued_timestamp)


def solve_challenge(challenge: Challenge, identity: str) -> bytes:
    """Answer a challenge the way an off-chain solver would."""
    return expected_answer(
        challenge.challenge_type,
        challenge.seed,
        identity,
        challenge.issued_sequence,
        challenge.issued_timestamp,
    )
