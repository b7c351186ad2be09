"""Challenge generation.

The seed mixes the per-sequence randomness, the timestamp, the requester
and the global issued counter::

    seed = keccak256(randomness:uint256 ‖ timestamp:uint256 ‖ identity:address ‖ issued:uint256)

The caller cannot know it before its request is ordered, and it is fixed
once issued. The formula is kept exactly for compatibility with existing
solvers, weaknesses included (see ``ledger``).
"""

from __future__ import annotations

from .constants import ProtocolParameters
from .ledger import LedgerSnapshot
from .models import Challenge
from .puzzles import challenge_type_for_seed, encode_uint256, keccak256, seed_to_int
from .validators import identity_bytes


def derive_seed(randomness: bytes, timestamp: int, identity: str, issued_counter: int) -> bytes:
    """Compute the 32-byte seed of the next challenge."""
    return keccak256(
        encode_uint256(seed_to_int(randomness)),
        encode_uint256(timestamp),
        identity_bytes(identity),
        encode_uint256(issued_counter),
    )


class ChallengeGenerator:
    """Builds challenges; has no side effects of its own.

    The engine persists the returned challenge and bumps the counters, so
    a rejected request never leaves a half-issued challenge behind.
    """

    def __init__(self, params: ProtocolParameters):
        self.params = params

    def generate(
        self,
        identity: str,
        snapshot: LedgerSnapshot,
        issued_counter: int,
        is_maintenance: bool = False,
    ) -> Challenge:
        seed = derive_seed(snapshot.randomness, snapshot.timestamp, identity, issued_counter)
        return Challenge(
            challenge_type=challenge_type_for_seed(seed),
            seed=seed,
            deadline=snapshot.sequence_number + self.params.challenge_window_for(is_maintenance),
            issued_sequence=snapshot.sequence_number,
            issued_timestamp=snapshot.timestamp,
            completed=False,
            is_maintenance=is_maintenance,
        )
