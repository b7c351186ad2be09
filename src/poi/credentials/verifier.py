"""Answer verification.

Comparison is exact over the 32-byte digest, done in constant time.
"""

from __future__ import annotations

import hmac

from .models import Challenge
from .puzzles import solve_challenge
from .validators import coerce_bytes32


class AnswerVerifier:
    """Checks submitted answers against a challenge's issuance snapshot."""

    def expected(self, challenge: Challenge, identity: str) -> bytes:
        return solve_challenge(challenge, identity)

    def verify(self, challenge: Challenge, identity: str, answer: bytes | str) -> bool:
        """True if ``answer`` is exactly the expected digest.

        Raises:
            ValidationException: If the answer is not a 32-byte word.
        """
        submitted = coerce_bytes32(answer, "answer")
        return hmac.compare_digest(submitted, self.expected(challenge, identity))
