"""Per-identity cooldown between challenge requests.

One last-attempt timestamp per identity, advanced on every issued
challenge whatever its outcome. Initial and maintenance requests read
the same marker but wait different amounts of time.
"""

from __future__ import annotations

from ..core.exceptions import CooldownNotElapsed
from .constants import ProtocolParameters


class CooldownLimiter:
    """Checks the cooldown window; storage of the marker is the store's job."""

    def __init__(self, params: ProtocolParameters):
        self.params = params

    def retry_after(self, last_attempt: int | None, now: int, is_maintenance: bool) -> int:
        """Seconds until a request is allowed; 0 when it already is."""
        if last_attempt is None:
            return 0
        ready_at = last_attempt + self.params.cooldown_for(is_maintenance)
        return max(0, ready_at - now)

    def check(self, identity: str, last_attempt: int | None, now: int, is_maintenance: bool) -> None:
        """
        Raises:
            CooldownNotElapsed: If the identity is still cooling down.
        """
        remaining = self.retry_after(last_attempt, now, is_maintenance)
        if remaining > 0:
            raise CooldownNotElapsed(identity, remaining)
