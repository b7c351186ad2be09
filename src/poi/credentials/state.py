"""Pure projections of a credential onto its lifecycle state.

Only ``valid``, ``expires_at`` and the revocation marker are stored. Grace
and the renewal window are derived here at read time, so decay stays the
only persisted terminal transition. Nothing in this module mutates.
"""

from __future__ import annotations

from .constants import DAY_SECONDS, ProtocolParameters
from .enums import CredentialState
from .models import Credential


def credential_state(credential: Credential | None, now: int, params: ProtocolParameters) -> CredentialState:
    """Project a credential onto ``CredentialState`` at time ``now``.

    A valid credential past ``expires_at + grace`` projects to DECAYED even
    before ``trigger_decay`` persists it.
    """
    if credential is None:
        return CredentialState.NONE
    if credential.is_revoked:
        return CredentialState.REVOKED
    if not credential.valid:
        return CredentialState.DECAYED
    if now > credential.expires_at + params.grace_period:
        return CredentialState.DECAYED
    if now > credential.expires_at:
        return CredentialState.GRACE
    if now >= credential.expires_at - params.maintenance_window:
        return CredentialState.EXPIRING_SOON
    return CredentialState.VALID


def has_valid_poi(credential: Credential | None, now: int) -> bool:
    """Valid and not expired."""
    return credential is not None and credential.valid and now <= credential.expires_at


def is_in_grace_period(credential: Credential | None, now: int, params: ProtocolParameters) -> bool:
    """Valid, expired, and still within the grace period."""
    if credential is None or not credential.valid:
        return False
    return credential.expires_at < now <= credential.expires_at + params.grace_period


def is_decay_eligible(credential: Credential | None, now: int, params: ProtocolParameters) -> bool:
    """Valid but past the end of grace: ``trigger_decay`` would act."""
    return credential is not None and credential.valid and now > credential.expires_at + params.grace_period


def days_until_expiry(credential: Credential | None, now: int) -> int:
    """Whole days left; 0 when invalid or expired."""
    if not has_valid_poi(credential, now):
        return 0
    return (credential.expires_at - now) // DAY_SECONDS


def needs_maintenance(credential: Credential | None, now: int, params: ProtocolParameters) -> bool:
    """Whether an auto-maintenance loop should renew now.

    True exactly when a maintenance request would pass the expiry checks:
    the renewal window has opened or the credential is in grace.
    """
    return credential_state(credential, now, params) in (CredentialState.EXPIRING_SOON, CredentialState.GRACE)
