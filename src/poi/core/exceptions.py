# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Custom exception hierarchy for the PoI credential engine.

Two families of errors exist:

- Validation/config errors: malformed input or configuration.
- Precondition errors: the identity is not (yet) eligible for the requested
  operation. They are raised before any record is written, so the caller can
  simply satisfy the condition and retry. The one exception is a maintenance
  request arriving after the grace period: the decay is persisted first.

Wrong answers and missed deadlines are *not* exceptions; they are durable
outcomes reported through ``SubmissionResult``.
"""

from __future__ import annotations

from typing import Any


class PoIException(Exception):  # noqa: N818 - public name used by integrators
    """Base exception for all PoI errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(PoIException):
    """Exception for validation errors.

    Raised when:
    - An identity is not a 20-byte hex address
    - An answer or seed is not 32 bytes
    - A parameter is out of range
    """

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class PrimeIndexOutOfRange(ValidationException):  # noqa: N818
    """Prime table lookups are 1-indexed over 50 entries."""

    def __init__(self, index: int):
        super().__init__(f"Prime index out of range: {index}", "index", index)
        self.index = index


class UnknownChallengeType(ValidationException):  # noqa: N818
    """Only puzzle families 1-4 exist."""

    def __init__(self, challenge_type: Any):
        super().__init__(f"Unknown challenge type: {challenge_type}", "challenge_type", challenge_type)
        self.challenge_type = challenge_type


class ConfigException(PoIException):
    """Exception for configuration errors.

    Raised when:
    - An unknown store backend is configured
    - A backend dependency (e.g. redis) is missing
    """

    def __init__(self, message: str, missing_vars: list[str] | None = None):
        details = {}
        if missing_vars:
            details["missing_vars"] = missing_vars
        super().__init__(message, details)
        self.missing_vars = missing_vars or []


# =============================================================================
# PRECONDITION ERRORS
# =============================================================================


class PreconditionError(PoIException):
    """An operation was rejected with no state change."""

    def __init__(self, message: str, identity: str, details: dict | None = None):
        merged = {"identity": identity}
        if details:
            merged.update(details)
        super().__init__(message, merged)
        self.identity = identity


class NotRegisteredAgent(PreconditionError):  # noqa: N818
    """The identity holds no registry membership."""

    def __init__(self, identity: str):
        super().__init__(f"Identity is not a registered agent: {identity}", identity)


class CooldownNotElapsed(PreconditionError):  # noqa: N818
    """A challenge was requested too soon after the previous request."""

    def __init__(self, identity: str, retry_after: int):
        super().__init__(
            f"Cooldown not elapsed for {identity}, retry after {retry_after}s",
            identity,
            {"retry_after": retry_after},
        )
        self.retry_after = retry_after


class ChallengeAlreadyActive(PreconditionError):  # noqa: N818
    """An unexpired, incomplete challenge is still outstanding."""

    def __init__(self, identity: str, deadline: int):
        super().__init__(
            f"Challenge already active for {identity} until sequence {deadline}",
            identity,
            {"deadline": deadline},
        )
        self.deadline = deadline


class NoChallengeActive(PreconditionError):  # noqa: N818
    """An answer was submitted without an open challenge."""

    def __init__(self, identity: str):
        super().__init__(f"No active challenge for {identity}", identity)


class NoCredentialToMaintain(PreconditionError):  # noqa: N818
    """Maintenance needs a live (not revoked) credential."""

    def __init__(self, identity: str):
        super().__init__(f"No credential to maintain for {identity}", identity)


class CredentialNotExpiringSoon(PreconditionError):  # noqa: N818
    """Maintenance was requested before the renewal window opened."""

    def __init__(self, identity: str, window_opens_at: int):
        super().__init__(
            f"Credential for {identity} is not expiring soon, maintenance opens at {window_opens_at}",
            identity,
            {"window_opens_at": window_opens_at},
        )
        self.window_opens_at = window_opens_at


class CredentialAlreadyDecayed(PreconditionError):  # noqa: N818
    """The credential lapsed past its grace period."""

    def __init__(self, identity: str):
        super().__init__(f"Credential for {identity} has decayed", identity)


class RevocationNotAuthorized(PreconditionError):  # noqa: N818
    """The configured revocation policy refused the caller."""

    def __init__(self, identity: str, caller: str | None):
        super().__init__(
            f"Caller {caller or '<anonymous>'} may not revoke the credential of {identity}",
            identity,
            {"caller": caller},
        )
        self.caller = caller
