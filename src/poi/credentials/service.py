"""Credential lifecycle engine.

``ProofOfIntelligence`` is the single entry point of the protocol:

    identity -> [cooldown, registry] -> ChallengeGenerator -> (off-chain solve)
             -> AnswerVerifier -> {store, reputation, stats} -> events

Every public method runs under one re-entrant lock, reads one clock
snapshot and checks all of its preconditions before the first write. The
writes of one operation go to the store as a single batch, and
notifications go out only after that batch has landed. Two writes
survive a failed call on purpose: a consumed challenge whose answer was
wrong or late, and a decay surfaced by a maintenance request that
arrived after the grace period.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Protocol, runtime_checkable

from ..core.config import PoISettings, get_config
from ..core.exceptions import (
    ChallengeAlreadyActive,
    CredentialAlreadyDecayed,
    CredentialNotExpiringSoon,
    NoChallengeActive,
    NoCredentialToMaintain,
    NotRegisteredAgent,
    PreconditionError,
    RevocationNotAuthorized,
    ValidationException,
)
from ..core.logging import operation_context
from .constants import ProtocolParameters
from .enums import CredentialState, EventType, SubmissionOutcome
from .events import EventBus, ProtocolEvent
from .generator import ChallengeGenerator
from .ledger import AgentRegistry, ClockSource, LedgerSnapshot, MemoryAgentRegistry, SystemClock
from .models import Challenge, ChallengeTicket, Credential, CredentialStatus, ProtocolStats, SubmissionResult
from .rate_limit import CooldownLimiter
from .reputation import ReputationChange, ReputationEngine
from .state import (
    credential_state,
    days_until_expiry,
    has_valid_poi,
    is_decay_eligible,
    is_in_grace_period,
    needs_maintenance,
)
from .stats import StatsAggregator
from .store import CredentialStore, get_credential_store
from .validators import coerce_bytes32, normalize_identity
from .verifier import AnswerVerifier

logger = logging.getLogger(__name__)

MAX_REASON_LEN = 500


# =============================================================================
# REVOCATION POLICY
# =============================================================================


@runtime_checkable
class RevocationPolicy(Protocol):
    """Capability check guarding administrative revocation."""

    def can_revoke(self, caller: str | None, identity: str) -> bool:
        ...


class OpenRevocationPolicy:
    """Lets any caller revoke. Integrators are expected to replace it."""

    def can_revoke(self, caller: str | None, identity: str) -> bool:
        return True


class AllowListRevocationPolicy:
    """Only the listed administrator identities may revoke."""

    def __init__(self, administrators: list[str]):
        self._administrators = {normalize_identity(a) for a in administrators}

    def can_revoke(self, caller: str | None, identity: str) -> bool:
        if caller is None:
            return False
        return caller.lower() in self._administrators


# =============================================================================
# ENGINE
# =============================================================================


class ProofOfIntelligence:
    """Issues, verifies, renews and decays proof-of-intelligence credentials.

    Args:
        clock: Sequence number / timestamp / randomness source
        registry: Membership registry gating challenge requests
        store: Record store (defaults to the configured global store)
        params: Lifecycle parameters (defaults to the configured values)
        events: Notification bus (a fresh bus by default)
        revocation_policy: Capability check for revoke_credential
    """

    def __init__(
        self,
        clock: ClockSource,
        registry: AgentRegistry,
        store: CredentialStore | None = None,
        params: ProtocolParameters | None = None,
        events: EventBus | None = None,
        revocation_policy: RevocationPolicy | None = None,
    ):
        config = get_config()
        self.clock = clock
        self.registry = registry
        self.store = store or get_credential_store()
        self.params = params or ProtocolParameters.from_settings(config)
        self.events = events or EventBus(history_size=config.event_history_size)
        self.revocation_policy = revocation_policy or OpenRevocationPolicy()

        self.generator = ChallengeGenerator(self.params)
        self.verifier = AnswerVerifier()
        self.reputation = ReputationEngine(self.params)
        self.cooldowns = CooldownLimiter(self.params)
        self.stats = StatsAggregator(self.store)
        self._lock = threading.RLock()
        self._pending: list[ProtocolEvent] | None = None

    @classmethod
    def from_config(cls, settings: PoISettings | None = None) -> ProofOfIntelligence:
        """Build an engine from environment configuration (system clock, memory registry)."""
        settings = settings or get_config()
        return cls(
            clock=SystemClock.from_config(settings),
            registry=MemoryAgentRegistry.from_config(settings),
            store=get_credential_store(),
            params=ProtocolParameters.from_settings(settings),
            events=EventBus(history_size=settings.event_history_size),
        )

    # -------------------------------------------------------------------------
    # Challenge requests
    # -------------------------------------------------------------------------

    def request_challenge(self, identity: str) -> ChallengeTicket:
        """Issue an initial challenge.

        Raises:
            NotRegisteredAgent, CooldownNotElapsed, ChallengeAlreadyActive
        """
        return self._request(identity, is_maintenance=False)

    def request_maintenance_challenge(self, identity: str) -> ChallengeTicket:
        """Issue a renewal challenge for an existing credential.

        Raises:
            NotRegisteredAgent, CooldownNotElapsed, ChallengeAlreadyActive,
            NoCredentialToMaintain, CredentialAlreadyDecayed,
            CredentialNotExpiringSoon
        """
        return self._request(identity, is_maintenance=True)

    def _request(self, identity: str, is_maintenance: bool) -> ChallengeTicket:
        key = normalize_identity(identity)
        operation = "request_maintenance_challenge" if is_maintenance else "request_challenge"

        with self._lock, operation_context(operation, key):
            snapshot = self.clock.snapshot()
            try:
                self._check_request(key, snapshot, is_maintenance)
            except PreconditionError as e:
                logger.debug(f"Challenge request rejected: {e.message}")
                raise

            challenge = self.generator.generate(key, snapshot, self.stats.issued_count(), is_maintenance)
            with self._commit():
                self.store.put_challenge(key, challenge)
                self.store.set_last_attempt(key, snapshot.timestamp)
                self.stats.record_issued()
                self._emit(
                    EventType.CHALLENGE_ISSUED,
                    key,
                    snapshot,
                    challenge_type=int(challenge.challenge_type),
                    seed=challenge.seed_hex,
                    deadline=challenge.deadline,
                    is_maintenance=is_maintenance,
                )

            logger.info(
                f"Challenge issued: type={int(challenge.challenge_type)} deadline={challenge.deadline} "
                f"maintenance={is_maintenance}"
            )
            return ChallengeTicket(
                seed=challenge.seed,
                challenge_type=challenge.challenge_type,
                deadline=challenge.deadline,
            )

    def _check_request(self, key: str, snapshot: LedgerSnapshot, is_maintenance: bool) -> None:
        if self.registry.balance_of(key) <= 0:
            raise NotRegisteredAgent(key)

        self.cooldowns.check(key, self.store.get_last_attempt(key), snapshot.timestamp, is_maintenance)

        existing = self.store.get_challenge(key)
        if existing is not None and existing.is_live(snapshot.sequence_number):
            raise ChallengeAlreadyActive(key, existing.deadline)

        if is_maintenance:
            self._check_maintenance_eligibility(key, snapshot)

    def _check_maintenance_eligibility(self, key: str, snapshot: LedgerSnapshot) -> None:
        credential = self.store.get_credential(key)
        if credential is None or credential.is_revoked:
            raise NoCredentialToMaintain(key)
        if credential.is_decayed:
            raise CredentialAlreadyDecayed(key)

        now = snapshot.timestamp
        if is_decay_eligible(credential, now, self.params):
            with self._commit():
                self._decay(key, credential, snapshot)
            raise CredentialAlreadyDecayed(key)

        window_opens_at = credential.expires_at - self.params.maintenance_window
        if now < window_opens_at:
            raise CredentialNotExpiringSoon(key, window_opens_at)

    # -------------------------------------------------------------------------
    # Answer submission
    # -------------------------------------------------------------------------

    def submit_answer(self, identity: str, answer: bytes | str) -> SubmissionResult:
        """Answer the identity's open challenge.

        Wrong and late answers are durable failures reported through the
        result, not exceptions.

        Raises:
            NoChallengeActive: If no open challenge exists.
            ValidationException: If the answer is not a 32-byte word.
        """
        key = normalize_identity(identity)

        with self._lock, operation_context("submit_answer", key):
            snapshot = self.clock.snapshot()
            challenge = self.store.get_challenge(key)
            if challenge is None or challenge.completed:
                logger.debug("Answer rejected: no active challenge")
                raise NoChallengeActive(key)

            submitted = coerce_bytes32(answer, "answer")
            challenge.completed = True

            with self._commit():
                return self._settle(key, challenge, snapshot, submitted)

    def _settle(self, key: str, challenge: Challenge, snapshot: LedgerSnapshot, submitted: bytes) -> SubmissionResult:
        if challenge.is_expired(snapshot.sequence_number):
            return self._record_failure(key, challenge, snapshot, SubmissionOutcome.DEADLINE_MISSED)

        if not self.verifier.verify(challenge, key, submitted):
            return self._record_failure(key, challenge, snapshot, SubmissionOutcome.WRONG_ANSWER)

        credential = self.store.get_credential(key)
        if challenge.is_maintenance and (
            credential is None
            or not credential.valid
            or is_decay_eligible(credential, snapshot.timestamp, self.params)
        ):
            return self._record_failure(key, challenge, snapshot, SubmissionOutcome.CREDENTIAL_LAPSED, penalize=False)

        self.store.put_challenge(key, challenge)
        self.stats.record_passed()
        logger.info(f"Challenge passed: type={int(challenge.challenge_type)} maintenance={challenge.is_maintenance}")
        self._emit(
            EventType.CHALLENGE_PASSED,
            key,
            snapshot,
            challenge_type=int(challenge.challenge_type),
            sequence_number=snapshot.sequence_number,
            is_maintenance=challenge.is_maintenance,
        )

        if challenge.is_maintenance:
            credential = self._renew(key, credential, snapshot)
        else:
            credential = self._issue(key, challenge, credential, snapshot)

        return SubmissionResult(
            outcome=SubmissionOutcome.PASSED,
            challenge_type=challenge.challenge_type,
            is_maintenance=challenge.is_maintenance,
            reputation=credential.reputation,
            expires_at=credential.expires_at,
        )

    def _record_failure(
        self,
        key: str,
        challenge: Challenge,
        snapshot: LedgerSnapshot,
        outcome: SubmissionOutcome,
        penalize: bool = True,
    ) -> SubmissionResult:
        self.store.put_challenge(key, challenge)
        self.stats.record_failed()

        credential = self.store.get_credential(key)
        change: ReputationChange | None = None
        if challenge.is_maintenance and penalize and credential is not None and credential.valid:
            change = self.reputation.penalize(credential, reason=outcome.value)
            self.store.put_credential(key, credential)

        logger.info(f"Challenge failed: {outcome.value} maintenance={challenge.is_maintenance}")
        self._emit(
            EventType.CHALLENGE_FAILED,
            key,
            snapshot,
            challenge_type=int(challenge.challenge_type),
            reason=outcome.value,
            is_maintenance=challenge.is_maintenance,
        )
        if change is not None:
            self._emit_reputation(key, snapshot, change)

        return SubmissionResult(
            outcome=outcome,
            challenge_type=challenge.challenge_type,
            is_maintenance=challenge.is_maintenance,
            reputation=credential.reputation if credential is not None else None,
            expires_at=credential.expires_at if credential is not None else None,
        )

    # -------------------------------------------------------------------------
    # Credential transitions
    # -------------------------------------------------------------------------

    def _issue(
        self,
        key: str,
        challenge: Challenge,
        previous: Credential | None,
        snapshot: LedgerSnapshot,
    ) -> Credential:
        now = snapshot.timestamp
        old_reputation = previous.reputation if previous is not None else 0
        reputation = self.reputation.initial()
        # Only decay resets the score; re-verifying a valid or revoked credential keeps it lowered
        if previous is not None and (previous.valid or previous.is_revoked):
            reputation = min(previous.reputation, reputation)

        credential = Credential(
            issued_at=now,
            expires_at=now + self.params.validity_period,
            challenge_type=challenge.challenge_type,
            sequence_solved=snapshot.sequence_number,
            valid=True,
            maintenance_count=0,
            last_maintained=now,
            reputation=reputation,
        )
        self.store.put_credential(key, credential)

        logger.info(f"Credential issued: expires_at={credential.expires_at} reputation={credential.reputation}")
        self._emit(EventType.CREDENTIAL_ISSUED, key, snapshot, expires_at=credential.expires_at)
        self._emit_reputation(key, snapshot, ReputationChange(old=old_reputation, new=reputation, reason="issued"))
        return credential

    def _renew(self, key: str, credential: Credential, snapshot: LedgerSnapshot) -> Credential:
        now = snapshot.timestamp
        credential.expires_at = now + self.params.validity_period
        credential.maintenance_count += 1
        credential.last_maintained = now
        change = self.reputation.reward(credential)
        self.store.put_credential(key, credential)
        self.stats.record_renewal()

        logger.info(
            f"Credential renewed: expires_at={credential.expires_at} "
            f"maintenance_count={credential.maintenance_count} reputation={credential.reputation}"
        )
        self._emit(
            EventType.CREDENTIAL_RENEWED,
            key,
            snapshot,
            expires_at=credential.expires_at,
            maintenance_count=credential.maintenance_count,
        )
        self._emit_reputation(key, snapshot, change)
        return credential

    def _decay(self, key: str, credential: Credential, snapshot: LedgerSnapshot) -> None:
        credential.valid = False
        change = self.reputation.reset(credential)
        self.store.put_credential(key, credential)
        self.stats.record_decay()

        logger.info(f"Credential decayed: expired_at={credential.expires_at}")
        self._emit(EventType.CREDENTIAL_DECAYED, key, snapshot, expired_at=credential.expires_at)
        self._emit_reputation(key, snapshot, change)

    def trigger_decay(self, identity: str) -> bool:
        """Persist the decay of a credential past its grace period.

        Callable by anyone. A no-op unless the credential is valid and
        past ``expires_at + grace``.

        Returns:
            True if the credential was decayed.
        """
        key = normalize_identity(identity)
        with self._lock, operation_context("trigger_decay", key):
            snapshot = self.clock.snapshot()
            credential = self.store.get_credential(key)
            if not is_decay_eligible(credential, snapshot.timestamp, self.params):
                logger.debug("Decay not applicable")
                return False
            with self._commit():
                self._decay(key, credential, snapshot)
            return True

    def revoke_credential(self, identity: str, reason: str, caller: str | None = None) -> bool:
        """Invalidate a credential directly, keeping its reputation.

        Args:
            identity: Credential holder
            reason: Free-text justification, stored on the credential
            caller: Who asks; checked against the revocation policy

        Returns:
            True if a credential was revoked, False if the identity has no
            live credential (none at all, decayed, or already revoked).

        Raises:
            RevocationNotAuthorized: If the policy refuses the caller.
        """
        key = normalize_identity(identity)
        if len(reason) > MAX_REASON_LEN:
            raise ValidationException(f"Reason exceeds {MAX_REASON_LEN} characters", "reason", len(reason))

        with self._lock, operation_context("revoke_credential", key):
            if not self.revocation_policy.can_revoke(caller, key):
                logger.warning(f"Revocation refused for caller {caller}")
                raise RevocationNotAuthorized(key, caller)

            snapshot = self.clock.snapshot()
            credential = self.store.get_credential(key)
            if credential is None or not credential.valid:
                logger.warning("Revocation requested for identity without a live credential")
                return False

            credential.valid = False
            credential.revoked_at = snapshot.timestamp
            credential.revocation_reason = reason
            with self._commit():
                self.store.put_credential(key, credential)
                self._emit(EventType.CREDENTIAL_REVOKED, key, snapshot, reason=reason, caller=caller)

            logger.info(f"Credential revoked: reason={reason!r} caller={caller}")
            return True

    # -------------------------------------------------------------------------
    # Queries (side-effect free)
    # -------------------------------------------------------------------------

    def _read(self, identity: str) -> tuple[str, LedgerSnapshot, Credential | None]:
        key = normalize_identity(identity)
        with self._lock:
            return key, self.clock.snapshot(), self.store.get_credential(key)

    def has_valid_poi(self, identity: str) -> bool:
        _, snapshot, credential = self._read(identity)
        return has_valid_poi(credential, snapshot.timestamp)

    def is_in_grace_period(self, identity: str) -> bool:
        _, snapshot, credential = self._read(identity)
        return is_in_grace_period(credential, snapshot.timestamp, self.params)

    def is_verified_intelligent_agent(self, identity: str) -> bool:
        key, snapshot, credential = self._read(identity)
        return self.registry.balance_of(key) > 0 and has_valid_poi(credential, snapshot.timestamp)

    def days_until_expiry(self, identity: str) -> int:
        _, snapshot, credential = self._read(identity)
        return days_until_expiry(credential, snapshot.timestamp)

    def credential_state(self, identity: str) -> CredentialState:
        _, snapshot, credential = self._read(identity)
        return credential_state(credential, snapshot.timestamp, self.params)

    def needs_maintenance(self, identity: str) -> bool:
        _, snapshot, credential = self._read(identity)
        return needs_maintenance(credential, snapshot.timestamp, self.params)

    def get_credential(self, identity: str) -> Credential | None:
        return self._read(identity)[2]

    def get_challenge(self, identity: str) -> Challenge | None:
        with self._lock:
            return self.store.get_challenge(normalize_identity(identity))

    def get_stats(self) -> ProtocolStats:
        with self._lock:
            return self.stats.snapshot()

    def get_status(self, identity: str) -> CredentialStatus:
        """Every read-only view of one identity at a single instant."""
        key, snapshot, credential = self._read(identity)
        now = snapshot.timestamp
        valid = has_valid_poi(credential, now)
        return CredentialStatus(
            identity=key,
            state=credential_state(credential, now, self.params),
            has_valid_poi=valid,
            in_grace_period=is_in_grace_period(credential, now, self.params),
            is_verified_agent=valid and self.registry.balance_of(key) > 0,
            days_until_expiry=days_until_expiry(credential, now),
            needs_maintenance=needs_maintenance(credential, now, self.params),
            credential=credential,
        )

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    @contextmanager
    def _commit(self) -> Iterator[None]:
        """Write one operation's records as a single store batch, then notify."""
        pending: list[ProtocolEvent] = []
        self._pending = pending
        try:
            with self.store.batch():
                yield
        finally:
            self._pending = None
        for event in pending:
            self.events.emit(event)

    def _emit(self, event_type: EventType, key: str, snapshot: LedgerSnapshot, **data: Any) -> None:
        event = ProtocolEvent(
            type=event_type,
            identity=key,
            sequence_number=snapshot.sequence_number,
            timestamp=snapshot.timestamp,
            data=data,
        )
        if self._pending is not None:
            self._pending.append(event)
        else:
            self.events.emit(event)

    def _emit_reputation(self, key: str, snapshot: LedgerSnapshot, change: ReputationChange) -> None:
        self._emit(
            EventType.REPUTATION_UPDATED,
            key,
            snapshot,
            old=change.old,
            new=change.new,
            reason=change.reason,
        )


__all__ = [
    "AllowListRevocationPolicy",
    "OpenRevocationPolicy",
    "ProofOfIntelligence",
    "RevocationPolicy",
]
