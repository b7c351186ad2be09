"""Credential store backends.

Holds every per-identity record (challenge, credential, last-attempt
marker) plus the global counters. Default is in-memory; the Redis
backend is for deployments where a restart must not lose credentials.

Configure via environment variables:
    POI_STORE_BACKEND=memory|redis  (default: memory)
    POI_REDIS_URL=redis://localhost:6379  (default)
    POI_REDIS_KEY_PREFIX=poi:  (default)

Stores hand out copies: a caller mutating a returned record changes
nothing until it writes the record back.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager

from ..core.config import get_config
from ..core.exceptions import ConfigException
from .models import STAT_FIELDS, Challenge, Credential, ProtocolStats

try:
    import redis
except ImportError:  # pragma: no cover
    redis = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Abstract interface for PoI record storage, keyed by normalized identity."""

    @abstractmethod
    def get_challenge(self, identity: str) -> Challenge | None:
        """Return a copy of the identity's latest challenge, if any."""
        ...

    @abstractmethod
    def put_challenge(self, identity: str, challenge: Challenge) -> None:
        """Create or overwrite the identity's challenge."""
        ...

    @abstractmethod
    def get_credential(self, identity: str) -> Credential | None:
        """Return a copy of the identity's credential, if any."""
        ...

    @abstractmethod
    def put_credential(self, identity: str, credential: Credential) -> None:
        """Create or overwrite the identity's credential."""
        ...

    @abstractmethod
    def get_last_attempt(self, identity: str) -> int | None:
        """Timestamp of the identity's last challenge request, if any."""
        ...

    @abstractmethod
    def set_last_attempt(self, identity: str, timestamp: int) -> None:
        """Advance the identity's cooldown marker."""
        ...

    @abstractmethod
    def increment_counter(self, name: str, amount: int = 1) -> int | None:
        """Bump a global counter and return its new value (None while batched)."""
        ...

    @abstractmethod
    def get_stats(self) -> ProtocolStats:
        """Snapshot of all global counters."""
        ...

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Group writes so they land together.

        Backends without transactions apply each write immediately.
        """
        yield


def _check_counter(name: str) -> None:
    if name not in STAT_FIELDS:
        raise ValueError(f"Unknown counter: {name}")


class MemoryCredentialStore(CredentialStore):
    """In-memory credential store.

    Suitable for development, tests and single-process deployments.
    Records are lost on restart.
    """

    def __init__(self) -> None:
        self._challenges: dict[str, Challenge] = {}
        self._credentials: dict[str, Credential] = {}
        self._last_attempt: dict[str, int] = {}
        self._counters: dict[str, int] = {name: 0 for name in STAT_FIELDS}
        self._lock = threading.Lock()

    def get_challenge(self, identity: str) -> Challenge | None:
        with self._lock:
            return copy.deepcopy(self._challenges.get(identity))

    def put_challenge(self, identity: str, challenge: Challenge) -> None:
        with self._lock:
            self._challenges[identity] = copy.deepcopy(challenge)

    def get_credential(self, identity: str) -> Credential | None:
        with self._lock:
            return copy.deepcopy(self._credentials.get(identity))

    def put_credential(self, identity: str, credential: Credential) -> None:
        with self._lock:
            self._credentials[identity] = copy.deepcopy(credential)

    def get_last_attempt(self, identity: str) -> int | None:
        with self._lock:
            return self._last_attempt.get(identity)

    def set_last_attempt(self, identity: str, timestamp: int) -> None:
        with self._lock:
            self._last_attempt[identity] = timestamp

    def increment_counter(self, name: str, amount: int = 1) -> int:
        _check_counter(name)
        with self._lock:
            self._counters[name] += amount
            return self._counters[name]

    def get_stats(self) -> ProtocolStats:
        with self._lock:
            return ProtocolStats.from_dict(self._counters)

    def __contains__(self, identity: str) -> bool:
        """Support 'identity in store' for identities holding any record."""
        with self._lock:
            return identity in self._challenges or identity in self._credentials

    def clear(self) -> None:
        """Drop all records (useful for testing)."""
        with self._lock:
            self._challenges.clear()
            self._credentials.clear()
            self._last_attempt.clear()
            self._counters = {name: 0 for name in STAT_FIELDS}


class RedisCredentialStore(CredentialStore):
    """Redis-backed credential store.

    Records are JSON strings under ``<prefix>challenge:<identity>`` and
    ``<prefix>credential:<identity>``; cooldown markers are plain integers;
    counters live in one hash so ``HINCRBY`` keeps them atomic. Writes made
    inside ``batch()`` are queued on a MULTI/EXEC pipeline and land together.
    Requires redis-py: ``pip install poi[redis]``
    """

    def __init__(self, redis_url: str | None = None, key_prefix: str | None = None) -> None:
        if redis is None:
            raise ConfigException(
                "redis package is required for RedisCredentialStore. Install with: pip install poi[redis]"
            )

        config = get_config()
        url = redis_url or config.redis_url
        self._prefix = key_prefix if key_prefix is not None else config.redis_key_prefix
        self._client = redis.Redis.from_url(url, decode_responses=True)
        self._local = threading.local()
        try:
            self._client.ping()
        except redis.ConnectionError:
            logger.warning("Redis connection failed at init, will retry on use")

    def _key(self, kind: str, identity: str) -> str:
        return f"{self._prefix}{kind}:{identity}"

    @property
    def _writer(self):
        pipeline = getattr(self._local, "pipeline", None)
        return pipeline if pipeline is not None else self._client

    @property
    def _stats_key(self) -> str:
        return f"{self._prefix}stats"

    def get_challenge(self, identity: str) -> Challenge | None:
        raw = self._client.get(self._key("challenge", identity))
        if raw is None:
            return None
        return Challenge.from_dict(json.loads(raw))

    def put_challenge(self, identity: str, challenge: Challenge) -> None:
        self._writer.set(self._key("challenge", identity), json.dumps(challenge.to_dict()))

    def get_credential(self, identity: str) -> Credential | None:
        raw = self._client.get(self._key("credential", identity))
        if raw is None:
            return None
        return Credential.from_dict(json.loads(raw))

    def put_credential(self, identity: str, credential: Credential) -> None:
        self._writer.set(self._key("credential", identity), json.dumps(credential.to_dict()))

    def get_last_attempt(self, identity: str) -> int | None:
        raw = self._client.get(self._key("last_attempt", identity))
        return int(raw) if raw is not None else None

    def set_last_attempt(self, identity: str, timestamp: int) -> None:
        self._writer.set(self._key("last_attempt", identity), str(timestamp))

    def increment_counter(self, name: str, amount: int = 1) -> int | None:
        _check_counter(name)
        writer = self._writer
        result = writer.hincrby(self._stats_key, name, amount)
        # Queued commands have no value until EXEC
        return None if writer is not self._client else int(result)

    def get_stats(self) -> ProtocolStats:
        return ProtocolStats.from_dict(self._client.hgetall(self._stats_key) or {})

    @contextmanager
    def batch(self) -> Iterator[None]:
        if getattr(self._local, "pipeline", None) is not None:
            yield
            return

        pipeline = self._client.pipeline(transaction=True)
        self._local.pipeline = pipeline
        try:
            yield
            pipeline.execute()
        finally:
            self._local.pipeline = None
            pipeline.reset()


# =============================================================================
# FACTORY
# =============================================================================

_store_instance: CredentialStore | None = None


def get_credential_store() -> CredentialStore:
    """Get or create the global credential store.

    Reads POI_STORE_BACKEND:
        - "memory" (default): In-memory store
        - "redis": Redis-backed store

    Raises:
        ConfigException: If the backend name is unknown.
    """
    global _store_instance
    if _store_instance is not None:
        return _store_instance

    backend = get_config().store_backend.lower()

    if backend == "redis":
        logger.info("Using Redis credential store")
        _store_instance = RedisCredentialStore()
    elif backend == "memory":
        logger.info("Using in-memory credential store")
        _store_instance = MemoryCredentialStore()
    else:
        raise ConfigException(f"Unknown credential store backend '{backend}'", ["POI_STORE_BACKEND"])

    return _store_instance


def reset_credential_store() -> None:
    """Reset the global store instance (for testing)."""
    global _store_instance
    _store_instance = None
