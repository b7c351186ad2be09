"""Core configuration - centralized config for the poi package.

All environment-based configuration flows through this module.

Usage:
    from poi.core.config import get_config
    config = get_config()

    grace = config.grace_period_seconds
    backend = config.store_backend
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DAY_SECONDS = 86400


class PoISettings(BaseSettings):
    """Configuration settings for the PoI credential engine.

    Every field can be set through an environment variable with the
    ``POI_`` prefix (e.g. ``POI_GRACE_PERIOD_SECONDS``) or a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="POI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # CREDENTIAL LIFECYCLE
    # ==========================================================================

    validity_period_seconds: int = Field(
        default=7 * DAY_SECONDS,
        description="How long a credential stays valid after issuance or renewal",
    )
    grace_period_seconds: int = Field(
        default=1 * DAY_SECONDS,
        description="How long past expiry a credential may still be renewed",
    )
    maintenance_window_seconds: int = Field(
        default=2 * DAY_SECONDS,
        description="How long before expiry maintenance challenges are accepted",
    )

    # ==========================================================================
    # RATE LIMITING
    # ==========================================================================

    initial_cooldown_seconds: int = Field(
        default=3600,
        description="Minimum gap between an identity's last attempt and a new initial challenge",
    )
    maintenance_cooldown_seconds: int = Field(
        default=1800,
        description="Minimum gap between an identity's last attempt and a maintenance challenge",
    )

    # ==========================================================================
    # CHALLENGE WINDOWS (in sequence numbers)
    # ==========================================================================

    initial_challenge_window: int = Field(
        default=50,
        description="Sequence numbers an initial challenge stays answerable",
    )
    maintenance_challenge_window: int = Field(
        default=25,
        description="Sequence numbers a maintenance challenge stays answerable",
    )

    # ==========================================================================
    # REPUTATION
    # ==========================================================================

    initial_reputation: int = Field(default=50, description="Reputation of a freshly issued credential")
    reputation_reward: int = Field(default=5, description="Reputation gained per successful maintenance")
    reputation_penalty: int = Field(default=10, description="Reputation lost per failed maintenance")
    max_reputation: int = Field(default=100, description="Upper reputation bound")

    # ==========================================================================
    # STORAGE
    # ==========================================================================

    store_backend: str = Field(default="memory", description="Record store backend: 'memory' or 'redis'")
    redis_url: str = Field(default="redis://localhost:6379", description="Redis connection URL")
    redis_key_prefix: str = Field(default="poi:", description="Key prefix for all Redis records")

    # ==========================================================================
    # LEDGER / CLOCK
    # ==========================================================================

    block_time_seconds: int = Field(default=12, description="Seconds per sequence number for the system clock")
    genesis_timestamp: int = Field(default=0, description="Unix time of sequence number 0 for the system clock")
    beacon_secret: str = Field(
        default="",
        description="Secret keying the per-sequence randomness beacon (random per process if empty)",
    )
    registered_agents: str = Field(
        default="",
        description="Comma-separated identities treated as registered by the memory registry",
    )

    # ==========================================================================
    # NOTIFICATIONS
    # ==========================================================================

    event_history_size: int = Field(default=1000, description="Events kept for polling tools")

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    log_format: str = Field(default="", description="Log format: 'json', 'text', or '' (auto-detect)")
    log_file: str | None = Field(default=None, description="Log file path (optional)")

    @model_validator(mode="after")
    def validate_protocol_parameters(self) -> PoISettings:
        """Reject parameter sets that would break the lifecycle invariants."""
        positive = {
            "validity_period_seconds": self.validity_period_seconds,
            "grace_period_seconds": self.grace_period_seconds,
            "maintenance_window_seconds": self.maintenance_window_seconds,
            "initial_challenge_window": self.initial_challenge_window,
            "maintenance_challenge_window": self.maintenance_challenge_window,
            "block_time_seconds": self.block_time_seconds,
        }
        for name, value in positive.items():
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

        if self.initial_cooldown_seconds < 0 or self.maintenance_cooldown_seconds < 0:
            raise ValueError("cooldowns cannot be negative")

        if self.maintenance_window_seconds >= self.validity_period_seconds:
            raise ValueError("maintenance_window_seconds must be shorter than validity_period_seconds")

        if self.max_reputation <= 0:
            raise ValueError("max_reputation must be positive")
        if not 0 <= self.initial_reputation <= self.max_reputation:
            raise ValueError(f"initial_reputation must be within [0, {self.max_reputation}]")
        if self.reputation_reward < 0 or self.reputation_penalty < 0:
            raise ValueError("reputation deltas are magnitudes and cannot be negative")

        return self

    @property
    def registered_agent_list(self) -> list[str]:
        """Parsed ``registered_agents`` allow-list."""
        return [a.strip() for a in self.registered_agents.split(",") if a.strip()]


# ==========================================================================
# GLOBAL CONFIG INSTANCE (lazy loaded)
# ==========================================================================

_config: PoISettings | None = None


def get_config() -> PoISettings:
    """Get the global configuration instance.

    Returns:
        The singleton PoISettings instance.
    """
    global _config
    if _config is None:
        _config = PoISettings()
    return _config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None
