"""Ambient infrastructure shared by the credential engine: config, logging, errors."""

from .config import PoISettings, clear_config_cache, get_config
from .exceptions import (
    ChallengeAlreadyActive,
    ConfigException,
    CooldownNotElapsed,
    CredentialAlreadyDecayed,
    CredentialNotExpiringSoon,
    NoChallengeActive,
    NoCredentialToMaintain,
    NotRegisteredAgent,
    PoIException,
    PreconditionError,
    PrimeIndexOutOfRange,
    RevocationNotAuthorized,
    UnknownChallengeType,
    ValidationException,
)
from .logging import configure_logging, get_logger, operation_context

__all__ = [
    "PoISettings",
    "get_config",
    "clear_config_cache",
    "configure_logging",
    "get_logger",
    "operation_context",
    "PoIException",
    "ValidationException",
    "PrimeIndexOutOfRange",
    "UnknownChallengeType",
    "ConfigException",
    "PreconditionError",
    "NotRegisteredAgent",
    "CooldownNotElapsed",
    "ChallengeAlreadyActive",
    "NoChallengeActive",
    "NoCredentialToMaintain",
    "CredentialNotExpiringSoon",
    "CredentialAlreadyDecayed",
    "RevocationNotAuthorized",
]
