"""Input validation for identities, seeds and answers.

Identities are 20-byte account addresses. Seeds and answers are 32-byte
words. Both arrive from untrusted callers, usually as ``0x`` hex strings.
"""

from __future__ import annotations

import re

from ..core.exceptions import ValidationException
from .constants import WORD_BYTES

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_WORD_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def normalize_identity(identity: str) -> str:
    """Return the canonical (lower-case) form of an identity address.

    Raises:
        ValidationException: If the value is not ``0x`` + 40 hex digits.
    """
    if not isinstance(identity, str) or not _ADDRESS_RE.match(identity):
        raise ValidationException("Identity must be a 0x-prefixed 20-byte hex address", "identity", identity)
    return identity.lower()


def identity_bytes(identity: str) -> bytes:
    """Raw 20 address bytes of an identity, as packed into hashes."""
    return bytes.fromhex(normalize_identity(identity)[2:])


def coerce_bytes32(value: bytes | bytearray | str, field: str = "value") -> bytes:
    """Accept a 32-byte word as raw bytes or ``0x`` hex.

    Raises:
        ValidationException: On any other shape.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != WORD_BYTES:
            raise ValidationException(f"{field} must be exactly 32 bytes", field, len(value))
        return bytes(value)
    if isinstance(value, str) and _WORD_RE.match(value):
        return bytes.fromhex(value[2:])
    raise ValidationException(f"{field} must be 32 bytes or a 0x-prefixed 64-digit hex string", field, value)


def bytes32_hex(value: bytes) -> str:
    """Format a 32-byte word as ``0x`` hex."""
    return "0x" + value.hex()
