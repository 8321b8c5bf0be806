"""Shared types and enums used across Natter."""

from datetime import datetime, timezone
from enum import Flag, StrEnum

from natter.errors import ValidationError


def utc_now() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


class Capability(Flag):
    """Space-scoped access rights. Grants hold any combination."""

    NONE = 0
    READ = 1
    WRITE = 2
    DELETE = 4


ALL_CAPABILITIES = Capability.READ | Capability.WRITE | Capability.DELETE

# Fixed-width storage code: one position per capability, '-' when absent.
_CODE_LETTERS: tuple[tuple[Capability, str], ...] = (
    (Capability.READ, "r"),
    (Capability.WRITE, "w"),
    (Capability.DELETE, "d"),
)


class DenyReason(StrEnum):
    """Why the access control engine refused a request."""

    NOT_FOUND = "NOT_FOUND"
    NO_GRANT = "NO_GRANT"
    INSUFFICIENT_CAPABILITY = "INSUFFICIENT_CAPABILITY"


class LockMode(StrEnum):
    """Row lock taken on the space while deciding access."""

    NONE = "NONE"
    SHARE = "SHARE"
    UPDATE = "UPDATE"


def to_code(capabilities: Capability) -> str:
    """Encode a capability set as its fixed-width code, e.g. ``rw-``."""
    return "".join(
        letter if capability in capabilities else "-"
        for capability, letter in _CODE_LETTERS
    )


def from_code(code: str) -> Capability:
    """Decode a stored fixed-width code. Raises ValidationError if malformed."""
    if len(code) != len(_CODE_LETTERS):
        raise ValidationError(f"malformed capability code: {code!r}")
    result = Capability.NONE
    for char, (capability, letter) in zip(code, _CODE_LETTERS):
        if char == letter:
            result |= capability
        elif char != "-":
            raise ValidationError(f"malformed capability code: {code!r}")
    return result


def parse_capabilities(text: str) -> Capability:
    """Parse the request form of a capability set: letters from ``rwd``.

    ``"r"``, ``"rw"`` and ``"dwr"`` are accepted; empty strings, repeated
    letters and anything else are rejected.
    """
    letters = {letter: capability for capability, letter in _CODE_LETTERS}
    if not text:
        raise ValidationError("permissions must name at least one of r, w, d")
    result = Capability.NONE
    for char in text:
        capability = letters.get(char)
        if capability is None or capability in result:
            raise ValidationError(f"invalid permissions: {text!r}")
        result |= capability
    return result
