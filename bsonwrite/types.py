"""
Explicit BSON value wrappers for types with no native Python counterpart.

Native values map directly: None, bool, int, float, str, bytes, list,
tuple, dict (any Mapping), datetime.datetime, uuid.UUID and compiled
regular expressions. The classes below let callers pick a BSON type
explicitly instead of relying on inference.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


BINARY_SUBTYPE = 0
FUNCTION_SUBTYPE = 1
OLD_BINARY_SUBTYPE = 2
UUID_SUBTYPE = 4
MD5_SUBTYPE = 5
USER_DEFINED_SUBTYPE = 0x80


class Int64(int):
    """An int that is always stored as a BSON int64."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Int64({int(self)})"


class Binary(bytes):
    """Bytes tagged with a BSON binary subtype."""

    def __new__(cls, data: bytes, subtype: int = BINARY_SUBTYPE) -> "Binary":
        if not isinstance(subtype, int) or not 0 <= subtype <= 255:
            raise ValueError("subtype must be an int in range(256)")
        self = super().__new__(cls, data)
        self._subtype = subtype
        return self

    @property
    def subtype(self) -> int:
        return self._subtype

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Binary):
            return (self._subtype, bytes(self)) == (other._subtype, bytes(other))
        return self._subtype == BINARY_SUBTYPE and bytes(self) == other

    def __hash__(self) -> int:
        return hash((bytes(self), self._subtype))

    def __repr__(self) -> str:
        return f"Binary({bytes(self)!r}, {self._subtype})"


@dataclass(frozen=True, slots=True)
class Regex:
    """A BSON regular expression: a pattern plus a string of flag letters."""

    pattern: str
    flags: str = ""

    @classmethod
    def from_native(cls, regex: re.Pattern) -> "Regex":
        """Translate a compiled Python pattern's flags into BSON flag letters."""
        flags = ""
        if regex.flags & re.IGNORECASE:
            flags += "i"
        if regex.flags & re.LOCALE:
            flags += "l"
        if regex.flags & re.MULTILINE:
            flags += "m"
        if regex.flags & re.DOTALL:
            flags += "s"
        if regex.flags & re.UNICODE:
            flags += "u"
        if regex.flags & re.VERBOSE:
            flags += "x"
        pattern = regex.pattern
        if isinstance(pattern, bytes):
            pattern = pattern.decode("utf-8")
        return cls(pattern, flags)


@dataclass(frozen=True, slots=True)
class Code:
    """JavaScript code, optionally with a scope document."""

    code: str
    scope: Mapping[str, Any] | None = None


@dataclass(frozen=True, slots=True, order=True)
class Timestamp:
    """Internal MongoDB timestamp: seconds since epoch plus an ordinal."""

    time: int
    inc: int

    def __post_init__(self) -> None:
        if not 0 <= self.time <= 0xFFFFFFFF:
            raise ValueError("time must be contained in [0, 2**32)")
        if not 0 <= self.inc <= 0xFFFFFFFF:
            raise ValueError("inc must be contained in [0, 2**32)")


@dataclass(frozen=True, slots=True)
class Decimal128:
    """IEEE 754-2008 decimal128 value held as its 16-byte BID encoding."""

    bid: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.bid, bytes) or len(self.bid) != 16:
            raise ValueError("decimal128 must be exactly 16 bytes")


class MinKey:
    """Compares lower than every other BSON value."""

    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MinKey)

    def __hash__(self) -> int:
        return hash("MinKey")

    def __repr__(self) -> str:
        return "MinKey()"


class MaxKey:
    """Compares higher than every other BSON value."""

    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MaxKey)

    def __hash__(self) -> int:
        return hash("MaxKey")

    def __repr__(self) -> str:
        return "MaxKey()"
