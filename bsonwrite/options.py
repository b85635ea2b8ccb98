"""
Encoding configuration.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


DEFAULT_MAX_SIZE = 16 * 1024 * 1024


class _NotSet:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NOT_SET"


NOT_SET: Any = _NotSet()


@dataclass(frozen=True)
class EncodingOptions:
    """
    Per-call encoding settings.

    ``max_size`` is the negotiated maximum document size for the target
    connection. ``check_keys=False`` disables the reserved-prefix and
    ``invalid_key_chars`` checks, e.g. for update-operator documents.
    ``first_key`` names the field emitted first in the top-level document;
    ``first_value`` is filled in by DocumentEncoder with the resolved
    identifier and any value passed in is replaced. ``fallback_encoder``
    converts otherwise unsupported values into encodable ones.
    """

    max_size: int = DEFAULT_MAX_SIZE
    check_keys: bool = True
    reserved_prefixes: tuple[str, ...] = ("$",)
    invalid_key_chars: frozenset[str] = field(default_factory=frozenset)
    first_key: str = "_id"
    first_value: Any = NOT_SET
    fallback_encoder: Callable[[Any], Any] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.max_size, int) or self.max_size <= 0:
            raise ValueError(f"max_size must be a positive int, got {self.max_size!r}")
        # Accept "." or ["$", "."] as well as a ready-made frozenset.
        chars: frozenset[str] = frozenset(self.invalid_key_chars)
        too_long = sorted(c for c in chars if len(c) != 1)
        if too_long:
            raise ValueError(f"invalid_key_chars entries must be single characters, got {too_long!r}")
        object.__setattr__(self, "invalid_key_chars", chars)
        object.__setattr__(self, "reserved_prefixes", tuple(self.reserved_prefixes))


DEFAULT_OPTIONS = EncodingOptions()
