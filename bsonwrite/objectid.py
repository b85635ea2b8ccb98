"""
ObjectId values and the per-process identifier generator.

Layout of a generated id (12 bytes):
  - 4 bytes: big-endian seconds since the Unix epoch.
  - 5 bytes: discriminator drawn once per process.
  - 3 bytes: big-endian counter, random seed, wraps at 0xFFFFFF.
"""

from __future__ import annotations

import binascii
import datetime
import functools
import logging
import os
import random
import re
import struct
import threading
import time

from .errors import InvalidId


logger = logging.getLogger(__name__)

_MAX_COUNTER_VALUE = 0xFFFFFF
_PACK_TIME = struct.Struct(">I").pack
_HEX_ID = re.compile(r"[0-9a-fA-F]{24}")


class IdentifierGenerator:
    """
    Produces 12-byte ObjectId values that are unique within the process.
    """

    def __init__(self) -> None:
        self._discriminator = os.urandom(5)
        self._counter = random.SystemRandom().randint(0, _MAX_COUNTER_VALUE)
        self._lock = threading.Lock()

    def generate(self) -> "ObjectId":
        return ObjectId(self._next_bytes())

    def _next_bytes(self) -> bytes:
        with self._lock:
            counter = self._counter
            self._counter = (counter + 1) % (_MAX_COUNTER_VALUE + 1)
        timestamp = _PACK_TIME(int(time.time()) & 0xFFFFFFFF)
        return timestamp + self._discriminator + counter.to_bytes(3, "big")

    def _reset_after_fork(self) -> None:
        # The child must not reuse the parent's discriminator, and the lock
        # may have been held by another thread at fork time.
        self._discriminator = os.urandom(5)
        self._lock = threading.Lock()


_default_generator = IdentifierGenerator()


def default_generator() -> IdentifierGenerator:
    return _default_generator


@functools.total_ordering
class ObjectId:
    """
    Immutable 12-byte BSON object id.
    """

    __slots__ = ("_id",)

    def __init__(self, oid: "str | bytes | ObjectId | None" = None) -> None:
        if oid is None:
            oid = _default_generator._next_bytes()
        self._id = self._validate(oid)

    @staticmethod
    def _validate(oid: object) -> bytes:
        if isinstance(oid, ObjectId):
            return oid.binary
        if isinstance(oid, bytes):
            if len(oid) == 12:
                return oid
            raise InvalidId(f"{oid!r} is not a valid ObjectId, it must be 12 bytes")
        if isinstance(oid, str):
            if _HEX_ID.fullmatch(oid):
                return bytes.fromhex(oid)
            raise InvalidId(
                f"{oid!r} is not a valid ObjectId, it must be a 12-byte input or a 24-character hex string"
            )
        raise InvalidId(f"id must be an instance of (bytes, str, ObjectId), not {type(oid)}")

    @classmethod
    def is_valid(cls, oid: object) -> bool:
        if oid is None:
            return False
        try:
            cls._validate(oid)
        except InvalidId:
            return False
        return True

    @property
    def binary(self) -> bytes:
        return self._id

    @property
    def generation_time(self) -> datetime.datetime:
        """Aware UTC datetime taken from the leading timestamp bytes."""
        seconds = struct.unpack(">I", self._id[0:4])[0]
        return datetime.datetime.fromtimestamp(seconds, tz=datetime.timezone.utc)

    def __setattr__(self, name: str, value: object) -> None:
        if name != "_id" or hasattr(self, "_id"):
            raise AttributeError("ObjectId is immutable")
        object.__setattr__(self, name, value)

    def __str__(self) -> str:
        return binascii.hexlify(self._id).decode()

    def __repr__(self) -> str:
        return f"ObjectId('{self}')"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ObjectId):
            return self._id == other._id
        return NotImplemented

    def __lt__(self, other: "ObjectId") -> bool:
        if isinstance(other, ObjectId):
            return self._id < other._id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._id)


def _after_fork() -> None:
    _default_generator._reset_after_fork()
    logger.debug("regenerated ObjectId discriminator in forked child %d", os.getpid())


if hasattr(os, "register_at_fork"):
    os.register_at_fork(after_in_child=_after_fork)
