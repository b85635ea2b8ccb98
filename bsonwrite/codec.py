"""
Per-type BSON encoding rules.

Each encoder function takes the active TypeEncoder, the value and the dotted
field path, and returns ``(type_tag, payload)``. Tags and layouts follow
http://bsonspec.org/spec.html.
"""

from __future__ import annotations

import dataclasses
import datetime
import itertools
import re
import struct
import uuid
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from .document import DocumentView, as_document
from .errors import (
    DocumentTooLarge,
    InvalidFieldName,
    InvalidRegexPattern,
    InvalidUtf8String,
    NumericOverflow,
    UnsupportedRegexFlag,
    UnsupportedValueType,
)
from .objectid import ObjectId
from .options import DEFAULT_OPTIONS, EncodingOptions
from .types import (
    OLD_BINARY_SUBTYPE,
    UUID_SUBTYPE,
    Binary,
    Code,
    Decimal128,
    Int64,
    MaxKey,
    MinKey,
    Regex,
    Timestamp,
)


BSONNUM = 0x01
BSONSTR = 0x02
BSONOBJ = 0x03
BSONARR = 0x04
BSONBIN = 0x05
BSONOID = 0x07
BSONBOO = 0x08
BSONDAT = 0x09
BSONNUL = 0x0A
BSONRGX = 0x0B
BSONCOD = 0x0D
BSONCWS = 0x0F
BSONINT = 0x10
BSONTIM = 0x11
BSONLON = 0x12
BSONDEC = 0x13
BSONMIN = 0xFF
BSONMAX = 0x7F

_PACK_INT = struct.Struct("<i").pack
_PACK_LONG = struct.Struct("<q").pack
_PACK_FLOAT = struct.Struct("<d").pack
_PACK_LENGTH_SUBTYPE = struct.Struct("<iB").pack
_PACK_TIMESTAMP = struct.Struct("<II").pack

_INT32_MIN, _INT32_MAX = -(2**31), 2**31 - 1
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1

_EPOCH_NAIVE = datetime.datetime(1970, 1, 1)
_ONE_MS = datetime.timedelta(milliseconds=1)

# i, m, x, s are the server flags; l and u are accepted legacy extensions.
VALID_REGEX_FLAGS = frozenset("ilmsux")

_Encoded = tuple[int, bytes]


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _utf8(value: str, path: str) -> bytes:
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidUtf8String(
            f"strings in documents must be valid UTF-8: {value!r}", path=path, value=value
        ) from None


def _datetime_to_millis(value: datetime.datetime) -> int:
    """Milliseconds since the epoch; naive datetimes are taken as UTC."""
    # Integer arithmetic: shifting by the offset can leave datetime's range.
    millis = (value.replace(tzinfo=None) - _EPOCH_NAIVE) // _ONE_MS
    offset = value.utcoffset()
    if offset is not None:
        millis -= offset // _ONE_MS
    return millis


def _list_names() -> Iterator[str]:
    return (str(i) for i in itertools.count())


# --- per-type rules --------------------------------------------------------


def _encode_float(enc: "TypeEncoder", value: float, path: str) -> _Encoded:
    return BSONNUM, _PACK_FLOAT(value)


def _encode_text(enc: "TypeEncoder", value: str, path: str) -> _Encoded:
    data = _utf8(value, path)
    return BSONSTR, _PACK_INT(len(data) + 1) + data + b"\x00"


def _encode_mapping(enc: "TypeEncoder", value: Any, path: str) -> _Encoded:
    return BSONOBJ, enc.encode_document(value, path)


def _encode_list(enc: "TypeEncoder", value: Any, path: str) -> _Encoded:
    names = _list_names()
    buf = bytearray(4)
    for item in value:
        name = next(names)
        buf += enc.encode_element(name, item, _join(path, name), check_name=False)
        enc.check_size(len(buf) + 1, path)
    buf += b"\x00"
    buf[0:4] = _PACK_INT(len(buf))
    return BSONARR, bytes(buf)


def _encode_bytes(enc: "TypeEncoder", value: Any, path: str) -> _Encoded:
    data = bytes(value)
    return BSONBIN, _PACK_LENGTH_SUBTYPE(len(data), 0) + data


def _encode_binary(enc: "TypeEncoder", value: Binary, path: str) -> _Encoded:
    data = bytes(value)
    subtype = value.subtype
    if subtype == OLD_BINARY_SUBTYPE:
        data = _PACK_INT(len(data)) + data
    return BSONBIN, _PACK_LENGTH_SUBTYPE(len(data), subtype) + data


def _encode_uuid(enc: "TypeEncoder", value: uuid.UUID, path: str) -> _Encoded:
    return _encode_binary(enc, Binary(value.bytes, UUID_SUBTYPE), path)


def _encode_objectid(enc: "TypeEncoder", value: ObjectId, path: str) -> _Encoded:
    data = value.binary
    if len(data) != 12:
        raise UnsupportedValueType(
            f"object ids must be exactly 12 bytes, got {len(data)}", path=path, value=value
        )
    return BSONOID, data


def _encode_bool(enc: "TypeEncoder", value: bool, path: str) -> _Encoded:
    return BSONBOO, b"\x01" if value else b"\x00"


def _encode_datetime(enc: "TypeEncoder", value: datetime.datetime, path: str) -> _Encoded:
    return BSONDAT, _PACK_LONG(_datetime_to_millis(value))


def _encode_none(enc: "TypeEncoder", value: None, path: str) -> _Encoded:
    return BSONNUL, b""


def _encode_regex(enc: "TypeEncoder", value: Any, path: str) -> _Encoded:
    if isinstance(value, re.Pattern):
        value = Regex.from_native(value)
    if "\x00" in value.pattern:
        raise InvalidRegexPattern(
            "regex patterns must not contain a NUL character", path=path, value=value.pattern
        )
    bad = set(value.flags) - VALID_REGEX_FLAGS
    if bad:
        raise UnsupportedRegexFlag(
            f"unsupported regex flag(s) {''.join(sorted(bad))!r} in {value.flags!r}",
            path=path,
            value=value.flags,
        )
    # The server expects flags in alphabetical order.
    flags = "".join(sorted(set(value.flags)))
    return BSONRGX, _utf8(value.pattern, path) + b"\x00" + flags.encode("ascii") + b"\x00"


def _encode_code(enc: "TypeEncoder", value: Code, path: str) -> _Encoded:
    code = _encode_text(enc, value.code, path)[1]
    if value.scope is None:
        return BSONCOD, code
    scope_encoder = enc.derive(check_keys=False)
    scope = scope_encoder.encode_document(value.scope, path)
    return BSONCWS, _PACK_INT(4 + len(code) + len(scope)) + code + scope


def _encode_int(enc: "TypeEncoder", value: int, path: str) -> _Encoded:
    if _INT32_MIN <= value <= _INT32_MAX:
        return BSONINT, _PACK_INT(value)
    return _encode_long(enc, value, path)


def _encode_long(enc: "TypeEncoder", value: int, path: str) -> _Encoded:
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise NumericOverflow("BSON can only handle up to 8-byte ints", path=path, value=value)
    return BSONLON, _PACK_LONG(value)


def _encode_timestamp(enc: "TypeEncoder", value: Timestamp, path: str) -> _Encoded:
    return BSONTIM, _PACK_TIMESTAMP(value.inc, value.time)


def _encode_decimal128(enc: "TypeEncoder", value: Decimal128, path: str) -> _Encoded:
    return BSONDEC, value.bid


def _encode_minkey(enc: "TypeEncoder", value: MinKey, path: str) -> _Encoded:
    return BSONMIN, b""


def _encode_maxkey(enc: "TypeEncoder", value: MaxKey, path: str) -> _Encoded:
    return BSONMAX, b""


_EncoderFunc = Callable[["TypeEncoder", Any, str], _Encoded]

# Order matters for the isinstance fallback: bool before int, the int and
# bytes subclasses before their bases.
_ENCODERS: dict[type, _EncoderFunc] = {
    bool: _encode_bool,
    Int64: _encode_long,
    int: _encode_int,
    float: _encode_float,
    str: _encode_text,
    Binary: _encode_binary,
    bytes: _encode_bytes,
    bytearray: _encode_bytes,
    memoryview: _encode_bytes,
    uuid.UUID: _encode_uuid,
    ObjectId: _encode_objectid,
    datetime.datetime: _encode_datetime,
    type(None): _encode_none,
    Regex: _encode_regex,
    re.Pattern: _encode_regex,
    Code: _encode_code,
    Timestamp: _encode_timestamp,
    Decimal128: _encode_decimal128,
    MinKey: _encode_minkey,
    MaxKey: _encode_maxkey,
    list: _encode_list,
    tuple: _encode_list,
    dict: _encode_mapping,
    DocumentView: _encode_mapping,
    Mapping: _encode_mapping,
}

_BUILT_IN_TYPES = tuple(_ENCODERS)


def _lookup(value: Any) -> _EncoderFunc | None:
    func = _ENCODERS.get(type(value))
    if func is not None:
        return func

    func = next((_ENCODERS[base] for base in _BUILT_IN_TYPES if isinstance(value, base)), None)

    if func is not None:
        # Cache subclasses for the next lookup.
        _ENCODERS[type(value)] = func
    return func


class TypeEncoder:
    """
    Encodes values, elements and nested documents under one set of options.
    """

    def __init__(self, options: EncodingOptions = DEFAULT_OPTIONS) -> None:
        self.options = options

    def derive(self, **changes: Any) -> "TypeEncoder":
        return TypeEncoder(dataclasses.replace(self.options, **changes))

    # --- values ---------------------------------------------------------

    def element_type(self, value: Any, path: str = "") -> int:
        return self._encode(value, path)[0]

    def encode_value(self, value: Any, path: str = "") -> bytes:
        """Return the payload bytes of ``value`` without tag or name."""
        return self._encode(value, path)[1]

    def encode_element(self, name: Any, value: Any, path: str = "", check_name: bool = True) -> bytes:
        """Return one ``tag + cstring name + payload`` element."""
        path = path or str(name)
        if check_name:
            self.check_name(name, path)
        tag, payload = self._encode(value, path)
        return bytes((tag,)) + _utf8(name, path) + b"\x00" + payload

    def _encode(self, value: Any, path: str) -> _Encoded:
        func = _lookup(value)
        if func is None and self.options.fallback_encoder is not None:
            value = self.options.fallback_encoder(value)
            func = _lookup(value)
        if func is None:
            raise UnsupportedValueType(
                f"cannot encode object: {value!r}, of type: {type(value)!r}",
                path=path,
                value=value,
            )
        return func(self, value, path)

    # --- documents ------------------------------------------------------

    def encode_document(self, doc: Any, path: str = "") -> bytes:
        """Encode a nested document; no field is forced to the front."""
        view = as_document(doc)
        buf = bytearray(4)
        for name, value in view.items():
            buf += self.encode_element(name, value, _join(path, str(name)))
            self.check_size(len(buf) + 1, path)
        buf += b"\x00"
        buf[0:4] = _PACK_INT(len(buf))
        return bytes(buf)

    def check_size(self, size: int, path: str = "") -> None:
        if size > self.options.max_size:
            raise DocumentTooLarge(size, self.options.max_size, path=path)

    def check_name(self, name: Any, path: str = "") -> None:
        if not isinstance(name, str):
            raise InvalidFieldName(
                f"documents must have only string keys, key was {name!r}", path=path, value=name
            )
        if "\x00" in name:
            raise InvalidFieldName(
                f"key {name!r} must not contain a NUL character", path=path, value=name
            )
        if not self.options.check_keys:
            return
        for prefix in self.options.reserved_prefixes:
            if name.startswith(prefix):
                raise InvalidFieldName(
                    f"key {name!r} must not start with {prefix!r}", path=path, value=name
                )
        bad = self.options.invalid_key_chars.intersection(name)
        if bad:
            raise InvalidFieldName(
                f"key {name!r} must not contain {''.join(sorted(bad))!r}", path=path, value=name
            )
