"""
Insert-side BSON encoding: `_id` resolution, type mapping and size limits.
"""

from .codec import TypeEncoder
from .document import DocumentView, FlatPairDocument, MapDocument, OrderedDocument, as_document
from .encoder import DocumentEncoder, EncodedDocument, encode_insert
from .errors import (
    BsonWriteError,
    DocumentTooLarge,
    EncodeError,
    InvalidFieldName,
    InvalidId,
    InvalidRegexPattern,
    InvalidUtf8String,
    NumericOverflow,
    UnsupportedRegexFlag,
    UnsupportedValueType,
)
from .objectid import IdentifierGenerator, ObjectId
from .options import DEFAULT_MAX_SIZE, EncodingOptions
from .types import Binary, Code, Decimal128, Int64, MaxKey, MinKey, Regex, Timestamp

__all__ = [
    "Binary",
    "BsonWriteError",
    "Code",
    "DEFAULT_MAX_SIZE",
    "Decimal128",
    "DocumentEncoder",
    "DocumentTooLarge",
    "DocumentView",
    "EncodeError",
    "EncodedDocument",
    "EncodingOptions",
    "FlatPairDocument",
    "IdentifierGenerator",
    "Int64",
    "InvalidFieldName",
    "InvalidId",
    "InvalidRegexPattern",
    "InvalidUtf8String",
    "MapDocument",
    "MaxKey",
    "MinKey",
    "NumericOverflow",
    "ObjectId",
    "OrderedDocument",
    "Regex",
    "Timestamp",
    "TypeEncoder",
    "UnsupportedRegexFlag",
    "UnsupportedValueType",
    "as_document",
    "encode_insert",
]
