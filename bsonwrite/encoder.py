"""
Insert pre-encoding: resolve the document ``_id`` and encode it first.
"""

from __future__ import annotations

import dataclasses
import logging
import struct
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from .codec import TypeEncoder
from .document import as_document
from .errors import DocumentTooLarge
from .objectid import IdentifierGenerator, default_generator
from .options import DEFAULT_MAX_SIZE, DEFAULT_OPTIONS, EncodingOptions


logger = logging.getLogger(__name__)

_PACK_INT = struct.Struct("<i").pack


@dataclass(frozen=True, slots=True)
class EncodedDocument:
    """
    BSON bytes of one document plus metadata extracted while encoding.
    """

    bson: bytes
    metadata: Mapping[str, Any]

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def identifier(self) -> Any:
        return self.metadata["_id"]

    def __bytes__(self) -> bytes:
        return self.bson

    def __len__(self) -> int:
        return len(self.bson)


class DocumentEncoder:
    """
    Encodes top-level documents for insertion.

    The ``_id`` is taken from the document when present, otherwise generated,
    and always written as the first field.
    """

    def __init__(
        self,
        generator: IdentifierGenerator | None = None,
        options: EncodingOptions = DEFAULT_OPTIONS,
    ) -> None:
        self.generator = generator or default_generator()
        self.options = options

    def encode(self, document: Any, options: EncodingOptions | None = None) -> EncodedDocument:
        """
        Encode ``document`` (mapping, pair sequence or flat sequence).

        Raises an ``EncodeError`` subclass on the first violation; nothing is
        returned for a document that fails.
        """
        if options is None:
            options = self.options
        view = as_document(document)

        found, identifier = view.locate_identifier(options.first_key)
        if not found:
            identifier = self.generator.generate()
            logger.debug("generated %s %r", options.first_key, identifier)

        options = dataclasses.replace(options, first_value=identifier)
        encoder = TypeEncoder(options)
        first_key = options.first_key

        buf = bytearray(4)
        buf += encoder.encode_element(first_key, options.first_value)
        self._check_size(buf, options)

        for name, value in view.items():
            if name == first_key:
                continue
            buf += encoder.encode_element(name, value)
            self._check_size(buf, options)

        buf += b"\x00"
        buf[0:4] = _PACK_INT(len(buf))
        return EncodedDocument(bson=bytes(buf), metadata={first_key: identifier})

    def encode_many(
        self, documents: Iterable[Any], options: EncodingOptions | None = None
    ) -> list[EncodedDocument]:
        """
        Encode an insert batch, stopping at the first document that fails.
        """
        return [self.encode(doc, options) for doc in documents]

    @staticmethod
    def _check_size(buf: bytearray, options: EncodingOptions) -> None:
        # +1 for the terminating NUL still to come.
        size = len(buf) + 1
        if size > options.max_size:
            logger.debug("rejecting document of at least %d bytes (limit %d)", size, options.max_size)
            raise DocumentTooLarge(size, options.max_size)


_default_encoder = DocumentEncoder()


def encode_insert(
    document: Any,
    max_size: int = DEFAULT_MAX_SIZE,
    invalid_chars: str = "",
) -> EncodedDocument:
    """
    Pre-encode one document for an insert using the shared generator.

    ``max_size`` is the connection's maximum BSON object size and
    ``invalid_chars`` lists characters forbidden anywhere in field names.
    """
    options = EncodingOptions(max_size=max_size, invalid_key_chars=frozenset(invalid_chars))
    return _default_encoder.encode(document, options)
