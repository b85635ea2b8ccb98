"""
Read-only views over the document shapes accepted for encoding.

Callers hand documents over as a mapping, a sequence of (name, value)
pairs, or a flat sequence alternating name and value. Each view answers
"is there a top-level ``_id`` and what is it" and iterates the fields in
their natural order without copying or mutating the wrapped object.
"""

from __future__ import annotations

import abc
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from .errors import UnsupportedValueType


class DocumentView(abc.ABC):
    """Base class of the closed set of document shapes."""

    __slots__ = ("_doc",)

    def __init__(self, doc: Any) -> None:
        self._doc = doc

    @property
    def raw(self) -> Any:
        return self._doc

    @abc.abstractmethod
    def locate_identifier(self, key: str = "_id") -> tuple[bool, Any]:
        """
        Return ``(found, value)`` for the top-level field ``key``.

        Presence decides, so a field holding None is still found.
        """

    @abc.abstractmethod
    def items(self) -> Iterator[tuple[Any, Any]]:
        """Yield ``(name, value)`` pairs in the document's natural order."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._doc!r})"


class MapDocument(DocumentView):
    __slots__ = ()

    def locate_identifier(self, key: str = "_id") -> tuple[bool, Any]:
        if key in self._doc:
            return True, self._doc[key]
        return False, None

    def items(self) -> Iterator[tuple[Any, Any]]:
        return iter(self._doc.items())


class OrderedDocument(DocumentView):
    __slots__ = ()

    def locate_identifier(self, key: str = "_id") -> tuple[bool, Any]:
        for name, value in self.items():
            if name == key:
                return True, value
        return False, None

    def items(self) -> Iterator[tuple[Any, Any]]:
        for pos, pair in enumerate(self._doc):
            if not isinstance(pair, Sequence) or len(pair) != 2:
                raise UnsupportedValueType(
                    f"ordered document entries must be (name, value) pairs, got {pair!r}",
                    path=str(pos),
                    value=pair,
                )
            yield pair[0], pair[1]


class FlatPairDocument(DocumentView):
    __slots__ = ()

    def locate_identifier(self, key: str = "_id") -> tuple[bool, Any]:
        doc = self._doc
        # A name in the last slot has no value and does not count.
        for i in range(0, len(doc) - 1, 2):
            if doc[i] == key:
                return True, doc[i + 1]
        return False, None

    def items(self) -> Iterator[tuple[Any, Any]]:
        doc = self._doc
        for i in range(0, len(doc) - 1, 2):
            yield doc[i], doc[i + 1]


def as_document(obj: Any) -> DocumentView:
    """
    Wrap a caller-supplied document in the matching view.

    Sequences are told apart by their first element: a str means a flat
    name/value sequence, anything else (or an empty sequence) means pairs.
    """
    if isinstance(obj, DocumentView):
        return obj
    if isinstance(obj, Mapping):
        return MapDocument(obj)
    if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes, bytearray)):
        if len(obj) and isinstance(obj[0], str):
            return FlatPairDocument(obj)
        return OrderedDocument(obj)
    raise UnsupportedValueType(
        f"document must be a mapping or a sequence, not {type(obj).__name__}",
        value=obj,
    )
