"""Helpers over pypdf's object model shared by the merge engine and the adapters.

Objects are ``pypdf.generic`` values. References held by a ``PdfDocument`` are
``IndirectObject`` instances bound to that document, so pypdf's own
dereferencing (``dictionary["/Key"]``, ``reference.get_object()``) resolves
through the document's store. Use ``dictionary.get(key)`` to read a reference
without following it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterator

from pypdf.generic import (
    ArrayObject,
    DictionaryObject,
    IndirectObject,
    NameObject,
    PdfObject,
    StreamObject,
)

ObjectId = tuple[int, int]

TYPE_KEY = NameObject("/Type")


def reference_id(reference: IndirectObject) -> ObjectId:
    return (int(reference.idnum), int(reference.generation))


def is_dictionary(value: Any) -> bool:
    # StreamObject subclasses DictionaryObject
    return isinstance(value, DictionaryObject) and not isinstance(value, StreamObject)


def type_name(value: Any) -> str | None:
    if not isinstance(value, DictionaryObject):
        return None
    kind = value.get(TYPE_KEY)
    return str(kind) if isinstance(kind, NameObject) else None


class ObjectKind(str, Enum):
    CATALOG = "/Catalog"
    PAGES = "/Pages"
    PAGE = "/Page"
    OUTLINES = "/Outlines"
    OUTLINE = "/Outline"
    OTHER = "Other"

    @classmethod
    def of(cls, value: Any) -> ObjectKind:
        kind = type_name(value)
        if kind is None:
            return cls.OTHER
        try:
            return cls(kind)
        except ValueError:
            return cls.OTHER


def raw_stream_data(stream: StreamObject) -> bytes:
    """Stream bytes as stored, still encoded by any /Filter."""
    return StreamObject.get_data(stream)


def map_references(value: PdfObject, transform: Callable[[IndirectObject], PdfObject]) -> PdfObject:
    """Return a copy of ``value`` with every nested reference replaced by ``transform(ref)``."""
    if isinstance(value, IndirectObject):
        return transform(value)
    if isinstance(value, StreamObject):
        entries: dict[Any, Any] = {
            key: map_references(item, transform) for key, item in value.items()
        }
        entries["__streamdata__"] = raw_stream_data(value)
        return StreamObject.initialize_from_dictionary(entries)
    if isinstance(value, DictionaryObject):
        return DictionaryObject(
            {key: map_references(item, transform) for key, item in value.items()}
        )
    if isinstance(value, ArrayObject):
        return ArrayObject(map_references(item, transform) for item in value)
    return value


def iter_references(value: PdfObject) -> Iterator[IndirectObject]:
    if isinstance(value, IndirectObject):
        yield value
    elif isinstance(value, DictionaryObject):
        for item in value.values():
            yield from iter_references(item)
    elif isinstance(value, ArrayObject):
        for item in value:
            yield from iter_references(item)
