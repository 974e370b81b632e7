from __future__ import annotations

from typing import Any, cast

import fitz
from pypdf.generic import (
    ArrayObject,
    BooleanObject,
    DecodedStreamObject,
    DictionaryObject,
    FloatObject,
    NameObject,
    NullObject,
    NumberObject,
    PdfObject,
    StreamObject,
    TextStringObject,
)

from pdf_stapler.domain.document import PdfDocument
from pdf_stapler.domain.models import LoadedDocument
from pdf_stapler.domain.objects import raw_stream_data


def pdf_value(value: Any) -> PdfObject:
    """Wrap a Python value: ``"/Name"`` strings become names, other strings text."""
    if isinstance(value, PdfObject):
        return value
    if value is None:
        return NullObject()
    if isinstance(value, bool):
        return BooleanObject(value)
    if isinstance(value, int):
        return NumberObject(value)
    if isinstance(value, float):
        return FloatObject(value)
    if isinstance(value, str):
        return NameObject(value) if value.startswith("/") else TextStringObject(value)
    if isinstance(value, (list, tuple)):
        return ArrayObject(pdf_value(item) for item in value)
    raise TypeError(f"Cannot wrap {type(value).__name__}")


def pdf_dict(**entries: Any) -> DictionaryObject:
    return DictionaryObject(
        {NameObject(f"/{key}"): pdf_value(value) for key, value in entries.items()}
    )


def pdf_stream(content: bytes, **entries: Any) -> DecodedStreamObject:
    stream = DecodedStreamObject()
    stream.update(pdf_dict(**entries))
    stream.set_data(content)
    return stream


def make_sample_document(title: str, page_count: int = 1) -> PdfDocument:
    """Build a small in-memory PDF graph: font, resources, one content stream per page."""
    document = PdfDocument()
    ref = document.reference
    pages_id = document.new_object_id()
    font_id = document.add_object(pdf_dict(Type="/Font", Subtype="/Type1", BaseFont="/Courier"))
    resources_id = document.add_object(pdf_dict(Font=pdf_dict(F1=ref(font_id))))

    kids = []
    for index in range(page_count):
        label = title if page_count == 1 else f"{title} page {index + 1}"
        content_id = document.add_object(
            pdf_stream(f"BT /F1 48 Tf 100 600 Td ({label}) Tj ET".encode("latin-1"))
        )
        page_id = document.add_object(
            pdf_dict(
                Type="/Page",
                Parent=ref(pages_id),
                Contents=ref(content_id),
                Resources=ref(resources_id),
                MediaBox=[0, 0, 595, 842],
            )
        )
        kids.append(ref(page_id))

    document.objects[pages_id] = pdf_dict(Type="/Pages", Kids=kids, Count=len(kids))
    catalog_id = document.add_object(pdf_dict(Type="/Catalog", Pages=ref(pages_id)))
    document.set_root(catalog_id)
    return document


def make_loaded(title: str, filename: str | None = None, page_count: int = 1) -> LoadedDocument:
    return LoadedDocument.from_document(
        filename or f"{title}.pdf", make_sample_document(title, page_count)
    )


def page_content(document: PdfDocument, page_id: tuple[int, int]) -> bytes:
    page = document.get_dictionary(page_id)
    contents = document.resolve(page.get("/Contents"))
    assert isinstance(contents, StreamObject)
    return raw_stream_data(cast(StreamObject, contents))


def build_pdf_bytes(pages: list[str], toc: list[list[Any]] | None = None) -> bytes:
    document = fitz.open()
    try:
        for text in pages:
            page = document.new_page()
            page.insert_text((72, 72), text)
        if toc:
            document.set_toc(toc)
        return document.tobytes(deflate=True, garbage=3)
    finally:
        document.close()


def object_sources(pdf_bytes: bytes) -> list[str]:
    with fitz.open(stream=pdf_bytes, filetype="pdf") as document:
        return [document.xref_object(xref) for xref in range(1, document.xref_length())]
