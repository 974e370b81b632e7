from __future__ import annotations

from io import BytesIO
from typing import Any, cast

import fitz  # type: ignore[import-untyped]
from pypdf.generic import DictionaryObject, IndirectObject, PdfObject, StreamObject

from pdf_stapler.domain.document import PdfDocument
from pdf_stapler.domain.errors import ParsingError
from pdf_stapler.domain.objects import raw_stream_data
from pdf_stapler.infrastructure.logger import get_logger

LOGGER = get_logger(__name__)

ENCODING_KEYS = ("/Filter", "/DecodeParms")


class PyMuPdfAdapter:
    @staticmethod
    def _save_options(compress: bool) -> dict[str, Any]:
        if not compress:
            return {}
        return {
            "garbage": 4,
            "clean": True,
            "deflate": True,
            "deflate_images": True,
            "deflate_fonts": True,
        }

    def _write_graph(self, document: PdfDocument) -> fitz.Document:
        if any(generation for _, generation in document.objects):
            document.renumber_objects()

        output = fitz.open()
        try:
            while output.xref_length() <= document.max_id:
                output.get_new_xref()
            for (xref, _), value in sorted(document.objects.items()):
                if isinstance(value, StreamObject):
                    output.update_object(xref, _object_source(DictionaryObject(value)))
                    # empty buffers are rejected by update_stream
                    output.update_stream(xref, raw_stream_data(value) or b" ", new=True, compress=False)
                    # update_stream drops the encoding keys; the data is already encoded
                    for key in ENCODING_KEYS:
                        if key in value:
                            output.xref_set_key(xref, key[1:], _object_source(value.get(key)))
                else:
                    output.update_object(xref, _object_source(value))
            root = document.trailer.get("/Root")
            if isinstance(root, IndirectObject):
                output.xref_set_key(-1, "Root", _object_source(root))
            return output
        except Exception:
            output.close()
            raise

    def _write_outline(self, output: fitz.Document, document: PdfDocument) -> None:
        entries = document.outline_entries()
        if not entries:
            return
        if output.page_count == 0:
            LOGGER.warning("Skipping %d bookmarks: merged document has no pages", len(entries))
            return

        positions = {page_id: number for number, page_id in enumerate(document.page_ids(), start=1)}
        toc = []
        for level, bookmark in entries:
            page = positions.get(bookmark.page, -1) if bookmark.page is not None else -1
            kind = fitz.LINK_GOTO if page > 0 else fitz.LINK_NONE
            toc.append([level, bookmark.title, page, {"kind": kind, "color": bookmark.color}])
        output.set_toc(toc)

    def to_bytes(self, document: PdfDocument, compress: bool = False) -> bytes:
        try:
            output = self._write_graph(document)
        except Exception as exc:
            raise ParsingError("Unable to encode merged PDF") from exc
        try:
            assembled = output.tobytes()
        except Exception as exc:
            raise ParsingError("Unable to encode merged PDF") from exc
        finally:
            output.close()

        # reopened so the page tree written above is what set_toc resolves pages against
        try:
            with fitz.open(stream=assembled, filetype="pdf") as merged:
                self._write_outline(merged, document)
                return cast(bytes, merged.tobytes(**self._save_options(compress)))
        except Exception as exc:
            raise ParsingError("Unable to encode merged PDF") from exc

    def get_page_count(self, pdf_bytes: bytes) -> int:
        try:
            with fitz.open(stream=pdf_bytes, filetype="pdf") as document:
                return int(document.page_count)
        except Exception as exc:
            raise ParsingError("Unable to read PDF page count") from exc

    def extract_text_by_page(self, pdf_bytes: bytes) -> list[str]:
        try:
            with fitz.open(stream=pdf_bytes, filetype="pdf") as document:
                return [document[index].get_text("text") for index in range(document.page_count)]
        except Exception as exc:
            raise ParsingError("Unable to extract PDF text") from exc

    def get_toc(self, pdf_bytes: bytes) -> list[tuple[int, str, int]]:
        try:
            with fitz.open(stream=pdf_bytes, filetype="pdf") as document:
                return [(int(level), str(title), int(page)) for level, title, page in document.get_toc()]
        except Exception as exc:
            raise ParsingError("Unable to read PDF outline") from exc


def _object_source(value: PdfObject) -> str:
    buffer = BytesIO()
    value.write_to_stream(buffer)
    # pypdf escapes strings and names down to ASCII
    return buffer.getvalue().decode("latin-1")
