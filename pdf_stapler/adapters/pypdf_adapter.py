from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import IO, Union

from pypdf import PdfReader
from pypdf.generic import IndirectObject, NullObject

from pdf_stapler.domain.document import PdfDocument
from pdf_stapler.domain.errors import ParsingError, StaplerError
from pdf_stapler.domain.objects import iter_references, map_references, reference_id
from pdf_stapler.infrastructure.logger import get_logger

LOGGER = get_logger(__name__)


class PypdfAdapter:
    """Reads a PDF's object graph into a ``PdfDocument`` through ``pypdf.PdfReader``.

    Only objects reachable from the trailer's ``/Root`` are read, so object
    streams and cross-reference streams never enter the store.
    """

    def load_document(self, path: str | Path) -> PdfDocument:
        return self._load(str(path), f"Unable to open {path}")

    def load_document_bytes(self, pdf_bytes: bytes) -> PdfDocument:
        return self._load(BytesIO(pdf_bytes), "Unable to open PDF stream")

    def _load(self, source: Union[str, IO[bytes]], message: str) -> PdfDocument:
        try:
            reader = PdfReader(source, strict=False)
        except Exception as exc:
            raise ParsingError(message) from exc
        return self._read_graph(reader)

    def _read_graph(self, reader: PdfReader) -> PdfDocument:
        try:
            if reader.is_encrypted:
                raise ParsingError("Encrypted PDF documents are not supported")
            root = reader.trailer.get("/Root")
            if not isinstance(root, IndirectObject):
                raise ParsingError("PDF trailer has no document catalog")

            document = PdfDocument()

            def rebind(reference: IndirectObject) -> IndirectObject:
                return document.reference(reference_id(reference))

            pending = [root]
            while pending:
                reference = pending.pop()
                object_id = reference_id(reference)
                if object_id in document.objects:
                    continue
                value = reader.get_object(reference)
                if value is None or isinstance(value, NullObject):
                    continue
                pending.extend(iter_references(value))
                document.objects[object_id] = map_references(value, rebind)
        except StaplerError:
            raise
        except Exception as exc:
            raise ParsingError("Unable to read PDF object graph") from exc

        document.set_root(reference_id(root))
        document.max_id = max((number for number, _ in document.objects), default=0)
        LOGGER.debug("Read %d objects", len(document.objects))
        return document
