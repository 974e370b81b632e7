from __future__ import annotations

from pathlib import Path

from pdf_stapler.adapters.pymupdf_adapter import PyMuPdfAdapter
from pdf_stapler.domain.document import PdfDocument
from pdf_stapler.domain.errors import ParsingError, WriteFailureError
from pdf_stapler.infrastructure.logger import get_logger

LOGGER = get_logger(__name__)


class DestinationWriter:
    """Persists a merged document.

    The whole file is encoded in memory first, so an encoding failure never
    creates or touches the destination. Streams are deflated when the merge
    asked for it through ``PdfDocument.compress_streams``.
    """

    def __init__(self, adapter: PyMuPdfAdapter) -> None:
        self.adapter = adapter

    def encode(self, document: PdfDocument) -> bytes:
        return self.adapter.to_bytes(document, compress=document.compress_streams)

    def write(self, document: PdfDocument, output_path: str | Path) -> Path:
        destination = Path(output_path)
        try:
            content = self.encode(document)
        except ParsingError as exc:
            raise WriteFailureError(destination, exc.__cause__ or exc) from exc
        try:
            destination.write_bytes(content)
        except OSError as exc:
            raise WriteFailureError(destination, exc.strerror or exc) from exc
        LOGGER.info("Wrote %s (%d bytes)", destination, len(content))
        return destination
