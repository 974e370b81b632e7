from __future__ import annotations

from pathlib import Path

from pdf_stapler.adapters.pypdf_adapter import PypdfAdapter
from pdf_stapler.domain.errors import LoadFailureError, ParsingError
from pdf_stapler.domain.models import LoadedDocument
from pdf_stapler.infrastructure.config import AppConfig
from pdf_stapler.infrastructure.logger import get_logger

LOGGER = get_logger(__name__)


class SourceLoader:
    def __init__(self, adapter: PypdfAdapter, config: AppConfig) -> None:
        self.adapter = adapter
        self.config = config

    def load(self, path: str | Path) -> LoadedDocument:
        source = Path(path)
        try:
            size_bytes = source.stat().st_size
        except OSError as exc:
            raise LoadFailureError(path, exc.strerror or exc) from exc
        self._check_size(path, size_bytes)

        try:
            pdf = self.adapter.load_document(source)
        except ParsingError as exc:
            raise LoadFailureError(path, exc.__cause__ or exc) from exc

        LOGGER.info("Loaded %s (%d objects)", source.name, len(pdf.objects))
        return LoadedDocument.from_document(source.name, pdf)

    def load_bytes(self, name: str, content: bytes) -> LoadedDocument:
        self._check_size(name, len(content))
        try:
            pdf = self.adapter.load_document_bytes(content)
        except ParsingError as exc:
            raise LoadFailureError(name, exc.__cause__ or exc) from exc

        original_filename = name.replace("\\", "/").split("/")[-1]
        LOGGER.info("Loaded %s (%d objects)", original_filename, len(pdf.objects))
        return LoadedDocument.from_document(original_filename, pdf)

    def _check_size(self, path: str | Path, size_bytes: int) -> None:
        if size_bytes > self.config.max_pdf_size_bytes:
            raise LoadFailureError(
                path, f"exceeds per-file limit of {self.config.max_pdf_size_mb} MB"
            )
