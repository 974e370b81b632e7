from __future__ import annotations

from pathlib import Path
from typing import Sequence

from pdf_stapler.adapters.pymupdf_adapter import PyMuPdfAdapter
from pdf_stapler.adapters.pypdf_adapter import PypdfAdapter
from pdf_stapler.domain.errors import InsufficientInputsError, ValidationError
from pdf_stapler.domain.models import MergeResult, StapleResult
from pdf_stapler.infrastructure.config import AppConfig
from pdf_stapler.infrastructure.logger import get_logger
from pdf_stapler.services.loader_service import SourceLoader
from pdf_stapler.services.merge_service import MergeService
from pdf_stapler.services.writer_service import DestinationWriter

LOGGER = get_logger(__name__)


class StaplerService:
    def __init__(
        self,
        loader: SourceLoader,
        merge_service: MergeService,
        writer: DestinationWriter,
        config: AppConfig,
    ) -> None:
        self.loader = loader
        self.merge_service = merge_service
        self.writer = writer
        self.config = config

    def staple(
        self, input_paths: Sequence[str | Path], output_path: str | Path, compress: bool = False
    ) -> StapleResult:
        if len(input_paths) < 2:
            raise InsufficientInputsError(len(input_paths))

        documents = [self.loader.load(path) for path in input_paths]
        merged = self.merge_service.merge(documents, compress=compress)
        destination = self.writer.write(merged, output_path)
        return StapleResult(
            output_path=destination,
            source_count=len(documents),
            merged_pages=len(merged.page_ids()),
        )

    def staple_bytes(self, files: list[tuple[str, bytes]], compress: bool = False) -> MergeResult:
        if len(files) < 2:
            raise InsufficientInputsError(len(files))
        total_size = sum(len(content) for _, content in files)
        if total_size > self.config.max_batch_size_bytes:
            raise ValidationError(f"Batch size exceeds limit of {self.config.max_batch_size_mb} MB")

        documents = [self.loader.load_bytes(name, content) for name, content in files]
        merged = self.merge_service.merge(documents, compress=compress)
        output = self.writer.encode(merged)
        LOGGER.info("Encoded %d sources into %d bytes", len(documents), len(output))
        return MergeResult(
            output_name="merged_output.pdf",
            output_pdf=output,
            merged_pages=len(merged.page_ids()),
        )


def build_stapler(config: AppConfig | None = None) -> StaplerService:
    config = config or AppConfig()
    return StaplerService(
        loader=SourceLoader(PypdfAdapter(), config),
        merge_service=MergeService(config),
        writer=DestinationWriter(PyMuPdfAdapter()),
        config=config,
    )
