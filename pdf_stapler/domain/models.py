from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pypdf.generic import PdfObject

from pdf_stapler.domain.document import Bookmark, PdfDocument
from pdf_stapler.domain.objects import ObjectId


@dataclass
class LoadedDocument:
    original_filename: str
    pdf: PdfDocument

    @classmethod
    def from_document(cls, original_filename: str, pdf: PdfDocument) -> LoadedDocument:
        return cls(original_filename=original_filename, pdf=pdf)

    @property
    def max_id(self) -> int:
        return self.pdf.max_id

    def pages(self) -> dict[ObjectId, PdfObject]:
        return self.pdf.pages()

    def objects(self) -> dict[ObjectId, PdfObject]:
        return dict(self.pdf.objects)

    def renumber(self, offset: int) -> LoadedDocument:
        self.pdf.renumber_with_offset(offset)
        return self

    def first_page_id(self) -> ObjectId | None:
        page_ids = self.pdf.page_ids()
        return page_ids[0] if page_ids else None

    def filename_bookmark(self, page_id: ObjectId | None) -> Bookmark:
        return Bookmark(title=self.original_filename, page=page_id)


@dataclass(frozen=True)
class StapleResult:
    output_path: Path
    source_count: int
    merged_pages: int


@dataclass(frozen=True)
class MergeResult:
    output_name: str
    output_pdf: bytes
    merged_pages: int
