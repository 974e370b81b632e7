from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from tests.helpers import build_pdf_bytes


@pytest.fixture
def pdf_file_factory(tmp_path: Path) -> Callable[[str, list[str]], Path]:
    def factory(name: str, pages: list[str]) -> Path:
        path = tmp_path / name
        path.write_bytes(build_pdf_bytes(pages))
        return path

    return factory


@pytest.fixture
def two_source_files(pdf_file_factory) -> list[Path]:
    return [
        pdf_file_factory("doc1.pdf", ["Document 1"]),
        pdf_file_factory("doc2.pdf", ["Document 2"]),
    ]
