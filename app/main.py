from __future__ import annotations

import hashlib

import streamlit as st

from pdf_stapler.adapters.pymupdf_adapter import PyMuPdfAdapter
from pdf_stapler.domain.errors import StaplerError, ValidationError
from pdf_stapler.infrastructure.config import AppConfig
from pdf_stapler.services.stapler_service import StaplerService, build_stapler


def _init_services() -> tuple[AppConfig, PyMuPdfAdapter, StaplerService]:
    config = AppConfig()
    stapler = build_stapler(config)
    return config, stapler.writer.adapter, stapler


def _init_state() -> None:
    st.session_state.setdefault("merged_signature", "")
    st.session_state.setdefault("merged_pdf_bytes", b"")
    st.session_state.setdefault("merged_pdf_name", "merged_output.pdf")


def _merge_signature(files: list[tuple[str, bytes]], compress: bool) -> str:
    parts = [f"{name}:{hashlib.sha256(content).hexdigest()}" for name, content in files]
    return "|".join(parts) + f"|compress={compress}"


def _validate_upload_limits(config: AppConfig, files: list[tuple[str, bytes]]) -> None:
    for name, content in files:
        if len(content) > config.max_pdf_size_bytes:
            raise ValidationError(f"{name} exceeds {config.max_pdf_size_mb} MB limit.")
        if not name.lower().endswith(".pdf"):
            raise ValidationError(f"{name} is not a PDF file.")


def _render_uploaded_file_list(adapter: PyMuPdfAdapter, files: list[tuple[str, bytes]]) -> None:
    rows = []
    for position, (name, content) in enumerate(files, start=1):
        try:
            pages: int | str = adapter.get_page_count(content)
        except StaplerError:
            pages = "unreadable"
        rows.append(
            {
                "#": position,
                "File": name,
                "Pages": pages,
                "Size (MB)": round(len(content) / (1024 * 1024), 2),
            }
        )
    st.dataframe(rows, use_container_width=True, hide_index=True)


def _merge_tab(config: AppConfig, adapter: PyMuPdfAdapter, stapler: StaplerService) -> None:
    st.subheader("Merge PDFs", anchor=False)
    st.caption(
        "Sources are merged in upload order. Each source gets one bookmark named after its file."
    )

    uploaded = st.file_uploader(
        (
            "Load two or more PDFs "
            f"(max {config.max_pdf_size_mb} MB each, "
            f"{config.max_batch_size_mb} MB total)"
        ),
        type=["pdf"],
        accept_multiple_files=True,
        key="merge_upload",
    )
    files = [(item.name, item.getvalue()) for item in uploaded] if uploaded else []
    if not files:
        st.info("No PDFs loaded yet.")
        return

    _render_uploaded_file_list(adapter, files)
    compress = st.checkbox("Compress output", value=False)

    if len(files) < 2:
        st.warning("Load at least two PDFs to merge.")
        st.button("Merge & Download PDF", disabled=True, use_container_width=True)
        return

    try:
        _validate_upload_limits(config, files)
        signature = _merge_signature(files, compress)
        if st.session_state.merged_signature != signature:
            result = stapler.staple_bytes(files, compress=compress)
            st.session_state.merged_signature = signature
            st.session_state.merged_pdf_bytes = result.output_pdf
            st.session_state.merged_pdf_name = result.output_name
            st.success(f"Merged {len(files)} PDFs into {result.merged_pages} page(s).")

        st.download_button(
            "Merge & Download PDF",
            data=st.session_state.merged_pdf_bytes,
            file_name=st.session_state.merged_pdf_name,
            mime="application/pdf",
            type="primary",
            use_container_width=True,
        )
    except StaplerError as exc:
        st.error(str(exc))


def main() -> None:
    st.set_page_config(page_title="PDF Stapler", layout="wide")
    st.title("PDF Stapler", anchor=False)

    config, adapter, stapler = _init_services()
    _init_state()
    _merge_tab(config, adapter, stapler)


if __name__ == "__main__":
    main()
