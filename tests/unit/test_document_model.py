import pytest
from pypdf.generic import IndirectObject, NullObject, StreamObject

from pdf_stapler.domain.document import Bookmark, PdfDocument
from pdf_stapler.domain.errors import ObjectNotFoundError, StructuralInconsistencyError
from pdf_stapler.domain.objects import ObjectKind
from tests.helpers import make_sample_document, page_content, pdf_dict, pdf_stream


def _nested_tree_document() -> PdfDocument:
    document = PdfDocument()
    ref = document.reference
    document.objects = {
        (1, 0): pdf_dict(Type="/Catalog", Pages=ref((2, 0))),
        (2, 0): pdf_dict(Type="/Pages", Kids=[ref((3, 0)), ref((6, 0))], Count=3),
        (3, 0): pdf_dict(
            Type="/Pages", Parent=ref((2, 0)), Kids=[ref((5, 0)), ref((4, 0))], Count=2
        ),
        (4, 0): pdf_dict(Type="/Page", Parent=ref((3, 0))),
        (5, 0): pdf_dict(Type="/Page", Parent=ref((3, 0))),
        (6, 0): pdf_dict(Type="/Page", Parent=ref((2, 0))),
    }
    document.set_root((1, 0))
    document.max_id = 6
    return document


@pytest.mark.unit
def test_page_ids_follow_native_tree_order_not_id_order() -> None:
    document = _nested_tree_document()

    assert document.page_ids() == [(5, 0), (4, 0), (6, 0)]


@pytest.mark.unit
def test_page_ids_empty_without_catalog() -> None:
    document = make_sample_document("Document 1")
    del document.trailer["/Root"]

    assert document.page_ids() == []


@pytest.mark.unit
def test_page_ids_tolerate_cycles_in_page_tree() -> None:
    document = _nested_tree_document()
    document.objects[(3, 0)]["/Kids"].append(document.reference((2, 0)))

    assert document.page_ids() == [(5, 0), (4, 0), (6, 0)]


@pytest.mark.unit
def test_references_resolve_through_the_owning_document() -> None:
    document = make_sample_document("Document 1")
    page = document.get_dictionary(document.page_ids()[0])

    assert isinstance(page.get("/Resources"), IndirectObject)
    assert page["/Resources"]["/Font"]["/F1"]["/BaseFont"] == "/Courier"


@pytest.mark.unit
def test_get_object_and_dictionary_errors() -> None:
    document = make_sample_document("Document 1")
    content_id = next(
        key for key, value in document.objects.items() if isinstance(value, StreamObject)
    )

    with pytest.raises(ObjectNotFoundError):
        document.get_object((99, 0))
    with pytest.raises(ObjectNotFoundError):
        document.get_object(document.reference((99, 0)))
    with pytest.raises(StructuralInconsistencyError):
        document.get_dictionary(content_id)


@pytest.mark.unit
def test_renumber_with_offset_shifts_ids_references_and_trailer() -> None:
    document = make_sample_document("Document 1")
    original_pages = document.page_ids()

    document.renumber_with_offset(10)

    assert min(number for number, _ in document.objects) == 11
    assert document.max_id == 10 + len(document.objects)
    assert document.page_ids() == [(number + 10, generation) for number, generation in original_pages]
    assert page_content(document, document.page_ids()[0]).endswith(b"(Document 1) Tj ET")


@pytest.mark.unit
def test_renumber_objects_compacts_and_nulls_dangling_references() -> None:
    document = PdfDocument()
    ref = document.reference
    document.objects = {
        (10, 0): pdf_dict(Type="/Catalog", Pages=ref((40, 0)), Outlines=ref((99, 0))),
        (40, 0): pdf_dict(Type="/Pages", Kids=[ref((70, 0))], Count=1),
        (70, 0): pdf_dict(Type="/Page", Parent=ref((40, 0))),
    }
    document.set_root((10, 0))
    document.add_bookmark(Bookmark(title="a.pdf", page=(70, 0)))

    document.renumber_objects()

    assert sorted(document.objects) == [(1, 0), (2, 0), (3, 0)]
    assert document.max_id == 3
    assert document.trailer.get("/Root") == document.reference((1, 0))
    assert isinstance(document.get_dictionary((1, 0)).get("/Outlines"), NullObject)
    assert document.page_ids() == [(3, 0)]
    assert document.bookmarks[1].page == (3, 0)


@pytest.mark.unit
def test_renumber_objects_drops_objects_the_trailer_cannot_reach() -> None:
    document = make_sample_document("Document 1")
    # an outline item as PyMuPDF writes it: no /Type, linked only to its siblings
    first_item = document.new_object_id()
    second_item = document.new_object_id()
    page_ref = document.reference(document.page_ids()[0])
    document.objects[first_item] = pdf_dict(
        Title="Native A", Dest=[page_ref, "/Fit"], Next=document.reference(second_item)
    )
    document.objects[second_item] = pdf_dict(
        Title="Native B", Dest=[page_ref, "/Fit"], Prev=document.reference(first_item)
    )
    document.add_object(pdf_stream(b"orphaned content"))
    kept = len(document.objects) - 3

    document.renumber_objects()

    assert len(document.objects) == kept
    assert sorted(document.objects) == [(number, 0) for number in range(1, kept + 1)]
    assert all("/Title" not in value for value in document.objects.values())
    assert document.reachable_ids() == set(document.objects)


@pytest.mark.unit
def test_renumber_objects_is_structurally_idempotent() -> None:
    document = make_sample_document("Document 1", page_count=3)
    document.renumber_with_offset(5)

    document.renumber_objects()
    first_pass = dict(document.objects)
    first_contents = [page_content(document, page_id) for page_id in document.page_ids()]
    document.renumber_objects()

    assert document.objects == first_pass
    assert [page_content(document, page_id) for page_id in document.page_ids()] == first_contents


@pytest.mark.unit
def test_add_bookmark_rejects_unknown_parent() -> None:
    document = PdfDocument()

    with pytest.raises(ValueError):
        document.add_bookmark(Bookmark(title="child", page=None), parent=3)


@pytest.mark.unit
def test_outline_entries_empty_without_bookmarks() -> None:
    assert PdfDocument().outline_entries() == []


@pytest.mark.unit
def test_outline_entries_nest_children_after_their_anchor() -> None:
    document = make_sample_document("Document 1", page_count=2)
    first, second = document.page_ids()
    section = document.add_bookmark(Bookmark(title="section", page=first))
    document.add_bookmark(Bookmark(title="next.pdf", page=second))
    document.add_bookmark(Bookmark(title="detail", page=second), parent=section)

    entries = [(level, bookmark.title) for level, bookmark in document.outline_entries()]

    assert entries == [(1, "section"), (2, "detail"), (1, "next.pdf")]


@pytest.mark.unit
def test_adjust_zero_pages_uses_next_target_then_last_page() -> None:
    document = make_sample_document("Document 1", page_count=2)
    first, second = document.page_ids()
    leading = Bookmark(title="empty-1.pdf", page=None)
    middle = Bookmark(title="b.pdf", page=second)
    trailing = Bookmark(title="empty-2.pdf", page=None)
    for bookmark in (leading, middle, trailing):
        document.add_bookmark(bookmark)

    document.adjust_zero_pages()

    assert leading.page == second
    assert middle.page == second
    assert trailing.page == second


@pytest.mark.unit
def test_object_kind_classification() -> None:
    assert ObjectKind.of(pdf_dict(Type="/Catalog")) is ObjectKind.CATALOG
    assert ObjectKind.of(pdf_dict(Type="/Pages")) is ObjectKind.PAGES
    assert ObjectKind.of(pdf_stream(b"", Type="/Page")) is ObjectKind.PAGE
    assert ObjectKind.of(pdf_dict(Type="/Font")) is ObjectKind.OTHER
    assert ObjectKind.of(pdf_dict(Type="Catalog")) is ObjectKind.OTHER
    assert ObjectKind.of(pdf_dict(Title="Native A")) is ObjectKind.OTHER
    assert ObjectKind.of(NullObject()) is ObjectKind.OTHER
