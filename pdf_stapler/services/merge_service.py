from __future__ import annotations

from dataclasses import dataclass, field
from typing import cast

from pypdf.generic import ArrayObject, DictionaryObject, IndirectObject, NameObject, NumberObject, PdfObject

from pdf_stapler.domain.document import Bookmark, PdfDocument
from pdf_stapler.domain.errors import (
    CatalogRootNotFoundError,
    InsufficientInputsError,
    PagesRootNotFoundError,
    StructuralInconsistencyError,
)
from pdf_stapler.domain.models import LoadedDocument
from pdf_stapler.domain.objects import ObjectId, ObjectKind, is_dictionary, reference_id
from pdf_stapler.infrastructure.config import AppConfig
from pdf_stapler.infrastructure.logger import get_logger

LOGGER = get_logger(__name__)

INHERITABLE_PAGE_KEYS = tuple(
    NameObject(key) for key in ("/Resources", "/MediaBox", "/CropBox", "/Rotate")
)
PAGE_TREE_KEYS = frozenset({"/Kids", "/Count", "/Parent"})
PARENT = NameObject("/Parent")
ROTATE = NameObject("/Rotate")
CROP_BOX = NameObject("/CropBox")
MEDIA_BOX = NameObject("/MediaBox")


@dataclass
class MergeWorkspace:
    pages: dict[ObjectId, PdfObject] = field(default_factory=dict)
    objects: dict[ObjectId, PdfObject] = field(default_factory=dict)
    bookmarks: list[Bookmark] = field(default_factory=list)
    next_free_id: int = 1


@dataclass(frozen=True)
class DocumentRoots:
    catalog_id: ObjectId
    catalog: DictionaryObject
    pages_id: ObjectId
    pages: DictionaryObject


class MergeService:
    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()

    def merge(self, documents: list[LoadedDocument], compress: bool = False) -> PdfDocument:
        if len(documents) < 2:
            raise InsufficientInputsError(len(documents))

        workspace = self._collect(MergeWorkspace(), documents)
        output = PdfDocument()
        roots = self._classify(workspace, output)

        for bookmark in workspace.bookmarks:
            output.add_bookmark(bookmark)
        kids = self._insert_pages(workspace, output, roots)
        self._reconcile_roots(output, roots, kids)

        # drops whatever only the discarded catalogs and outlines referenced
        output.renumber_objects()
        output.adjust_zero_pages()
        output.compress_streams = compress

        LOGGER.info(
            "Merged %d documents into %d pages (%d objects)",
            len(documents),
            len(kids),
            len(output.objects),
        )
        return output

    def _collect(self, workspace: MergeWorkspace, documents: list[LoadedDocument]) -> MergeWorkspace:
        for document in documents:
            # object numbers start at 1, so this puts the lowest id on next_free_id
            document.renumber(workspace.next_free_id - 1)
            workspace.bookmarks.append(document.filename_bookmark(document.first_page_id()))
            _absorb(workspace.pages, document.pages())
            _absorb(workspace.objects, document.objects())
            workspace.next_free_id = max(workspace.next_free_id, document.max_id + 1)
            LOGGER.debug(
                "Staged %s; next free object id %d",
                document.original_filename,
                workspace.next_free_id,
            )
        return workspace

    def _classify(self, workspace: MergeWorkspace, output: PdfDocument) -> DocumentRoots:
        catalog: tuple[ObjectId, DictionaryObject] | None = None
        pages: tuple[ObjectId, DictionaryObject] | None = None

        for object_id in sorted(workspace.objects):
            value = workspace.objects[object_id]
            kind = ObjectKind.of(value)
            if kind is ObjectKind.CATALOG:
                if catalog is None:
                    dictionary = self._require_dictionary(object_id, value, kind)
                    if dictionary is not None:
                        catalog = (object_id, DictionaryObject(dictionary))
            elif kind is ObjectKind.PAGES:
                dictionary = self._require_dictionary(object_id, value, kind)
                if dictionary is None:
                    continue
                if pages is None:
                    pages = (object_id, DictionaryObject(dictionary))
                    continue
                # first writer wins for keys present on several Pages nodes
                base = pages[1]
                for key, item in dictionary.items():
                    if key not in base and key not in PAGE_TREE_KEYS:
                        base[key] = item
            elif kind in (ObjectKind.PAGE, ObjectKind.OUTLINES, ObjectKind.OUTLINE):
                continue
            else:
                output.objects[object_id] = value

        if pages is None:
            raise PagesRootNotFoundError()
        if catalog is None:
            raise CatalogRootNotFoundError()
        return DocumentRoots(
            catalog_id=catalog[0], catalog=catalog[1], pages_id=pages[0], pages=pages[1]
        )

    def _insert_pages(
        self, workspace: MergeWorkspace, output: PdfDocument, roots: DocumentRoots
    ) -> list[ObjectId]:
        kids: list[ObjectId] = []
        for page_id, value in workspace.pages.items():
            dictionary = self._require_dictionary(page_id, value, ObjectKind.PAGE)
            if dictionary is None:
                continue
            page = DictionaryObject(dictionary)
            _inherit_attributes(page, workspace.objects)
            _pin_inherited_defaults(page, roots.pages)
            page[PARENT] = output.reference(roots.pages_id)
            output.objects[page_id] = page
            kids.append(page_id)
        return kids

    def _reconcile_roots(self, output: PdfDocument, roots: DocumentRoots, kids: list[ObjectId]) -> None:
        pages = roots.pages
        pages[NameObject("/Count")] = NumberObject(len(kids))
        pages[NameObject("/Kids")] = ArrayObject(output.reference(page_id) for page_id in kids)
        pages.pop(PARENT, None)
        output.objects[roots.pages_id] = pages

        catalog = roots.catalog
        catalog[NameObject("/Pages")] = output.reference(roots.pages_id)
        # the merged outline is written from the staged bookmarks on save
        catalog.pop(NameObject("/Outlines"), None)
        output.objects[roots.catalog_id] = catalog

        output.set_root(roots.catalog_id)

    def _require_dictionary(
        self, object_id: ObjectId, value: PdfObject, kind: ObjectKind
    ) -> DictionaryObject | None:
        if is_dictionary(value):
            return cast(DictionaryObject, value)
        message = f"{kind.value[1:]} object {object_id[0]} {object_id[1]} R is not a dictionary"
        if self.config.strict_structure:
            raise StructuralInconsistencyError(message)
        LOGGER.warning("Skipping malformed object: %s", message)
        return None


def _absorb(target: dict[ObjectId, PdfObject], source: dict[ObjectId, PdfObject]) -> None:
    for object_id, value in source.items():
        if object_id in target:
            raise RuntimeError(f"Object id {object_id} allocated to two source documents")
        target[object_id] = value


def _inherit_attributes(page: DictionaryObject, objects: dict[ObjectId, PdfObject]) -> None:
    seen: set[ObjectId] = set()
    parent = page.get(PARENT)
    while isinstance(parent, IndirectObject) and reference_id(parent) not in seen:
        seen.add(reference_id(parent))
        node = objects.get(reference_id(parent))
        if not is_dictionary(node):
            break
        node = cast(DictionaryObject, node)
        for key in INHERITABLE_PAGE_KEYS:
            if key not in page and key in node:
                page[key] = node.get(key)
        parent = node.get(PARENT)


def _pin_inherited_defaults(page: DictionaryObject, root: DictionaryObject) -> None:
    """Stop a page from inheriting optional attributes that another source put on the root."""
    if ROTATE in root and ROTATE not in page:
        page[ROTATE] = NumberObject(0)
    if CROP_BOX in root and CROP_BOX not in page and MEDIA_BOX in page:
        page[CROP_BOX] = page.get(MEDIA_BOX)
