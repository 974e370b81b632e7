from __future__ import annotations

from dataclasses import dataclass
from typing import Union, cast

from pypdf.generic import (
    ArrayObject,
    DictionaryObject,
    IndirectObject,
    NameObject,
    NullObject,
    PdfObject,
)

from pdf_stapler.domain.errors import ObjectNotFoundError, StructuralInconsistencyError
from pdf_stapler.domain.objects import (
    ObjectId,
    is_dictionary,
    iter_references,
    map_references,
    reference_id,
    type_name,
)


@dataclass
class Bookmark:
    title: str
    page: ObjectId | None
    color: tuple[float, float, float] = (0.0, 0.0, 1.0)
    parent: int | None = None


class PdfDocument:
    """Indexed object store for one PDF: object id -> object, plus the trailer.

    Bookmarks stay in ``bookmarks`` as plain data. Renumbering keeps their
    targets in step with the page objects, and the writer turns them into the
    outline when the document is saved.
    """

    def __init__(self) -> None:
        self.objects: dict[ObjectId, PdfObject] = {}
        self.trailer = DictionaryObject()
        self.max_id = 0
        self.bookmarks: dict[int, Bookmark] = {}
        self.compress_streams = False

    def reference(self, object_id: ObjectId) -> IndirectObject:
        return IndirectObject(object_id[0], object_id[1], self)

    def new_object_id(self) -> ObjectId:
        self.max_id += 1
        return (self.max_id, 0)

    def add_object(self, value: PdfObject) -> ObjectId:
        object_id = self.new_object_id()
        self.objects[object_id] = value
        return object_id

    def get_object(self, object_id: Union[ObjectId, IndirectObject]) -> PdfObject:
        if isinstance(object_id, IndirectObject):
            object_id = reference_id(object_id)
        try:
            return self.objects[object_id]
        except KeyError:
            raise ObjectNotFoundError(object_id) from None

    def get_dictionary(self, object_id: ObjectId) -> DictionaryObject:
        value = self.get_object(object_id)
        if not is_dictionary(value):
            raise StructuralInconsistencyError(
                f"Object {object_id[0]} {object_id[1]} R is not a dictionary"
            )
        return cast(DictionaryObject, value)

    def resolve(self, value: PdfObject | None) -> PdfObject | None:
        if isinstance(value, IndirectObject):
            return self.objects.get(reference_id(value))
        return value

    @property
    def catalog_id(self) -> ObjectId | None:
        root = self.trailer.get("/Root")
        return reference_id(root) if isinstance(root, IndirectObject) else None

    def page_ids(self) -> list[ObjectId]:
        """Page object ids in native order, walking the page tree from the catalog."""
        catalog_id = self.catalog_id
        if catalog_id is None:
            return []
        catalog = self.objects.get(catalog_id)
        if not is_dictionary(catalog):
            return []
        root = cast(DictionaryObject, catalog).get("/Pages")
        if not isinstance(root, IndirectObject):
            return []

        pages: list[ObjectId] = []
        seen: set[ObjectId] = set()
        stack = [root]
        while stack:
            node_id = reference_id(stack.pop())
            if node_id in seen:
                continue
            seen.add(node_id)
            node = self.objects.get(node_id)
            if node is None:
                continue
            if not is_dictionary(node):
                # malformed kid; reported as a page so the merge can flag it
                pages.append(node_id)
                continue
            kind = type_name(node)
            kids = cast(DictionaryObject, node).get("/Kids")
            if kind == "/Page" or not isinstance(kids, ArrayObject):
                if kind != "/Pages":
                    pages.append(node_id)
                continue
            stack.extend(kid for kid in reversed(kids) if isinstance(kid, IndirectObject))
        return pages

    def pages(self) -> dict[ObjectId, PdfObject]:
        return {page_id: self.objects[page_id] for page_id in self.page_ids()}

    def reachable_ids(self) -> set[ObjectId]:
        """Ids of stored objects reachable from the trailer."""
        reachable: set[ObjectId] = set()
        pending = list(iter_references(self.trailer))
        while pending:
            object_id = reference_id(pending.pop())
            if object_id in reachable or object_id not in self.objects:
                continue
            reachable.add(object_id)
            pending.extend(iter_references(self.objects[object_id]))
        return reachable

    def renumber_with_offset(self, offset: int) -> None:
        """Shift every object number by ``offset``, keeping generations."""
        self._apply_renumbering(
            {object_id: (object_id[0] + offset, object_id[1]) for object_id in self.objects}
        )

    def renumber_objects(self) -> None:
        """Renumber the graph contiguously from 1 in current id order.

        Objects the trailer cannot reach are dropped. References to ids that
        are no longer stored collapse to null.
        """
        self._apply_renumbering(
            {
                object_id: (index, 0)
                for index, object_id in enumerate(sorted(self.reachable_ids()), start=1)
            }
        )

    def _apply_renumbering(self, mapping: dict[ObjectId, ObjectId]) -> None:
        def replace(reference: IndirectObject) -> PdfObject:
            target = mapping.get(reference_id(reference))
            return NullObject() if target is None else self.reference(target)

        self.objects = {
            mapping[object_id]: map_references(value, replace)
            for object_id, value in self.objects.items()
            if object_id in mapping
        }
        self.trailer = cast(DictionaryObject, map_references(self.trailer, replace))
        for bookmark in self.bookmarks.values():
            if bookmark.page is not None:
                bookmark.page = mapping.get(bookmark.page)
        self.max_id = max((number for number, _ in self.objects), default=0)

    def set_root(self, catalog_id: ObjectId) -> None:
        self.trailer[NameObject("/Root")] = self.reference(catalog_id)

    def add_bookmark(self, bookmark: Bookmark, parent: int | None = None) -> int:
        if parent is not None and parent not in self.bookmarks:
            raise ValueError(f"Unknown parent bookmark {parent}")
        bookmark.parent = parent
        bookmark_id = len(self.bookmarks) + 1
        self.bookmarks[bookmark_id] = bookmark
        return bookmark_id

    def adjust_zero_pages(self) -> None:
        """Point bookmarks without a target at the next targeted bookmark's page or the last page."""
        ordered = [self.bookmarks[key] for key in sorted(self.bookmarks)]
        page_ids = self.page_ids()
        fallback = page_ids[-1] if page_ids else None
        for index, bookmark in enumerate(ordered):
            if bookmark.page is not None:
                continue
            following = (item.page for item in ordered[index + 1 :] if item.page is not None)
            bookmark.page = next(following, fallback)

    def outline_entries(self) -> list[tuple[int, Bookmark]]:
        """Bookmarks in outline order as ``(level, bookmark)``, top level being 1."""
        children: dict[int | None, list[int]] = {}
        for bookmark_id in sorted(self.bookmarks):
            children.setdefault(self.bookmarks[bookmark_id].parent, []).append(bookmark_id)

        entries: list[tuple[int, Bookmark]] = []
        stack = [(1, bookmark_id) for bookmark_id in reversed(children.get(None, []))]
        while stack:
            level, bookmark_id = stack.pop()
            entries.append((level, self.bookmarks[bookmark_id]))
            stack.extend((level + 1, child) for child in reversed(children.get(bookmark_id, [])))
        return entries
