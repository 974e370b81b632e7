from __future__ import annotations

from pathlib import Path


class StaplerError(Exception):
    pass


class ValidationError(StaplerError):
    pass


class InsufficientInputsError(ValidationError):
    def __init__(self, count: int) -> None:
        super().__init__(f"At least two documents are required to merge (got {count}).")
        self.count = count


class ParsingError(StaplerError):
    pass


class ObjectNotFoundError(ParsingError):
    def __init__(self, object_id: tuple[int, int]) -> None:
        super().__init__(f"Object {object_id[0]} {object_id[1]} R not found")
        self.object_id = object_id


class FileIOError(StaplerError):
    def __init__(self, action: str, path: str | Path, cause: object) -> None:
        super().__init__(f"Failed to {action} {path}: {cause}")
        self.path = str(path)
        self.cause = cause


class LoadFailureError(FileIOError):
    def __init__(self, path: str | Path, cause: object) -> None:
        super().__init__("load", path, cause)


class WriteFailureError(FileIOError):
    def __init__(self, path: str | Path, cause: object) -> None:
        super().__init__("write", path, cause)


class MergeError(StaplerError):
    pass


class PagesRootNotFoundError(MergeError):
    def __init__(self) -> None:
        super().__init__("Pages root not found.")


class CatalogRootNotFoundError(MergeError):
    def __init__(self) -> None:
        super().__init__("Catalog root not found.")


class StructuralInconsistencyError(MergeError):
    pass
