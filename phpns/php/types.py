"""Data model shared by the rewrite engine and the move orchestrators."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ..utils.names import build_fqn


class PhpModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class ReferenceKind(str, Enum):
    IMPORT_STATEMENT = "import_statement"
    DIRECT_REFERENCE = "direct_reference"
    OTHER = "other"


class ClassLocation(PhpModel):
    file_path: Path
    namespace: str = ""
    class_name: str

    @property
    def fqn(self) -> str:
        return build_fqn(self.namespace, self.class_name)


class ReferenceSite(PhpModel):
    """A reference to a class found by a project-wide search.

    Offsets point into the file text as it was when the search ran. Sites are
    a snapshot: once edits to the containing file begin they must not be
    re-read.
    """
    file_path: Path
    kind: ReferenceKind
    start: int
    end: int
    text: str
    alias: str | None = None


class TextEdit(PhpModel):
    file_path: Path
    start: int
    end: int
    new_text: str


class MoveTarget(PhpModel):
    directory: Path
    namespace: str | None = None


class MoveOperation(PhpModel):
    source: ClassLocation
    target: MoveTarget
    collected: list[ReferenceSite] = Field(default_factory=list)

    @property
    def new_namespace(self) -> str:
        return self.target.namespace or ""

    @property
    def new_fqn(self) -> str:
        return build_fqn(self.new_namespace, self.source.class_name)


class BatchMoveRequest(PhpModel):
    files: list[Path]
    target_directory: Path
    namespace_base: str | None = None
    preserve_structure: bool = True
    recursive: bool = True
    source_directory: Path | None = None


class MoveResult(PhpModel):
    success: bool
    message: str
    new_fqn: str | None = None
    references_updated: int = 0

    @classmethod
    def succeeded(cls, message: str, new_fqn: str, references_updated: int) -> "MoveResult":
        return cls(
            success=True,
            message=message,
            new_fqn=new_fqn,
            references_updated=references_updated,
        )

    @classmethod
    def failure(cls, message: str) -> "MoveResult":
        return cls(success=False, message=message)


class FileMoveResult(PhpModel):
    original_path: str
    new_path: str | None = None
    new_fqn: str | None = None
    success: bool
    message: str
    references_updated: int = 0


class BatchMoveResult(PhpModel):
    success: bool
    message: str
    total_files: int = 0
    moved_files: int = 0
    failed_files: int = 0
    details: list[FileMoveResult] = Field(default_factory=list)

    @classmethod
    def from_details(
        cls, details: list[FileMoveResult], cancelled: bool = False
    ) -> "BatchMoveResult":
        total = len(details)
        moved = sum(1 for d in details if d.success)
        message = f"Moved {moved} of {total} files"
        if cancelled:
            message += " (cancelled)"
        return cls(
            success=cancelled or moved > 0,
            message=message,
            total_files=total,
            moved_files=moved,
            failed_files=total - moved,
            details=list(details),
        )

    @classmethod
    def failure(cls, message: str) -> "BatchMoveResult":
        return cls(success=False, message=message)

    @property
    def references_updated(self) -> int:
        return sum(d.references_updated for d in self.details if d.success)
