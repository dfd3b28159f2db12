from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol


class OffsetEdit(Protocol):
    start: int
    end: int
    new_text: str


@dataclass(frozen=True)
class Edit:
    start: int
    end: int
    new_text: str


def read_file_content(path: str | Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def write_file_content(path: str | Path, content: str) -> None:
    Path(path).write_text(content, encoding="utf-8")


def offset_to_position(content: str, offset: int) -> tuple[int, int]:
    lines = content.splitlines(keepends=True)
    current = 0
    for i, ln in enumerate(lines):
        if current + len(ln) > offset:
            return i, offset - current
        current += len(ln)
    return len(lines), 0


def apply_text_edits(content: str, edits: Iterable[OffsetEdit]) -> str:
    """Apply offset-based edits to content.

    Edits are applied from the end of the text towards the start so earlier
    offsets stay valid. An insertion at the end of a replaced span ends up
    after the replacement text; an insertion at its start ends up before it.
    """
    sorted_edits = sorted(
        edits,
        key=lambda e: (e.start, e.end != e.start),
        reverse=True,
    )

    result = content
    for edit in sorted_edits:
        start = max(0, min(edit.start, len(result)))
        end = max(start, min(edit.end, len(result)))
        result = result[:start] + edit.new_text + result[end:]
    return result
