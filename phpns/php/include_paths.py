"""Keeping require/include paths valid when a PHP file changes directory."""

import logging
import os
import re
from pathlib import Path

from ..utils.text import Edit, apply_text_edits
from .source import IncludeStatement, PhpSource, StringLiteral

logger = logging.getLogger(__name__)

PARENT = "../"
CURRENT = "./"

_DIR_BASE_RE = re.compile(r"^\s*\(?\s*(?:__DIR__|dirname\s*\(\s*__FILE__\s*\))\s*\.\s*$")


def adjust_relative_path(path: str, depth_diff: int) -> str:
    """Re-aim a relative path after its file moved `depth_diff` directories deeper.

    Moving deeper prepends one `../` per level, right after a leading `/`
    (the `__DIR__ . '/..'` form) or at the start. Moving shallower strips up
    to that many leading `../` segments, never more than exist; a path that
    loses all of them and is left without a `./`, `../` or `/` prefix gets
    `./` so it stays explicitly relative.
    """
    if depth_diff == 0:
        return path

    lead = "/" if path.startswith("/") else ""
    rest = path[len(lead):]

    if depth_diff > 0:
        return lead + PARENT * depth_diff + rest

    removed = 0
    while removed < -depth_diff and rest.startswith(PARENT):
        rest = rest[len(PARENT):]
        removed += 1
    if removed == 0:
        return path

    result = lead + rest
    if not result.startswith((CURRENT, PARENT, "/")):
        result = CURRENT + result
    return result


def _argument(source: PhpSource, statement: IncludeStatement) -> str:
    return source.mask[statement.start + len(statement.keyword):statement.end]


def _is_bare_literal(source: PhpSource, statement: IncludeStatement) -> bool:
    if len(statement.literals) != 1:
        return False
    return not _argument(source, statement).strip(" \t\r\n()")


def include_path_edits(source: PhpSource, depth_diff: int) -> list[Edit]:
    """Edits re-aiming this file's own relative includes after it moved by `depth_diff`.

    `__DIR__`/`dirname(__FILE__)` concatenations adjust every literal that
    climbs out (`../`) or starts at the directory (`/`). A bare string
    literal is adjusted only when it contains `../`.
    """
    if depth_diff == 0:
        return []

    edits = []
    for statement in source.include_statements():
        if statement.dir_relative:
            candidates = [
                lit for lit in statement.literals
                if PARENT in lit.contents(source.text) or lit.contents(source.text).startswith("/")
            ]
        elif _is_bare_literal(source, statement):
            candidates = [
                lit for lit in statement.literals
                if PARENT in lit.contents(source.text)
            ]
        else:
            candidates = []

        for literal in candidates:
            old = literal.contents(source.text)
            new = adjust_relative_path(old, depth_diff)
            if new != old:
                edits.append(_literal_edit(literal, new))
    return edits


def update_include_paths(text: str, depth_diff: int) -> tuple[str, int]:
    edits = include_path_edits(PhpSource(text), depth_diff)
    if not edits:
        return text, 0
    return apply_text_edits(text, edits), len(edits)


def _literal_edit(literal: StringLiteral, contents: str) -> Edit:
    return Edit(literal.start + 1, literal.end - 1, contents)


def _posix_relpath(target: Path, start: Path) -> str:
    return Path(os.path.relpath(target, start)).as_posix()


def repoint_includes(
    text: str,
    including_file: Path,
    old_path: Path,
    new_path: Path,
) -> tuple[str, int]:
    """Point includes in `including_file` that loaded `old_path` at `new_path` instead.

    Only single-literal paths are followed: `__DIR__ . '/x.php'`,
    `dirname(__FILE__) . '/x.php'`, and bare `'./x.php'` or `'../x.php'`
    literals, which are taken relative to the including file's directory.
    """
    source = PhpSource(text)
    base = including_file.parent
    old_target = Path(os.path.normpath(old_path))
    edits = []

    for statement in source.include_statements():
        if len(statement.literals) != 1:
            continue
        literal = statement.literals[0]
        contents = literal.contents(source.text)
        prefix_text = source.mask[statement.start + len(statement.keyword):literal.start]

        if statement.dir_relative and _DIR_BASE_RE.match(prefix_text) and contents.startswith("/"):
            resolved = Path(os.path.normpath(base / contents.lstrip("/")))
            if resolved == old_target:
                edits.append(_literal_edit(literal, "/" + _posix_relpath(new_path, base)))
        elif _is_bare_literal(source, statement) and contents.startswith((CURRENT, PARENT)):
            resolved = Path(os.path.normpath(base / contents))
            if resolved == old_target:
                relative = _posix_relpath(new_path, base)
                if not relative.startswith(PARENT):
                    relative = CURRENT + relative
                edits.append(_literal_edit(literal, relative))

    if not edits:
        return text, 0
    logger.debug(f"Re-pointed {len(edits)} include(s) in {including_file}")
    return apply_text_edits(text, edits), len(edits)
