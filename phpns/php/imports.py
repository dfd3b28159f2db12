"""Use-statement helpers and the duplicate-import cleanup pass."""

import logging
import re
from dataclasses import dataclass

from ..utils.names import SEPARATOR, normalize_fqn, short_name
from .source import PhpSource, UseClause

logger = logging.getLogger(__name__)

_OPEN_TAG_RE = re.compile(r"<\?php\b")
_DECLARE_RE = re.compile(r"\s*declare\s*\([^()]*\)\s*;")


@dataclass(frozen=True)
class ImportInsertion:
    """Where new use statements go and how they are separated from what precedes them."""
    offset: int
    separator: str
    trailer: str = ""

    def render(self, fqns: list[str]) -> str:
        statements = "\n".join(f"use {normalize_fqn(fqn)};" for fqn in fqns)
        return f"{self.separator}{statements}{self.trailer}"


def _as_source(text_or_source: "str | PhpSource") -> PhpSource:
    if isinstance(text_or_source, PhpSource):
        return text_or_source
    return PhpSource(text_or_source)


def find_import(text_or_source: "str | PhpSource", fqn: str) -> UseClause | None:
    target = normalize_fqn(fqn).lower()
    for clause in _as_source(text_or_source).class_imports:
        if clause.fqn.lower() == target:
            return clause
    return None


def has_import(text_or_source: "str | PhpSource", fqn: str) -> bool:
    """True if a class use clause imports exactly `fqn`, with or without a leading `\\`."""
    return find_import(text_or_source, fqn) is not None


def header_end(text_or_source: "str | PhpSource") -> int | None:
    """Offset just past `<?php` and any `declare(...);` statements that follow it.

    None when the file has no open tag.
    """
    source = _as_source(text_or_source)
    m = _OPEN_TAG_RE.search(source.text)
    if not m:
        return None
    offset = m.end()
    while True:
        declare = _DECLARE_RE.match(source.mask, offset)
        if not declare:
            return offset
        offset = declare.end()


def find_import_insertion(text_or_source: "str | PhpSource") -> ImportInsertion:
    """Pick the insertion point for new use statements.

    After the last top-level use statement if there is one, otherwise right
    after the namespace declaration, otherwise after the `<?php` open tag and
    any `declare(...);` statements, which must stay first in the file.
    """
    source = _as_source(text_or_source)
    clauses = source.use_clauses
    if clauses:
        return ImportInsertion(max(c.statement_end for c in clauses), "\n")

    decl = source.namespace_declaration
    if decl:
        return ImportInsertion(decl.end, "\n\n")

    offset = header_end(source)
    if offset is not None:
        return ImportInsertion(offset, "\n\n")
    return ImportInsertion(0, "", "\n")


def add_import(text: str, fqn: str) -> str:
    """Add `use fqn;` unless the file already imports it. Safe to call repeatedly."""
    source = PhpSource(text)
    if has_import(source, fqn):
        return text
    insertion = find_import_insertion(source)
    return text[:insertion.offset] + insertion.render([fqn]) + text[insertion.offset:]


def _single_clause_statements(source: PhpSource) -> list[UseClause]:
    by_statement: dict[int, list[UseClause]] = {}
    for clause in source.class_imports:
        by_statement.setdefault(clause.statement_start, []).append(clause)
    return [
        clauses[0] for clauses in by_statement.values()
        if len(clauses) == 1 and not clauses[0].grouped and not clauses[0].alias
    ]


def find_duplicate_imports(text: str, short_class_name: str) -> list[UseClause]:
    """Bare imports of `short_class_name` that a namespaced import shadows.

    Only top-level use statements count, so a trait `use Cart;` inside a
    class body is never a candidate. An aliased namespaced import
    (`use Entities\\Cart as EC;`) never counts either, so the bare import
    survives next to it.
    """
    clauses = _single_clause_statements(PhpSource(text))
    has_namespaced = any(
        SEPARATOR in c.fqn and short_name(c.fqn) == short_class_name
        for c in clauses
    )
    if not has_namespaced:
        return []
    return [c for c in clauses if c.fqn == short_class_name]


def statement_span(text: str, clause: UseClause) -> tuple[int, int]:
    start, end = clause.statement_start, clause.statement_end
    line_start = text.rfind("\n", 0, start) + 1
    line_end = text.find("\n", end)
    line_end = len(text) if line_end < 0 else line_end + 1
    if not text[line_start:start].strip() and not text[end:line_end].strip():
        return line_start, line_end
    return start, end


def cleanup_duplicate_imports(text: str, short_class_name: str) -> tuple[str, bool]:
    duplicates = find_duplicate_imports(text, short_class_name)
    if not duplicates:
        return text, False

    result = text
    for clause in sorted(duplicates, key=lambda c: c.statement_start, reverse=True):
        start, end = statement_span(text, clause)
        result = result[:start] + result[end:]
    logger.debug(f"Removed {len(duplicates)} duplicate import(s) of {short_class_name}")
    return result, True
