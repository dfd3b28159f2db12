"""Rewriting references to a class whose fully-qualified name changed.

`rewrite_reference` is the pure policy for one site. `FileRewriter` applies
it to every site collected in one file, making sure each import is added at
most once and that all new imports land in a single insertion.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from ..utils.names import SEPARATOR, extract_namespace, is_global_namespace, normalize_fqn, short_name
from ..utils.text import offset_to_position
from .imports import find_import_insertion, statement_span
from .source import PhpSource, UseClause
from .types import ReferenceKind, ReferenceSite, TextEdit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rewrite:
    replacement: str
    import_to_add: str | None = None


def rewrite_reference(
    ref_text: str,
    ref_kind: ReferenceKind,
    class_fqn: str,
    file_namespace: str,
    has_import_for: Callable[[str], bool],
) -> Rewrite:
    """Decide how a reference to `class_fqn` should read in a file in `file_namespace`.

    1. Same namespace as the file: the short name, no import.
    2. Global class seen from elsewhere: `\\Name`, no import. Import
       statements keep the plain FQN since `use` clauses are always absolute.
    3. Any other namespace: the short name, plus an import of `class_fqn`
       unless `has_import_for` says the file already has one. Import
       statements are rewritten to the new FQN; an alias after the name is
       not part of the span and so survives untouched.
    """
    fqn = normalize_fqn(class_fqn)
    name = short_name(fqn)

    if extract_namespace(fqn).lower() == normalize_fqn(file_namespace).lower():
        return Rewrite(name)

    if ref_kind == ReferenceKind.IMPORT_STATEMENT:
        return Rewrite(fqn)

    if is_global_namespace(fqn):
        return Rewrite(SEPARATOR + name)

    if has_import_for(fqn):
        return Rewrite(name)
    return Rewrite(name, import_to_add=fqn)


class FileRewriter:
    """Collects the edits for every reference to one class inside one file.

    Sites must all come from the same snapshot of the file text. Import sites
    are handled before direct references so that an import rewritten to the
    new FQN counts as present when the direct references are processed.
    """

    def __init__(self, file_path: Path, text: str, class_fqn: str):
        self.file_path = file_path
        self.source = PhpSource(text)
        self.namespace = self.source.namespace
        self.class_fqn = normalize_fqn(class_fqn)
        self._edits: list[TextEdit] = []
        self._requested: list[str] = []
        self._provided: set[str] = set()
        self._removed: set[int] = set()
        self._handled: set[int] = set()
        self.changes = 0

    def has_import_for(self, fqn: str) -> bool:
        key = normalize_fqn(fqn).lower()
        if key in self._provided:
            return True
        if any(r.lower() == key for r in self._requested):
            return True
        return any(
            c.fqn.lower() == key and not c.alias and c.statement_start not in self._removed
            for c in self.source.class_imports
        )

    def _conflicting_import(self, fqn: str) -> UseClause | None:
        name = short_name(fqn).lower()
        for clause in self.source.class_imports:
            if clause.local_name.lower() == name and clause.fqn.lower() != fqn.lower():
                if clause.start not in self._handled:
                    return clause
        return None

    def rewrite_all(self, sites: list[ReferenceSite]) -> list[TextEdit]:
        ordered = sorted(sites, key=lambda s: (s.kind != ReferenceKind.IMPORT_STATEMENT, s.start))
        for site in ordered:
            if site.kind == ReferenceKind.IMPORT_STATEMENT:
                self._rewrite_import(site)
            elif site.kind == ReferenceKind.DIRECT_REFERENCE:
                self._rewrite_direct(site)
            else:
                self._request_import_only(site)
        return self.edits()

    def _clause_at(self, offset: int) -> UseClause | None:
        for clause in self.source.class_imports:
            if clause.start <= offset < clause.end:
                return clause
        return None

    def _rewrite_import(self, site: ReferenceSite) -> None:
        clause = self._clause_at(site.start)
        if clause is None or clause.grouped:
            line, _ = offset_to_position(self.source.text, site.start)
            logger.info(f"Leaving grouped import at {self.file_path}:{line + 1} unchanged")
            return
        self._handled.add(clause.start)

        rewrite = rewrite_reference(
            site.text, site.kind, self.class_fqn, self.namespace, self.has_import_for
        )
        redundant = not clause.alias and (
            rewrite.replacement == short_name(self.class_fqn) or self.has_import_for(self.class_fqn)
        )
        siblings = [c for c in self.source.use_clauses if c.statement_start == clause.statement_start]
        if redundant and len(siblings) == 1:
            self._remove_statement(clause)
            self._provided.add(self.class_fqn.lower())
            return

        replacement = self.class_fqn if rewrite.replacement == short_name(self.class_fqn) else rewrite.replacement
        self._replace(site.start, site.end, site.text, replacement)
        self._provided.add(self.class_fqn.lower())

    def _remove_statement(self, clause: UseClause) -> None:
        start, end = statement_span(self.source.text, clause)
        self._edits.append(TextEdit(file_path=self.file_path, start=start, end=end, new_text=""))
        self._removed.add(clause.statement_start)
        self.changes += 1

    def _rewrite_direct(self, site: ReferenceSite) -> None:
        rewrite = rewrite_reference(
            site.text, site.kind, self.class_fqn, self.namespace, self.has_import_for
        )
        replacement = rewrite.replacement
        if rewrite.import_to_add:
            if self._conflicting_import(rewrite.import_to_add):
                replacement = SEPARATOR + rewrite.import_to_add
            else:
                self._requested.append(rewrite.import_to_add)
        self._replace(site.start, site.end, site.text, replacement)

    def _request_import_only(self, site: ReferenceSite) -> None:
        rewrite = rewrite_reference(
            site.text, site.kind, self.class_fqn, self.namespace, self.has_import_for
        )
        if rewrite.import_to_add and not self._conflicting_import(rewrite.import_to_add):
            self._requested.append(rewrite.import_to_add)

    def _replace(self, start: int, end: int, old: str, new: str) -> None:
        if old == new:
            return
        self._edits.append(TextEdit(file_path=self.file_path, start=start, end=end, new_text=new))
        self.changes += 1

    def edits(self) -> list[TextEdit]:
        edits = list(self._edits)
        if self._requested:
            insertion = find_import_insertion(self.source)
            edits.append(TextEdit(
                file_path=self.file_path,
                start=insertion.offset,
                end=insertion.offset,
                new_text=insertion.render(self._requested),
            ))
        return edits

    @property
    def imports_added(self) -> list[str]:
        return list(self._requested)
