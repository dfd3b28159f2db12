"""Updating the moved file itself for its new namespace."""

import logging
import re
from typing import Mapping

from ..utils.names import SEPARATOR, extract_namespace, namespace_depth, normalize_fqn, short_name
from ..utils.text import Edit, apply_text_edits
from .imports import find_import_insertion, header_end
from .include_paths import include_path_edits
from .resolver import ResolutionKind, Resolver
from .source import NameSite, PhpSource

logger = logging.getLogger(__name__)

_TRAILING_BLANK_RE = re.compile(r"[ \t]*\r?\n(?:[ \t]*\r?\n)?")


def update_file_for_namespace_change(
    text: str,
    old_namespace: str,
    new_namespace: str,
    resolver: Resolver | None = None,
    class_name: str | None = None,
    co_moved: Mapping[str, str] | None = None,
) -> tuple[str, int]:
    """Rewrite a moved class file so every name in it resolves as before.

    `co_moved` maps the lower-cased old FQN of every class moving in the same
    batch to its new FQN; such classes are not treated as left-behind
    siblings. Returns the new text and the number of edits made.
    """
    old_namespace = normalize_fqn(old_namespace)
    new_namespace = normalize_fqn(new_namespace)
    if old_namespace == new_namespace:
        return text, 0

    updater = _InternalUpdater(
        PhpSource(text),
        old_namespace,
        new_namespace,
        resolver or Resolver(),
        class_name,
        co_moved or {},
    )
    edits = updater.collect()
    if not edits:
        return text, 0
    logger.debug(
        f"Internal update {old_namespace or '(global)'} -> {new_namespace or '(global)'}: "
        f"{len(edits)} edit(s)"
    )
    return apply_text_edits(text, edits), len(edits)


class _InternalUpdater:
    def __init__(
        self,
        source: PhpSource,
        old_namespace: str,
        new_namespace: str,
        resolver: Resolver,
        class_name: str | None,
        co_moved: Mapping[str, str],
    ):
        self.source = source
        self.old_namespace = old_namespace
        self.new_namespace = new_namespace
        self.resolver = resolver
        self.class_name = (class_name or "").lower()
        self.co_moved = {k.lower(): normalize_fqn(v) for k, v in co_moved.items()}
        self.imports = source.imported_names
        self.edits: list[Edit] = []
        self.needed_imports: list[str] = []

    def collect(self) -> list[Edit]:
        for site in self.source.reference_sites:
            self._update_site(site)

        depth_diff = namespace_depth(self.new_namespace) - namespace_depth(self.old_namespace)
        self.edits.extend(include_path_edits(self.source, depth_diff))

        self._update_namespace_declaration()
        return self.edits

    def _require_import(self, fqn: str) -> None:
        key = fqn.lower()
        if key in (f.lower() for f in self.needed_imports):
            return
        if any(c.fqn.lower() == key for c in self.source.class_imports):
            return
        self.needed_imports.append(fqn)

    def _update_site(self, site: NameSite) -> None:
        resolution = self.resolver.resolve(site.name, self.old_namespace, self.imports)
        kind = resolution.kind

        if kind == ResolutionKind.IMPORTED:
            return

        if kind == ResolutionKind.ALREADY_QUALIFIED:
            self._update_qualified(site, resolution.fqn)
            return

        if site.name.lower() == self.class_name:
            return

        moved_to = self.co_moved.get(resolution.fqn.lower())
        if moved_to is not None:
            self._point_at(site, moved_to)
            return

        if kind in (ResolutionKind.GLOBAL, ResolutionKind.BUILTIN):
            if not self.old_namespace and self.new_namespace:
                self._replace(site, SEPARATOR + site.name)
            return

        # SIBLING: resolved to a class left behind in the old namespace
        self._require_import(resolution.fqn)

    def _update_qualified(self, site: NameSite, fqn: str) -> None:
        if site.is_fully_qualified:
            if (
                not self.new_namespace
                and SEPARATOR not in fqn
                and fqn.lower() not in self.imports
            ):
                self._replace(site, fqn)
            return

        head = site.name.split(SEPARATOR, 1)[0].lower()
        if head in self.imports:
            return
        if self.new_namespace:
            self._replace(site, SEPARATOR + fqn)
        else:
            self._replace(site, fqn)

    def _point_at(self, site: NameSite, new_fqn: str) -> None:
        namespace = extract_namespace(new_fqn)
        if namespace == self.new_namespace:
            if site.name != short_name(new_fqn):
                self._replace(site, short_name(new_fqn))
            return
        if not namespace:
            self._replace(site, SEPARATOR + new_fqn)
            return
        self._require_import(new_fqn)

    def _replace(self, site: NameSite, replacement: str) -> None:
        if replacement != site.name:
            self.edits.append(Edit(site.start, site.end, replacement))

    def _update_namespace_declaration(self) -> None:
        source = self.source
        decl = source.namespace_declaration
        imports_text = "\n".join(f"use {fqn};" for fqn in self.needed_imports)

        if decl and self.new_namespace:
            self.edits.append(Edit(decl.name_start, decl.name_end, self.new_namespace))
            self._insert_imports()
            return

        if decl:
            if decl.braced:
                self.edits.append(Edit(decl.start, decl.name_end, "namespace"))
                self._insert_imports()
                return
            if imports_text and not source.use_clauses:
                self.edits.append(Edit(decl.start, decl.end, imports_text))
                return
            tail = _TRAILING_BLANK_RE.match(source.text, decl.end)
            end = tail.end() if tail else decl.end
            self.edits.append(Edit(decl.start, end, ""))
            self._insert_imports()
            return

        if not self.new_namespace:
            self._insert_imports()
            return

        declaration = f"namespace {self.new_namespace};"
        offset = header_end(source)
        if offset is None:
            block = declaration + ("\n\n" + imports_text if imports_text else "")
            self.edits.append(Edit(0, 0, block + "\n\n"))
            return
        if imports_text and not source.use_clauses:
            declaration += "\n\n" + imports_text
            self.needed_imports = []
        self.edits.append(Edit(offset, offset, "\n\n" + declaration))
        self._insert_imports()

    def _insert_imports(self) -> None:
        if not self.needed_imports:
            return
        insertion = find_import_insertion(self.source)
        self.edits.append(Edit(insertion.offset, insertion.offset, insertion.render(self.needed_imports)))

