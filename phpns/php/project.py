"""Filesystem-backed project: file discovery, reference search, edits and moves.

The move orchestrators depend only on the three collaborator protocols
below. `PhpProject` implements all of them over plain files with the
text-level scanner, so it finds what the scanner finds and nothing more.
"""

import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Protocol

from ..utils.config import load_config
from ..utils.names import SEPARATOR, normalize_fqn, short_name
from ..utils.text import apply_text_edits, read_file_content, write_file_content
from .classifier import classify_site
from .errors import AlreadyExistsError, NotFoundError
from .resolver import ResolutionKind, Resolver
from .source import PhpSource
from .types import ClassLocation, ReferenceKind, ReferenceSite, TextEdit

logger = logging.getLogger(__name__)

PHP_SUFFIX = ".php"


class ReferenceSearch(Protocol):
    def find_references(self, location: ClassLocation) -> list[ReferenceSite]: ...


class TextMutation(Protocol):
    def apply_edits(self, file_path: Path, edits: list[TextEdit]) -> int: ...


class FileRelocation(Protocol):
    def move_file(self, path: Path, target_dir: Path) -> Path: ...


class PhpProject:
    def __init__(
        self,
        root: Path,
        config: dict[str, Any] | None = None,
        resolver: Resolver | None = None,
    ):
        self.root = root.resolve()
        self.config = config if config is not None else load_config(self.root)
        project_config = self.config.get("project", {})
        self.source_roots: list[str] = list(project_config.get("source_roots", []))
        self.excluded_dirs: set[str] = set(project_config.get("excluded_dirs", []))
        self.resolver = resolver or Resolver.from_config(self.config)

    def relative_path(self, path: Path) -> str:
        try:
            return str(path.resolve().relative_to(self.root))
        except ValueError:
            return str(path)

    def _is_excluded(self, name: str) -> bool:
        return name.startswith(".") or name in self.excluded_dirs

    def php_files(self, directory: Path | None = None, recursive: bool = True) -> list[Path]:
        directory = (directory or self.root).resolve()
        if not directory.is_dir():
            return []

        if not recursive:
            return sorted(p for p in directory.glob(f"*{PHP_SUFFIX}") if p.is_file())

        files = []
        for dirpath, dirnames, filenames in os.walk(directory):
            dirnames[:] = sorted(d for d in dirnames if not self._is_excluded(d))
            for filename in sorted(filenames):
                if filename.endswith(PHP_SUFFIX):
                    files.append(Path(dirpath) / filename)
        return files

    def find_main_class(self, path: Path) -> ClassLocation:
        """The class a file is named after, or its first class when none matches."""
        path = path.resolve()
        if not path.is_file():
            raise NotFoundError(f"Source file not found: {path}")
        if path.suffix != PHP_SUFFIX:
            raise NotFoundError(f"Source file is not a PHP file: {path}")

        source = PhpSource(read_file_content(path))
        declarations = source.class_declarations
        if not declarations:
            raise NotFoundError("No PHP class found in the file")

        main = next((d for d in declarations if d.name == path.stem), declarations[0])
        return ClassLocation(file_path=path, namespace=source.namespace, class_name=main.name)

    def references_in(self, file_path: Path, text: str, fqn: str) -> list[ReferenceSite]:
        target = normalize_fqn(fqn).lower()
        if short_name(target) not in text.lower():
            return []

        source = PhpSource(text)
        sites: list[ReferenceSite] = []

        for clause in source.class_imports:
            if clause.fqn.lower() == target:
                sites.append(ReferenceSite(
                    file_path=file_path,
                    kind=ReferenceKind.IMPORT_STATEMENT,
                    start=clause.start,
                    end=clause.name_end,
                    text=text[clause.start:clause.name_end],
                    alias=clause.alias,
                ))

        imports = source.imported_names
        for site in source.reference_sites:
            bound = self.resolver.bound_fqn(site.name, source.namespace, imports)
            if bound.lower() != target:
                continue
            resolution = self.resolver.resolve(site.name, source.namespace, imports)
            if resolution.kind == ResolutionKind.IMPORTED and site.name.lower() != short_name(target):
                # Aliased: the rewritten use clause keeps the alias working
                continue
            sites.append(ReferenceSite(
                file_path=file_path,
                kind=classify_site(source, site.start, site.end),
                start=site.start,
                end=site.end,
                text=site.name,
            ))

        return sites

    def find_references(self, location: ClassLocation) -> list[ReferenceSite]:
        """Every reference to `location`'s class outside its own file."""
        moved = location.file_path.resolve()
        sites = []
        for path in self.php_files():
            if path.resolve() == moved:
                continue
            sites.extend(self.references_in(path, read_file_content(path), location.fqn))
        logger.debug(f"Found {len(sites)} reference(s) to {location.fqn}")
        return sites

    def apply_edits(self, file_path: Path, edits: list[TextEdit]) -> int:
        if not edits:
            return 0
        content = read_file_content(file_path)
        new_content = apply_text_edits(content, edits)
        if new_content != content:
            write_file_content(file_path, new_content)
        return len(edits)

    def move_file(self, path: Path, target_dir: Path) -> Path:
        destination = target_dir / path.name
        if destination.exists():
            raise AlreadyExistsError(str(destination))
        target_dir.mkdir(parents=True, exist_ok=True)
        shutil.move(str(path), str(destination))
        logger.info(f"Moved {self.relative_path(path)} -> {self.relative_path(destination)}")
        return destination

    def _psr4_mappings(self) -> list[tuple[str, Path]]:
        composer = self.root / "composer.json"
        if not composer.is_file():
            return []
        try:
            data = json.loads(composer.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable {composer}: {e}")
            return []

        mappings = []
        for section in ("autoload", "autoload-dev"):
            psr4 = data.get(section, {}).get("psr-4", {})
            for prefix, dirs in psr4.items():
                if isinstance(dirs, str):
                    dirs = [dirs]
                for d in dirs:
                    mappings.append((normalize_fqn(prefix.rstrip(SEPARATOR)), (self.root / d).resolve()))
        return mappings

    def detect_namespace(self, directory: Path) -> str:
        """Namespace for classes in `directory`.

        A composer.json PSR-4 mapping wins when one covers the directory (the
        most specific one). Otherwise the path below the project root is
        used, minus a leading conventional source root such as `src`.
        """
        directory = directory.resolve()

        best: tuple[int, str, Path] | None = None
        for prefix, base in self._psr4_mappings():
            if directory == base or base in directory.parents:
                if best is None or len(base.parts) > best[0]:
                    best = (len(base.parts), prefix, base)
        if best:
            _, prefix, base = best
            parts = [p for p in [prefix, *directory.relative_to(base).parts] if p]
            return SEPARATOR.join(parts)

        try:
            parts = list(directory.relative_to(self.root).parts)
        except ValueError:
            return ""
        if parts and parts[0] in self.source_roots:
            parts = parts[1:]
        return SEPARATOR.join(parts)
