"""Moving many PHP classes at once: a directory's contents or files matching a glob."""

import logging
import re
from pathlib import Path

from ..utils.names import SEPARATOR, build_fqn, normalize_fqn, short_name
from .errors import MoveError
from .move import PhpMoveHandler, Stage, cleanup_project_imports
from .progress import NullProgress, ProgressSink
from .project import PHP_SUFFIX, PhpProject
from .types import BatchMoveRequest, BatchMoveResult, FileMoveResult

logger = logging.getLogger(__name__)


def glob_to_regex(pattern: str) -> re.Pattern:
    """`*` matches any run of characters, `?` exactly one; everything else is literal.

    Matching is case-insensitive and must cover the whole file name.
    """
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE)


class PhpBatchMoveHandler:
    """Moves files one after another, never concurrently.

    One file failing does not stop the batch. Cancellation is honoured only
    between files. The duplicate-import cleanup runs once, after the last
    file, because a later move can add the namespaced import that makes an
    earlier bare import redundant.
    """

    def __init__(self, project: PhpProject, move_handler: PhpMoveHandler | None = None):
        self.project = project
        self.move_handler = move_handler or PhpMoveHandler(project)

    def _validate_directories(self, source_dir: Path, target_dir: Path) -> str | None:
        if not source_dir.is_dir():
            return f"Source directory not found: {source_dir}"
        if source_dir.resolve() == target_dir.resolve():
            return "Source and target directories are the same"
        return None

    def move_directory(
        self,
        source_dir: Path,
        target_dir: Path,
        namespace_base: str | None = None,
        recursive: bool = True,
        preserve_structure: bool = True,
        progress: ProgressSink | None = None,
    ) -> BatchMoveResult:
        progress = progress or NullProgress()
        error = self._validate_directories(source_dir, target_dir)
        if error:
            return BatchMoveResult.failure(error)

        progress.on_stage("Scanning for PHP files...", str(source_dir))
        files = self.project.php_files(source_dir, recursive=recursive)
        if not files:
            return BatchMoveResult.failure("No PHP files found in source directory")

        return self.move_files(
            files,
            target_dir,
            namespace_base=namespace_base,
            preserve_structure=preserve_structure,
            source_dir=source_dir,
            progress=progress,
        )

    def move_by_pattern(
        self,
        source_dir: Path,
        pattern: str,
        target_dir: Path,
        namespace_base: str | None = None,
        recursive: bool = True,
        preserve_structure: bool = True,
        progress: ProgressSink | None = None,
    ) -> BatchMoveResult:
        progress = progress or NullProgress()
        error = self._validate_directories(source_dir, target_dir)
        if error:
            return BatchMoveResult.failure(error)

        progress.on_stage(f"Scanning for PHP files matching: {pattern}", str(source_dir))
        regex = glob_to_regex(pattern)
        files = [
            f for f in self.project.php_files(source_dir, recursive=recursive)
            if regex.fullmatch(f.name)
        ]
        if not files:
            return BatchMoveResult.failure(f"No PHP files matching pattern '{pattern}' found")

        return self.move_files(
            files,
            target_dir,
            namespace_base=namespace_base,
            preserve_structure=preserve_structure,
            source_dir=source_dir,
            progress=progress,
        )

    def execute(self, request: BatchMoveRequest, progress: ProgressSink | None = None) -> BatchMoveResult:
        return self.move_files(
            request.files,
            request.target_directory,
            namespace_base=request.namespace_base,
            preserve_structure=request.preserve_structure,
            source_dir=request.source_directory,
            progress=progress,
        )

    def _destination(
        self,
        file: Path,
        target_dir: Path,
        namespace_base: str | None,
        preserve_structure: bool,
        source_dir: Path | None,
    ) -> tuple[Path, str | None]:
        target = target_dir
        namespace = normalize_fqn(namespace_base) if namespace_base else None

        if preserve_structure and source_dir is not None:
            relative = file.resolve().parent.relative_to(source_dir.resolve())
            if relative.parts:
                target = target_dir / relative
                if namespace:
                    namespace = namespace + SEPARATOR + SEPARATOR.join(relative.parts)
        return target, namespace

    def _co_moved(self, plan: list[tuple[Path, Path, str | None]]) -> dict[str, str]:
        co_moved = {}
        for file, target, namespace in plan:
            try:
                location = self.project.find_main_class(file)
            except MoveError:
                continue
            if namespace is None:
                namespace = self.project.detect_namespace(target)
            co_moved[location.fqn.lower()] = build_fqn(namespace, location.class_name)
        return co_moved

    def move_files(
        self,
        files: list[Path],
        target_dir: Path,
        namespace_base: str | None = None,
        preserve_structure: bool = True,
        source_dir: Path | None = None,
        progress: ProgressSink | None = None,
    ) -> BatchMoveResult:
        progress = progress or NullProgress()
        total = len(files)
        results: list[FileMoveResult] = []
        moved_names: list[str] = []

        plan = []
        for file in files:
            try:
                plan.append((file, *self._destination(
                    file, target_dir, namespace_base, preserve_structure, source_dir
                )))
            except ValueError:
                plan.append((file, target_dir, normalize_fqn(namespace_base) or None))
        co_moved = self._co_moved([p for p in plan if p[0].suffix == PHP_SUFFIX])

        progress.on_stage("Moving PHP classes...", "")
        progress.on_fraction(0.0)

        for i, (file, target, namespace) in enumerate(plan):
            progress.on_fraction(i / total)
            progress.on_stage(f"Moving PHP classes ({i + 1}/{total})", file.name)
            if progress.is_cancelled():
                logger.info(f"Batch move cancelled after {i} of {total} files")
                self._cleanup(moved_names, progress)
                return BatchMoveResult.from_details(results, cancelled=True)

            results.append(self._move_one(file, target, namespace, progress, co_moved, moved_names))

        self._cleanup(moved_names, progress)
        progress.on_fraction(1.0)
        progress.on_stage("Batch move completed", "")

        result = BatchMoveResult.from_details(results)
        logger.info(result.message)
        return result

    def _move_one(
        self,
        file: Path,
        target: Path,
        namespace: str | None,
        progress: ProgressSink,
        co_moved: dict[str, str],
        moved_names: list[str],
    ) -> FileMoveResult:
        original_path = str(file)
        if file.suffix != PHP_SUFFIX:
            return FileMoveResult(original_path=original_path, success=False, message="Not a PHP file")

        try:
            move_result = self.move_handler.move_php_class(
                file,
                target,
                namespace,
                progress=progress,
                cleanup_imports=False,
                co_moved=co_moved,
            )
        except Exception as e:
            logger.warning(f"Batch move of {file} failed: {e}")
            return FileMoveResult(original_path=original_path, success=False, message=f"Error: {e}")

        if not move_result.success:
            logger.warning(f"Batch move of {file} failed: {move_result.message}")
            return FileMoveResult(original_path=original_path, success=False, message=move_result.message)

        moved_names.append(short_name(move_result.new_fqn))
        return FileMoveResult(
            original_path=original_path,
            new_path=str(target / file.name),
            new_fqn=move_result.new_fqn,
            success=True,
            message=move_result.message,
            references_updated=move_result.references_updated,
        )

    def _cleanup(self, moved_names: list[str], progress: ProgressSink) -> None:
        if not moved_names:
            return
        progress.on_stage(Stage.CLEANUP_DUPLICATE_IMPORTS.label, "")
        try:
            cleanup_project_imports(self.project, moved_names)
        except Exception as e:
            logger.warning(f"Duplicate import cleanup failed: {e}")
