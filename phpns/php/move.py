"""Moving one PHP class to another directory and namespace."""

import logging
from collections import defaultdict
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Mapping

from ..utils.names import QualifiedName
from ..utils.text import read_file_content, write_file_content
from .errors import MoveError, NoOpError, PartialApplication
from .imports import cleanup_duplicate_imports
from .include_paths import repoint_includes
from .internal import update_file_for_namespace_change
from .progress import NullProgress, ProgressSink
from .project import PhpProject
from .rewrite import FileRewriter
from .types import MoveOperation, MoveResult, MoveTarget, ReferenceSite

logger = logging.getLogger(__name__)


class StageKind(str, Enum):
    REQUIRED = "required"
    BEST_EFFORT = "best_effort"


class Stage(Enum):
    FIND_CLASS = ("Finding main class...", StageKind.REQUIRED)
    COLLECT_REFERENCES = ("Collecting references...", StageKind.REQUIRED)
    MOVE_FILE = ("Moving file...", StageKind.REQUIRED)
    UPDATE_MOVED_FILE = ("Updating file content...", StageKind.BEST_EFFORT)
    UPDATE_EXTERNAL_REFERENCES = ("Updating external references...", StageKind.BEST_EFFORT)
    UPDATE_INCLUDE_PATHS = ("Updating require/include paths...", StageKind.BEST_EFFORT)
    CLEANUP_DUPLICATE_IMPORTS = ("Cleaning up duplicate imports...", StageKind.BEST_EFFORT)

    def __init__(self, label: str, kind: StageKind):
        self.label = label
        self.kind = kind

    @property
    def name_for_message(self) -> str:
        return self.label.rstrip(".")


def cleanup_project_imports(
    project: PhpProject,
    short_names: Iterable[str],
    files: Iterable[Path] | None = None,
) -> int:
    """Run the duplicate-import cleanup for each short name over the project. Returns files changed."""
    names = list(dict.fromkeys(short_names))
    changed = 0
    for path in files if files is not None else project.php_files():
        content = read_file_content(path)
        new_content = content
        for name in names:
            new_content, _ = cleanup_duplicate_imports(new_content, name)
        if new_content != content:
            write_file_content(path, new_content)
            changed += 1
    if changed:
        logger.info(f"Removed duplicate imports in {changed} file(s)")
    return changed


class PhpMoveHandler:
    """Runs the stages of a single class move against a project.

    Stages up to and including the physical move are required: when one
    fails nothing has changed and the move is reported as failed. The later
    stages are best-effort: a failure is logged and noted in the result
    message, and the file stays where it was moved.
    """

    def __init__(self, project: PhpProject):
        self.project = project

    def move_php_class(
        self,
        source_file: Path,
        target_directory: Path,
        namespace: str | None = None,
        progress: ProgressSink | None = None,
        cleanup_imports: bool = True,
        co_moved: Mapping[str, str] | None = None,
    ) -> MoveResult:
        try:
            return self._move(
                Path(source_file),
                Path(target_directory),
                namespace,
                progress or NullProgress(),
                cleanup_imports,
                co_moved or {},
            )
        except MoveError as e:
            logger.info(f"Move of {source_file} refused: {e}")
            return MoveResult.failure(str(e))
        except Exception as e:
            logger.exception(f"Move of {source_file} failed")
            return MoveResult.failure(f"Move failed: {e}")

    def _report(self, progress: ProgressSink, stage: Stage, detail: str) -> None:
        logger.debug(f"[{stage.kind.value}] {stage.label} {detail}")
        progress.on_stage(stage.label, detail)

    def _best_effort(
        self,
        stage: Stage,
        progress: ProgressSink,
        class_name: str,
        failures: list[PartialApplication],
        step: Callable[[], int],
    ) -> int:
        self._report(progress, stage, class_name)
        try:
            return step()
        except Exception as e:
            logger.warning(f"{stage.label} failed for {class_name}: {e}")
            failures.append(PartialApplication(stage.name_for_message, str(e)))
            return 0

    def _move(
        self,
        source_file: Path,
        target_directory: Path,
        namespace: str | None,
        progress: ProgressSink,
        cleanup_imports: bool,
        co_moved: Mapping[str, str],
    ) -> MoveResult:
        self._report(progress, Stage.FIND_CLASS, source_file.stem)
        location = self.project.find_main_class(source_file)
        class_name = location.class_name

        target_directory = target_directory.resolve()
        if namespace is None:
            new_namespace = self.project.detect_namespace(target_directory)
        else:
            new_namespace = QualifiedName.parse(namespace).fqn

        if target_directory == location.file_path.parent and new_namespace == location.namespace:
            raise NoOpError(f"{class_name} is already in {target_directory} with namespace '{new_namespace}'")

        operation = MoveOperation(
            source=location,
            target=MoveTarget(directory=target_directory, namespace=new_namespace),
        )

        self._report(progress, Stage.COLLECT_REFERENCES, class_name)
        operation = operation.model_copy(
            update={"collected": self.project.find_references(location)}
        )

        self._report(progress, Stage.MOVE_FILE, class_name)
        old_path = location.file_path
        if target_directory == old_path.parent:
            new_path = old_path
        else:
            new_path = self.project.move_file(old_path, target_directory)

        failures: list[PartialApplication] = []
        updated = 0

        updated += self._best_effort(
            Stage.UPDATE_MOVED_FILE, progress, class_name, failures,
            lambda: self._update_moved_file(new_path, operation, co_moved),
        )
        updated += self._best_effort(
            Stage.UPDATE_EXTERNAL_REFERENCES, progress, class_name, failures,
            lambda: self._update_references(operation.collected, operation.new_fqn, failures),
        )
        updated += self._best_effort(
            Stage.UPDATE_INCLUDE_PATHS, progress, class_name, failures,
            lambda: self._update_include_paths(old_path, new_path),
        )
        if cleanup_imports:
            updated += self._best_effort(
                Stage.CLEANUP_DUPLICATE_IMPORTS, progress, class_name, failures,
                lambda: cleanup_project_imports(self.project, [class_name]),
            )

        message = f"Moved {class_name} to {new_namespace or 'global namespace'}"
        if failures:
            message += " (" + "; ".join(str(f) for f in failures) + ")"
        return MoveResult.succeeded(message, operation.new_fqn, updated)

    def _update_moved_file(
        self, path: Path, operation: MoveOperation, co_moved: Mapping[str, str]
    ) -> int:
        content = read_file_content(path)
        new_content, count = update_file_for_namespace_change(
            content,
            operation.source.namespace,
            operation.new_namespace,
            resolver=self.project.resolver,
            class_name=operation.source.class_name,
            co_moved=co_moved,
        )
        if new_content != content:
            write_file_content(path, new_content)
        return count

    def _update_references(
        self, sites: list[ReferenceSite], new_fqn: str, failures: list[PartialApplication]
    ) -> int:
        """Rewrite the references file by file. A file that fails is recorded and skipped."""
        by_file: dict[Path, list[ReferenceSite]] = defaultdict(list)
        for site in sites:
            by_file[site.file_path].append(site)

        updated = 0
        for file_path, file_sites in by_file.items():
            try:
                rewriter = FileRewriter(file_path, read_file_content(file_path), new_fqn)
                edits = rewriter.rewrite_all(file_sites)
                self.project.apply_edits(file_path, edits)
            except Exception as e:
                logger.warning(f"Updating references in {file_path} failed: {e}")
                failures.append(PartialApplication(
                    Stage.UPDATE_EXTERNAL_REFERENCES.name_for_message, f"{file_path}: {e}"
                ))
                continue
            updated += rewriter.changes + len(rewriter.imports_added)
        return updated

    def _update_include_paths(self, old_path: Path, new_path: Path) -> int:
        if old_path == new_path:
            return 0
        updated = 0
        for path in self.project.php_files():
            if path.resolve() == new_path.resolve():
                continue
            content = read_file_content(path)
            new_content, count = repoint_includes(content, path, old_path, new_path)
            if count:
                write_file_content(path, new_content)
                updated += count
        return updated
