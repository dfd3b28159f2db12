import pytest

from phpns.php.batch import PhpBatchMoveHandler, glob_to_regex
from phpns.php.project import PhpProject
from phpns.php.types import BatchMoveRequest, BatchMoveResult, FileMoveResult


class RecordingProgress:
    def __init__(self, cancel_after=None):
        self.cancel_after = cancel_after
        self.checks = 0
        self.stages = []
        self.fractions = []

    def on_stage(self, label, detail):
        self.stages.append((label, detail))

    def on_fraction(self, fraction):
        self.fractions.append(fraction)

    def is_cancelled(self):
        self.checks += 1
        return self.cancel_after is not None and self.checks > self.cancel_after


@pytest.fixture
def project(php_project, default_config):
    return PhpProject(php_project, default_config)


@pytest.fixture
def handler(project):
    return PhpBatchMoveHandler(project)


def assert_consistent(result):
    assert result.moved_files + result.failed_files == result.total_files
    assert result.total_files == len(result.details)
    assert result.moved_files == sum(1 for d in result.details if d.success)


class TestGlobToRegex:
    def test_star(self):
        regex = glob_to_regex("*Controller.php")
        assert regex.fullmatch("UserController.php")
        assert not regex.fullmatch("UserController.php.bak")

    def test_question_mark(self):
        regex = glob_to_regex("?ser.php")
        assert regex.fullmatch("User.php")
        assert not regex.fullmatch("Loser.php.php")

    def test_literal_dot(self):
        regex = glob_to_regex("a.php")
        assert regex.fullmatch("a.php")
        assert not regex.fullmatch("axphp")

    def test_case_insensitive(self):
        assert glob_to_regex("*service.php").fullmatch("UserService.php")


class TestMoveDirectory:
    def test_moves_every_class(self, php_project, handler):
        result = handler.move_directory(php_project / "src" / "Services", php_project / "src" / "Domain")

        assert result.success, result.message
        assert result.message == "Moved 3 of 3 files"
        assert result.moved_files == 3
        assert_consistent(result)
        for name in ("AuditService.php", "Helper.php", "UserService.php"):
            assert (php_project / "src" / "Domain" / name).exists()
        assert list((php_project / "src" / "Services").glob("*.php")) == []

    def test_details(self, php_project, handler):
        result = handler.move_directory(php_project / "src" / "Services", php_project / "src" / "Domain")
        by_name = {d.new_fqn: d for d in result.details}
        assert set(by_name) == {
            "App\\Domain\\AuditService",
            "App\\Domain\\Helper",
            "App\\Domain\\UserService",
        }
        helper = by_name["App\\Domain\\Helper"]
        assert helper.original_path == str(php_project / "src" / "Services" / "Helper.php")
        assert helper.new_path == str(php_project / "src" / "Domain" / "Helper.php")

    def test_classes_moving_together_not_imported_from_old_namespace(self, php_project, handler):
        handler.move_directory(php_project / "src" / "Services", php_project / "src" / "Domain")
        for name in ("AuditService.php", "UserService.php"):
            content = (php_project / "src" / "Domain" / name).read_text()
            assert "App\\Services" not in content
            assert "namespace App\\Domain;" in content

    def test_external_references_updated(self, php_project, handler):
        handler.move_directory(php_project / "src" / "Services", php_project / "src" / "Domain")
        controller = (php_project / "src" / "Controllers" / "UserController.php").read_text()
        assert "use App\\Domain\\UserService;" in controller
        index = (php_project / "public" / "index.php").read_text()
        assert "'/../src/Domain/UserService.php'" in index
        assert "App\\Services" not in index

    def test_failed_file_does_not_stop_batch(self, php_project, handler):
        (php_project / "src" / "Services" / "functions.php").write_text("<?php\n\nfunction helper() {}\n")

        result = handler.move_directory(php_project / "src" / "Services", php_project / "src" / "Domain")

        assert result.success
        assert result.total_files == 4
        assert result.moved_files == 3
        assert result.failed_files == 1
        assert_consistent(result)
        failed = [d for d in result.details if not d.success]
        assert failed[0].message == "No PHP class found in the file"
        assert (php_project / "src" / "Services" / "functions.php").exists()

    def test_preserve_structure(self, php_project, handler):
        admin = php_project / "src" / "Services" / "Admin"
        admin.mkdir()
        (admin / "AdminService.php").write_text(
            "<?php\n\nnamespace App\\Services\\Admin;\n\nclass AdminService\n{\n}\n"
        )

        result = handler.move_directory(
            php_project / "src" / "Services",
            php_project / "src" / "Core",
            namespace_base="App\\Core",
        )

        assert result.moved_files == 4
        moved = php_project / "src" / "Core" / "Admin" / "AdminService.php"
        assert moved.exists()
        assert "namespace App\\Core\\Admin;" in moved.read_text()
        assert "namespace App\\Core;" in (php_project / "src" / "Core" / "Helper.php").read_text()

    def test_flat(self, php_project, handler):
        admin = php_project / "src" / "Services" / "Admin"
        admin.mkdir()
        (admin / "AdminService.php").write_text(
            "<?php\n\nnamespace App\\Services\\Admin;\n\nclass AdminService\n{\n}\n"
        )

        result = handler.move_directory(
            php_project / "src" / "Services",
            php_project / "src" / "Core",
            preserve_structure=False,
        )

        assert result.moved_files == 4
        moved = php_project / "src" / "Core" / "AdminService.php"
        assert "namespace App\\Core;" in moved.read_text()

    def test_non_recursive(self, php_project, handler):
        admin = php_project / "src" / "Services" / "Admin"
        admin.mkdir()
        (admin / "AdminService.php").write_text("<?php\n\nnamespace App\\Services\\Admin;\n\nclass AdminService {}\n")

        result = handler.move_directory(
            php_project / "src" / "Services",
            php_project / "src" / "Core",
            recursive=False,
        )

        assert result.total_files == 3
        assert (admin / "AdminService.php").exists()

    def test_same_directory(self, php_project, handler):
        services = php_project / "src" / "Services"
        result = handler.move_directory(services, services)
        assert not result.success
        assert result.message == "Source and target directories are the same"

    def test_missing_source(self, php_project, handler):
        result = handler.move_directory(php_project / "src" / "Nope", php_project / "src" / "Domain")
        assert not result.success
        assert result.message.startswith("Source directory not found")

    def test_empty_source(self, php_project, handler):
        empty = php_project / "src" / "Empty"
        empty.mkdir()
        result = handler.move_directory(empty, php_project / "src" / "Domain")
        assert not result.success
        assert result.message == "No PHP files found in source directory"


class TestMoveByPattern:
    def test_matching_files_only(self, php_project, handler):
        result = handler.move_by_pattern(
            php_project / "src" / "Services",
            "*Service.php",
            php_project / "src" / "Domain",
        )
        assert result.moved_files == 2
        assert_consistent(result)
        assert (php_project / "src" / "Services" / "Helper.php").exists()
        assert (php_project / "src" / "Domain" / "UserService.php").exists()

    def test_no_match(self, php_project, handler):
        result = handler.move_by_pattern(
            php_project / "src" / "Services",
            "*Repository.php",
            php_project / "src" / "Domain",
        )
        assert not result.success
        assert result.message == "No PHP files matching pattern '*Repository.php' found"


class TestCancellation:
    def test_cancel_between_files(self, php_project, handler):
        progress = RecordingProgress(cancel_after=1)
        result = handler.move_directory(
            php_project / "src" / "Services",
            php_project / "src" / "Domain",
            progress=progress,
        )

        assert result.success
        assert result.message == "Moved 1 of 1 files (cancelled)"
        assert result.total_files == 1
        assert_consistent(result)
        assert (php_project / "src" / "Domain" / "AuditService.php").exists()
        assert (php_project / "src" / "Services" / "Helper.php").exists()
        assert 1.0 not in progress.fractions

    def test_cancel_before_first_file(self, php_project, handler):
        progress = RecordingProgress(cancel_after=0)
        result = handler.move_directory(
            php_project / "src" / "Services",
            php_project / "src" / "Domain",
            progress=progress,
        )
        assert result.total_files == 0
        assert result.details == []
        assert result.message.endswith("(cancelled)")

    def test_progress_reported(self, php_project, handler):
        progress = RecordingProgress()
        handler.move_directory(php_project / "src" / "Services", php_project / "src" / "Domain", progress=progress)

        labels = [label for label, _ in progress.stages]
        assert "Moving PHP classes (1/3)" in labels
        assert "Moving PHP classes (3/3)" in labels
        assert labels[-1] == "Batch move completed"
        assert progress.fractions[0] == 0.0
        assert progress.fractions[-1] == 1.0
        assert progress.fractions == sorted(progress.fractions)


class TestExecute:
    def test_request(self, php_project, handler):
        request = BatchMoveRequest(
            files=[php_project / "src" / "Services" / "Helper.php"],
            target_directory=php_project / "src" / "Util",
            namespace_base="App\\Util",
        )
        result = handler.execute(request)
        assert result.moved_files == 1
        assert result.details[0].new_fqn == "App\\Util\\Helper"

    def test_non_php_file_reported(self, php_project, handler):
        notes = php_project / "src" / "Services" / "notes.txt"
        notes.write_text("hello")
        result = handler.move_files([notes], php_project / "src" / "Util")
        assert not result.success
        assert result.details[0].message == "Not a PHP file"


class TestBatchMoveResult:
    def test_from_details(self):
        details = [
            FileMoveResult(original_path="a.php", success=True, message="ok", references_updated=2),
            FileMoveResult(original_path="b.php", success=False, message="failed"),
        ]
        result = BatchMoveResult.from_details(details)
        assert result.success
        assert result.message == "Moved 1 of 2 files"
        assert result.failed_files == 1
        assert result.references_updated == 2

    def test_nothing_moved(self):
        result = BatchMoveResult.from_details([
            FileMoveResult(original_path="a.php", success=False, message="failed"),
        ])
        assert not result.success
