import json

from click.testing import CliRunner

from phpns.cli import cli
from phpns.utils.config import get_config_path


class TestCliCommands:
    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Commands:" in result.output
        assert "move-class" in result.output
        assert "batch-move" in result.output
        assert "config" in result.output

    def test_commands_ordered(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        output = result.output
        assert output.index("move-class") < output.index("batch-move") < output.index("  config")

    def test_move_class_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["move-class", "--help"])
        assert result.exit_code == 0
        assert "SOURCE_FILE" in result.output
        assert "--namespace" in result.output

    def test_batch_move_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["batch-move", "--help"])
        assert result.exit_code == 0
        assert "--pattern" in result.output
        assert "--preserve-structure / --flat" in result.output

    def test_config_command(self, isolated_config):
        runner = CliRunner()
        result = runner.invoke(cli, ["config"])
        assert result.exit_code == 0
        assert "Config file:" in result.output
        assert "using defaults" in result.output

    def test_config_init(self, isolated_config):
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "--init"])
        assert result.exit_code == 0
        assert "Wrote default config" in result.output
        assert get_config_path().exists()

        result = runner.invoke(cli, ["config", "--init"])
        assert "already exists" in result.output

        result = runner.invoke(cli, ["config"])
        assert "[batch]" in result.output


class TestMoveClass:
    def test_move(self, php_project, isolated_config):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "move-class",
            str(php_project / "src" / "Services" / "UserService.php"),
            str(php_project / "src" / "Domain"),
        ])
        assert result.exit_code == 0, result.output
        assert "Moved UserService to App\\Domain" in result.output
        assert "New FQN: App\\Domain\\UserService" in result.output
        assert (php_project / "src" / "Domain" / "UserService.php").exists()

    def test_move_json(self, php_project, isolated_config):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "--json",
            "move-class",
            str(php_project / "src" / "Services" / "Helper.php"),
            str(php_project / "lib"),
            "--namespace", "",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["success"] is True
        assert data["new_fqn"] == "Helper"

    def test_move_failure(self, php_project, isolated_config):
        source = php_project / "src" / "Services" / "UserService.php"
        runner = CliRunner()
        result = runner.invoke(cli, ["move-class", str(source), str(source.parent)])
        assert result.exit_code == 1
        assert "already in" in result.output

    def test_no_project(self, temp_dir, isolated_config):
        source = temp_dir / "loose" / "Foo.php"
        source.parent.mkdir()
        source.write_text("<?php\n\nclass Foo {}\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["move-class", str(source), str(temp_dir / "loose" / "Bar")])
        assert result.exit_code == 1
        assert "No PHP project found" in result.output

    def test_explicit_project_root(self, temp_dir, isolated_config):
        root = temp_dir / "loose"
        (root / "src").mkdir(parents=True)
        source = root / "src" / "Foo.php"
        source.write_text("<?php\n\nclass Foo {}\n")
        runner = CliRunner()
        result = runner.invoke(cli, [
            "move-class", str(source), str(root / "src" / "Models"),
            "--project-root", str(root),
        ])
        assert result.exit_code == 0, result.output
        assert "namespace Models;" in (root / "src" / "Models" / "Foo.php").read_text()


class TestBatchMove:
    def test_batch_move(self, php_project, isolated_config):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "batch-move",
            str(php_project / "src" / "Services"),
            str(php_project / "src" / "Domain"),
        ])
        assert result.exit_code == 0, result.output
        assert "Moved 3 of 3 files" in result.output

    def test_batch_move_pattern_json(self, php_project, isolated_config):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "--json",
            "batch-move",
            str(php_project / "src" / "Services"),
            str(php_project / "src" / "Domain"),
            "--pattern", "*Service.php",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["moved_files"] == 2
        assert len(data["details"]) == 2

    def test_batch_move_no_match(self, php_project, isolated_config):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "batch-move",
            str(php_project / "src" / "Services"),
            str(php_project / "src" / "Domain"),
            "--pattern", "*Repository.php",
        ])
        assert result.exit_code == 1
        assert "No PHP files matching pattern" in result.output

    def test_recursive_default_from_project_config(self, php_project, isolated_config):
        admin = php_project / "src" / "Services" / "Admin"
        admin.mkdir()
        (admin / "AdminService.php").write_text("<?php\n\nnamespace App\\Services\\Admin;\n\nclass AdminService {}\n")
        (php_project / ".phpns.toml").write_text("[batch]\nrecursive = false\n")

        runner = CliRunner()
        result = runner.invoke(cli, [
            "batch-move",
            str(php_project / "src" / "Services"),
            str(php_project / "src" / "Domain"),
        ])
        assert result.exit_code == 0, result.output
        assert "Moved 3 of 3 files" in result.output
        assert (admin / "AdminService.php").exists()

    def test_all_failed(self, php_project, isolated_config):
        legacy = php_project / "src" / "Legacy"
        legacy.mkdir()
        (legacy / "functions.php").write_text("<?php\n\nfunction helper() {}\n")

        runner = CliRunner()
        result = runner.invoke(cli, ["batch-move", str(legacy), str(php_project / "src" / "Domain")])
        assert result.exit_code == 1
        assert "FAILED No PHP class found in the file" in result.output
        assert "No files were moved" in result.output
