import logging
import sys
from pathlib import Path

import click
from click.core import ParameterSource

from .output.formatters import format_output
from .php.batch import PhpBatchMoveHandler
from .php.move import PhpMoveHandler
from .php.progress import LoggingProgress
from .php.project import PhpProject
from .utils.config import (
    DEFAULT_CONFIG,
    detect_project_root,
    get_config_path,
    get_log_dir,
    load_config,
    save_config,
)

logger = logging.getLogger(__name__)


class OrderedGroup(click.Group):
    def __init__(self, *args, commands_order: list[str] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.commands_order = commands_order or []

    def list_commands(self, ctx):
        commands = super().list_commands(ctx)
        if self.commands_order:
            ordered = [c for c in self.commands_order if c in commands]
            remaining = [c for c in commands if c not in self.commands_order]
            return ordered + remaining
        return commands


def setup_logging(level_name: str, verbose: bool) -> None:
    log_dir = get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers: list[logging.Handler] = [logging.FileHandler(log_dir / "phpns.log")]
    if verbose:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def get_project_root(path: Path, project_root: str | None) -> Path:
    if project_root:
        return Path(project_root).resolve()

    root = detect_project_root(path)
    if root:
        return root

    raise click.ClickException(
        f"No PHP project found for {path}\n"
        f"Run from inside a project (composer.json, .phpns.toml or .git) or pass --project-root"
    )


def output_format(ctx) -> str:
    return "json" if ctx.obj["json"] else "plain"


CLI_HELP = """\
phpns moves PHP classes between directories and namespaces and rewrites the
code that refers to them: the namespace declaration of the moved file, use
statements and type references in other files, relative require/include
paths, and imports made redundant by the move.

`phpns move-class` moves a single class file. `phpns batch-move` moves every
class file in a directory, optionally only those whose file name matches a
glob pattern, keeping the subdirectory layout.

When no namespace is given it is derived from the target directory, using
the PSR-4 mappings in composer.json or, failing that, the directory path
below a conventional source root such as src/.

See `phpns COMMAND --help` for more documentation and command-specific options.
"""


@click.group(
    cls=OrderedGroup,
    commands_order=[
        "move-class",
        "batch-move",
        "config",
    ],
    help=CLI_HELP,
    context_settings={"help_option_names": ["-h", "--help"], "max_content_width": 120},
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Log to stderr as well as the log file")
@click.pass_context
def cli(ctx, json_output, verbose):
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    setup_logging(load_config()["logging"]["level"], verbose)


@cli.command("move-class")
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("target_dir", type=click.Path(file_okay=False))
@click.option("-n", "--namespace", default=None, help="Namespace for the moved class (default: derived from TARGET_DIR)")
@click.option("--project-root", type=click.Path(exists=True, file_okay=False), default=None,
              help="Project root (default: nearest directory with composer.json, .phpns.toml or .git)")
@click.pass_context
def move_class(ctx, source_file, target_dir, namespace, project_root):
    """Move the PHP class in SOURCE_FILE into TARGET_DIR.

    All references to the class across the project are updated, as are the
    moved file's own namespace declaration, the names it uses from its old
    namespace, and its relative include paths. Pass an empty --namespace to
    move the class into the global namespace.

    Examples:

      phpns move-class src/Services/UserService.php src/Domain/Services

      phpns move-class lib/Cart.php src/Entities --namespace 'App\\Entities'
    """
    source_path = Path(source_file).resolve()
    root = get_project_root(source_path, project_root)
    project = PhpProject(root, load_config(root))

    result = PhpMoveHandler(project).move_php_class(
        source_path,
        Path(target_dir).resolve(),
        namespace=namespace,
        progress=LoggingProgress(),
    )
    if not result.success:
        raise click.ClickException(result.message)

    click.echo(format_output(result.model_dump(), output_format(ctx)))


@cli.command("batch-move")
@click.argument("source_dir", type=click.Path(exists=True, file_okay=False))
@click.argument("target_dir", type=click.Path(file_okay=False))
@click.option("-p", "--pattern", default=None, help="Only move files whose name matches this glob (e.g. '*Controller.php')")
@click.option("-n", "--namespace", "namespace_base", default=None,
              help="Base namespace for moved classes (default: derived from each target directory)")
@click.option("--recursive/--no-recursive", default=True, help="Include subdirectories of SOURCE_DIR")
@click.option("--preserve-structure/--flat", default=True,
              help="Recreate SOURCE_DIR's subdirectories (and namespace segments) under TARGET_DIR")
@click.option("--project-root", type=click.Path(exists=True, file_okay=False), default=None,
              help="Project root (default: nearest directory with composer.json, .phpns.toml or .git)")
@click.pass_context
def batch_move(ctx, source_dir, target_dir, pattern, namespace_base, recursive, preserve_structure, project_root):
    """Move every PHP class file in SOURCE_DIR into TARGET_DIR.

    Files are moved one at a time; a file that cannot be moved is reported
    and the rest still go ahead. Defaults for --recursive and
    --preserve-structure come from the [batch] section of the config.

    Examples:

      phpns batch-move src/Legacy src/Domain

      phpns batch-move src/Http src/Controllers --pattern '*Controller.php' --flat
    """
    source_path = Path(source_dir).resolve()
    root = get_project_root(source_path, project_root)
    config = load_config(root)
    project = PhpProject(root, config)

    batch_config = config.get("batch", {})
    if ctx.get_parameter_source("recursive") == ParameterSource.DEFAULT:
        recursive = batch_config.get("recursive", recursive)
    if ctx.get_parameter_source("preserve_structure") == ParameterSource.DEFAULT:
        preserve_structure = batch_config.get("preserve_structure", preserve_structure)

    handler = PhpBatchMoveHandler(project)
    target_path = Path(target_dir).resolve()
    if pattern:
        result = handler.move_by_pattern(
            source_path, pattern, target_path,
            namespace_base=namespace_base,
            recursive=recursive,
            preserve_structure=preserve_structure,
            progress=LoggingProgress(),
        )
    else:
        result = handler.move_directory(
            source_path, target_path,
            namespace_base=namespace_base,
            recursive=recursive,
            preserve_structure=preserve_structure,
            progress=LoggingProgress(),
        )

    if not result.success and not result.details:
        raise click.ClickException(result.message)

    click.echo(format_output(result.model_dump(), output_format(ctx)))

    if not result.success:
        raise click.ClickException("No files were moved")


@cli.command()
@click.option("--init", "init_config", is_flag=True, help="Write the default config if none exists")
@click.pass_context
def config(ctx, init_config):
    """Print config file location and contents."""
    config_path = get_config_path()

    if init_config:
        if config_path.exists():
            click.echo(f"Config file already exists: {config_path}")
        else:
            save_config(DEFAULT_CONFIG)
            click.echo(f"Wrote default config: {config_path}")
        return

    click.echo(f"Config file: {config_path}")
    click.echo()

    if config_path.exists():
        click.echo(config_path.read_text())
    else:
        click.echo("(file does not exist, using defaults)")


if __name__ == "__main__":
    cli()
