"""Command line interface for photo organizer."""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .console_utils import format_file_size
from .core.acquisition import scan_paths
from .core.manifest import FolderManifest
from .core.packager import ZipArchivePackager
from .core.rule_schema import validate_rule_file
from .core.rules import DEFAULT_RULES, Rule, load_rules, sort_rules
from .core.session import OrganizerSession
from .exceptions import PhotoOrganizerError, RuleValidationError
from .models.config import Config, load_config
from .rich_progress_renderer import RichProgressRenderer

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _resolve_rules(cfg: Config, rules_file: Optional[Path]) -> List[Rule]:
    rules_file = rules_file or cfg.rules_file
    if rules_file:
        return load_rules(rules_file)
    return list(DEFAULT_RULES)


def _load_session(cfg: Config, paths: Tuple[Path, ...], rules_file: Optional[Path],
                  recursive: bool) -> OrganizerSession:
    session = OrganizerSession(
        rules=_resolve_rules(cfg, rules_file),
        packager=ZipArchivePackager(
            compression=cfg.archive.compression,
            prefix=cfg.archive.prefix,
        ),
    )
    session.add_files(scan_paths(paths, recursive=recursive))
    return session


def _print_manifest(manifest: FolderManifest) -> None:
    if not len(manifest):
        console.print("[yellow]No files to organize[/yellow]")
        return

    table = Table(title="Organization Preview")
    table.add_column("Folder", style="cyan")
    table.add_column("Files", justify="right")
    table.add_column("Size", justify="right")

    for folder in manifest:
        style = "dim" if folder.is_unorganized else None
        table.add_row(folder.name, str(folder.count), format_file_size(folder.total_size),
                      style=style)

    table.add_section()
    table.add_row("Total", str(manifest.total_files), format_file_size(manifest.total_size),
                  style="bold")
    console.print(table)


def _fail(error: PhotoOrganizerError) -> None:
    console.print(f"[red]Error: {error}[/red]")
    if isinstance(error, RuleValidationError):
        for message in error.errors:
            console.print(f"  • {message}")
    sys.exit(1)


recursive_option = click.option(
    '--recursive/--no-recursive',
    default=True,
    help='Descend into subdirectories'
)
rules_file_option = click.option(
    '--rules-file',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='JSON rules file (default: built-in rules)'
)


@click.group()
@click.version_option(package_name="photo-organizer")
@click.option(
    '--config',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Configuration file path'
)
@click.option('--verbose', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: bool):
    """Sort photos into folders by filename rules and package them as a zip."""
    _setup_logging(verbose)
    try:
        ctx.obj = load_config(config) if config else Config.default()
    except PhotoOrganizerError as e:
        _fail(e)


@cli.command()
@click.argument('paths', nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@rules_file_option
@recursive_option
@click.pass_obj
def preview(cfg: Config, paths: Tuple[Path, ...], rules_file: Optional[Path], recursive: bool):
    """Show the folders PATHS would be sorted into."""
    try:
        session = _load_session(cfg, paths, rules_file, recursive)
    except PhotoOrganizerError as e:
        _fail(e)
    _print_manifest(session.manifest)


@cli.command()
@click.argument('paths', nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@rules_file_option
@recursive_option
@click.option(
    '--output',
    type=click.Path(path_type=Path),
    help='Archive path or directory (default: configured output directory)'
)
@click.option(
    '--dry-run',
    is_flag=True,
    help='Show the preview without writing an archive'
)
@click.pass_obj
def organize(cfg: Config, paths: Tuple[Path, ...], rules_file: Optional[Path], recursive: bool,
             output: Optional[Path], dry_run: bool):
    """Sort PATHS into folders and write them to a zip archive."""
    try:
        session = _load_session(cfg, paths, rules_file, recursive)
    except PhotoOrganizerError as e:
        _fail(e)

    _print_manifest(session.manifest)
    if dry_run or not len(session.manifest):
        return

    destination = output or cfg.output_directory
    with RichProgressRenderer(console) as renderer:
        archive = session.package(destination, progress=renderer.render)

    if archive is None:
        for message in session.status.errors:
            console.print(f"[red]{message}[/red]")
        sys.exit(1)

    console.print(
        f"\n[green]Organized {session.status.completed_files} photos into "
        f"{len(session.manifest)} folders:[/green] {archive}"
    )


@cli.group()
def rules():
    """Inspect organization rules."""
    pass


@rules.command('list')
@rules_file_option
@click.pass_obj
def list_rules(cfg: Config, rules_file: Optional[Path]):
    """List rules in evaluation order."""
    try:
        rule_list = _resolve_rules(cfg, rules_file)
    except PhotoOrganizerError as e:
        _fail(e)

    table = Table(title=f"Rules ({len(rule_list)} total)")
    table.add_column("Priority", justify="right")
    table.add_column("Id", style="cyan")
    table.add_column("Folder")
    table.add_column("Pattern", style="magenta")
    table.add_column("Description", style="dim")

    for rule in sort_rules(rule_list):
        table.add_row(str(rule.priority), rule.id, rule.folder, rule.pattern_source,
                      rule.description)
    console.print(table)


@rules.command('validate')
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate_rules(file: Path):
    """Validate a rules FILE."""
    errors = validate_rule_file(file)
    if not errors:
        try:
            load_rules(file)
        except RuleValidationError as e:
            errors = e.errors

    if errors:
        console.print(f"[red]✗ {file} is invalid[/red]")
        for message in errors:
            console.print(f"  • {message}")
        sys.exit(1)

    console.print(f"[green]✓ {file} is valid[/green]")


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
