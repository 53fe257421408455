"""Command-line interface for Craft Export."""

import sys
from dataclasses import asdict
from pathlib import Path

import click
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from craft_export.config import Config
from craft_export.converter import MarkdownConverter, describe_tree
from craft_export.diagnostics import Diagnostics
from craft_export.exceptions import ExportError
from craft_export.exporter import ExportEngine
from craft_export.importer import load_export

console = Console()

LOG_DIR = Path.home() / ".craft_export" / "logs"


def custom_rich_sink(message):
    """Custom loguru sink with color-coded levels."""
    record = message.record
    level = record["level"].name
    time = record["time"].strftime("%H:%M:%S")
    msg = record["message"]

    # Color map for different levels
    level_colors = {
        "DEBUG": "dim",
        "INFO": "blue",
        "SUCCESS": "green",
        "WARNING": "yellow",
        "ERROR": "red bold",
    }

    color = level_colors.get(level, "white")
    formatted = f"[green]{time}[/green] | [{color}]{level: <8}[/{color}] | {escape(msg)}"
    console.print(formatted, highlight=False)


def configure_logging(verbose: bool = False):
    """Console output through rich, plus a rotating debug log file."""
    logger.remove()
    if verbose:
        logger.add(
            sys.stderr,
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
            level="DEBUG"
        )
        logger.debug("Verbose logging enabled")
    else:
        logger.add(custom_rich_sink, level="INFO")

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger.add(
        LOG_DIR / "craft_export_{time:YYYY-MM-DD}.log",
        rotation="1 day",
        retention="7 days",
        level="DEBUG"
    )


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def cli(verbose):
    """craft-export - Convert a Craft export into an Obsidian vault"""
    configure_logging(verbose)


@cli.command()
def init():
    """Write default settings to the config file"""
    config = Config()
    settings = config.get_settings()
    config.save_settings(settings)
    console.print(f"[green]✓ Configuration saved to {config.config_file}[/green]")


@cli.command()
def config_show():
    """Show effective export settings"""
    config = Config()

    if not config.exists():
        console.print("[yellow]No configuration found, using defaults. Run 'craft-export init' to create one.[/yellow]\n")

    table = Table(title="Export Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in asdict(config.get_settings()).items():
        table.add_row(key, str(value))
    console.print(table)


@cli.command()
@click.argument('json_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--output', '-o', type=click.Path(file_okay=False, path_type=Path), help='Output vault directory')
@click.option('--no-download', is_flag=True, help='Reference attachments without downloading them')
@click.option('--skip', 'skip_patterns', multiple=True, help='Skip documents whose path contains this text')
@click.option('--lenient', is_flag=True, help='Log schema problems instead of aborting')
def export(json_path, output, no_download, skip_patterns, lenient):
    """
    Convert every document in a craft.json export to Markdown

    Examples:
        craft-export export craft.json
        craft-export export craft.json -o ~/vault --no-download
        craft-export export craft.json --skip Trash --skip Templates
    """
    settings = Config().get_settings()
    if output:
        settings.output_dir = str(output)
    if no_download:
        settings.download_attachments = False
    if skip_patterns:
        settings.skip_patterns = list(skip_patterns)
    if lenient:
        settings.strict = False

    engine = ExportEngine(settings)

    # Use Progress with transient=True so it doesn't interfere with logs
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True
    ) as progress:
        task = progress.add_task(f"Exporting {json_path.name}...", total=None)
        result = engine.export(json_path)
        progress.update(task, completed=True)

    if not result.success:
        console.print(f"\n[red]✗ Export failed: {escape(str(result.error))}[/red]")
        raise click.Abort()

    table = Table(title=f"Exported to {result.output_dir}")
    table.add_column("Documents written", style="green")
    table.add_column("Skipped")
    table.add_column("Changed", style="cyan")
    table.add_column("Unchanged", style="dim")
    table.add_column("Attachments")
    table.add_column("Warnings", style="yellow")
    table.add_row(
        str(result.documents_written),
        str(result.documents_skipped),
        str(result.documents_changed),
        str(result.documents_unchanged),
        f"{result.attachments_referenced} ({result.attachments_downloaded} downloaded)",
        str(result.warnings),
    )
    console.print(table)
    if result.warnings:
        console.print(f"  [dim]Warnings written to {result.results_file}[/dim]")


@cli.command()
@click.argument('json_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('query')
def inspect(json_path, query):
    """Show the block tree and warnings of documents whose path contains QUERY"""
    settings = Config().get_settings()
    try:
        repository = load_export(json_path, strict=settings.strict)
    except ExportError as e:
        logger.exception("Failed to load export: {}", e)
        console.print(f"[red]✗ Error: {escape(str(e))}[/red]")
        raise click.Abort()

    converter = MarkdownConverter(
        repository,
        attachments_folder=settings.attachments_folder,
        max_depth=settings.max_depth,
    )
    matches = [d for d in repository.documents_by_path() if query in str(repository.document_path(d))]
    if not matches:
        console.print(f"[yellow]No document path contains '{query}'[/yellow]")
        return

    for document in matches:
        diagnostics = Diagnostics()
        path = repository.document_path(document)
        console.print(f"[bold cyan]----- {path} -----[/bold cyan]")
        console.print(describe_tree(repository, repository.root_block(document)), markup=False, highlight=False)
        try:
            converter.convert_document(document, diagnostics)
        except ExportError as e:
            console.print(f"[red]✗ Conversion failed: {escape(str(e))}[/red]")
            continue
        for warning in diagnostics.for_document(path):
            console.print(warning.to_console())


if __name__ == '__main__':
    cli()
