"""
Command-Line Interface

CLI commands for catalog maintenance.

Commands:
    rohdb dist          - Build dist/ (assets + database_v1.jsonl)
    rohdb merge         - Merge one catalog tree into another
    rohdb import-autoeq - Convert an AutoEQ results tree into a catalog tree
    rohdb import-oratory - Read oratory1990 EQ PDFs into a catalog tree

Usage:
    # Check the database without writing anything
    rohdb dist --validate-only

    # Build into a custom directory
    rohdb dist --database ./database --dist ./build

    # Merge an imported tree into the main database
    rohdb merge ./incoming ./database

    # Import AutoEQ presets (needs OPENAI_API_KEY)
    rohdb import-autoeq ../AutoEq/results ./incoming

    # Import oratory1990 PDFs (needs OPENAI_API_KEY and ImageMagick)
    rohdb import-oratory ./oratory_pdfs ./incoming
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from rohdb.config import RohDBConfig
from rohdb.errors import RohDBError

__all__ = ["main", "app"]

app = typer.Typer(
    name="rohdb",
    help="Headphone EQ catalog tooling",
    no_args_is_help=True,
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path], **overrides) -> RohDBConfig:
    load_dotenv()
    config = RohDBConfig.from_file(config_file) if config_file else RohDBConfig()
    overrides = {key: value for key, value in overrides.items() if value is not None}
    return config.with_overrides(**overrides) if overrides else config


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/] {message}")
    raise typer.Exit(code=1)


@app.callback()
def callback(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable debug logging",
    ),
) -> None:
    """Headphone EQ catalog tooling."""
    _configure_logging(verbose)


@app.command()
def dist(
    validate_only: bool = typer.Option(
        False,
        "--validate-only",
        help="Validate records and plan asset work without writing anything",
    ),
    database: Optional[Path] = typer.Option(
        None,
        "--database", "-d",
        help="Catalog source tree (contains vendors/)",
    ),
    dist_dir: Optional[Path] = typer.Option(
        None,
        "--dist",
        help="Output directory",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="TOML configuration file",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """Build the distributable catalog."""
    from rohdb.assembly.assembler import CatalogAssembler

    try:
        config = _load_config(
            config_file,
            database_dir=str(database) if database else None,
            dist_dir=str(dist_dir) if dist_dir else None,
        )
        assembler = CatalogAssembler.from_config(config)
        result = asyncio.run(assembler.assemble(dry_run=validate_only))
    except (RohDBError, OSError) as e:
        _fail(str(e))

    counts: dict[str, int] = {}
    for record in result.records:
        counts[record.type.value] = counts.get(record.type.value, 0) + 1
    actions: dict[str, int] = {}
    for action in result.actions:
        actions[action.action] = actions.get(action.action, 0) + 1

    table = Table(title="Validation" if validate_only else "Build")
    table.add_column("Item", style="cyan")
    table.add_column("Count", justify="right", style="green")
    for kind in ("vendor", "product", "eq"):
        table.add_row(f"{kind} records", str(counts.get(kind, 0)))
    for action in ("copy", "generate", "skip"):
        table.add_row(f"assets {action}", str(actions.get(action, 0)))
    console.print(table)

    if result.artifact_path is not None:
        console.print(f"[green]Wrote {result.artifact_path}[/]")


@app.command()
def merge(
    source: Path = typer.Argument(
        ...,
        help="Catalog tree to merge from",
        exists=True,
        file_okay=False,
    ),
    target: Path = typer.Argument(
        ...,
        help="Catalog tree to merge into",
        exists=True,
        file_okay=False,
    ),
    default_subtype: Optional[str] = typer.Option(
        None,
        "--default-subtype",
        help="Answer for every product with an unknown subtype instead of prompting",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="TOML configuration file",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """Merge SOURCE into TARGET without duplicating vendors or products."""
    from rohdb.merge import PromptSubtypeResolver, StaticSubtypeResolver, merge_directories
    from rohdb.schemas import SchemaValidator

    try:
        config = _load_config(config_file)
        resolver = (
            StaticSubtypeResolver(default_subtype)
            if default_subtype
            else PromptSubtypeResolver(console)
        )
        report = merge_directories(
            source,
            target,
            resolver=resolver,
            validator=SchemaValidator.from_config(config.schemas_dir),
        )
    except (RohDBError, OSError, json.JSONDecodeError, ValueError) as e:
        _fail(str(e))

    console.print(Panel(
        f"  Vendors: {report.vendors_created} created, {report.vendors_matched} matched\n"
        f"  Products: {report.products_created} created, {report.products_matched} matched\n"
        f"  EQs: {report.eqs_created} created, {report.eqs_updated} updated, "
        f"{report.eqs_unchanged} unchanged",
        title="Merge Complete",
    ))
    if report.rejected:
        console.print("[yellow]Rejected:[/]")
        for entry in report.rejected:
            console.print(f"  - {entry}")


@app.command("import-autoeq")
def import_autoeq(
    source: Path = typer.Argument(
        ...,
        help="AutoEQ results directory",
        exists=True,
        file_okay=False,
    ),
    target: Path = typer.Argument(
        ...,
        help="Catalog tree to write into",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="TOML configuration file",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """Convert AutoEQ ParametricEQ.txt presets into a catalog tree."""
    from rohdb.classification import RetryPolicy, VendorProductSplitter
    from rohdb.importers import AutoEQImporter
    from rohdb.providers.llm import OpenAILLMProvider

    config = _load_config(config_file)
    if not config.openai_api_key:
        _fail("OPENAI_API_KEY is not set")

    splitter = VendorProductSplitter(
        OpenAILLMProvider(api_key=config.openai_api_key, model=config.llm_model),
        RetryPolicy.from_config(config),
    )
    try:
        target.mkdir(parents=True, exist_ok=True)
        result = asyncio.run(AutoEQImporter(splitter).import_tree(source, target))
    except (RohDBError, OSError) as e:
        _fail(str(e))

    console.print(f"[green]Imported {result.eqs_written} EQs[/] ({len(result.skipped)} skipped)")


@app.command("import-oratory")
def import_oratory(
    source: Path = typer.Argument(
        ...,
        help="Directory of oratory1990 EQ PDFs",
        exists=True,
        file_okay=False,
    ),
    target: Path = typer.Argument(
        ...,
        help="Catalog tree to write into",
    ),
    chunk_size: Optional[int] = typer.Option(
        None,
        "--chunk-size",
        help="PDFs processed concurrently per batch",
        min=1,
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="TOML configuration file",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """Read EQ tables from oratory1990 PDFs into a catalog tree."""
    from rohdb.assets.raster import MagickPdfRenderer
    from rohdb.classification import RetryPolicy, VendorProductSplitter
    from rohdb.importers import OratoryImporter
    from rohdb.providers.llm import OpenAILLMProvider

    config = _load_config(config_file, oratory_chunk_size=chunk_size)
    if not config.openai_api_key:
        _fail("OPENAI_API_KEY is not set")

    splitter = VendorProductSplitter(
        OpenAILLMProvider(api_key=config.openai_api_key, model=config.llm_model),
        RetryPolicy.from_config(config),
    )
    vision = OpenAILLMProvider(
        api_key=config.openai_api_key, model=config.vision_model, max_tokens=None
    )
    try:
        importer = OratoryImporter(
            splitter,
            vision,
            MagickPdfRenderer(config.pdf_renderer_command),
            chunk_size=config.oratory_chunk_size,
        )
        result = asyncio.run(importer.import_tree(source, target))
    except (RohDBError, OSError, ValueError) as e:
        _fail(str(e))

    console.print(f"[green]Imported {result.eqs_written} EQs[/] ({len(result.skipped)} skipped)")


def main() -> None:
    """Entry point for the CLI."""
    app()
