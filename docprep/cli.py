"""
Command-line interface for docprep.

Processes one document and prints it for downstream LLM consumption:

    docprep run report.pdf --format html --output report.html
"""

import asyncio
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from docprep.config import Config
from docprep.export import to_html, to_json
from docprep.models import Document, Strategy
from docprep.processor.pipeline import create_pipeline
from docprep.processor.strategy import SUPPORTED_EXTENSIONS, resolve_strategy
from docprep.utils.errors import DocprepException
from docprep.utils.logging import get_logger, setup_logging

# Initialize Typer app and Rich consoles; stdout carries only the document
app = typer.Typer(
    name="docprep",
    help="Turn documents into structured text and page images for LLMs",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

logger = get_logger(__name__)


class OutputFormat(str, Enum):
    """Output projection."""

    JSON = "json"
    HTML = "html"


def load_config(config_path: Optional[Path]) -> Config:
    """Load the base configuration from a TOML file or the environment."""
    if config_path is not None:
        return Config.from_toml(config_path)
    return Config.from_env()


@app.command()
def run(
    input_file: Path = typer.Argument(
        ...,
        metavar="FILE",
        help="Input file to process",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.JSON,
        "--format",
        "-f",
        help="Output format",
        case_sensitive=False,
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (TOML)",
    ),
    temp_dir: Optional[Path] = typer.Option(
        None,
        "--temp-dir",
        help="Directory for kept temporary files",
    ),
    keep_temps: bool = typer.Option(
        False,
        "--keep-temps",
        help="Don't delete OCR temporary files",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable detailed logging on stderr",
    ),
    max_memory: Optional[int] = typer.Option(
        None,
        "--max-memory",
        help="Maximum optimized image size in megabytes",
    ),
    timeout: Optional[int] = typer.Option(
        None,
        "--timeout",
        help="Processing timeout in seconds (0 disables)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the result to a file instead of stdout",
    ),
):
    """Process a document and print the structured result."""
    setup_logging(log_level="DEBUG" if verbose else "WARNING")

    try:
        config = load_config(config_path).with_overrides(
            temp_dir=temp_dir,
            keep_temps=keep_temps or None,
            max_image_size_mb=max_memory,
            timeout_seconds=timeout,
        )

        try:
            document = Document.create(input_file)
        except OSError as e:
            err_console.print(f"[red]Error:[/red] Cannot read {input_file}: {e.strerror}")
            raise typer.Exit(1)

        logger.info(f"Processing document: {input_file}")
        document = asyncio.run(create_pipeline(config).run(document))

    except DocprepException as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if output_format == OutputFormat.HTML:
        rendered = to_html(document)
    else:
        rendered = to_json(document)

    if output is not None:
        try:
            output.write_text(rendered, encoding="utf-8")
        except OSError as e:
            err_console.print(f"[red]Error:[/red] Cannot write {output}: {e.strerror}")
            raise typer.Exit(1)
        err_console.print(f"[green]✓[/green] Wrote {output_format.value} output to {output}")
    else:
        typer.echo(rendered, nl=False)


@app.command()
def formats():
    """List the supported file extensions and their strategies."""
    table = Table(title=f"Supported formats ({len(SUPPORTED_EXTENSIONS)} extensions)")
    table.add_column("Strategy", style="cyan")
    table.add_column("Extensions")

    for strategy in Strategy:
        extensions = sorted(e for e in SUPPORTED_EXTENSIONS if resolve_strategy(e) is strategy)
        table.add_row(strategy.value, ", ".join(extensions))

    console.print(table)
    console.print("[dim]Any other extension is read as plain text.[/dim]")


@app.callback()
def main():
    """docprep - prepare documents for language models."""


if __name__ == "__main__":
    app()
