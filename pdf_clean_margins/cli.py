"""
Command-line interface for PDF Clean Margins.
"""

import os
import sys

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from pdf_clean_margins import __version__
from pdf_clean_margins.assembler import convert
from pdf_clean_margins.config import AssemblySettings, ConversionConfig, IdentityScope
from pdf_clean_margins.exceptions import SelectionError
from pdf_clean_margins.selection import parse_selections
from pdf_clean_margins.utils import configure_logging, ensure_path, format_file_size

console = Console()


def _validate_selections(ctx, param, value):
    """Resolve every ``--selection`` before any document is loaded."""
    try:
        return parse_selections(value)
    except SelectionError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param) from e


@click.command()
@click.version_option(version=__version__)
@click.option(
    '--input', '-i', 'input_pdf',
    required=True,
    help='Sets the input file to use',
    type=click.Path(dir_okay=False),
    metavar='FILE'
)
@click.option(
    '--output', '-o', 'output_pdf',
    required=True,
    help='Sets the output file to write to',
    type=click.Path(dir_okay=False),
    metavar='FILE'
)
@click.option(
    '--selection', '-s', 'selections',
    required=True,
    multiple=True,
    callback=_validate_selections,
    help='Page to import as page[:left[:bottom[:right[:top]]]] (repeatable, order preserved)',
    metavar='SPEC'
)
@click.option(
    '--overlay/--no-overlay',
    default=False,
    help='Draw a marker rectangle over every output page'
)
@click.option(
    '--share-objects',
    is_flag=True,
    default=False,
    help='Clone each source object once for the whole run instead of once per page'
)
@click.option(
    '--verbose', '-v',
    is_flag=True,
    default=False,
    help='Enable debug logging'
)
def cli(input_pdf, output_pdf, selections, overlay, share_objects, verbose):
    """
    PDF Clean Margins - Rebuild selected pages of a PDF as form XObjects.

    Examples:

        pdf-clean-margins -i input.pdf -o output.pdf -s 0:10:10:10:10 -s 1::20

        pdf-clean-margins -i input.pdf -o output.pdf -s 3 --overlay
    """
    configure_logging(verbose)

    settings = AssemblySettings(
        overlay=overlay,
        identity_scope=IdentityScope.DOCUMENT if share_objects else IdentityScope.PAGE,
    )
    config = ConversionConfig(
        input_path=ensure_path(input_pdf),
        output_path=ensure_path(output_pdf),
        selections=selections,
        settings=settings,
    )

    table = Table(title="Selections")
    table.add_column("#", style="cyan", width=4)
    table.add_column("Page", style="green")
    for column in ("Left", "Bottom", "Right", "Top"):
        table.add_column(column, justify="right")
    for idx, selection in enumerate(selections, 1):
        table.add_row(str(idx), str(selection.page_number), *(str(v) for v in selection.margin_width))
    console.print(table)

    try:
        console.print(f"\n[bold cyan]Processing input file:[/bold cyan] {input_pdf}")

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console
        ) as progress:
            task = progress.add_task("Composing pages", total=len(selections))

            def update_progress(current, total):
                progress.update(task, completed=current)

            result = convert(config, progress_callback=update_progress)

        console.print(f"\n[bold green]✓ Successfully wrote {result.pages_written} page(s)[/bold green]")
        console.print(f"[dim]Output file: {result.output_path}[/dim]")
        if os.path.exists(result.output_path):
            console.print(f"[dim]Output size: {format_file_size(os.path.getsize(result.output_path))}[/dim]")
        console.print(f"[dim]Objects written: {result.objects_written}[/dim]")
        console.print()

    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


if __name__ == '__main__':
    cli()
