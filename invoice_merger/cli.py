"""
Command-line interface for Invoice Merger.
"""

import logging
import sys
from datetime import datetime

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, TextColumn, BarColumn, TaskProgressColumn, TimeElapsedColumn
from rich.table import Table

from invoice_merger import __version__
from invoice_merger.exceptions import FolderUnreadableError
from invoice_merger.options import MergeOptions
from invoice_merger.pipeline import MergePipeline
from invoice_merger.selection import OrderedSelection, SortField
from invoice_merger.types import MergeRequest
from invoice_merger.utils import format_file_size

console = Console()

PHASE_LABELS = {
    "scan": "Scanning folder",
    "convert": "Converting files",
    "merge": "Merging pages",
    "write": "Writing output",
}


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
def cli(verbose):
    """
    Invoice Merger CLI - Combine invoice PDFs and images into one PDF.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@cli.command(name="scan")
@click.argument('folder', type=click.Path(file_okay=False))
@click.option(
    '--sort', '-s', 'sort_field',
    type=click.Choice([field.value for field in SortField], case_sensitive=False),
    default=SortField.NAME.value,
    help='Order in which files are listed'
)
@click.option('--descending', is_flag=True, help='Reverse the sort order')
def scan(folder, sort_field, descending):
    """
    List the files in FOLDER that can be merged.

    Example:

        invoice-merger scan ./invoices --sort modified
    """
    try:
        records = MergePipeline().scan(folder)
    except FolderUnreadableError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)

    if not records:
        console.print(f"\n[bold yellow]⚠ No supported files found in {folder}[/bold yellow]")
        return

    selection = OrderedSelection.from_catalog(records).sorted_by(sort_field, descending=descending)

    table = Table(title=f"Files in {folder}")
    table.add_column("#", style="cyan", width=4)
    table.add_column("File", style="green")
    table.add_column("Type", style="magenta")
    table.add_column("Modified")
    table.add_column("Size", justify="right")
    for idx, record in enumerate(selection.records, 1):
        table.add_row(
            str(idx),
            record.display_name,
            record.extension.upper(),
            datetime.fromtimestamp(record.modified_at).strftime("%Y-%m-%d %H:%M"),
            format_file_size(record.size_bytes),
        )

    console.print()
    console.print(table)
    console.print(f"[dim]{len(records)} file(s), {format_file_size(sum(r.size_bytes for r in records))}[/dim]")
    console.print()


@cli.command(name="merge")
@click.argument('folder', type=click.Path(file_okay=False))
@click.option(
    '--sort', '-s', 'sort_field',
    type=click.Choice([field.value for field in SortField], case_sensitive=False),
    default=SortField.NAME.value,
    help='Sort files before applying --order'
)
@click.option('--descending', is_flag=True, help='Reverse the sort order')
@click.option(
    '--order',
    multiple=True,
    help='File name to place next in the output; repeat to give an explicit order'
)
@click.option(
    '--only',
    is_flag=True,
    help='Merge only the files named with --order'
)
@click.option(
    '--exclude', '-x',
    multiple=True,
    help='File name to leave out; may be repeated'
)
@click.option(
    '--output', '-o',
    default=None,
    help='Output file name (default: merged_invoices_<timestamp>.pdf)'
)
@click.option(
    '--dest', '-d',
    default=None,
    type=click.Path(file_okay=False),
    help='Destination folder (default: FOLDER)'
)
@click.option('--overwrite', is_flag=True, help='Replace an existing output file')
@click.option(
    '--workers', '-w',
    default=4,
    type=click.IntRange(min=1),
    help='Number of files converted in parallel'
)
def merge(folder, sort_field, descending, order, only, exclude, output, dest, overwrite, workers):
    """
    Merge the supported files in FOLDER into one PDF.

    Examples:

        invoice-merger merge ./invoices

        invoice-merger merge ./invoices --sort modified -o march.pdf

        invoice-merger merge ./invoices --order b.png --order a.pdf --only
    """
    if only and not order:
        raise click.UsageError("--only requires at least one --order file name")

    try:
        pipeline = MergePipeline(MergeOptions(overwrite=overwrite, max_workers=workers))
        records = pipeline.scan(folder)

        selection = OrderedSelection.from_catalog(records).sorted_by(sort_field, descending=descending)
        if order:
            selection = selection.reordered(order)
            if only:
                selection = selection.set_all(False)
                for name in order:
                    selection = selection.set_included(name, True)
        for name in exclude:
            selection = selection.set_included(name, False)

        request = MergeRequest.from_selection(folder, selection, output_file_name=output, output_folder=dest)
        if not request.ordered_files:
            console.print(f"\n[bold yellow]⚠ No files selected in {folder}[/bold yellow]")
            sys.exit(1)

        files_table = Table(title="Merge Order", show_header=True)
        files_table.add_column("#", style="cyan", width=4)
        files_table.add_column("Filename", style="green")
        for idx, record in enumerate(request.ordered_files, 1):
            files_table.add_row(str(idx), record.display_name)
        console.print(files_table)

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console
        ) as progress:
            task = progress.add_task(PHASE_LABELS["scan"], total=None)

            def update_progress(event):
                progress.update(
                    task,
                    description=PHASE_LABELS[event.phase.value],
                    total=event.total or None,
                    completed=event.current,
                )

            outcome = pipeline.merge(request, progress_callback=update_progress)

        if outcome.success:
            console.print(f"\n[bold green]✓ Merged {outcome.page_count} page(s) into:[/bold green] {outcome.output_path}")
        else:
            console.print(f"\n[bold red]✗ Merge failed:[/bold red] {outcome.message}")

        if outcome.failed_files:
            failed_table = Table(title="Failed Files", show_header=True)
            failed_table.add_column("File", style="red")
            failed_table.add_column("Reason")
            for failure in outcome.failed_files:
                failed_table.add_row(failure.name, failure.reason)
            console.print(failed_table)

        console.print()
        sys.exit(0 if outcome.success else 1)

    except KeyError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e.args[0]}")
        sys.exit(1)
    except (FolderUnreadableError, ValueError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


if __name__ == '__main__':
    cli()
