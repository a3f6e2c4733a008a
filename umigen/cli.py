"""
umigen CLI.

Command-line interface for aggregating simulation results into zone tables,
load profiles and template documents.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .core.config import settings
from .reports.report_data import ReportData
from .simulation.results import concat_report_data, load_results
from .template.builder import TemplateBuilder
from .template.umi_template import UmiTemplate
from .utils.logging_config import setup_logging
from .utils.validation import ValidationError

app = typer.Typer(
    name="umigen",
    help="umigen - Aggregate building simulation results into UMI templates",
    add_completion=False,
)
console = Console()


@app.callback()
def main_options(
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Log level"),
):
    setup_logging(level=log_level)


def _load(results_dir: Path):
    console.print(f"\n[cyan]Loading:[/cyan] {results_dir}")
    results = load_results(results_dir)
    if not results:
        console.print(f"[red]No archetype results found in {results_dir}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Loaded:[/green] {len(results)} archetypes")
    return results


def _fmt(value) -> str:
    if isinstance(value, (float, np.floating)):
        return "N/A" if np.isnan(value) else f"{value:,.3f}"
    return str(value)


@app.command()
def aggregate(
    results_dir: Path = typer.Argument(..., help="Directory with one sub-directory per archetype"),
    output_dir: Path = typer.Option(
        None, "--output", "-o", help="Output directory (default: settings.output_dir)"
    ),
    water_use: Optional[Path] = typer.Option(
        None, "--water-use", help="CSV of WaterUse:Equipment records"
    ),
    template: bool = typer.Option(
        False, "--template/--no-template", help="Also write a template document"
    ),
):
    """
    Aggregate zones per (Archetype, Zone Type) and write the tables as CSV.
    """
    console.print(Panel.fit(
        "[bold blue]umigen[/bold blue]\n"
        "Zone Aggregation",
        border_style="blue"
    ))

    output_dir = output_dir or settings.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    results = _load(results_dir)
    water = pd.read_csv(water_use) if water_use else None

    builder = TemplateBuilder()
    try:
        aggregated = builder.aggregate(results, water_use=water)
    except ValidationError as e:
        console.print(f"[red]Aggregation failed: {e}[/red]")
        for suggestion in e.suggestions:
            console.print(f"  [dim]{suggestion}[/dim]")
        raise typer.Exit(code=1)

    table = Table(title="Aggregated Tables")
    table.add_column("Table", style="cyan")
    table.add_column("Groups", style="white")
    table.add_column("File", style="white")

    for name, frame in aggregated.tables().items():
        path = output_dir / f"{name}.csv"
        frame.to_csv(path)
        table.add_row(name, str(len(frame)), str(path))

    console.print(table)

    if template:
        document = UmiTemplate.from_aggregates(
            aggregated.zone_loads,
            zone_ventilation=aggregated.zone_ventilation,
            zone_conditioning=aggregated.zone_conditioning,
            domestic_hot_water=aggregated.domestic_hot_water,
            name=results_dir.name,
        )
        path = output_dir / f"{results_dir.name}.json"
        document.to_json(path)
        console.print(f"  [green]Template:[/green] {path}")

    console.print("\n[bold green]Aggregation complete![/bold green]")


@app.command()
def profile(
    results_dir: Path = typer.Argument(..., help="Directory with one sub-directory per archetype"),
    sort: bool = typer.Option(False, "--sort/--no-sort", help="Load-duration curve"),
    normalize: bool = typer.Option(False, "--normalize/--no-normalize", help="Min-max scale"),
    bins: int = typer.Option(0, "--bins", "-b", help="Fit N step bins (0: no fit)"),
    cooling: bool = typer.Option(False, "--cooling", help="Cooling instead of heating load"),
):
    """
    Heating (or cooling) load statistics per archetype.
    """
    results = _load(results_dir)
    report = ReportData(concat_report_data(results))

    try:
        load = (report.cooling_load if cooling else report.heating_load)(
            normalize=normalize, sort=sort)
    except ValidationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    if load.empty:
        console.print("[yellow]No load meters found in the report data[/yellow]")
        raise typer.Exit(code=1)

    fitted = load.discretize(n_bins=bins) if bins > 0 else None

    table = Table(title=f"{load.profile_type.title()} ({load.units})")
    table.add_column("Archetype", style="cyan")
    table.add_column("Capacity Factor", style="white")
    table.add_column("Peak", style="white")
    if fitted is not None:
        table.add_column("Bin Edges", style="white")

    capacity = load.capacity_factor
    peak = load.p_max
    for archetype in load.archetypes or [load.profile_type]:
        if load.is_partitioned:
            row = [str(archetype), _fmt(capacity[archetype]), _fmt(peak[archetype])]
            edges = fitted.bin_edges.loc[archetype].tolist() if fitted is not None else None
        else:
            row = [str(archetype), _fmt(capacity), _fmt(peak)]
            edges = fitted.bin_edges.tolist() if fitted is not None else None
        if edges is not None:
            row.append(", ".join(f"{edge:.0f}" for edge in edges))
        table.add_row(*row)

    console.print(table)


@app.command()
def inspect(
    template_file: Path = typer.Argument(..., help="Template JSON document"),
):
    """
    Display the collection counts of a template document.
    """
    try:
        template = UmiTemplate.from_json(template_file)
    except (OSError, ValueError) as e:
        console.print(f"[red]Cannot read {template_file}: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(Panel.fit(
        f"[bold]{template.name}[/bold]",
        border_style="green"
    ))

    table = Table(title="Template Collections")
    table.add_column("Collection", style="cyan")
    table.add_column("Objects", style="white")
    for collection, count in template.counts().items():
        table.add_row(collection, str(count))
    console.print(table)

    console.print("\n[bold]Building templates:[/bold]")
    for building in template.BuildingTemplates:
        console.print(f"  - {building.Name}")


@app.command()
def version():
    """Show version information."""
    from . import __version__
    console.print(f"umigen v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
