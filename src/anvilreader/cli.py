"""Command-line interface for AnvilReader."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

from . import __version__
from .anvil import AnvilError, Chunk, Region, World
from .config import ReaderConfig

app = typer.Typer(
    name="anvilreader",
    help="Inspect Anvil region files: chunks, sections and block palettes.",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"AnvilReader version {__version__}")
        raise typer.Exit()


def setup_logging(level: int) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def fail(message: str) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(1)


def load_region(path: Path, config: ReaderConfig) -> Region:
    try:
        return Region.from_file(path, registry=config.make_registry(), workers=config.workers)
    except (AnvilError, OSError) as e:
        fail(f"{path}: {e}")


def format_timestamp(timestamp: int) -> str:
    if not timestamp:
        return "-"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None, "--version", "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to reader config JSON"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Decode chunks on this many threads"),
):
    """AnvilReader: Anvil region file inspector."""
    try:
        config = ReaderConfig.load(config_path) if config_path else ReaderConfig()
        if workers is not None:
            config.parallel = workers > 1
            config.parallel_workers = workers
        if verbose:
            config.log_level = "DEBUG"
        config.validate()
    except (OSError, ValueError) as e:
        fail(str(e))

    setup_logging(config.level)
    ctx.obj = config


@app.command()
def info(
    ctx: typer.Context,
    region_file: Path = typer.Argument(..., help="Region file (r.X.Z.mca)"),
):
    """Summarize the chunks of a region file.

    Example:
        anvilreader info world/region/r.0.0.mca
    """
    region = load_region(region_file, ctx.obj)

    present = region.count_chunks()
    failed = len(region.errors)
    absent = sum(1 for location in region.locations if location.is_absent)

    console.print(f"[bold]Region {region_file.name}[/bold]")
    console.print(f"  Chunks present: {present}")
    console.print(f"  Chunks failed:  {failed}")
    console.print(f"  Empty cells:    {absent}")

    if present:
        bottoms = [chunk.get_y_range().start for _, chunk in region.iter_chunks()]
        tops = [chunk.get_y_range().stop for _, chunk in region.iter_chunks()]
        console.print(f"  Y range:        {min(bottoms)} to {max(tops) - 1}")

    if region.errors:
        table = Table(title="Failed Chunks")
        table.add_column("X", justify="right")
        table.add_column("Z", justify="right")
        table.add_column("Error", style="red")
        for (x, z), error in sorted(region.errors.items()):
            table.add_row(str(x), str(z), escape(str(error)))
        console.print(table)


@app.command()
def chunk(
    ctx: typer.Context,
    region_file: Path = typer.Argument(..., help="Region file (r.X.Z.mca)"),
    x: int = typer.Argument(..., min=0, max=31, help="Chunk X within the region"),
    z: int = typer.Argument(..., min=0, max=31, help="Chunk Z within the region"),
):
    """Show the sections and palettes of one chunk.

    Example:
        anvilreader chunk world/region/r.0.0.mca 3 7
    """
    region = load_region(region_file, ctx.obj)
    found = _require_chunk(region, x, z)

    y_range = found.get_y_range()
    console.print(f"[bold]Chunk ({x}, {z})[/bold]")
    console.print(f"  Y range:      {y_range.start} to {y_range.stop - 1}")
    console.print(f"  Sections:     {len(found.sections)} from section {found.y_pos}")
    console.print(f"  Modified:     {format_timestamp(found.timestamp)}")
    if found.data_version is not None:
        console.print(f"  Data version: {found.data_version}")

    table = Table(title="Sections")
    table.add_column("Section", justify="right", style="cyan")
    table.add_column("Palette", justify="right")
    table.add_column("Blocks")
    for section_y, section in found.iter_sections():
        palette = section.palette
        names = ", ".join(escape(str(block)) for block in palette[:4])
        if len(palette) > 4:
            names += f", ... (+{len(palette) - 4})"
        table.add_row(str(section_y), str(len(palette)), names)
    console.print(table)


@app.command()
def block(
    ctx: typer.Context,
    region_file: Path = typer.Argument(..., help="Region file (r.X.Z.mca)"),
    x: int = typer.Argument(..., help="Block X within the chunk (0-15)"),
    y: int = typer.Argument(..., help="Block Y (world height)"),
    z: int = typer.Argument(..., help="Block Z within the chunk (0-15)"),
    chunk_x: int = typer.Option(0, "--chunk-x", min=0, max=31, help="Chunk X within the region"),
    chunk_z: int = typer.Option(0, "--chunk-z", min=0, max=31, help="Chunk Z within the region"),
):
    """Show a single block of a chunk.

    Example:
        anvilreader block world/region/r.0.0.mca 4 64 9 --chunk-x 3 --chunk-z 7
        anvilreader block world/region/r.0.0.mca --chunk-x 3 -- 4 -60 9
    """
    region = load_region(region_file, ctx.obj)
    found = _require_chunk(region, chunk_x, chunk_z)

    result = found.get(x, y, z)
    if result is None:
        y_range = found.get_y_range()
        fail(f"({x}, {y}, {z}) is outside the chunk (x/z 0-15, y {y_range.start} to {y_range.stop - 1})")

    console.print(f"[cyan]{result.name}[/cyan]")
    for key, value in result.properties or ():
        console.print(f"  {key} = {value}")


@app.command()
def scan(
    ctx: typer.Context,
    world_dir: Path = typer.Argument(..., help="World directory or region directory"),
):
    """Decode every region of a world and report chunk counts.

    Example:
        anvilreader scan ~/.minecraft/saves/MyWorld
    """
    config: ReaderConfig = ctx.obj
    try:
        world = World(world_dir, workers=config.workers, registry=config.make_registry(),
                      region_glob=config.region_glob)
    except ValueError as e:
        fail(str(e))

    coords = world.list_regions()
    if not coords:
        fail(f"No region files found in {world.region_dir}")

    table = Table(title=f"Regions in {world.region_dir}")
    table.add_column("Region", style="cyan")
    table.add_column("Chunks", justify="right")
    table.add_column("Failed", justify="right")

    total_chunks = 0
    total_failed = 0
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("[cyan]Decoding regions[/cyan]", total=len(coords))
        for region_x, region_z in coords:
            name = f"r.{region_x}.{region_z}.mca"
            try:
                region = world.get_region(region_x, region_z)
            except (AnvilError, OSError) as e:
                table.add_row(name, "-", f"[red]{escape(str(e))}[/red]")
            else:
                chunks = region.count_chunks()
                failed = len(region.errors)
                total_chunks += chunks
                total_failed += failed
                table.add_row(name, str(chunks), str(failed))
            world.unload()
            progress.update(task, advance=1, description=f"[cyan]Decoding regions[/cyan]: {name}")

    console.print(table)
    console.print(f"[green]Done.[/green] {total_chunks} chunks in {len(coords)} regions, {total_failed} failed")


def _require_chunk(region: Region, x: int, z: int) -> Chunk:
    found = region.get_chunk(x, z)
    if found is None:
        error = region.errors.get((x, z))
        if error is not None:
            fail(f"Chunk ({x}, {z}) could not be decoded: {error}")
        fail(f"No chunk at ({x}, {z})")
    return found


if __name__ == "__main__":
    app()
