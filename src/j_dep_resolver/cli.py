"""Typer CLI entry point for J-Dep Resolver."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from j_dep_resolver.bom import BomExpander
from j_dep_resolver.config import ResolverConfig
from j_dep_resolver.db import create_sqlite_engine, init_db, list_runs, save_report
from j_dep_resolver.declarations import load_build_unit
from j_dep_resolver.exceptions import JDepError
from j_dep_resolver.finder import PomFinder
from j_dep_resolver.graph import dependency_chain, reverse_dependencies
from j_dep_resolver.index import ArtifactIndex
from j_dep_resolver.logging_config import configure_logging
from j_dep_resolver.models import dependency_key, split_key
from j_dep_resolver.parser import PomParser
from j_dep_resolver.pipeline import resolve as run_resolution
from j_dep_resolver.report import build_bom_tree, build_index_table, render_report
from j_dep_resolver.scanner import find_pom_files

app = typer.Typer(add_completion=False, help="Resolve declared Java dependencies against installed system artifacts.")
console = Console(emoji=False)


def _config(poms_dir: Optional[Path], jars_dirs: Optional[list[Path]] = None) -> ResolverConfig:
    cfg = ResolverConfig.from_env()
    if poms_dir is not None:
        cfg.poms_dir = poms_dir
    if jars_dirs:
        cfg.jar_dirs = list(jars_dirs)
    cfg.validate()
    return cfg


def _fail(exc: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {exc}")
    raise typer.Exit(code=1) from None


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="Explicit log level, e.g. WARNING.")] = None,
) -> None:
    configure_logging(verbose=verbose, log_level=log_level)


PomsDirOption = Annotated[Optional[Path], typer.Option("--poms-dir", help="Installed POM repository root.")]


@app.command()
def resolve(
    declaration: Annotated[Path, typer.Argument(help="Build unit: a JSON manifest or a pom.xml.")],
    poms_dir: PomsDirOption = None,
    jars_dir: Annotated[
        Optional[list[Path]], typer.Option("--jars-dir", help="Jar directory (repeatable).")
    ] = None,
    db: Annotated[Optional[Path], typer.Option("--db", help="Persist the run into this SQLite db.")] = None,
    json_out: Annotated[Optional[Path], typer.Option("--json", help="Write the report as JSON to this file.")] = None,
) -> None:
    """Resolve DECLARATION and print bucket assignments and version decisions."""
    try:
        cfg = _config(poms_dir, jars_dir)
        unit = load_build_unit(declaration)
        report, _ = run_resolution(unit, cfg)

        render_report(report, console)

        if json_out is not None:
            json_out.parent.mkdir(parents=True, exist_ok=True)
            json_out.write_text(report.model_dump_json(indent=2), encoding="utf-8")
            console.print(f"[green]Wrote[/green] {json_out}")

        if db is not None:
            engine = create_sqlite_engine(db)
            init_db(engine)
            run_id = save_report(engine, report)
            console.print(f"[green]Saved[/green] run {run_id} into [bold]{db}[/bold].")
    except JDepError as exc:
        _fail(exc)


@app.command()
def index(
    poms_dir: PomsDirOption = None,
    group: Annotated[Optional[str], typer.Option("--group", help="Only list this groupId.")] = None,
) -> None:
    """Build the POM index and list the newest version of every artifact."""
    try:
        cfg = _config(poms_dir)
        idx = ArtifactIndex()
        idx.build(find_pom_files(cfg.poms_dir, cfg.scan_depth))
        if group:
            coords = idx.find_all_for_group(group)
            title = f"Installed artifacts in {group}"
        else:
            snapshot = idx.snapshot()
            coords = [snapshot[k] for k in sorted(snapshot)]
            title = "Installed artifacts"
        console.print(build_index_table(coords, title))
    except JDepError as exc:
        _fail(exc)


@app.command()
def bom(
    target: Annotated[str, typer.Argument(help="BOM key: groupId:artifactId")],
    poms_dir: PomsDirOption = None,
) -> None:
    """Expand one BOM (and the BOMs it imports) and print managed versions."""
    try:
        cfg = _config(poms_dir)
        parts = split_key(target)
        if parts is None:
            raise JDepError(f"Expected groupId:artifactId, got {target!r}")

        parser = PomParser()
        finder = PomFinder(cfg.poms_dir, parser)
        coord = finder.find(*parts)
        if coord is None:
            raise JDepError(f"No installed POM for {dependency_key(*parts)}")
        if not coord.is_bom():
            raise JDepError(f"{coord.notation} is not a BOM (packaging {coord.packaging})")

        result = BomExpander(finder, parser).process([coord.key])
        console.print(build_bom_tree(result))

        table = Table(title="Managed versions")
        table.add_column("Dependency")
        table.add_column("Version")
        for key in sorted(result.managed_versions):
            table.add_row(key, result.managed_versions[key])
        console.print(table)
    except JDepError as exc:
        _fail(exc)


@app.command()
def why(
    declaration: Annotated[Path, typer.Argument(help="Build unit: a JSON manifest or a pom.xml.")],
    target: Annotated[str, typer.Argument(help="Dependency: groupId:artifactId[:version]")],
    poms_dir: PomsDirOption = None,
    jars_dir: Annotated[
        Optional[list[Path]], typer.Option("--jars-dir", help="Jar directory (repeatable).")
    ] = None,
) -> None:
    """Show why TARGET ends up in the resolution of DECLARATION."""
    try:
        parts = split_key(target)
        if parts is None:
            raise JDepError(f"Expected groupId:artifactId, got {target!r}")
        key = dependency_key(*parts)

        cfg = _config(poms_dir, jars_dir)
        unit = load_build_unit(declaration)
        report, ctx = run_resolution(unit, cfg)

        if key in report.declared:
            console.print(f"[bold]{key}[/bold] is declared directly by {report.unit}.")

        chain = dependency_chain(ctx.graph, report.declared, key)
        if chain:
            console.print(" -> ".join(chain))

        preds = reverse_dependencies(ctx.graph, key)
        table = Table(title=f"Reverse dependencies (who depends on {key})")
        table.add_column("#", style="dim", width=6)
        table.add_column("Dependent (predecessor)")
        for i, dep in enumerate(preds, start=1):
            table.add_row(str(i), dep)
        console.print(table)

        if not preds and key not in report.declared:
            console.print("[dim]Not part of this resolution.[/dim]")

        assignment = report.assignment_for(key)
        if assignment is not None:
            console.print(f"Assigned to {', '.join(assignment.buckets)} ({assignment.reason})")
    except JDepError as exc:
        _fail(exc)


@app.command()
def history(
    db: Annotated[Optional[Path], typer.Option("--db", help="SQLite db path (default: JDEP_DB_PATH).")] = None,
    limit: Annotated[int, typer.Option("--limit", help="Max rows to print.")] = 20,
) -> None:
    """List persisted resolution runs, newest first."""
    if db is None:
        try:
            db = ResolverConfig.from_env().db_path
        except JDepError as exc:
            _fail(exc)

    engine = create_sqlite_engine(db)
    init_db(engine)
    runs = list_runs(engine, limit)

    table = Table(title=f"Resolution runs in {db}")
    table.add_column("Run", style="dim", width=6)
    table.add_column("Unit")
    table.add_column("When")
    table.add_column("Artifacts", justify="right")
    table.add_column("Not found", justify="right")
    table.add_column("Skipped", justify="right")
    for run in runs:
        table.add_row(
            str(run.id),
            run.unit,
            run.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            str(run.artifact_count),
            str(run.not_found_count),
            str(run.skipped_count),
        )
    console.print(table)
    if not runs:
        console.print("[dim]No runs recorded yet.[/dim]")


def main() -> None:
    """Console-script entry point."""
    app()
