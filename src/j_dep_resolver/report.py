"""Rich rendering utilities for resolution reports."""

from __future__ import annotations

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from j_dep_resolver.models import BomResult, Coordinate, DecisionKind
from j_dep_resolver.pipeline import ResolutionReport


def build_bucket_tree(report: ResolutionReport) -> Tree:
    """Build a Rich Tree of bucket -> assigned artifact notations."""
    root = Tree(Text(report.unit, style="bold"))
    if not report.buckets:
        root.add("[dim]No artifacts assigned[/dim]")
        return root

    for bucket in sorted(report.buckets):
        branch = root.add(f"[cyan]{bucket}[/cyan]")
        for notation in report.buckets[bucket]:
            branch.add(Text(notation))
    return root


def build_decision_table(report: ResolutionReport) -> Table:
    table = Table(title="Version decisions")
    table.add_column("Dependency")
    table.add_column("Requested")
    table.add_column("Decision")
    table.add_column("Version")

    styles = {
        DecisionKind.OVERRIDE: "yellow",
        DecisionKind.APPLY_MANAGED: "green",
        DecisionKind.NO_CHANGE: "dim",
    }
    for d in report.decisions:
        style = styles[d.kind]
        table.add_row(
            Text(d.key),
            Text(d.original_version),
            Text(d.kind.value, style=style),
            Text(d.target_version or ""),
        )
    return table


def build_problems_tree(report: ResolutionReport) -> Tree | None:
    """Return a tree of not-found and skipped keys, or None if there are none."""
    if not report.not_found and not report.skipped:
        return None
    root = Tree("[bold yellow]Skipped dependencies[/bold yellow]")
    if report.not_found:
        branch = root.add("not installed")
        for key in report.not_found:
            branch.add(Text(key))
    if report.skipped:
        branch = root.add("unresolved transitives")
        for key in report.skipped:
            branch.add(Text(key))
    return root


def render_report(report: ResolutionReport, console: Console) -> None:
    parts: list = [build_bucket_tree(report)]
    if report.decisions:
        parts.append(build_decision_table(report))
    problems = build_problems_tree(report)
    if problems is not None:
        parts.append(problems)
    if report.removed_boms:
        parts.append(Text(f"BOMs applied: {', '.join(report.removed_boms)}", style="dim"))
    console.print(Group(*parts))


def build_index_table(coords: list[Coordinate], title: str = "Installed artifacts") -> Table:
    table = Table(title=title)
    table.add_column("#", style="dim", width=6)
    table.add_column("Group")
    table.add_column("Artifact")
    table.add_column("Version")
    table.add_column("Packaging")
    for i, c in enumerate(coords, start=1):
        table.add_row(str(i), Text(c.group_id), Text(c.artifact_id), Text(c.version or ""), c.packaging)
    return table


def build_bom_tree(result: BomResult) -> Tree:
    root = Tree("[bold]Managed dependencies[/bold]")
    if not result.bom_managed_deps:
        root.add("[dim]Not a BOM, or nothing managed[/dim]")
        return root
    for bom_gav, entries in result.bom_managed_deps.items():
        branch = root.add(Text(bom_gav, style="cyan"))
        for entry in entries:
            branch.add(Text(entry))
    return root
