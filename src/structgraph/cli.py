"""structgraph CLI for building and inspecting structural graph documents.

Provides commands to generate a sample exchange document and to summarize
existing documents.
"""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Optional

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from structgraph_ir import __version__
from structgraph_ir.enums import CurveMemberType, MaterialType, ShapeType, SystemLine
from structgraph_ir.manager import Manager
from structgraph_ir.model import Model
from structgraph_ir.schema import ENTITY_TYPES, RELATION_KINDS
from structgraph_ir.serialize import SerializationError, load_json

from .logging_setup import configure_for_environment

logger = structlog.get_logger(__name__)

app = typer.Typer(
    name="structgraph",
    help="Build and inspect structural model graph documents",
    add_completion=False,
)

console = Console()


def _display_error(message: str, error: Optional[Exception] = None) -> None:
    """Display error message with styling."""
    error_text = Text(message, style="bold red")
    if error:
        error_text.append(f"\n   {error}", style="red")
    console.print(Panel(error_text, title="Error", border_style="red"))


def _display_success(message: str) -> None:
    console.print(Panel(Text(message, style="bold green"), title="Success", border_style="green"))


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging before any command runs."""
    configure_for_environment(level="DEBUG" if verbose else "WARNING")


@app.command()
def info() -> None:
    """Display version and supported entity and relationship kinds."""
    console.print(Panel(f"structgraph {__version__}", title="structgraph", border_style="blue"))

    table = Table(title="Supported Kinds")
    table.add_column("Entity Kinds", style="cyan")
    table.add_column("Relation Kinds", style="yellow")

    entity_kinds = list(ENTITY_TYPES)
    for row in range(max(len(entity_kinds), len(RELATION_KINDS))):
        table.add_row(
            entity_kinds[row] if row < len(entity_kinds) else "",
            RELATION_KINDS[row] if row < len(RELATION_KINDS) else "",
        )

    console.print(table)


def build_sample(manager: Manager, index: int) -> None:
    """Populate a model with a single column on one storey."""
    storey = manager.create_storey(
        index, "storey-1", name="Level 1", external_guid="storey-guid", native_id="LEVEL_1",
        description="Entry level", storey_elevation=0.0, storey_mass=800.0,
    )

    base_point = manager.create_point3d(index, "pt-start", 0.0, 0.0, 0.0, name="Start", native_id="PT_START")
    top_point = manager.create_point3d(index, "pt-end", 0.0, 0.0, 3.0, name="End", native_id="PT_END")

    start = manager.create_point_connection(
        index, "pc-start", base_point, storey=storey, name="Start Node",
        native_id="PC_START", description="Column base",
    )
    end = manager.create_point_connection(
        index, "pc-end", top_point, storey=storey, name="End Node",
        native_id="PC_END", description="Column top",
    )

    material = manager.create_material(
        index, "mat-1", name="Concrete C40", native_id="MAT_C40", description="Typical concrete",
        material_type=MaterialType.CONCRETE, grade=40.0, unit_weight=24.0,
        e_modulus="33000", g_modulus="13000", poisson_ratio="0.2", thermal_coefficient=1.0,
    )

    section = manager.create_cross_section(
        index, "sec-rect", material=material, name="400x400", native_id="SEC_400",
        description="Column section", shape=ShapeType.RECTANGULAR,
        parameters={"H": 0.4, "B": 0.4}, area=0.16,
        second_moment_of_area_x_axis=0.0021, second_moment_of_area_y_axis=0.0021,
        radius_of_gyration_x_axis=0.14, radius_of_gyration_y_axis=0.14,
        elastic_modulus_x_axis=0.014, elastic_modulus_y_axis=0.014,
        plastic_modulus_x_axis=0.02, plastic_modulus_y_axis=0.02,
        torsional_constant=0.0005,
    )

    axis = manager.create_line3d(index, "line-1", base_point, top_point, name="Column axis")
    segment = manager.create_line_segment(index, "seg-1", axis, 0, name="Segment", native_id="SEG_1")

    manager.create_curve_member(
        index, "col-1", start, end,
        material=material, cross_section=section, storey=storey, segments=[segment],
        name="Grid A/1 Column", native_id="COLUMN_A1", description="Sample column",
        curve_member_type=CurveMemberType.COLUMN, system_line=SystemLine.MIDDLE_MIDDLE,
        length=3.0, local_axis_x="1,0,0", local_axis_y="0,1,0", local_axis_z="0,0,1",
        end_fixity_start="Fixed", end_fixity_end="Pinned",
    )


@app.command()
def sample(
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the document to this path"),
    pretty: bool = typer.Option(False, "--pretty", help="Indent JSON printed to stdout"),
) -> None:
    """Build the sample column graph and print or write its document."""
    manager = Manager()
    index = manager.add_model()
    build_sample(manager, index)

    if output is None:
        typer.echo(manager.build_json(index, pretty=pretty))
        return

    try:
        path = manager.persist(index, output)
    except OSError as e:
        logger.error("Failed to write sample document", path=output, error=str(e))
        _display_error(f"Failed to write {output}", e)
        raise typer.Exit(1)

    _display_success(f"Sample graph written to: {path}")


@app.command()
def inspect(
    path: str = typer.Argument(..., help="Path to a graph document"),
) -> None:
    """Summarize a graph document and check its referential integrity."""
    try:
        model = load_json(Path(path))
    except (FileNotFoundError, SerializationError) as e:
        _display_error("Failed to load graph document", e)
        raise typer.Exit(1)

    _display_model(model)

    problems = model.validate()
    if problems:
        for problem in problems:
            _display_error(problem)
        raise typer.Exit(1)

    _display_success(f"{len(model.entities)} nodes, {len(model.relationships)} edges")


def _display_model(model: Model) -> None:
    """Display node and edge counts per kind."""
    node_table = Table(title="Nodes")
    node_table.add_column("Entity Kind", style="cyan")
    node_table.add_column("Count", style="yellow")
    for kind, count in Counter(entity.entity_kind for entity in model.entities).items():
        node_table.add_row(kind, str(count))
    console.print(node_table)

    edge_table = Table(title="Edges")
    edge_table.add_column("Relation Kind", style="cyan")
    edge_table.add_column("Count", style="yellow")
    for kind, count in Counter(rel.relation_kind for rel in model.relationships).items():
        edge_table.add_row(kind, str(count))
    console.print(edge_table)


if __name__ == "__main__":
    app()
