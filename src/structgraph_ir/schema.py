"""Structural graph schema definitions.

This module defines the entity records (graph nodes) and the relationship
record (graph edges) that make up a structural exchange model. Entities are
plain attribute holders: identity rules live in :mod:`structgraph_ir.identity`
and containment in :mod:`structgraph_ir.store`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Literal, Optional, Type, TypeVar, get_type_hints

from .enums import (
    CurveMemberType,
    Domain,
    MaterialType,
    SegmentType,
    ShapeType,
    SurfaceMemberSystemPlane,
    SurfaceMemberType,
    SystemLine,
    UnitSymbol,
    parse_label,
)

# Edge types for relationships
RelationKind = Literal[
    # Geometry
    "HasPoint3d",
    "HasGeometry",
    "HasSegment",

    # Shared definitions
    "HasMaterial",
    "HasCrossSection",
    "HasStorey",

    # Analytical topology
    "HasStructuralPointConnection",
    "HasStructuralCurveMember",
]

RELATION_KINDS = (
    "HasPoint3d",
    "HasGeometry",
    "HasSegment",
    "HasMaterial",
    "HasCrossSection",
    "HasStorey",
    "HasStructuralPointConnection",
    "HasStructuralCurveMember",
)

T = TypeVar("T", bound="Entity")

DEFAULT_RELATIONSHIP_NAME = "Unnamed"
DEFAULT_RELATION_KIND = "Relationship"


class InvalidArgumentError(ValueError):
    """Raised when a graph element is built from missing or malformed input."""

    pass


def apply_entity_defaults(entity: "Entity") -> None:
    """Validate an entity and substitute fallback values for blank fields.

    ``name`` falls back to ``id`` and ``entity_kind`` to the concrete record
    type's name.
    """
    if not isinstance(entity.id, str) or not entity.id.strip():
        raise InvalidArgumentError(f"{type(entity).__name__} id cannot be empty")

    if not entity.name or not entity.name.strip():
        entity.name = entity.id
    if not entity.entity_kind:
        entity.entity_kind = type(entity).__name__

    # Optional text fields are always strings once constructed
    entity.external_guid = entity.external_guid or ""
    entity.native_id = entity.native_id or ""
    entity.description = entity.description or ""


@dataclass(eq=False)
class Entity:
    """A node in the structural graph."""

    id: str
    name: str = ""
    external_guid: str = ""
    native_id: str = ""
    description: str = ""
    entity_kind: str = ""
    domain: Domain = Domain.SHARED

    def __post_init__(self) -> None:
        apply_entity_defaults(self)


# Shared definitions

@dataclass(eq=False)
class Material(Entity):
    """Structural material definition."""

    material_type: MaterialType = MaterialType.UNKNOWN
    grade: float = 0.0
    unit_weight: float = 0.0
    e_modulus: str = ""
    g_modulus: str = ""
    poisson_ratio: str = ""
    thermal_coefficient: float = 0.0


@dataclass(eq=False)
class CrossSection(Entity):
    """Section profile with its shape parameters and section properties."""

    shape: ShapeType = ShapeType.UNKNOWN
    parameters: Dict[str, float] = field(default_factory=dict)
    area: float = 0.0
    second_moment_of_area_x_axis: float = 0.0
    second_moment_of_area_y_axis: float = 0.0
    radius_of_gyration_x_axis: float = 0.0
    radius_of_gyration_y_axis: float = 0.0
    elastic_modulus_x_axis: float = 0.0
    elastic_modulus_y_axis: float = 0.0
    plastic_modulus_x_axis: float = 0.0
    plastic_modulus_y_axis: float = 0.0
    torsional_constant: float = 0.0


@dataclass(eq=False)
class Storey(Entity):
    storey_elevation: float = 0.0
    storey_mass: float = 0.0


@dataclass(eq=False)
class Segment(Entity):
    """One piece of a member's path, linked to a line or arc geometry."""

    segment_type: SegmentType = SegmentType.UNKNOWN
    position: int = 0


@dataclass(eq=False)
class Unit(Entity):
    """Unit of measure attached to an attribute of an entity kind."""

    entity: str = ""
    attribute: str = ""
    unit: UnitSymbol = UnitSymbol.UNKNOWN


# Geometry

@dataclass(eq=False)
class Point3d(Entity):
    domain: Domain = Domain.GEOMETRY
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @property
    def coordinates(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(eq=False)
class Line3d(Entity):
    domain: Domain = Domain.GEOMETRY
    start_point: Optional[Point3d] = None
    end_point: Optional[Point3d] = None


@dataclass(eq=False)
class Arc3d(Entity):
    domain: Domain = Domain.GEOMETRY
    start_point: Optional[Point3d] = None
    end_point: Optional[Point3d] = None
    center_point: Optional[Point3d] = None
    radius: float = 0.0


# Structural analytical

@dataclass(eq=False)
class StructuralPointConnection(Entity):
    """Analytical node.

    ``storey`` and ``point`` start unset and may be assigned after
    construction while a graph is built incrementally.
    """

    domain: Domain = Domain.STRUCTURAL_ANALYTICAL
    storey: Optional[Storey] = None
    point: Optional[Point3d] = None


@dataclass(eq=False)
class StructuralCurveMember(Entity):
    domain: Domain = Domain.STRUCTURAL_ANALYTICAL
    curve_member_type: CurveMemberType = CurveMemberType.UNKNOWN
    system_line: SystemLine = SystemLine.UNKNOWN
    length: float = 0.0
    local_axis_x: str = ""
    local_axis_y: str = ""
    local_axis_z: str = ""
    begin_node_x_offset: float = 0.0
    end_node_x_offset: float = 0.0
    begin_node_y_offset: float = 0.0
    end_node_y_offset: float = 0.0
    begin_node_z_offset: float = 0.0
    end_node_z_offset: float = 0.0
    end_fixity_start: str = ""
    end_fixity_end: str = ""


@dataclass(eq=False)
class StructuralSurfaceMember(Entity):
    domain: Domain = Domain.STRUCTURAL_ANALYTICAL
    surface_member_type: SurfaceMemberType = SurfaceMemberType.UNKNOWN
    thickness: float = 0.0
    system_plane: SurfaceMemberSystemPlane = SurfaceMemberSystemPlane.UNKNOWN
    area: float = 0.0
    z_offset: float = 0.0
    local_axis_x: str = ""
    local_axis_y: str = ""
    local_axis_z: str = ""
    height: float = 0.0


# Physical

@dataclass(eq=False)
class Beam(Entity):
    domain: Domain = Domain.PHYSICAL
    system_line: SystemLine = SystemLine.UNKNOWN
    length: float = 0.0
    local_axis_x: str = ""
    local_axis_y: str = ""
    local_axis_z: str = ""
    begin_node_x_offset: float = 0.0
    end_node_x_offset: float = 0.0
    begin_node_y_offset: float = 0.0
    end_node_y_offset: float = 0.0
    begin_node_z_offset: float = 0.0
    end_node_z_offset: float = 0.0


@dataclass(eq=False)
class Column(Entity):
    domain: Domain = Domain.PHYSICAL
    system_line: SystemLine = SystemLine.UNKNOWN
    length: float = 0.0
    local_axis_x: str = ""
    local_axis_y: str = ""
    local_axis_z: str = ""
    begin_node_x_offset: float = 0.0
    end_node_x_offset: float = 0.0
    begin_node_y_offset: float = 0.0
    end_node_y_offset: float = 0.0
    begin_node_z_offset: float = 0.0
    end_node_z_offset: float = 0.0


@dataclass(eq=False)
class Slab(Entity):
    domain: Domain = Domain.PHYSICAL


@dataclass(eq=False)
class Wall(Entity):
    domain: Domain = Domain.PHYSICAL


ENTITY_TYPES: Dict[str, Type[Entity]] = {
    cls.__name__: cls
    for cls in (
        Material,
        CrossSection,
        Storey,
        Segment,
        Unit,
        Point3d,
        Line3d,
        Arc3d,
        StructuralPointConnection,
        StructuralCurveMember,
        StructuralSurfaceMember,
        Beam,
        Column,
        Slab,
        Wall,
    )
}


@lru_cache(maxsize=None)
def _enum_fields(kind: Type[Entity]) -> Dict[str, Type[Enum]]:
    hints = get_type_hints(kind)
    return {
        f.name: hints[f.name]
        for f in fields(kind)
        if isinstance(hints.get(f.name), type) and issubclass(hints[f.name], Enum)
    }


def make_entity(kind: Type[T], id: str, **values: Any) -> T:
    """Build an entity record, accepting enum labels for enum-typed fields.

    Raises:
        InvalidArgumentError: If a field name is unknown or the id is blank
    """
    enum_fields = _enum_fields(kind)
    for name, value in values.items():
        if name in enum_fields and value is not None:
            try:
                values[name] = parse_label(enum_fields[name], value)
            except ValueError as e:
                raise InvalidArgumentError(str(e)) from e

    try:
        return kind(id=id, **values)
    except TypeError as e:
        raise InvalidArgumentError(f"Invalid attributes for {kind.__name__}: {e}") from e


@dataclass(eq=False)
class Relationship:
    """A directed, typed edge between two entities of the same model."""

    source: Entity
    target: Entity
    relation_kind: str = DEFAULT_RELATION_KIND
    id: str = ""
    name: str = ""
    description: str = ""
    properties: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate edge after creation."""
        if self.source is None or self.target is None:
            raise InvalidArgumentError("Relationship source and target cannot be empty")
        if not self.id:
            self.id = str(uuid.uuid4())
        if not self.name or not self.name.strip():
            self.name = DEFAULT_RELATIONSHIP_NAME
        if not self.relation_kind:
            self.relation_kind = DEFAULT_RELATION_KIND
        self.description = self.description or ""
        self.properties = {str(k): str(v) for k, v in (self.properties or {}).items()}


def create_relationship(
    relation_kind: RelationKind,
    source: Optional[Entity],
    target: Optional[Entity],
    **properties: object,
) -> Relationship:
    """Create an edge named after its kind, with string-valued properties."""
    return Relationship(
        source=source,  # type: ignore[arg-type]
        target=target,  # type: ignore[arg-type]
        relation_kind=relation_kind,
        name=relation_kind,
        properties={key: str(value) for key, value in properties.items()},
    )
