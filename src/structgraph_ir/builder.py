"""Graph construction facade.

Every ``create_*`` operation builds a candidate entity, resolves it against
the model (reusing an identity-equal entity when one is stored, inserting the
candidate otherwise) and then appends the edges linking the resolved entity
to the collaborators passed in.

Entities are deduplicated, edges are not: calling the same operation twice
with the same collaborators appends a second edge set.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

import structlog

from .enums import PointType, SegmentType, UnitSymbol
from .model import Model
from .schema import (
    Arc3d,
    Beam,
    Column,
    CrossSection,
    Entity,
    InvalidArgumentError,
    Line3d,
    Material,
    Point3d,
    RelationKind,
    Relationship,
    Segment,
    Slab,
    Storey,
    StructuralCurveMember,
    StructuralPointConnection,
    StructuralSurfaceMember,
    Unit,
    Wall,
    create_relationship,
    make_entity,
)
from .units import parse_unit

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=Entity)

# Attributes compared when logging a discarded duplicate
_IDENTITY_FIELDS = frozenset(
    {"id", "name", "external_guid", "native_id", "description", "entity_kind", "domain"}
)


def coerce_position(position: Any) -> int:
    """Return ``position`` as a non-negative index, or 0 if it is not one.

    Negative numbers, non-integral values, NaN, booleans and non-numeric
    input all map to 0.
    """
    if isinstance(position, bool) or not isinstance(position, Real):
        return 0
    if isinstance(position, float) and (math.isnan(position) or not position.is_integer()):
        return 0
    index = int(position)
    return index if index >= 0 else 0


def _require(value: Any, argument: str, operation: str) -> None:
    if value is None:
        raise InvalidArgumentError(f"{operation}: {argument} cannot be empty")


def _require_items(items: Optional[Iterable[Any]], argument: str, operation: str) -> List[Any]:
    collected = list(items or ())
    if any(item is None for item in collected):
        raise InvalidArgumentError(f"{operation}: {argument} cannot contain empty entries")
    return collected


class GraphBuilder:
    """Construction facade operating on one :class:`Model`."""

    def __init__(self, model: Model) -> None:
        self.model = model

    # Resolution helpers

    def _resolve(self, candidate: T) -> T:
        existing = self.model.entities.find_equivalent(candidate)
        if existing is not None:
            if existing is not candidate:
                logger.debug(
                    "Reused existing entity",
                    entity_kind=candidate.entity_kind,
                    candidate_id=candidate.id,
                    existing_id=existing.id,
                )
                self._log_conflicts(existing, candidate)
            return existing

        self.model.add_entity(candidate)
        logger.debug("Inserted entity", entity_kind=candidate.entity_kind, entity_id=candidate.id)
        return candidate

    def _log_conflicts(self, existing: Entity, candidate: Entity) -> None:
        differing = [
            name
            for name, value in vars(candidate).items()
            if name not in _IDENTITY_FIELDS
            and not isinstance(value, Entity)
            and value != getattr(existing, name, None)
        ]
        if differing:
            logger.debug(
                "Discarded candidate attributes differ from stored entity",
                existing_id=existing.id,
                fields=differing,
            )

    def _adopt(self, entity: Optional[T]) -> Optional[T]:
        """Make a caller-supplied collaborator part of the model."""
        if entity is None:
            return None
        if self.model.entities.contains(entity):
            return entity
        if isinstance(entity, StructuralPointConnection):
            return self._adopt_point_connection(entity)  # type: ignore[return-value]
        if isinstance(entity, (Line3d, Arc3d)):
            return self._adopt_geometry(entity)  # type: ignore[return-value]
        return self._resolve(entity)

    def _adopt_point_connection(self, connection: StructuralPointConnection) -> StructuralPointConnection:
        point = self._adopt(connection.point)
        storey = self._adopt(connection.storey)
        connection.point = point
        connection.storey = storey

        resolved = self._resolve(connection)
        if resolved is connection:
            if storey is not None:
                self._link("HasStorey", connection, storey)
            if point is not None:
                self._link("HasPoint3d", connection, point)
        return resolved

    def _adopt_geometry(self, geometry: Union[Line3d, Arc3d]) -> Union[Line3d, Arc3d]:
        # Lines and arcs have no value identity; match on id or native id
        for existing in self.model.entities.of_kind(type(geometry)):
            if existing.id == geometry.id or (
                geometry.native_id and existing.native_id.lower() == geometry.native_id.lower()
            ):
                return existing
        return self._insert_geometry(geometry)

    def _insert_geometry(self, geometry: Union[Line3d, Arc3d]) -> Union[Line3d, Arc3d]:
        roles: List[Tuple[str, PointType]] = [
            ("start_point", PointType.START),
            ("end_point", PointType.END),
        ]
        if isinstance(geometry, Arc3d):
            roles.append(("center_point", PointType.CENTER))

        resolved_points = [(attr, role, self._adopt(getattr(geometry, attr))) for attr, role in roles]
        for attr, _, point in resolved_points:
            setattr(geometry, attr, point)

        self.model.add_entity(geometry)
        for _, role, point in resolved_points:
            if point is not None:
                self._link("HasPoint3d", geometry, point, pointType=role.value)
        logger.debug("Inserted entity", entity_kind=geometry.entity_kind, entity_id=geometry.id)
        return geometry

    def _link(self, relation_kind: RelationKind, source: Entity, target: Entity, **properties: Any) -> Relationship:
        relationship = create_relationship(relation_kind, source, target, **properties)
        self.model.add_relationship(relationship)
        return relationship

    def _link_segments(self, owner: Entity, segments: List[Segment]) -> None:
        for segment in segments:
            resolved = self._adopt(segment)
            self._link("HasSegment", owner, resolved, position=coerce_position(segment.position))

    def _link_material(self, owner: Entity, material: Optional[Material]) -> None:
        resolved = self._adopt(material)
        if resolved is not None:
            self._link("HasMaterial", owner, resolved)

    def _link_storey(self, owner: Entity, storey: Optional[Storey]) -> None:
        resolved = self._adopt(storey)
        if resolved is not None:
            self._link("HasStorey", owner, resolved)

    # Generic edges

    def connect(
        self,
        relation_kind: RelationKind,
        source: Optional[Entity],
        target: Optional[Entity],
        **properties: Any,
    ) -> Relationship:
        """Add an edge between two entities, adopting either into the model."""
        _require(source, "source", "connect")
        _require(target, "target", "connect")
        relationship = create_relationship(relation_kind, source, target, **properties)
        relationship.source = self._adopt(source)
        relationship.target = self._adopt(target)
        self.model.add_relationship(relationship)
        return relationship

    # Geometry

    def create_point3d(
        self,
        id: str,
        x: float,
        y: float,
        z: float,
        *,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
    ) -> Point3d:
        """Create a point, reusing a stored point with the same coordinates."""
        candidate = make_entity(
            Point3d, id, name=name, external_guid=external_guid,
            native_id=native_id, description=description, x=x, y=y, z=z,
        )
        return self._resolve(candidate)

    def create_line3d(
        self,
        id: str,
        start_point: Optional[Point3d],
        end_point: Optional[Point3d],
        *,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
    ) -> Line3d:
        """Create a line between two points.

        The end points are resolved by coordinate and linked with
        ``HasPoint3d`` edges tagged ``pointType`` Start/End.
        """
        _require(start_point, "start_point", "create_line3d")
        _require(end_point, "end_point", "create_line3d")
        line = make_entity(
            Line3d, id, name=name, external_guid=external_guid, native_id=native_id,
            description=description, start_point=start_point, end_point=end_point,
        )
        return self._insert_geometry(line)  # type: ignore[return-value]

    def create_arc3d(
        self,
        id: str,
        start_point: Optional[Point3d],
        end_point: Optional[Point3d],
        center_point: Optional[Point3d],
        radius: float,
        *,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
    ) -> Arc3d:
        _require(start_point, "start_point", "create_arc3d")
        _require(end_point, "end_point", "create_arc3d")
        _require(center_point, "center_point", "create_arc3d")
        arc = make_entity(
            Arc3d, id, name=name, external_guid=external_guid, native_id=native_id,
            description=description, start_point=start_point, end_point=end_point,
            center_point=center_point, radius=radius,
        )
        return self._insert_geometry(arc)  # type: ignore[return-value]

    # Shared definitions

    def create_material(
        self,
        id: str,
        *,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
        **attributes: Any,
    ) -> Material:
        """Create a material, reusing one with the same native id.

        ``attributes`` are :class:`Material` fields; enum fields accept labels.
        """
        candidate = make_entity(
            Material, id, name=name, external_guid=external_guid,
            native_id=native_id, description=description, **attributes,
        )
        return self._resolve(candidate)

    def create_cross_section(
        self,
        id: str,
        *,
        material: Optional[Material] = None,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
        **attributes: Any,
    ) -> CrossSection:
        """Create a cross-section and link it to its material."""
        candidate = make_entity(
            CrossSection, id, name=name, external_guid=external_guid,
            native_id=native_id, description=description, **attributes,
        )
        section = self._resolve(candidate)
        self._link_material(section, material)
        return section

    def create_storey(
        self,
        id: str,
        *,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
        storey_elevation: float = 0.0,
        storey_mass: float = 0.0,
    ) -> Storey:
        candidate = make_entity(
            Storey, id, name=name, external_guid=external_guid, native_id=native_id,
            description=description, storey_elevation=storey_elevation, storey_mass=storey_mass,
        )
        return self._resolve(candidate)

    def create_unit(
        self,
        id: str,
        entity: str,
        attribute: str,
        unit: Union[str, UnitSymbol],
        *,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
    ) -> Unit:
        """Record the unit of ``entity.attribute``; ``unit`` may be free text."""
        candidate = make_entity(
            Unit, id, name=name, external_guid=external_guid, native_id=native_id,
            description=description, entity=entity, attribute=attribute, unit=parse_unit(unit),
        )
        return self._resolve(candidate)

    # Segments

    def create_line_segment(
        self,
        id: str,
        line: Optional[Line3d],
        position: Any = 0,
        *,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
    ) -> Segment:
        """Create a line segment and link it to its line geometry."""
        _require(line, "line", "create_line_segment")
        return self._create_segment(
            id, line, SegmentType.LINE, position,
            name=name, external_guid=external_guid, native_id=native_id, description=description,
        )

    def create_arc_segment(
        self,
        id: str,
        arc: Optional[Arc3d],
        position: Any = 0,
        *,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
    ) -> Segment:
        """Create a circular arc segment and link it to its arc geometry."""
        _require(arc, "arc", "create_arc_segment")
        return self._create_segment(
            id, arc, SegmentType.CIRCULAR_ARC, position,
            name=name, external_guid=external_guid, native_id=native_id, description=description,
        )

    def _create_segment(
        self,
        id: str,
        geometry: Union[Line3d, Arc3d],
        segment_type: SegmentType,
        position: Any,
        **meta: str,
    ) -> Segment:
        index = coerce_position(position)
        if index != position:
            logger.warning("Coerced invalid segment position", segment_id=id, position=repr(position))

        candidate = make_entity(Segment, id, segment_type=segment_type, position=index, **meta)
        resolved_geometry = self._adopt(geometry)
        segment = self._resolve(candidate)
        self._link("HasGeometry", segment, resolved_geometry)
        return segment

    # Structural analytical

    def create_point_connection(
        self,
        id: str,
        point: Optional[Point3d],
        *,
        storey: Optional[Storey] = None,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
    ) -> StructuralPointConnection:
        """Create an analytical node at a point.

        A connection whose point has the same coordinates as an already
        stored connection's point resolves to that connection. Storey and
        point edges are appended on every call.
        """
        _require(point, "point", "create_point_connection")
        candidate = make_entity(
            StructuralPointConnection, id, name=name, external_guid=external_guid,
            native_id=native_id, description=description,
        )

        resolved_point = self._adopt(point)
        resolved_storey = self._adopt(storey)
        candidate.point = resolved_point
        candidate.storey = resolved_storey

        connection = self._resolve(candidate)
        if connection.point is None:
            connection.point = resolved_point
        if connection.storey is None and resolved_storey is not None:
            connection.storey = resolved_storey

        if resolved_storey is not None:
            self._link("HasStorey", connection, resolved_storey)
        self._link("HasPoint3d", connection, resolved_point)
        return connection

    def create_curve_member(
        self,
        id: str,
        begin_node: Optional[StructuralPointConnection],
        end_node: Optional[StructuralPointConnection],
        *,
        material: Optional[Material] = None,
        cross_section: Optional[CrossSection] = None,
        storey: Optional[Storey] = None,
        nodes: Optional[Iterable[StructuralPointConnection]] = None,
        segments: Optional[Sequence[Segment]] = None,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
        **attributes: Any,
    ) -> StructuralCurveMember:
        """Create an analytical curve member between two nodes.

        Links: material, cross-section, storey, begin/end nodes (``nodeType``
        Begin/End), any further ``nodes`` and each segment (``position``).
        """
        _require(begin_node, "begin_node", "create_curve_member")
        _require(end_node, "end_node", "create_curve_member")
        extra_nodes = _require_items(nodes, "nodes", "create_curve_member")
        member_segments = _require_items(segments, "segments", "create_curve_member")
        candidate = make_entity(
            StructuralCurveMember, id, name=name, external_guid=external_guid,
            native_id=native_id, description=description, **attributes,
        )

        member = self._resolve(candidate)
        self._link_material(member, material)
        if cross_section is not None:
            self._link("HasCrossSection", member, self._adopt(cross_section))
        self._link_storey(member, storey)

        begin = self._adopt(begin_node)
        end = self._adopt(end_node)
        self._link("HasStructuralPointConnection", member, begin, nodeType="Begin")
        self._link("HasStructuralPointConnection", member, end, nodeType="End")
        for node in extra_nodes:
            resolved = self._adopt(node)
            if resolved is begin or resolved is end:
                continue
            self._link("HasStructuralPointConnection", member, resolved)

        self._link_segments(member, member_segments)
        return member

    def create_surface_member(
        self,
        id: str,
        *,
        material: Optional[Material] = None,
        storey: Optional[Storey] = None,
        nodes: Optional[Iterable[StructuralPointConnection]] = None,
        segments: Optional[Sequence[Segment]] = None,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
        **attributes: Any,
    ) -> StructuralSurfaceMember:
        """Create an analytical surface member linked to storey, material,
        boundary nodes and segments."""
        boundary = _require_items(nodes, "nodes", "create_surface_member")
        member_segments = _require_items(segments, "segments", "create_surface_member")
        candidate = make_entity(
            StructuralSurfaceMember, id, name=name, external_guid=external_guid,
            native_id=native_id, description=description, **attributes,
        )

        member = self._resolve(candidate)
        self._link_material(member, material)
        self._link_storey(member, storey)
        for node in boundary:
            self._link("HasStructuralPointConnection", member, self._adopt(node))
        self._link_segments(member, member_segments)
        return member

    # Physical

    def create_beam(
        self,
        id: str,
        *,
        material: Optional[Material] = None,
        segments: Optional[Sequence[Segment]] = None,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
        **attributes: Any,
    ) -> Beam:
        beam_segments = _require_items(segments, "segments", "create_beam")
        candidate = make_entity(
            Beam, id, name=name, external_guid=external_guid,
            native_id=native_id, description=description, **attributes,
        )
        beam = self._resolve(candidate)
        self._link_material(beam, material)
        self._link_segments(beam, beam_segments)
        return beam

    def create_column(
        self,
        id: str,
        *,
        material: Optional[Material] = None,
        segments: Optional[Sequence[Segment]] = None,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
        **attributes: Any,
    ) -> Column:
        column_segments = _require_items(segments, "segments", "create_column")
        candidate = make_entity(
            Column, id, name=name, external_guid=external_guid,
            native_id=native_id, description=description, **attributes,
        )
        column = self._resolve(candidate)
        self._link_material(column, material)
        self._link_segments(column, column_segments)
        return column

    def create_slab(
        self,
        id: str,
        *,
        material: Optional[Material] = None,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
    ) -> Slab:
        candidate = make_entity(
            Slab, id, name=name, external_guid=external_guid,
            native_id=native_id, description=description,
        )
        slab = self._resolve(candidate)
        self._link_material(slab, material)
        return slab

    def create_wall(
        self,
        id: str,
        *,
        material: Optional[Material] = None,
        name: str = "",
        external_guid: str = "",
        native_id: str = "",
        description: str = "",
    ) -> Wall:
        candidate = make_entity(
            Wall, id, name=name, external_guid=external_guid,
            native_id=native_id, description=description,
        )
        wall = self._resolve(candidate)
        self._link_material(wall, material)
        return wall
