"""A single structural graph: entity and relationship stores plus lookups."""

from __future__ import annotations

from typing import List, Optional, Type, TypeVar, overload

import structlog

from .identity import identity_equal
from .schema import (
    Entity,
    InvalidArgumentError,
    Point3d,
    Relationship,
    StructuralPointConnection,
)
from .store import EntityStore, RelationshipStore

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=Entity)


class Model:
    """One independent entity/relationship graph.

    A model has no identity of its own; the :class:`~structgraph_ir.manager.Manager`
    addresses it by position.
    """

    def __init__(self) -> None:
        self.entities = EntityStore()
        self.relationships = RelationshipStore()

    def __repr__(self) -> str:
        return f"Model(entities={len(self.entities)}, relationships={len(self.relationships)})"

    def add_entity(self, entity: Entity) -> None:
        """Append an entity without identity resolution."""
        if entity is None:
            raise InvalidArgumentError("Entity cannot be empty")
        self.entities.add(entity)

    def add_relationship(self, relationship: Relationship) -> None:
        """Append an edge whose endpoints are already held by this model."""
        if relationship is None:
            raise InvalidArgumentError("Relationship cannot be empty")
        if not self.entities.contains(relationship.source):
            raise InvalidArgumentError(
                f"Source entity {relationship.source.id} is not part of this model"
            )
        if not self.entities.contains(relationship.target):
            raise InvalidArgumentError(
                f"Target entity {relationship.target.id} is not part of this model"
            )
        self.relationships.add(relationship)

    def entities_of_type(self, kind: Type[T]) -> List[T]:
        return list(self.entities.of_kind(kind))

    @overload
    def get_entity_by_id(self, entity_id: str) -> Optional[Entity]: ...

    @overload
    def get_entity_by_id(self, entity_id: str, kind: Type[T]) -> Optional[T]: ...

    def get_entity_by_id(self, entity_id, kind=None):
        """Find an entity by ID, optionally requiring a record type."""
        entity = self.entities.find_by_id(entity_id)
        if entity is None:
            return None
        if kind is not None and not isinstance(entity, kind):
            return None
        return entity

    def point_of(self, connection: StructuralPointConnection) -> Optional[Point3d]:
        """Return the point linked to a connection through a HasPoint3d edge."""
        for relationship in self.relationships.of_kind("HasPoint3d"):
            if relationship.source.id == connection.id and isinstance(relationship.target, Point3d):
                return relationship.target
        return None

    def find_matching_point_connection_by_coordinate(
        self, connection: StructuralPointConnection
    ) -> Optional[str]:
        """Find another point connection located at the same coordinates.

        The connection's point is looked up through its HasPoint3d edge, then
        every other connection's HasPoint3d edge is checked for a point with
        equal coordinates.

        Returns:
            ID of the first matching connection, or None
        """
        point = self.point_of(connection)
        if point is None:
            return None

        for relationship in self.relationships.of_kind("HasPoint3d"):
            source = relationship.source
            if not isinstance(source, StructuralPointConnection):
                continue
            if source is connection or source.id == connection.id:
                continue
            if identity_equal(relationship.target, point):
                return source.id
        return None

    def validate(self) -> List[str]:
        """Check referential integrity, returning a list of problems."""
        errors: List[str] = []
        seen_ids = set()

        for entity in self.entities:
            if entity.id in seen_ids:
                errors.append(f"Duplicate entity ID: {entity.id}")
            seen_ids.add(entity.id)

        for relationship in self.relationships:
            if not self.entities.contains(relationship.source):
                errors.append(
                    f"Relationship {relationship.id} references unknown source entity: "
                    f"{relationship.source.id}"
                )
            if not self.entities.contains(relationship.target):
                errors.append(
                    f"Relationship {relationship.id} references unknown target entity: "
                    f"{relationship.target.id}"
                )

        if errors:
            logger.debug("Model validation found problems", count=len(errors))
        return errors
