"""Ordered entity and relationship containers for a single model."""

from __future__ import annotations

from typing import Iterator, List, Optional, Type, TypeVar

from .identity import find_equivalent
from .schema import Entity, Relationship

T = TypeVar("T", bound=Entity)


class EntityStore:
    """Insertion-ordered collection of graph nodes.

    ``add`` never deduplicates; identity resolution is done by the caller.
    """

    def __init__(self) -> None:
        self._entities: List[Entity] = []

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities)

    def add(self, entity: Entity) -> None:
        self._entities.append(entity)

    def of_kind(self, kind: Type[T]) -> Iterator[T]:
        """Lazily yield stored entities of the given record type."""
        for entity in self._entities:
            if isinstance(entity, kind):
                yield entity

    def find_by_id(self, entity_id: str) -> Optional[Entity]:
        """Retrieve the first entity with the given ID."""
        for entity in self._entities:
            if entity.id == entity_id:
                return entity
        return None

    def find_equivalent(self, entity: T) -> Optional[T]:
        """Retrieve the stored entity identity-equal to ``entity``, if any."""
        return find_equivalent(self.of_kind(type(entity)), entity)

    def contains(self, entity: Entity) -> bool:
        """Check whether this exact entity object is stored."""
        return any(existing is entity for existing in self._entities)


class RelationshipStore:
    """Insertion-ordered collection of graph edges."""

    def __init__(self) -> None:
        self._relationships: List[Relationship] = []

    def __len__(self) -> int:
        return len(self._relationships)

    def __iter__(self) -> Iterator[Relationship]:
        return iter(self._relationships)

    def add(self, relationship: Relationship) -> None:
        self._relationships.append(relationship)

    def of_kind(self, relation_kind: str) -> Iterator[Relationship]:
        for relationship in self._relationships:
            if relationship.relation_kind == relation_kind:
                yield relationship

    def find_by_id(self, relationship_id: str) -> Optional[Relationship]:
        for relationship in self._relationships:
            if relationship.id == relationship_id:
                return relationship
        return None

    def find_by_source(self, relation_kind: str, source: Entity) -> List[Relationship]:
        """Get all edges of a kind originating from a specific entity."""
        return [rel for rel in self.of_kind(relation_kind) if rel.source is source]

    def find_by_target(self, relation_kind: str, target: Entity) -> List[Relationship]:
        """Get all edges of a kind terminating at a specific entity."""
        return [rel for rel in self.of_kind(relation_kind) if rel.target is target]
