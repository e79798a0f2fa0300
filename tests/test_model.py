"""Tests for entity/relationship stores and the model."""

from __future__ import annotations

import pytest

from structgraph_ir.model import Model
from structgraph_ir.schema import (
    InvalidArgumentError,
    Material,
    Point3d,
    Relationship,
    Storey,
    StructuralCurveMember,
    StructuralPointConnection,
    create_relationship,
)
from structgraph_ir.store import EntityStore, RelationshipStore


class TestEntityStore:
    """Test cases for the entity store."""

    def test_add_keeps_order_and_duplicates(self):
        """Test raw adds never deduplicate."""
        store = EntityStore()
        a = Material(id="a", native_id="X")
        b = Material(id="b", native_id="X")
        store.add(a)
        store.add(b)
        store.add(a)

        assert len(store) == 3
        assert list(store) == [a, b, a]

    def test_of_kind(self):
        store = EntityStore()
        material = Material(id="m")
        storey = Storey(id="s")
        store.add(material)
        store.add(storey)

        assert list(store.of_kind(Storey)) == [storey]
        assert list(store.of_kind(Point3d)) == []

    def test_find_by_id_first_wins(self):
        store = EntityStore()
        first = Material(id="dup")
        second = Storey(id="dup")
        store.add(first)
        store.add(second)

        assert store.find_by_id("dup") is first
        assert store.find_by_id("missing") is None

    def test_find_equivalent(self):
        store = EntityStore()
        stored = Material(id="m1", native_id="C30")
        store.add(stored)

        assert store.find_equivalent(Material(id="m2", native_id="c30")) is stored
        assert store.find_equivalent(Storey(id="s", native_id="C30")) is None

    def test_contains_by_reference(self):
        store = EntityStore()
        stored = Material(id="m", native_id="A")
        store.add(stored)

        assert store.contains(stored)
        assert not store.contains(Material(id="m", native_id="A"))


class TestRelationshipStore:
    """Test cases for the relationship store."""

    def test_queries(self):
        store = RelationshipStore()
        member = StructuralCurveMember(id="c")
        material = Material(id="m")
        storey = Storey(id="s")
        has_material = create_relationship("HasMaterial", member, material)
        has_storey = create_relationship("HasStorey", member, storey)
        store.add(has_material)
        store.add(has_storey)

        assert len(store) == 2
        assert list(store.of_kind("HasStorey")) == [has_storey]
        assert store.find_by_id(has_material.id) is has_material
        assert store.find_by_id("missing") is None
        assert store.find_by_source("HasMaterial", member) == [has_material]
        assert store.find_by_target("HasStorey", storey) == [has_storey]
        assert store.find_by_target("HasStorey", material) == []


class TestModel:
    """Test cases for Model."""

    def test_add_entity_none_rejected(self, model: Model):
        with pytest.raises(InvalidArgumentError):
            model.add_entity(None)  # type: ignore[arg-type]
        assert len(model.entities) == 0

    def test_add_relationship_requires_endpoints(self, model: Model):
        """Test edges can only join entities held by the model."""
        inside = Material(id="in")
        outside = Material(id="out")
        model.add_entity(inside)

        with pytest.raises(InvalidArgumentError, match="Target entity out"):
            model.add_relationship(Relationship(source=inside, target=outside))
        with pytest.raises(InvalidArgumentError, match="Source entity out"):
            model.add_relationship(Relationship(source=outside, target=inside))
        assert len(model.relationships) == 0

    def test_add_relationship_none_rejected(self, model: Model):
        with pytest.raises(InvalidArgumentError):
            model.add_relationship(None)  # type: ignore[arg-type]

    def test_get_entity_by_id_with_kind(self, model: Model):
        material = Material(id="x")
        model.add_entity(material)

        assert model.get_entity_by_id("x") is material
        assert model.get_entity_by_id("x", Material) is material
        assert model.get_entity_by_id("x", Storey) is None
        assert model.get_entity_by_id("nope") is None

    def test_entities_of_type(self, model: Model):
        model.add_entity(Material(id="a"))
        model.add_entity(Storey(id="b"))
        model.add_entity(Material(id="c"))

        assert [m.id for m in model.entities_of_type(Material)] == ["a", "c"]

    def test_validate_reports_duplicate_ids(self, model: Model):
        model.add_entity(Material(id="same"))
        model.add_entity(Storey(id="same"))

        errors = model.validate()
        assert errors == ["Duplicate entity ID: same"]

    def test_validate_clean(self, model: Model):
        model.add_entity(Material(id="m"))
        assert model.validate() == []

    def test_repr(self, model: Model):
        model.add_entity(Material(id="m"))
        assert repr(model) == "Model(entities=1, relationships=0)"


class TestMatchingPointConnection:
    """Test coordinate matching between point connections."""

    def _attach(self, model: Model, connection_id: str, point: Point3d) -> StructuralPointConnection:
        connection = StructuralPointConnection(id=connection_id, point=point)
        model.add_entity(point)
        model.add_entity(connection)
        model.add_relationship(create_relationship("HasPoint3d", connection, point))
        return connection

    def test_finds_other_connection(self, model: Model):
        first = self._attach(model, "pc-1", Point3d(id="p1", x=1.0, y=1.0, z=0.0))
        second = self._attach(model, "pc-2", Point3d(id="p2", x=1.0, y=1.0, z=0.0))

        assert model.find_matching_point_connection_by_coordinate(first) == "pc-2"
        assert model.find_matching_point_connection_by_coordinate(second) == "pc-1"

    def test_excludes_itself(self, model: Model):
        lone = self._attach(model, "pc-1", Point3d(id="p1", x=1.0))
        assert model.find_matching_point_connection_by_coordinate(lone) is None

    def test_different_coordinates(self, model: Model):
        first = self._attach(model, "pc-1", Point3d(id="p1", x=1.0))
        self._attach(model, "pc-2", Point3d(id="p2", x=2.0))
        assert model.find_matching_point_connection_by_coordinate(first) is None

    def test_connection_without_point_edge(self, model: Model):
        self._attach(model, "pc-1", Point3d(id="p1"))
        orphan = StructuralPointConnection(id="pc-2", point=Point3d(id="p2"))
        model.add_entity(orphan)
        assert model.find_matching_point_connection_by_coordinate(orphan) is None

    def test_point_of(self, model: Model):
        point = Point3d(id="p1", z=4.0)
        connection = self._attach(model, "pc-1", point)
        assert model.point_of(connection) is point
