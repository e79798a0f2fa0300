"""Tests for graph document serialization."""

from __future__ import annotations

import json
import math
from pathlib import Path

import orjson
import pytest

from structgraph_ir.builder import GraphBuilder
from structgraph_ir.manager import Manager
from structgraph_ir.model import Model
from structgraph_ir.schema import Beam, Line3d, Material, Point3d, StructuralPointConnection
from structgraph_ir.serialize import (
    SerializationError,
    dump_json,
    entity_to_node,
    from_json_dict,
    load_json,
    to_json_dict,
    to_json_string,
)


def _node(document, node_id):
    return next(node for node in document["nodes"] if node["id"] == node_id)


class TestDocumentShape:
    """Test the node/edge document layout."""

    def test_top_level_keys(self, sample_manager: Manager):
        document = to_json_dict(sample_manager.get_model(0))
        assert set(document) == {"nodes", "edges"}
        assert len(document["nodes"]) == 10
        assert len(document["edges"]) == 14

    def test_node_order_matches_insertion(self, sample_manager: Manager):
        document = to_json_dict(sample_manager.get_model(0))
        assert [node["id"] for node in document["nodes"]] == [
            "storey-1", "pt-start", "pt-end", "pc-start", "pc-end",
            "mat-1", "sec-rect", "line-1", "seg-1", "col-1",
        ]

    def test_base_keys_lead(self, sample_manager: Manager):
        document = to_json_dict(sample_manager.get_model(0))
        for node in document["nodes"]:
            assert list(node)[:7] == [
                "id", "entityKind", "domain", "name", "nativeId", "externalGuid", "description",
            ]

    def test_enum_labels(self, sample_manager: Manager):
        document = to_json_dict(sample_manager.get_model(0))
        assert _node(document, "seg-1")["segmentType"] == "Line"
        assert _node(document, "sec-rect")["shape"] == "Rectangular"
        assert _node(document, "col-1")["curveMemberType"] == "Column"
        assert _node(document, "col-1")["systemLine"] == "MiddleMiddle"
        assert _node(document, "col-1")["domain"] == "StructuralAnalytical"
        assert _node(document, "mat-1")["materialType"] == "Concrete"

    def test_references_as_ids(self, sample_manager: Manager):
        document = to_json_dict(sample_manager.get_model(0))
        connection = _node(document, "pc-start")
        assert connection["storey"] == "storey-1"
        assert connection["point"] == "pt-start"

        line = _node(document, "line-1")
        assert line["startPoint"] == "pt-start"
        assert line["endPoint"] == "pt-end"

    def test_flattened_attributes(self, sample_manager: Manager):
        document = to_json_dict(sample_manager.get_model(0))
        section = _node(document, "sec-rect")
        assert section["parameters"] == {"H": 0.4, "B": 0.4}
        assert section["secondMomentOfAreaXAxis"] == 0.0021

        point = _node(document, "pt-end")
        assert (point["x"], point["y"], point["z"]) == (0.0, 0.0, 3.0)
        assert _node(document, "seg-1")["position"] == 0

    def test_unset_references_omitted(self):
        node = entity_to_node(StructuralPointConnection(id="pc"))
        assert "point" not in node
        assert "storey" not in node

    def test_edges(self, sample_manager: Manager):
        document = to_json_dict(sample_manager.get_model(0))
        edge = document["edges"][0]
        assert set(edge) == {"id", "relationKind", "name", "description", "sourceId", "targetId", "properties"}

        node_edges = [
            e for e in document["edges"]
            if e["relationKind"] == "HasStructuralPointConnection"
        ]
        assert [(e["sourceId"], e["targetId"], e["properties"]) for e in node_edges] == [
            ("col-1", "pc-start", {"nodeType": "Begin"}),
            ("col-1", "pc-end", {"nodeType": "End"}),
        ]

    def test_unit_node(self, builder: GraphBuilder, model: Model):
        builder.create_unit("u1", "CrossSection", "Area", "square millimetre")
        node = to_json_dict(model)["nodes"][0]
        assert node["unit"] == "mm^2"
        assert node["entity"] == "CrossSection"
        assert node["attribute"] == "Area"

    def test_empty_model(self, model: Model):
        assert to_json_dict(model) == {"nodes": [], "edges": []}


class TestJsonString:
    """Test string output."""

    def test_pretty_and_compact_agree(self, sample_manager: Manager):
        model = sample_manager.get_model(0)
        pretty = to_json_string(model, pretty=True)
        compact = to_json_string(model)

        assert "\n" in pretty
        assert "\n" not in compact
        assert json.loads(pretty) == json.loads(compact) == to_json_dict(model)


class TestNonFinite:
    """Test rejection of values JSON cannot carry."""

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_coordinate(self, builder: GraphBuilder, model: Model, value: float):
        builder.create_point3d("p", value, 0.0, 0.0)
        with pytest.raises(SerializationError, match="Entity p field 'x'"):
            to_json_dict(model)

    def test_non_finite_leaves_existing_file(self, builder: GraphBuilder, model: Model, temp_dir: Path):
        target = temp_dir / "model.json"
        target.write_text("previous", encoding="utf-8")
        builder.create_storey("s", native_id="L1", storey_elevation=math.inf)

        with pytest.raises(SerializationError):
            dump_json(model, target)
        assert target.read_text(encoding="utf-8") == "previous"


class TestFiles:
    """Test writing and reading documents."""

    def test_dump_creates_parents_and_overwrites(self, sample_manager: Manager, temp_dir: Path):
        target = temp_dir / "nested" / "deeper" / "model.json"
        model = sample_manager.get_model(0)

        dump_json(model, target)
        dump_json(model, target)

        with open(target, "rb") as f:
            data = orjson.loads(f.read())
        assert data == to_json_dict(model)

    def test_round_trip(self, sample_manager: Manager, temp_dir: Path):
        """Test a loaded model writes the same document."""
        model = sample_manager.get_model(0)
        target = temp_dir / "model.json"
        dump_json(model, target)

        loaded = load_json(target)
        assert to_json_dict(loaded) == to_json_dict(model)

        connection = loaded.get_entity_by_id("pc-start", StructuralPointConnection)
        assert connection.point is loaded.get_entity_by_id("pt-start")
        assert loaded.validate() == []

    def test_load_missing_file(self, temp_dir: Path):
        with pytest.raises(FileNotFoundError):
            load_json(temp_dir / "absent.json")

    def test_load_malformed_json(self, temp_dir: Path):
        target = temp_dir / "broken.json"
        target.write_text("{not json", encoding="utf-8")
        with pytest.raises(SerializationError, match="Failed to parse"):
            load_json(target)


class TestFromJsonDict:
    """Test rebuilding models from documents."""

    def test_missing_arrays(self):
        with pytest.raises(SerializationError, match="'nodes' and 'edges'"):
            from_json_dict({"nodes": []})

    def test_unknown_entity_kind(self):
        with pytest.raises(SerializationError, match="Unknown entity kind: Bridge"):
            from_json_dict({"nodes": [{"id": "x", "entityKind": "Bridge"}], "edges": []})

    def test_dangling_edge(self):
        document = {
            "nodes": [{"id": "m", "entityKind": "Material"}],
            "edges": [{"id": "e", "relationKind": "HasMaterial", "sourceId": "ghost", "targetId": "m"}],
        }
        with pytest.raises(SerializationError, match="references unknown entity ghost"):
            from_json_dict(document)

    def test_dangling_reference(self):
        document = {
            "nodes": [{"id": "pc", "entityKind": "StructuralPointConnection", "point": "ghost"}],
            "edges": [],
        }
        with pytest.raises(SerializationError, match="field 'point' references unknown entity ghost"):
            from_json_dict(document)

    def test_invalid_node(self):
        document = {"nodes": [{"id": "", "entityKind": "Material"}], "edges": []}
        with pytest.raises(SerializationError, match="Invalid node"):
            from_json_dict(document)

    def test_minimal_nodes_get_defaults(self):
        document = {
            "nodes": [
                {"id": "a", "entityKind": "Material", "materialType": "steel"},
                {"id": "b", "entityKind": "Storey"},
            ],
            "edges": [{"sourceId": "a", "targetId": "b"}],
        }
        model = from_json_dict(document)

        material = model.get_entity_by_id("a")
        assert material.name == "a"
        assert material.material_type.value == "Steel"
        edge = next(iter(model.relationships))
        assert edge.name == "Unnamed"
        assert edge.relation_kind == "Relationship"

    @pytest.mark.parametrize("document,message", [
        ({"nodes": ["oops"], "edges": []}, "Node must be an object"),
        ({"nodes": [{"id": "m", "entityKind": "Material"}], "edges": [42]}, "Edge must be an object"),
        (
            {
                "nodes": [{"id": "m", "entityKind": "Material"}],
                "edges": [{"id": "e", "sourceId": "m", "targetId": "m", "properties": ["a"]}],
            },
            "Edge 'e' properties must be an object",
        ),
        (
            {
                "nodes": [{"id": "m", "entityKind": "Material"}],
                "edges": [{"id": "e", "sourceId": ["m"], "targetId": "m"}],
            },
            "references unknown entity",
        ),
        (
            {"nodes": [{"id": "pc", "entityKind": "StructuralPointConnection", "point": 7}], "edges": []},
            "field 'point' must be an entity id",
        ),
    ])
    def test_malformed_entries(self, document, message):
        with pytest.raises(SerializationError, match=message):
            from_json_dict(document)

    def test_malformed_entry_in_file(self, temp_dir: Path):
        target = temp_dir / "model.json"
        target.write_text(json.dumps({"nodes": ["oops"], "edges": []}), encoding="utf-8")
        with pytest.raises(SerializationError):
            load_json(target)


class TestCustomEntityKind:
    """Test documents whose nodes carry caller-chosen entity kinds."""

    def test_round_trip(self, builder: GraphBuilder, model: Model, temp_dir: Path):
        material = builder.create_material("m1", native_id="M", entity_kind="StructuralMaterial", grade=25.0)
        beam = builder.create_beam("b1", material=material, native_id="B", entity_kind="Girder", length=4.5)
        point = builder.create_point3d("p1", 1.0, 2.0, 3.0)
        builder.create_point_connection("pc1", point)
        target = temp_dir / "custom.json"
        dump_json(model, target)

        loaded = load_json(target)

        assert to_json_dict(loaded) == to_json_dict(model)
        loaded_material = loaded.get_entity_by_id("m1", Material)
        assert loaded_material.entity_kind == "StructuralMaterial"
        assert loaded_material.grade == 25.0
        loaded_beam = loaded.get_entity_by_id("b1")
        assert isinstance(loaded_beam, Beam)
        assert loaded_beam.entity_kind == beam.entity_kind == "Girder"

    def test_record_type_follows_attributes(self):
        document = {
            "nodes": [
                {"id": "a", "entityKind": "Node", "domain": "StructuralAnalytical"},
                {"id": "l", "entityKind": "Edge", "domain": "Geometry", "startPoint": "p", "endPoint": "p"},
                {"id": "p", "entityKind": "Vertex", "x": 1.0, "y": 0.0, "z": 0.0},
            ],
            "edges": [],
        }
        model = from_json_dict(document)

        assert isinstance(model.get_entity_by_id("a"), StructuralPointConnection)
        assert isinstance(model.get_entity_by_id("l"), Line3d)
        assert isinstance(model.get_entity_by_id("p"), Point3d)
        assert model.get_entity_by_id("p").entity_kind == "Vertex"

    def test_unrecognised_attributes(self):
        document = {
            "nodes": [{"id": "x", "entityKind": "Bridge", "domain": "Physical", "spanCount": 3}],
            "edges": [],
        }
        with pytest.raises(SerializationError, match="Unknown entity kind: Bridge"):
            from_json_dict(document)
