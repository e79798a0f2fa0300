"""JSON node/edge serialization for structural graph models.

A model is written as ``{"nodes": [...], "edges": [...]}``. Nodes and edges
appear in store insertion order; every entity attribute is flattened into
its node object under a camelCase key.
"""

from __future__ import annotations

import json
import math
from dataclasses import fields
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type, Union, get_args, get_type_hints

import orjson
import structlog

from .enums import label_of
from .model import Model
from .schema import (
    ENTITY_TYPES,
    Entity,
    InvalidArgumentError,
    Relationship,
    make_entity,
)

logger = structlog.get_logger(__name__)

# Leading node keys, in output order
_BASE_FIELDS = (
    ("id", "id"),
    ("entity_kind", "entityKind"),
    ("domain", "domain"),
    ("name", "name"),
    ("native_id", "nativeId"),
    ("external_guid", "externalGuid"),
    ("description", "description"),
)


class SerializationError(ValueError):
    """Raised when a model cannot be represented as, or rebuilt from, JSON."""
    pass


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


@lru_cache(maxsize=None)
def _attribute_fields(kind: Type[Entity]) -> Tuple[Tuple[str, str], ...]:
    """Kind-specific (field name, node key) pairs in declaration order."""
    base = {name for name, _ in _BASE_FIELDS}
    return tuple((f.name, _camel_case(f.name)) for f in fields(kind) if f.name not in base)


@lru_cache(maxsize=None)
def _reference_fields(kind: Type[Entity]) -> frozenset:
    """Names of fields holding entity references."""
    hints = get_type_hints(kind)
    references = set()
    for f in fields(kind):
        hint = hints[f.name]
        candidates = get_args(hint) or (hint,)
        if any(isinstance(c, type) and issubclass(c, Entity) for c in candidates):
            references.add(f.name)
    return frozenset(references)


def _check_number(value: float, owner: str, field_name: str) -> float:
    if not math.isfinite(value):
        raise SerializationError(f"{owner} field '{field_name}' has non-finite value {value!r}")
    return value


def _to_json_value(value: Any, owner: str, field_name: str) -> Any:
    if isinstance(value, Entity):
        return value.id
    if isinstance(value, Enum):
        return label_of(value)
    if isinstance(value, bool) or isinstance(value, (str, int)):
        return value
    if isinstance(value, float):
        return _check_number(value, owner, field_name)
    if isinstance(value, dict):
        return {str(k): _to_json_value(v, owner, f"{field_name}.{k}") for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json_value(v, owner, field_name) for v in value]
    raise SerializationError(
        f"{owner} field '{field_name}' has unsupported type {type(value).__name__}"
    )


def entity_to_node(entity: Entity) -> Dict[str, Any]:
    """Convert an entity to its node object."""
    owner = f"Entity {entity.id}"
    node: Dict[str, Any] = {}

    for attr, key in _BASE_FIELDS + _attribute_fields(type(entity)):
        value = getattr(entity, attr)
        if value is None:
            continue
        node[key] = _to_json_value(value, owner, attr)

    return node


def relationship_to_edge(relationship: Relationship) -> Dict[str, Any]:
    """Convert a relationship to its edge object."""
    return {
        "id": relationship.id,
        "relationKind": relationship.relation_kind,
        "name": relationship.name,
        "description": relationship.description,
        "sourceId": relationship.source.id,
        "targetId": relationship.target.id,
        "properties": dict(relationship.properties),
    }


def to_json_dict(model: Model) -> Dict[str, Any]:
    """Convert a model to its exchange document.

    Raises:
        SerializationError: If an attribute value cannot be represented
    """
    return {
        "nodes": [entity_to_node(entity) for entity in model.entities],
        "edges": [relationship_to_edge(rel) for rel in model.relationships],
    }


def to_json_string(model: Model, pretty: bool = False) -> str:
    """Convert a model to a JSON string.

    Args:
        model: The model to serialize
        pretty: If True, format JSON with indentation

    Returns:
        JSON string representation
    """
    data = to_json_dict(model)

    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False)
    else:
        return orjson.dumps(data).decode("utf-8")


def dump_json(model: Model, path: Union[str, Path]) -> None:
    """Write a model's document to ``path``, replacing existing content.

    The document is built before the file is opened, so a serialization
    failure leaves any existing file untouched.
    """
    path = Path(path)
    payload = orjson.dumps(to_json_dict(model), option=orjson.OPT_INDENT_2)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.write(payload)
        f.write(b"\n")

    logger.info(
        "Wrote graph document",
        path=str(path),
        nodes=len(model.entities),
        edges=len(model.relationships),
    )


def load_json(path: Union[str, Path]) -> Model:
    """Load a model from a document written by :func:`dump_json`.

    Raises:
        FileNotFoundError: If the file doesn't exist
        SerializationError: If the JSON is malformed or references unknown
            entities or kinds
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Graph document not found: {path}")

    with open(path, "rb") as f:
        raw = f.read()

    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise SerializationError(f"Failed to parse {path}: {e}") from e

    model = from_json_dict(data)
    logger.info(
        "Loaded graph document",
        path=str(path),
        nodes=len(model.entities),
        edges=len(model.relationships),
    )
    return model


def from_json_dict(data: Dict[str, Any]) -> Model:
    """Rebuild a model from its exchange document."""
    if not isinstance(data, dict) or not isinstance(data.get("nodes"), list) \
            or not isinstance(data.get("edges"), list):
        raise SerializationError("Document must contain 'nodes' and 'edges' arrays")

    model = Model()
    by_id: Dict[str, Entity] = {}
    pending: List[Tuple[Entity, str, str]] = []

    for node in data["nodes"]:
        entity, references = _node_to_entity(node)
        model.add_entity(entity)
        by_id.setdefault(entity.id, entity)
        pending.extend((entity, attr, ref_id) for attr, ref_id in references)

    for entity, attr, ref_id in pending:
        target = by_id.get(ref_id)
        if target is None:
            raise SerializationError(f"Entity {entity.id} field '{attr}' references unknown entity {ref_id}")
        setattr(entity, attr, target)

    for edge in data["edges"]:
        model.add_relationship(_edge_to_relationship(edge, by_id))

    return model


def _node_to_entity(node: Dict[str, Any]) -> Tuple[Entity, List[Tuple[str, str]]]:
    if not isinstance(node, dict):
        raise SerializationError(f"Node must be an object, got {type(node).__name__}: {node!r}")

    kind_name = node.get("entityKind")
    kind = ENTITY_TYPES.get(kind_name) if isinstance(kind_name, str) else None
    if kind is None:
        kind = _infer_kind(node)
    if kind is None:
        raise SerializationError(f"Unknown entity kind: {kind_name}")

    references = _reference_fields(kind)
    values: Dict[str, Any] = {}
    pending: List[Tuple[str, str]] = []

    for attr, key in _BASE_FIELDS + _attribute_fields(kind):
        if attr == "id" or key not in node:
            continue
        if attr in references:
            if not isinstance(node[key], str):
                raise SerializationError(f"Node {node.get('id')!r} field '{key}' must be an entity id")
            pending.append((attr, node[key]))
        else:
            values[attr] = node[key]

    try:
        entity = make_entity(kind, node.get("id", ""), **values)
    except InvalidArgumentError as e:
        raise SerializationError(f"Invalid node {node.get('id')!r}: {e}") from e
    return entity, pending


def _infer_kind(node: Dict[str, Any]) -> Optional[Type[Entity]]:
    """Pick the record type for a node tagged with a custom ``entityKind``.

    A candidate must declare every key the node carries. Candidates whose
    default domain matches the node's come first, then those declaring the
    fewest keys the node lacks. A node with no kind-specific keys needs a
    domain match.
    """
    keys = set(node)
    specific = keys - {key for _, key in _BASE_FIELDS}
    best: Optional[Type[Entity]] = None
    best_rank: Optional[Tuple[bool, int]] = None

    for kind in ENTITY_TYPES.values():
        declared = {key for _, key in _BASE_FIELDS + _attribute_fields(kind)}
        if not keys <= declared:
            continue
        domain_mismatch = label_of(_default_domain(kind)) != node.get("domain")
        if domain_mismatch and not specific:
            continue
        rank = (domain_mismatch, len(declared - keys))
        if best_rank is None or rank < best_rank:
            best, best_rank = kind, rank

    if best is not None:
        logger.debug(
            "Inferred record type for custom entity kind",
            entity_kind=node.get("entityKind"),
            record_type=best.__name__,
        )
    return best


@lru_cache(maxsize=None)
def _default_domain(kind: Type[Entity]) -> Any:
    return next(f.default for f in fields(kind) if f.name == "domain")


def _edge_to_relationship(edge: Dict[str, Any], by_id: Dict[str, Entity]) -> Relationship:
    if not isinstance(edge, dict):
        raise SerializationError(f"Edge must be an object, got {type(edge).__name__}: {edge!r}")

    source_id = edge.get("sourceId")
    target_id = edge.get("targetId")
    source = by_id.get(source_id) if isinstance(source_id, str) else None
    target = by_id.get(target_id) if isinstance(target_id, str) else None
    if source is None or target is None:
        raise SerializationError(
            f"Edge {edge.get('id')!r} references unknown entity "
            f"{source_id if source is None else target_id}"
        )

    properties = edge.get("properties")
    if properties is None:
        properties = {}
    if not isinstance(properties, dict):
        raise SerializationError(f"Edge {edge.get('id')!r} properties must be an object")

    return Relationship(
        source=source,
        target=target,
        relation_kind=edge.get("relationKind", ""),
        id=edge.get("id", ""),
        name=edge.get("name", ""),
        description=edge.get("description", ""),
        properties=properties,
    )
