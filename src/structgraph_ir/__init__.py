"""Structural graph intermediate representation.

This package provides the entity schema, identity resolution, model stores,
construction facade, model registry and JSON serialization for exchanging
structural-engineering models as node/edge graphs.
"""

from .builder import GraphBuilder
from .manager import Manager, ModelIndexError
from .model import Model
from .schema import Entity, InvalidArgumentError, Relationship
from .serialize import SerializationError, dump_json, load_json, to_json_dict

__version__ = "0.1.0"
__all__ = [
    "Entity",
    "GraphBuilder",
    "InvalidArgumentError",
    "Manager",
    "Model",
    "ModelIndexError",
    "Relationship",
    "SerializationError",
    "dump_json",
    "load_json",
    "to_json_dict",
]
