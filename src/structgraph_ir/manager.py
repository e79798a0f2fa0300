"""Registry of independent structural graph models addressed by index."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar, Union

import structlog

from .builder import GraphBuilder
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
    Relationship,
    Segment,
    Slab,
    Storey,
    StructuralCurveMember,
    StructuralPointConnection,
    StructuralSurfaceMember,
    Unit,
    Wall,
)
from .serialize import dump_json, load_json, to_json_dict, to_json_string

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=Entity)


class ModelIndexError(IndexError):
    """Raised when a model index falls outside the registry."""
    pass


class Manager:
    """Ordered list of models; operations address a model by position.

    Models live as long as the manager; there is no removal.
    """

    def __init__(self) -> None:
        self.models: List[Model] = []

    def __len__(self) -> int:
        return len(self.models)

    def add_model(self) -> int:
        """Append an empty model and return its index."""
        return self.append(Model())

    def append(self, model: Model) -> int:
        self.models.append(model)
        index = len(self.models) - 1
        logger.debug("Added model", model_index=index)
        return index

    def is_valid_model_index(self, index: int) -> bool:
        return 0 <= index < len(self.models)

    def get_model(self, index: int) -> Model:
        if not self.is_valid_model_index(index):
            raise ModelIndexError(f"Model index {index} out of range (0..{len(self.models) - 1})")
        return self.models[index]

    def builder(self, index: int) -> GraphBuilder:
        """Return a construction facade bound to the addressed model."""
        return GraphBuilder(self.get_model(index))

    # Raw insertion

    def add_entity_to_model(self, index: int, entity: Entity) -> None:
        self.get_model(index).add_entity(entity)

    def add_entities_to_model(self, index: int, entities: Iterable[Entity]) -> None:
        """Append several entities; nothing is added if any entry is empty."""
        model = self.get_model(index)
        batch = list(entities)
        if any(entity is None for entity in batch):
            raise InvalidArgumentError("Entities cannot contain empty entries")
        for entity in batch:
            model.add_entity(entity)

    def add_relationship_to_model(self, index: int, relationship: Relationship) -> None:
        self.get_model(index).add_relationship(relationship)

    # Queries

    def get_entities_of_type(self, index: int, kind: Type[T]) -> List[T]:
        return self.get_model(index).entities_of_type(kind)

    def get_entity_by_id(self, index: int, entity_id: str, kind: Type[T] = Entity) -> Optional[T]:  # type: ignore[assignment]
        """Find an entity by ID in the addressed model, or None if absent or
        not of ``kind``."""
        return self.get_model(index).get_entity_by_id(entity_id, kind)

    def find_matching_point_connection_by_coordinate(
        self, index: int, connection: StructuralPointConnection
    ) -> Optional[str]:
        return self.get_model(index).find_matching_point_connection_by_coordinate(connection)

    # Construction forwarding

    def create_point3d(self, model_index: int, id: str, x: float, y: float, z: float, **kwargs: Any) -> Point3d:
        return self.builder(model_index).create_point3d(id, x, y, z, **kwargs)

    def create_line3d(self, model_index: int, id: str, start_point: Point3d, end_point: Point3d, **kwargs: Any) -> Line3d:
        return self.builder(model_index).create_line3d(id, start_point, end_point, **kwargs)

    def create_arc3d(
        self,
        model_index: int,
        id: str,
        start_point: Point3d,
        end_point: Point3d,
        center_point: Point3d,
        radius: float,
        **kwargs: Any,
    ) -> Arc3d:
        return self.builder(model_index).create_arc3d(id, start_point, end_point, center_point, radius, **kwargs)

    def create_material(self, model_index: int, id: str, **kwargs: Any) -> Material:
        return self.builder(model_index).create_material(id, **kwargs)

    def create_cross_section(self, model_index: int, id: str, **kwargs: Any) -> CrossSection:
        return self.builder(model_index).create_cross_section(id, **kwargs)

    def create_storey(self, model_index: int, id: str, **kwargs: Any) -> Storey:
        return self.builder(model_index).create_storey(id, **kwargs)

    def create_unit(self, model_index: int, id: str, entity: str, attribute: str, unit: Any, **kwargs: Any) -> Unit:
        return self.builder(model_index).create_unit(id, entity, attribute, unit, **kwargs)

    def create_line_segment(self, model_index: int, id: str, line: Line3d, position: Any = 0, **kwargs: Any) -> Segment:
        return self.builder(model_index).create_line_segment(id, line, position, **kwargs)

    def create_arc_segment(self, model_index: int, id: str, arc: Arc3d, position: Any = 0, **kwargs: Any) -> Segment:
        return self.builder(model_index).create_arc_segment(id, arc, position, **kwargs)

    def create_point_connection(
        self, model_index: int, id: str, point: Point3d, **kwargs: Any
    ) -> StructuralPointConnection:
        return self.builder(model_index).create_point_connection(id, point, **kwargs)

    def create_curve_member(
        self,
        model_index: int,
        id: str,
        begin_node: StructuralPointConnection,
        end_node: StructuralPointConnection,
        **kwargs: Any,
    ) -> StructuralCurveMember:
        return self.builder(model_index).create_curve_member(id, begin_node, end_node, **kwargs)

    def create_surface_member(self, model_index: int, id: str, **kwargs: Any) -> StructuralSurfaceMember:
        return self.builder(model_index).create_surface_member(id, **kwargs)

    def create_beam(self, model_index: int, id: str, **kwargs: Any) -> Beam:
        return self.builder(model_index).create_beam(id, **kwargs)

    def create_column(self, model_index: int, id: str, **kwargs: Any) -> Column:
        return self.builder(model_index).create_column(id, **kwargs)

    def create_slab(self, model_index: int, id: str, **kwargs: Any) -> Slab:
        return self.builder(model_index).create_slab(id, **kwargs)

    def create_wall(self, model_index: int, id: str, **kwargs: Any) -> Wall:
        return self.builder(model_index).create_wall(id, **kwargs)

    # Export / import

    def build_graph_document(self, index: int) -> Dict[str, Any]:
        return to_json_dict(self.get_model(index))

    def build_json(self, index: int, pretty: bool = True) -> str:
        return to_json_string(self.get_model(index), pretty=pretty)

    def persist(self, index: int, path: Union[str, Path]) -> Path:
        """Serialize the addressed model and write it to ``path``."""
        model = self.get_model(index)
        path = Path(path)
        dump_json(model, path)
        logger.info("Persisted model", model_index=index, path=str(path))
        return path

    def load(self, path: Union[str, Path]) -> int:
        """Import a graph document as a new model and return its index."""
        model = load_json(path)
        return self.append(model)
