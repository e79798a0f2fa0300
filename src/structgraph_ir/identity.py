"""Identity resolution for structural graph entities.

Decides whether two entities denote the same graph node. The rule used for
an entity is looked up from its kind in :data:`STRATEGIES`:

* native-id: equal when ``native_id`` matches case-insensitively. Repeated
  imports of the same authoring-tool model therefore resolve to the same
  nodes. Native ids from different tools are not namespaced, so identical
  ids collapse into one entity.
* coordinate: points are equal when x, y and z compare equal. Comparison is
  exact, with no tolerance. Point connections delegate to their point.
* instance: no value identity, only the object itself matches. Segments are
  instance kinds, so every segment create call stores a new segment.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Hashable, Iterable, Optional, Type, TypeVar

from .schema import (
    Arc3d,
    Beam,
    Column,
    CrossSection,
    Entity,
    Line3d,
    Material,
    Point3d,
    Segment,
    Slab,
    Storey,
    StructuralCurveMember,
    StructuralPointConnection,
    StructuralSurfaceMember,
    Unit,
    Wall,
)

T = TypeVar("T", bound=Entity)

# Hash reported for entities without a usable identity value
SENTINEL_HASH = 0


class IdentityStrategy(Enum):
    NATIVE_ID = "native_id"
    COORDINATE = "coordinate"
    INSTANCE = "instance"


STRATEGIES: Dict[Type[Entity], IdentityStrategy] = {
    Material: IdentityStrategy.NATIVE_ID,
    CrossSection: IdentityStrategy.NATIVE_ID,
    Storey: IdentityStrategy.NATIVE_ID,
    StructuralCurveMember: IdentityStrategy.NATIVE_ID,
    StructuralSurfaceMember: IdentityStrategy.NATIVE_ID,
    Beam: IdentityStrategy.NATIVE_ID,
    Column: IdentityStrategy.NATIVE_ID,
    Slab: IdentityStrategy.NATIVE_ID,
    Wall: IdentityStrategy.NATIVE_ID,
    Point3d: IdentityStrategy.COORDINATE,
    StructuralPointConnection: IdentityStrategy.COORDINATE,
    Line3d: IdentityStrategy.INSTANCE,
    Arc3d: IdentityStrategy.INSTANCE,
    Segment: IdentityStrategy.INSTANCE,
    Unit: IdentityStrategy.INSTANCE,
}


def strategy_for(entity: Entity) -> IdentityStrategy:
    """Return the identity strategy registered for the entity's kind."""
    for cls in type(entity).__mro__:
        strategy = STRATEGIES.get(cls)  # type: ignore[arg-type]
        if strategy is not None:
            return strategy
    return IdentityStrategy.INSTANCE


def identity_key(entity: Entity) -> Optional[Hashable]:
    """Compute the value two entities must share to be identity-equal.

    Returns ``None`` when the entity has no identity value at all (an
    instance-identity kind, or a point connection with no point attached).
    A blank native id yields the empty string.
    """
    strategy = strategy_for(entity)

    if strategy is IdentityStrategy.NATIVE_ID:
        return (entity.native_id or "").lower()

    if strategy is IdentityStrategy.COORDINATE:
        if isinstance(entity, StructuralPointConnection):
            if entity.point is None:
                return None
            return entity.point.coordinates
        return (entity.x, entity.y, entity.z)  # type: ignore[attr-defined]

    return None


def identity_hash(entity: Entity) -> int:
    """Hash consistent with :func:`identity_equal`."""
    key = identity_key(entity)
    if key is None or key == "":
        return SENTINEL_HASH
    return hash(key)


def identity_equal(a: Optional[Entity], b: Optional[Entity]) -> bool:
    """Check whether two entities denote the same graph node."""
    if a is None or b is None:
        return False
    if type(a) is not type(b):
        return False

    strategy = strategy_for(a)
    if strategy is IdentityStrategy.INSTANCE:
        return a is b

    key_a = identity_key(a)
    if key_a is None:
        return False
    return key_a == identity_key(b)


def find_equivalent(candidates: Iterable[Entity], entity: T) -> Optional[T]:
    """Return the first candidate identity-equal to ``entity``."""
    for candidate in candidates:
        if candidate is entity or identity_equal(candidate, entity):
            return candidate  # type: ignore[return-value]
    return None
