"""Enumerations used by structural graph entities.

Each member's value is the label written to the exchange document, so
``SegmentType.CIRCULAR_ARC.value == "Circular Arc"``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Type, TypeVar

E = TypeVar("E", bound=Enum)


class Domain(Enum):
    """High-level category an entity belongs to."""

    PHYSICAL = "Physical"
    STRUCTURAL_ANALYTICAL = "StructuralAnalytical"
    GEOMETRY = "Geometry"
    FUNCTIONAL = "Functional"
    SHARED = "Shared"


class MaterialType(Enum):
    CONCRETE = "Concrete"
    STEEL = "Steel"
    TIMBER = "Timber"
    ALUMINIUM = "Aluminium"
    COMPOSITE = "Composite"
    MASONRY = "Masonry"
    OTHERS = "Others"
    REBAR = "Rebar"
    TENDON = "Tendon"
    UNKNOWN = "Unknown"


class ShapeType(Enum):
    """Cross-section shape classification."""

    RECTANGULAR = "Rectangular"
    CIRCULAR = "Circular"
    L_SHAPE = "L Shape"
    T_SHAPE = "T Shape"
    L_INVERTED = "L Inverted"
    T_INVERTED = "T Inverted"
    C_SHAPE = "C Shape"
    ELBOW = "Elbow"
    TRAPEZIUM = "Trapezium"
    PARALLELOGRAM = "Parallelogram"
    POLYGON = "Polygon"
    I_SHAPE = "I Shape"
    CIRCULAR_HOLLOW = "Circular Hollow"
    SQUARE_HOLLOW = "Square Hollow"
    RECTANGULAR_HOLLOW = "Rectangular Hollow"
    TAPERED_FLANGE_CHANNEL = "Tapered Flange Channel"
    PARALLEL_FLANGE_CHANNEL = "Parallel Flange Channel"
    PLAIN_CHANNEL = "Plain Channel"
    LIPPED_CHANNEL = "Lipped Channel"
    Z_PURLIN = "Z Purlin"
    EQUAL_ANGLE = "Equal Angle"
    UNEQUAL_ANGLE = "Unequal Angle"
    FLAT_BAR = "Flat Bar"
    SQUARE_BAR = "Square Bar"
    DEFORMED_BAR = "Deformed Bar"
    ROUND_BAR = "Round Bar"
    OTHERS = "Others"
    UNKNOWN = "Unknown"


class SegmentType(Enum):
    LINE = "Line"
    CIRCULAR_ARC = "Circular Arc"
    PARABOLIC_ARC = "Parabolic Arc"
    BEZIER = "Bezier"
    SPLINE = "Spline"
    OTHERS = "Others"
    UNKNOWN = "Unknown"


class CurveMemberType(Enum):
    BEAM = "Beam"
    COLUMN = "Column"
    BRACING = "Bracing"
    OTHER = "Other"
    UNKNOWN = "Unknown"


class SurfaceMemberType(Enum):
    SLAB = "Slab"
    WALL = "Wall"
    PAD_FOOTING = "PadFooting"
    STRIP_FOOTING = "StripFooting"
    PILECAP = "Pilecap"
    ROOF_PANEL = "RoofPanel"
    WALL_PANEL = "WallPanel"
    RAFT = "Raft"
    UNKNOWN = "Unknown"


class SurfaceMemberSystemPlane(Enum):
    BOTTOM = "Bottom"
    TOP = "Top"
    MIDDLE = "Middle"
    LEFT = "Left"
    RIGHT = "Right"
    UNKNOWN = "Unknown"


class SystemLine(Enum):
    """Reference line of a linear member relative to its cross-section."""

    TOP_MIDDLE = "TopMiddle"
    TOP_LEFT = "TopLeft"
    TOP_RIGHT = "TopRight"
    MIDDLE_MIDDLE = "MiddleMiddle"
    MIDDLE_LEFT = "MiddleLeft"
    MIDDLE_RIGHT = "MiddleRight"
    BOTTOM_LEFT = "BottomLeft"
    BOTTOM_MIDDLE = "BottomMiddle"
    BOTTOM_RIGHT = "BottomRight"
    UNKNOWN = "Unknown"


class PointType(Enum):
    """Role of a point within a line or arc."""

    START = "Start"
    END = "End"
    CENTER = "Center"


class UnitSymbol(Enum):
    METER3 = "m^3"
    METER2 = "m^2"
    METER = "m"
    METER4 = "m^4"
    MILLIMETER4 = "mm^4"
    MILLIMETER = "mm"
    CENTIMETER = "cm"
    MILLIMETER3 = "mm^3"
    MILLIMETER2 = "mm^2"
    SECOND = "sec"
    UNKNOWN = "Unknown"


def label_of(value: Any) -> Any:
    """Return the exchange label for enum members, other values unchanged."""
    if isinstance(value, Enum):
        return value.value
    return value


def parse_label(enum_cls: Type[E], text: Any) -> E:
    """Resolve an enum member from its label or member name.

    Matching is case-insensitive. Enums with an ``UNKNOWN`` member fall back
    to it for unrecognised text; others raise ``ValueError``.
    """
    if isinstance(text, enum_cls):
        return text

    wanted = str(text).strip().lower()
    for member in enum_cls:
        if member.value.lower() == wanted or member.name.lower() == wanted:
            return member

    fallback = enum_cls.__members__.get("UNKNOWN")
    if fallback is not None:
        return fallback
    raise ValueError(f"'{text}' is not a valid {enum_cls.__name__} label")
