"""Unit symbol normalization and conversion for structural graph units.

Maps free-form unit text coming from authoring tools onto
:class:`~structgraph_ir.enums.UnitSymbol` and converts values between
symbols of the same dimension via SI base units.
"""

from __future__ import annotations

from typing import Dict, Tuple, Union

from .enums import UnitSymbol

# Factor to the SI base unit, keyed by symbol
LENGTH_UNITS = {
    "m": 1.0,
    "cm": 0.01,
    "mm": 0.001,
}

AREA_UNITS = {
    "m^2": 1.0,
    "mm^2": 1e-6,
}

VOLUME_UNITS = {
    "m^3": 1.0,
    "mm^3": 1e-9,
}

SECOND_MOMENT_UNITS = {
    "m^4": 1.0,
    "mm^4": 1e-12,
}

TIME_UNITS = {
    "sec": 1.0,
}

UNIT_TABLES: Dict[str, Dict[str, float]] = {
    "length": LENGTH_UNITS,
    "area": AREA_UNITS,
    "volume": VOLUME_UNITS,
    "second_moment": SECOND_MOMENT_UNITS,
    "time": TIME_UNITS,
}

_SUPERSCRIPTS = {"²": "^2", "³": "^3", "⁴": "^4"}

_NAME_MAPPINGS = {
    "metre": "m",
    "meter": "m",
    "metres": "m",
    "meters": "m",
    "centimetre": "cm",
    "centimeter": "cm",
    "millimetre": "mm",
    "millimeter": "mm",
    "millimetres": "mm",
    "millimeters": "mm",
    "second": "sec",
    "seconds": "sec",
    "s": "sec",
}


class UnitConversionError(ValueError):
    """Raised when unit conversion fails."""
    pass


def normalize_unit_symbol(unit: str) -> str:
    """Normalize unit text to the exchange symbol form.

    Examples:
        >>> normalize_unit_symbol("MILLIMETRE")
        'mm'
        >>> normalize_unit_symbol("m²")
        'm^2'
        >>> normalize_unit_symbol("square millimetre")
        'mm^2'
    """
    text = unit.strip().lower()
    for superscript, caret in _SUPERSCRIPTS.items():
        text = text.replace(superscript, caret)
    text = text.replace("**", "^")

    for prefix, power in (("square ", "^2"), ("cubic ", "^3")):
        if text.startswith(prefix):
            base = text[len(prefix):].strip()
            return _NAME_MAPPINGS.get(base, base) + power

    if "^" in text:
        base, _, power = text.partition("^")
        return _NAME_MAPPINGS.get(base.strip(), base.strip()) + "^" + power.strip()

    return _NAME_MAPPINGS.get(text, text)


def parse_unit(unit: Union[str, UnitSymbol]) -> UnitSymbol:
    """Resolve unit text to a :class:`UnitSymbol`, or ``UNKNOWN``."""
    if isinstance(unit, UnitSymbol):
        return unit

    symbol = normalize_unit_symbol(unit)
    for member in UnitSymbol:
        if member.value.lower() == symbol:
            return member
    return UnitSymbol.UNKNOWN


def _lookup(unit: Union[str, UnitSymbol]) -> Tuple[str, str, float]:
    symbol = parse_unit(unit).value
    for dimension, table in UNIT_TABLES.items():
        if symbol in table:
            return dimension, symbol, table[symbol]
    raise UnitConversionError(f"Unknown unit: {unit}")


def get_conversion_factor(from_unit: Union[str, UnitSymbol], to_unit: Union[str, UnitSymbol]) -> float:
    """Get the multiplication factor converting ``from_unit`` to ``to_unit``.

    Raises:
        UnitConversionError: If either unit is unknown or they measure
            different dimensions
    """
    from_dimension, from_symbol, from_to_si = _lookup(from_unit)
    to_dimension, to_symbol, to_si = _lookup(to_unit)

    if from_dimension != to_dimension:
        raise UnitConversionError(
            f"Cannot convert {from_dimension} unit {from_symbol} to {to_dimension} unit {to_symbol}"
        )

    return from_to_si / to_si


def convert_value(value: float, from_unit: Union[str, UnitSymbol], to_unit: Union[str, UnitSymbol]) -> float:
    """Convert a value between units.

    Examples:
        >>> convert_value(1000, "mm", "m")
        1.0
    """
    return value * get_conversion_factor(from_unit, to_unit)
