"""
Unit Conversion

Physical conversions (temperature offsets, pressure, density, distance,
angle) go through a single pint registry created at import time and
shared by reference. The mapping from profile-file symbols to registry
units is a read-only table; the only conversion outside the registry is
the swap between compass and mathematical direction conventions.

Example:
    from src.common.units import Units, convert

    temp_k = convert(15.0, Units.TEMPERATURE_CELSIUS, Units.TEMPERATURE_KELVIN)
    p_pa = convert(np.array([1013.25, 500.0]), 'mbar', 'Pa')
"""

from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Tuple, Union

import numpy as np
from pint import DimensionalityError, UndefinedUnitError, UnitRegistry

from .exceptions import UnitConversionError


class Units(Enum):
    """Units understood by the atmosphere and mode-solver layers."""
    NONE = "none"
    TEMPERATURE_KELVIN = "K"
    TEMPERATURE_CELSIUS = "C"
    TEMPERATURE_FAHRENHEIT = "F"
    DISTANCE_METERS = "m"
    DISTANCE_KILOMETERS = "km"
    SPEED_METERS_PER_SECOND = "m/s"
    SPEED_KILOMETERS_PER_SECOND = "km/s"
    PRESSURE_PASCALS = "Pa"
    PRESSURE_MILLIBARS = "mbar"
    PRESSURE_ATMOSPHERES = "atm"
    DENSITY_KILOGRAMS_PER_CUBIC_METER = "kg/m3"
    DENSITY_GRAMS_PER_CUBIC_CENTIMETER = "g/cm3"
    ANGLE_DEGREES = "deg"
    ANGLE_RADIANS = "rad"
    DIRECTION_DEGREES_CLOCKWISE_FROM_NORTH = "degCWfromN"
    DIRECTION_DEGREES_COUNTERCLOCKWISE_FROM_EAST = "degCCWfromE"
    ATTENUATION_NEPERS_PER_METER = "Np/m"


# Lower-case aliases accepted by units_from_string()
_ALIASES: Dict[str, Units] = {
    '': Units.NONE,
    'none': Units.NONE,
    'k': Units.TEMPERATURE_KELVIN,
    'kelvin': Units.TEMPERATURE_KELVIN,
    'degk': Units.TEMPERATURE_KELVIN,
    'c': Units.TEMPERATURE_CELSIUS,
    'degc': Units.TEMPERATURE_CELSIUS,
    'celsius': Units.TEMPERATURE_CELSIUS,
    'f': Units.TEMPERATURE_FAHRENHEIT,
    'degf': Units.TEMPERATURE_FAHRENHEIT,
    'fahrenheit': Units.TEMPERATURE_FAHRENHEIT,
    'm': Units.DISTANCE_METERS,
    'meters': Units.DISTANCE_METERS,
    'km': Units.DISTANCE_KILOMETERS,
    'kilometers': Units.DISTANCE_KILOMETERS,
    'm/s': Units.SPEED_METERS_PER_SECOND,
    'mps': Units.SPEED_METERS_PER_SECOND,
    'km/s': Units.SPEED_KILOMETERS_PER_SECOND,
    'kmps': Units.SPEED_KILOMETERS_PER_SECOND,
    'pa': Units.PRESSURE_PASCALS,
    'pascals': Units.PRESSURE_PASCALS,
    'mbar': Units.PRESSURE_MILLIBARS,
    'hpa': Units.PRESSURE_MILLIBARS,
    'millibars': Units.PRESSURE_MILLIBARS,
    'atm': Units.PRESSURE_ATMOSPHERES,
    'kg/m3': Units.DENSITY_KILOGRAMS_PER_CUBIC_METER,
    'kgpm3': Units.DENSITY_KILOGRAMS_PER_CUBIC_METER,
    'g/cm3': Units.DENSITY_GRAMS_PER_CUBIC_CENTIMETER,
    'gpcm3': Units.DENSITY_GRAMS_PER_CUBIC_CENTIMETER,
    'deg': Units.ANGLE_DEGREES,
    'degrees': Units.ANGLE_DEGREES,
    'rad': Units.ANGLE_RADIANS,
    'radians': Units.ANGLE_RADIANS,
    'degcwfromn': Units.DIRECTION_DEGREES_CLOCKWISE_FROM_NORTH,
    'degccwfrome': Units.DIRECTION_DEGREES_COUNTERCLOCKWISE_FROM_EAST,
    'np/m': Units.ATTENUATION_NEPERS_PER_METER,
}

ArrayOrFloat = Union[float, np.ndarray]
_Conversion = Callable[[ArrayOrFloat], ArrayOrFloat]

# Shared registry, created once at import
ureg = UnitRegistry()
Q_ = ureg.Quantity

# Physical units and their registry spellings
PINT_UNITS: Mapping[Units, str] = MappingProxyType({
    Units.TEMPERATURE_KELVIN: "kelvin",
    Units.TEMPERATURE_CELSIUS: "degC",
    Units.TEMPERATURE_FAHRENHEIT: "degF",
    Units.DISTANCE_METERS: "meter",
    Units.DISTANCE_KILOMETERS: "kilometer",
    Units.SPEED_METERS_PER_SECOND: "meter / second",
    Units.SPEED_KILOMETERS_PER_SECOND: "kilometer / second",
    Units.PRESSURE_PASCALS: "pascal",
    Units.PRESSURE_MILLIBARS: "millibar",
    Units.PRESSURE_ATMOSPHERES: "atmosphere",
    Units.DENSITY_KILOGRAMS_PER_CUBIC_METER: "kilogram / meter ** 3",
    Units.DENSITY_GRAMS_PER_CUBIC_CENTIMETER: "gram / centimeter ** 3",
    Units.ANGLE_DEGREES: "degree",
    Units.ANGLE_RADIANS: "radian",
    Units.ATTENUATION_NEPERS_PER_METER: "meter ** -1",
})


def _direction_swap(values: ArrayOrFloat) -> ArrayOrFloat:
    # Same formula both ways: theta' = 90 - theta (mod 360)
    return np.mod(90.0 - np.asarray(values, dtype=float), 360.0)


# Compass conventions have no registry equivalent
DIRECTION_CONVERSIONS: Mapping[Tuple[Units, Units], _Conversion] = MappingProxyType({
    (Units.DIRECTION_DEGREES_CLOCKWISE_FROM_NORTH,
     Units.DIRECTION_DEGREES_COUNTERCLOCKWISE_FROM_EAST): _direction_swap,
    (Units.DIRECTION_DEGREES_COUNTERCLOCKWISE_FROM_EAST,
     Units.DIRECTION_DEGREES_CLOCKWISE_FROM_NORTH): _direction_swap,
})


def _from_registry(name: str) -> Optional[Units]:
    try:
        parsed = ureg.Unit(name)
    except (UndefinedUnitError, ValueError, TypeError):
        return None
    # Equivalent when 0 and 1 map to 0 and 1 (rules out offset scales)
    samples = np.array([0.0, 1.0])
    for member, spelling in PINT_UNITS.items():
        if not parsed.is_compatible_with(spelling):
            continue
        if np.allclose(Q_(samples, parsed).to(spelling).magnitude, samples, rtol=1e-9, atol=1e-12):
            return member
    return None


def units_from_string(name: Union[str, Units]) -> Units:
    """
    Parse a unit name.

    Profile-file symbols and their aliases are matched case-insensitively;
    anything else is parsed by the unit registry (e.g. 'kilometer',
    'hectopascal').

    Args:
        name: Unit symbol or alias, or a Units member

    Returns:
        Matching Units member

    Raises:
        UnitConversionError: If the name is not recognized
    """
    if isinstance(name, Units):
        return name
    key = name.strip().lower()
    if key in _ALIASES:
        return _ALIASES[key]
    for member in Units:
        if member.value.lower() == key:
            return member
    member = _from_registry(name.strip())
    if member is None:
        raise UnitConversionError(f"Unrecognized units: '{name}'")
    return member


def can_convert(from_units: Union[str, Units], to_units: Union[str, Units]) -> bool:
    """Whether a conversion between two units is defined."""
    a = units_from_string(from_units)
    b = units_from_string(to_units)
    if a == b or (a, b) in DIRECTION_CONVERSIONS:
        return True
    if a in PINT_UNITS and b in PINT_UNITS:
        return ureg.Unit(PINT_UNITS[a]).is_compatible_with(PINT_UNITS[b])
    return False


def convert(
    values: ArrayOrFloat,
    from_units: Union[str, Units],
    to_units: Union[str, Units],
) -> ArrayOrFloat:
    """
    Convert a value or array between units.

    Args:
        values: Scalar or numpy array
        from_units: Units of the input
        to_units: Desired units

    Returns:
        Converted value(s); scalars stay scalars

    Raises:
        UnitConversionError: If no conversion is defined
    """
    a = units_from_string(from_units)
    b = units_from_string(to_units)
    if a == b:
        return values

    scalar = np.isscalar(values)
    data = float(values) if scalar else np.asarray(values, dtype=float)

    if (a, b) in DIRECTION_CONVERSIONS:
        result = DIRECTION_CONVERSIONS[(a, b)](data)
    elif a in PINT_UNITS and b in PINT_UNITS:
        try:
            result = Q_(data, PINT_UNITS[a]).to(PINT_UNITS[b]).magnitude
        except DimensionalityError:
            raise UnitConversionError(
                f"No conversion defined from {a.value} to {b.value}"
            ) from None
    else:
        raise UnitConversionError(f"No conversion defined from {a.value} to {b.value}")

    return float(result) if scalar else result
