"""
Stratified Atmospheric Profile

Altitude-indexed physical quantities (vectors) and scalar properties with
cubic-spline interpolation, first derivatives and unit bookkeeping.

Two text formats are read:

* header format, one ``#%`` line per quantity::

      #% 0, Z0, km, 0.0
      #% 1, Z, km
      #% 2, T, degK
      #% 3, U, m/s
      #% 4, V, m/s
      #% 5, RHO, g/cm3
      #% 6, P, mbar

  Lines with four fields are scalars, lines with three fields name a
  (1-based) data column.

* header-less legacy ``zuvwtdp`` columns: z (km), u, v, w (m/s), T (K),
  rho (g/cm3), P (mbar).
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
from scipy.interpolate import CubicSpline

from src.common.exceptions import ConfigurationError, ProfileLookupError
from src.common.units import Units, convert, units_from_string

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]

# Column layout of the header-less format
ZUVWTDP_COLUMNS = (
    ('Z', Units.DISTANCE_KILOMETERS),
    ('U', Units.SPEED_METERS_PER_SECOND),
    ('V', Units.SPEED_METERS_PER_SECOND),
    ('W', Units.SPEED_METERS_PER_SECOND),
    ('T', Units.TEMPERATURE_KELVIN),
    ('RHO', Units.DENSITY_GRAMS_PER_CUBIC_CENTIMETER),
    ('P', Units.PRESSURE_MILLIBARS),
)

ALTITUDE_KEY = 'Z'


@dataclass
class ProfileQuantity:
    """One altitude-indexed quantity"""
    values: np.ndarray
    units: Units


@dataclass
class ProfileScalar:
    """One scalar property (e.g. ground elevation Z0)"""
    value: float
    units: Units


class AtmosphericProfile:
    """
    Altitude-indexed atmosphere

    Interpolators are built on first use per key and dropped whenever
    the key (or the altitude basis) changes units.
    """

    def __init__(self, altitudes: np.ndarray, altitude_units: Union[str, Units] = 'km'):
        """
        Args:
            altitudes: Strictly increasing altitude samples
            altitude_units: Units of ``altitudes``
        """
        z = np.asarray(altitudes, dtype=float)
        if z.ndim != 1 or z.size < 2:
            raise ConfigurationError("Profile needs at least two altitude samples")
        if np.any(np.diff(z) <= 0):
            raise ConfigurationError("Profile altitudes must be strictly increasing")

        self._z = z.copy()
        self._z_units = units_from_string(altitude_units)
        self._vectors: Dict[str, ProfileQuantity] = {}
        self._scalars: Dict[str, ProfileScalar] = {}
        self._splines: Dict[str, CubicSpline] = {}

    # ------------------------------------------------------------------
    # Construction from files
    # ------------------------------------------------------------------

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'AtmosphericProfile':
        """
        Read a profile from a text file (header or zuvwtdp format).

        Raises:
            ConfigurationError: If the file layout cannot be understood
        """
        path = Path(path)
        columns: Dict[int, tuple] = {}
        scalars: List[tuple] = []

        with open(path, 'r') as f:
            for line in f:
                stripped = line.strip()
                if not stripped.startswith('#%'):
                    continue
                parts = [p.strip() for p in stripped[2:].split(',')]
                if len(parts) == 4:
                    scalars.append((parts[1], parts[2], float(parts[3])))
                elif len(parts) == 3:
                    columns[int(parts[0])] = (parts[1], parts[2])
                else:
                    raise ConfigurationError(f"Malformed header line in {path}: {stripped}")

        data = np.loadtxt(path, comments='#', ndmin=2)
        if data.size == 0:
            raise ConfigurationError(f"No data rows in {path}")

        if columns:
            layout = {}
            for col, (key, units) in columns.items():
                if col < 1 or col > data.shape[1]:
                    raise ConfigurationError(
                        f"Header column {col} ({key}) outside the {data.shape[1]} data columns"
                    )
                layout[key] = (data[:, col - 1], units_from_string(units))
        else:
            if data.shape[1] < len(ZUVWTDP_COLUMNS):
                raise ConfigurationError(
                    f"{path} has no header and {data.shape[1]} columns; "
                    f"zuvwtdp layout needs {len(ZUVWTDP_COLUMNS)}"
                )
            layout = {
                key: (data[:, i], units)
                for i, (key, units) in enumerate(ZUVWTDP_COLUMNS)
            }

        if ALTITUDE_KEY not in layout:
            raise ConfigurationError(f"{path} has no altitude column '{ALTITUDE_KEY}'")

        z, z_units = layout.pop(ALTITUDE_KEY)
        profile = cls(z, z_units)
        for key, (values, units) in layout.items():
            profile.add_property(key, values, units)
        for key, units, value in scalars:
            profile.add_property(key, value, units)

        logger.debug(f"Read profile {path}: {len(z)} levels, keys {profile.keys()}")
        return profile

    def write_to_file(self, path: Union[str, Path], keys: Optional[List[str]] = None) -> None:
        """Write the profile in the header format"""
        keys = keys if keys is not None else [k for k in self._vectors]
        with open(path, 'w') as f:
            col = 1
            for key, scalar in self._scalars.items():
                f.write(f"#% 0, {key}, {scalar.units.value}, {scalar.value:.12g}\n")
            f.write(f"#% {col}, {ALTITUDE_KEY}, {self._z_units.value}\n")
            for key in keys:
                col += 1
                f.write(f"#% {col}, {key}, {self._vectors[key].units.value}\n")
            table = np.column_stack([self._z] + [self._vectors[k].values for k in keys])
            np.savetxt(f, table, fmt='%.10e')

    # ------------------------------------------------------------------
    # Property management
    # ------------------------------------------------------------------

    def add_property(self, key: str, values: ArrayLike,
                     units: Union[str, Units] = Units.NONE) -> None:
        """
        Add a vector (one value per altitude) or scalar property.

        Raises:
            ConfigurationError: If the key exists or the vector length is wrong
        """
        if self.contains_key(key):
            raise ConfigurationError(f"Profile already contains key '{key}'")
        units = units_from_string(units)

        if np.isscalar(values):
            self._scalars[key] = ProfileScalar(float(values), units)
            return

        arr = np.asarray(values, dtype=float)
        if arr.shape != self._z.shape:
            raise ConfigurationError(
                f"Property '{key}' has {arr.size} values, profile has {self._z.size} levels"
            )
        self._vectors[key] = ProfileQuantity(arr.copy(), units)

    def remove_property(self, key: str) -> None:
        """Remove a property; absent keys are ignored"""
        self._vectors.pop(key, None)
        self._scalars.pop(key, None)
        self._splines.pop(key, None)

    def contains_key(self, key: str) -> bool:
        return key in self._vectors or key in self._scalars

    def contains_vector(self, key: str) -> bool:
        return key in self._vectors

    def contains_scalar(self, key: str) -> bool:
        return key in self._scalars

    def keys(self) -> List[str]:
        return list(self._vectors) + list(self._scalars)

    def get_units(self, key: str) -> Units:
        if key in self._vectors:
            return self._vectors[key].units
        if key in self._scalars:
            return self._scalars[key].units
        raise ProfileLookupError(f"Key '{key}' not found in profile")

    @property
    def altitude_units(self) -> Units:
        return self._z_units

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def altitudes(self) -> np.ndarray:
        return self._z.copy()

    def minimum_altitude(self) -> float:
        return float(self._z[0])

    def maximum_altitude(self) -> float:
        return float(self._z[-1])

    def get_vector(self, key: str) -> np.ndarray:
        """Raw samples of a vector property"""
        return self._vector(key).values.copy()

    def get(self, key: str, altitude: Optional[ArrayLike] = None) -> ArrayLike:
        """
        Scalar value, or vector property interpolated at altitude(s).

        Args:
            key: Property name
            altitude: Altitude(s) in the profile's altitude units; omit for scalars

        Raises:
            ProfileLookupError: Missing key or altitude outside the profile
        """
        if altitude is None:
            if key in self._scalars:
                return self._scalars[key].value
            if key in self._vectors:
                raise ProfileLookupError(f"'{key}' is a vector property; an altitude is required")
            raise ProfileLookupError(f"Key '{key}' not found in profile")

        return self._evaluate(key, altitude, 0)

    def get_first_derivative(self, key: str, altitude: ArrayLike) -> ArrayLike:
        """d(key)/dz at altitude(s), per profile altitude unit"""
        return self._evaluate(key, altitude, 1)

    def _vector(self, key: str) -> ProfileQuantity:
        try:
            return self._vectors[key]
        except KeyError:
            if key in self._scalars:
                raise ProfileLookupError(f"'{key}' is a scalar property") from None
            raise ProfileLookupError(f"Key '{key}' not found in profile") from None

    def _spline(self, key: str) -> CubicSpline:
        spline = self._splines.get(key)
        if spline is None:
            spline = CubicSpline(self._z, self._vector(key).values, bc_type='natural')
            self._splines[key] = spline
        return spline

    def _evaluate(self, key: str, altitude: ArrayLike, nu: int) -> ArrayLike:
        spline = self._spline(key)
        z = np.asarray(altitude, dtype=float)

        tol = 1e-9 * (self._z[-1] - self._z[0])
        if np.any(z < self._z[0] - tol) or np.any(z > self._z[-1] + tol):
            raise ProfileLookupError(
                f"Altitude outside profile range [{self._z[0]}, {self._z[-1]}] "
                f"{self._z_units.value} for '{key}'"
            )

        result = spline(np.clip(z, self._z[0], self._z[-1]), nu)
        if np.ndim(altitude) == 0:
            return float(result)
        return result

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------

    def convert_units(self, key: str, units: Union[str, Units]) -> None:
        """Convert a property in place"""
        target = units_from_string(units)
        if key in self._vectors:
            quantity = self._vectors[key]
            quantity.values = np.asarray(convert(quantity.values, quantity.units, target))
            quantity.units = target
            self._splines.pop(key, None)
        elif key in self._scalars:
            scalar = self._scalars[key]
            scalar.value = convert(scalar.value, scalar.units, target)
            scalar.units = target
        else:
            raise ProfileLookupError(f"Key '{key}' not found in profile")

    def convert_altitude_units(self, units: Union[str, Units]) -> None:
        """Convert the altitude basis in place"""
        target = units_from_string(units)
        self._z = np.asarray(convert(self._z, self._z_units, target))
        self._z_units = target
        self._splines.clear()

    def copy(self) -> 'AtmosphericProfile':
        other = AtmosphericProfile(self._z, self._z_units)
        for key, quantity in self._vectors.items():
            other.add_property(key, quantity.values, quantity.units)
        for key, scalar in self._scalars.items():
            other.add_property(key, scalar.value, scalar.units)
        return other

    def __repr__(self) -> str:
        return (f"AtmosphericProfile({self._z.size} levels, "
                f"{self._z[0]:g}-{self._z[-1]:g} {self._z_units.value}, keys={self.keys()})")
