"""
Altitude Grid and Sampled Atmosphere Columns

The grid is fixed for a run. AtmosphereColumn holds the
azimuth-independent samples (built once); AzimuthColumn holds the
wind projection and effective sound speed for one azimuth. Both are
plain arrays owned by the caller, so a solve never writes back into the
shared profile.
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from src.atmosphere.derived import (
    attenuation_on_grid,
    effective_sound_speed,
    sound_speed_from_pressure_density,
    classical_rotational_attenuation,
)
from src.atmosphere.profile import AtmosphericProfile
from src.common.constants import GROUND_HEIGHT_TOLERANCE
from src.common.exceptions import ConfigurationError


@dataclass(frozen=True)
class AltitudeGrid:
    """
    Uniform vertical grid.

    Attributes:
        z_min: Ground altitude (m, MSL)
        z_max: Top of the grid (m, MSL)
        n: Number of samples
    """
    z_min: float
    z_max: float
    n: int

    def __post_init__(self):
        if self.n < 3:
            raise ConfigurationError(f"Grid needs at least 3 points, got {self.n}")
        if self.z_max <= self.z_min:
            raise ConfigurationError(
                f"Grid top {self.z_max} m must be above ground {self.z_min} m"
            )

    @property
    def dz(self) -> float:
        return (self.z_max - self.z_min) / (self.n - 1)

    def heights(self) -> np.ndarray:
        """Sample altitudes z_i = z_min + i*dz (m, MSL)"""
        return self.z_min + np.arange(self.n) * self.dz

    def index_of(self, height_above_ground: float) -> int:
        """Grid index ceil(h/dz) of a height above ground (m)"""
        index = int(math.ceil(height_above_ground / self.dz))
        if index < 0 or index >= self.n:
            raise ConfigurationError(
                f"Height {height_above_ground} m above ground is outside the grid"
            )
        return index

    @staticmethod
    def at_ground(height_above_ground: float) -> bool:
        return abs(height_above_ground) < GROUND_HEIGHT_TOLERANCE


@dataclass
class AtmosphereColumn:
    """
    Azimuth-independent samples on the grid (SI units).

    Attributes:
        heights: z_i (m)
        density: rho (kg/m^3)
        pressure: P (Pa)
        temperature: T (K)
        zonal_wind: U (m/s)
        meridional_wind: V (m/s)
        sound_speed: adiabatic c0 = sqrt(gamma P / rho) (m/s)
        attenuation: absorption coefficient alpha (Np/m)
        density_gradient_ground: d(rho)/dz at z_min (kg/m^4)
    """
    heights: np.ndarray
    density: np.ndarray
    pressure: np.ndarray
    temperature: np.ndarray
    zonal_wind: np.ndarray
    meridional_wind: np.ndarray
    sound_speed: np.ndarray
    attenuation: np.ndarray
    density_gradient_ground: float

    @classmethod
    def from_profile(
        cls,
        profile: AtmosphericProfile,
        grid: AltitudeGrid,
        frequency: float,
        attenuation_file: Optional[str] = None,
    ) -> 'AtmosphereColumn':
        """
        Sample a profile onto the grid.

        The profile must use meters for altitude and SI units for
        T, P, RHO, U and V.
        """
        z = grid.heights()
        rho = profile.get('RHO', z)
        pressure = profile.get('P', z)
        temperature = profile.get('T', z)

        if attenuation_file:
            alpha = attenuation_on_grid(attenuation_file, z)
        else:
            alpha = classical_rotational_attenuation(temperature, pressure, rho, frequency)

        return cls(
            heights=z,
            density=rho,
            pressure=pressure,
            temperature=temperature,
            zonal_wind=profile.get('U', z),
            meridional_wind=profile.get('V', z),
            sound_speed=sound_speed_from_pressure_density(pressure, rho),
            attenuation=np.asarray(alpha, dtype=float),
            density_gradient_ground=profile.get_first_derivative('RHO', grid.z_min),
        )

    @property
    def n(self) -> int:
        return self.heights.size


@dataclass
class AzimuthColumn:
    """Per-azimuth wind projection and effective sound speed"""
    azimuth: float
    wind_component: np.ndarray
    effective_sound_speed: np.ndarray

    @classmethod
    def from_atmosphere(cls, column: AtmosphereColumn, azimuth: float) -> 'AzimuthColumn':
        az = np.radians(azimuth)
        wc = column.zonal_wind * np.sin(az) + column.meridional_wind * np.cos(az)
        return cls(
            azimuth=azimuth,
            wind_component=wc,
            effective_sound_speed=effective_sound_speed(column.sound_speed, wc),
        )
