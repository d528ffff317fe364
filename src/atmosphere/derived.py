"""
Derived Atmospheric Quantities

Array functions for quantities computed from a profile's primary
variables (T, P, rho, U, V): adiabatic sound speed, wind speed and
direction, along-azimuth wind, effective sound speed and the
absorption coefficient (classical plus rotational relaxation).

All inputs are SI (m, m/s, K, Pa, kg/m^3) unless noted.
"""

import logging
from pathlib import Path
from typing import Tuple, Union

import numpy as np

from src.common.constants import (
    GAMMA_AIR,
    MOLE_FRACTION_N2,
    MOLE_FRACTION_O2,
    PRANDTL_NUMBER,
    REFERENCE_TEMPERATURE,
    REFERENCE_VISCOSITY,
    ROTATIONAL_BULK_VISCOSITY_RATIO,
    SUTHERLAND_CONSTANT,
)
from src.common.exceptions import ConfigurationError
from src.common.units import Units

from .profile import AtmosphericProfile

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]

# Profile keys written by add_derived_properties / add_azimuth_properties
SOUND_SPEED_KEY = '_C0_'
WIND_SPEED_KEY = '_WS_'
WIND_DIRECTION_KEY = '_WD_'
ATTENUATION_KEY = '_ALPHA_'
WIND_COMPONENT_KEY = '_WC_'
EFFECTIVE_SOUND_SPEED_KEY = '_CE_'
AZIMUTH_KEY = '_AZ_'

AZIMUTH_SCOPED_KEYS = (WIND_COMPONENT_KEY, EFFECTIVE_SOUND_SPEED_KEY, AZIMUTH_KEY)


def sound_speed_from_pressure_density(pressure: ArrayLike, density: ArrayLike) -> ArrayLike:
    """Adiabatic sound speed sqrt(gamma P / rho) in m/s"""
    return np.sqrt(GAMMA_AIR * np.asarray(pressure) / np.asarray(density))


def wind_speed(u: ArrayLike, v: ArrayLike) -> ArrayLike:
    """Horizontal wind magnitude"""
    return np.hypot(u, v)


def wind_direction(u: ArrayLike, v: ArrayLike) -> ArrayLike:
    """
    Direction the wind blows toward, degrees clockwise from north.

    Args:
        u: Zonal (west-to-east) wind
        v: Meridional (south-to-north) wind
    """
    return np.mod(np.degrees(np.arctan2(u, v)), 360.0)


def wind_component(speed: ArrayLike, direction_deg: ArrayLike, azimuth_deg: float) -> ArrayLike:
    """
    Wind projected onto a propagation azimuth.

    Equal to ``u*sin(az) + v*cos(az)`` for the wind vector (u, v).
    """
    return np.asarray(speed) * np.cos(np.radians(np.asarray(direction_deg) - azimuth_deg))


def effective_sound_speed(sound_speed: ArrayLike, component: ArrayLike) -> ArrayLike:
    """c_eff = c0 + wind component along the azimuth"""
    return np.asarray(sound_speed) + np.asarray(component)


def classical_rotational_attenuation(
    temperature: np.ndarray,
    pressure: np.ndarray,
    density: np.ndarray,
    frequency: float,
) -> np.ndarray:
    """
    Classical plus rotational absorption coefficient (Np/m).

    Viscosity follows Sutherland's law; the classical term combines
    shear viscosity and heat conduction, the rotational term uses a bulk
    viscosity proportional to shear viscosity for the O2/N2 fraction.
    Vibrational relaxation is not included.

    Args:
        temperature: K
        pressure: Pa
        density: kg/m^3
        frequency: Hz

    Returns:
        Absorption coefficient per altitude sample
    """
    T = np.asarray(temperature, dtype=float)
    P = np.asarray(pressure, dtype=float)
    rho = np.asarray(density, dtype=float)

    omega = 2.0 * np.pi * frequency
    c = sound_speed_from_pressure_density(P, rho)

    mu = (REFERENCE_VISCOSITY * np.sqrt(T / REFERENCE_TEMPERATURE)
          * (1.0 + SUTHERLAND_CONSTANT / REFERENCE_TEMPERATURE)
          / (1.0 + SUTHERLAND_CONSTANT / T))

    # Nondimensional frequency; the sqrt() form stays bounded in the thermosphere
    nu = 8.0 * np.pi * frequency * mu / (3.0 * P)
    # sqrt(1 + nu^2) - 1 written without cancellation for small nu
    excess = nu ** 2 / (np.sqrt(1.0 + nu ** 2) + 1.0)
    relaxation = np.sqrt(0.5 * excess / (1.0 + nu ** 2))

    thermal = 3.0 * (GAMMA_AIR - 1.0) / (4.0 * PRANDTL_NUMBER)
    a_cl = (omega / c) * relaxation * (1.0 + thermal)

    rot_fraction = MOLE_FRACTION_O2 + MOLE_FRACTION_N2
    a_rot = (omega / c) * relaxation * 0.75 * ROTATIONAL_BULK_VISCOSITY_RATIO * rot_fraction

    return a_cl + a_rot


def read_attenuation_file(path: Union[str, Path]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Read a user attenuation table.

    Two columns: altitude (km) and absorption coefficient (Np/m).

    Returns:
        (altitudes_m, alpha)
    """
    data = np.loadtxt(path, comments='#', ndmin=2)
    if data.shape[1] < 2 or data.shape[0] < 2:
        raise ConfigurationError(f"Attenuation file {path} needs two columns and two rows")
    order = np.argsort(data[:, 0])
    return data[order, 0] * 1000.0, data[order, 1]


def attenuation_on_grid(path: Union[str, Path], heights_m: np.ndarray) -> np.ndarray:
    """User attenuation interpolated onto grid heights (end values held outside the table)"""
    z, alpha = read_attenuation_file(path)
    if heights_m[0] < z[0] or heights_m[-1] > z[-1]:
        logger.warning(
            f"Attenuation file {path} covers {z[0]:.0f}-{z[-1]:.0f} m; "
            f"grid spans {heights_m[0]:.0f}-{heights_m[-1]:.0f} m, holding end values"
        )
    return np.interp(heights_m, z, alpha)


# ----------------------------------------------------------------------
# Profile helpers
# ----------------------------------------------------------------------

def add_derived_properties(profile: AtmosphericProfile, frequency: float) -> None:
    """
    Add azimuth-independent derived quantities to a profile.

    The profile must already hold T (K), P (Pa), RHO (kg/m3), U and V (m/s).
    """
    T = profile.get_vector('T')
    P = profile.get_vector('P')
    rho = profile.get_vector('RHO')
    u = profile.get_vector('U')
    v = profile.get_vector('V')

    profile.add_property(SOUND_SPEED_KEY, sound_speed_from_pressure_density(P, rho),
                         Units.SPEED_METERS_PER_SECOND)
    profile.add_property(WIND_SPEED_KEY, wind_speed(u, v), Units.SPEED_METERS_PER_SECOND)
    profile.add_property(WIND_DIRECTION_KEY, wind_direction(u, v),
                         Units.DIRECTION_DEGREES_CLOCKWISE_FROM_NORTH)
    profile.add_property(ATTENUATION_KEY, classical_rotational_attenuation(T, P, rho, frequency),
                         Units.ATTENUATION_NEPERS_PER_METER)


def add_azimuth_properties(profile: AtmosphericProfile, azimuth_deg: float) -> None:
    """Add wind component, effective sound speed and the azimuth tag"""
    wc = wind_component(profile.get_vector(WIND_SPEED_KEY),
                        profile.get_vector(WIND_DIRECTION_KEY), azimuth_deg)
    profile.add_property(WIND_COMPONENT_KEY, wc, Units.SPEED_METERS_PER_SECOND)
    profile.add_property(EFFECTIVE_SOUND_SPEED_KEY,
                         effective_sound_speed(profile.get_vector(SOUND_SPEED_KEY), wc),
                         Units.SPEED_METERS_PER_SECOND)
    profile.add_property(AZIMUTH_KEY, azimuth_deg, Units.DIRECTION_DEGREES_CLOCKWISE_FROM_NORTH)


def remove_azimuth_properties(profile: AtmosphericProfile) -> None:
    for key in AZIMUTH_SCOPED_KEYS:
        profile.remove_property(key)
