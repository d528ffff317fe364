"""
Atmospheric Profile Package

Altitude-indexed atmosphere storage and the quantities derived from it.
"""

from .profile import (
    AtmosphericProfile,
    ProfileQuantity,
    ProfileScalar,
)

from .derived import (
    sound_speed_from_pressure_density,
    wind_speed,
    wind_direction,
    wind_component,
    effective_sound_speed,
    classical_rotational_attenuation,
    read_attenuation_file,
    attenuation_on_grid,
    add_derived_properties,
    add_azimuth_properties,
    remove_azimuth_properties,
)

__all__ = [
    'AtmosphericProfile',
    'ProfileQuantity',
    'ProfileScalar',
    'sound_speed_from_pressure_density',
    'wind_speed',
    'wind_direction',
    'wind_component',
    'effective_sound_speed',
    'classical_rotational_attenuation',
    'read_attenuation_file',
    'attenuation_on_grid',
    'add_derived_properties',
    'add_azimuth_properties',
    'remove_azimuth_properties',
]
