"""
Shared fixtures: a synthetic isothermal atmosphere with an eastward jet

Winds grow linearly with height, so c_eff increases upward toward the
east and a set of ducted modes exists at low frequency.
"""

import numpy as np
import pytest

GAS_CONSTANT = 287.05
GRAVITY = 9.80665
TEMPERATURE = 288.15
WIND_SHEAR = 2.0  # m/s per km


def write_jet_profile(path, top_km=40.0, levels=401, ground_km=None):
    """Write a header-format profile (km, K, m/s, g/cm3, mbar)"""
    z = np.linspace(0.0, top_km, levels)
    scale_height = GAS_CONSTANT * TEMPERATURE / GRAVITY / 1000.0
    pressure_pa = 101325.0 * np.exp(-z / scale_height)
    density = pressure_pa / (GAS_CONSTANT * TEMPERATURE)

    table = np.column_stack([
        z,
        np.full(z.shape, TEMPERATURE),
        WIND_SHEAR * z,
        np.zeros(z.shape),
        density / 1000.0,
        pressure_pa / 100.0,
    ])
    with open(path, 'w') as f:
        if ground_km is not None:
            f.write(f"#% 0, Z0, km, {ground_km}\n")
        f.write("#% 1, Z, km\n#% 2, T, K\n#% 3, U, m/s\n#% 4, V, m/s\n"
                "#% 5, RHO, g/cm3\n#% 6, P, mbar\n")
        np.savetxt(f, table, fmt='%.10e')
    return path


def small_run_dict(profile_path, output_dir, **overrides):
    """Configuration for a fast 0.1 Hz run on a 300-point grid"""
    config = {
        'atmosfile': str(profile_path),
        'freq': 0.1,
        'grid': {'maxheight_km': 30.0, 'Nz_grid': 300},
        'geometry': {'maxrange_km': 200.0, 'Nrng_steps': 100},
        'azimuth': {'azimuth': 90.0},
        'output': {'output_dir': str(output_dir)},
    }
    for section, values in overrides.items():
        if isinstance(values, dict):
            config.setdefault(section, {}).update(values)
        else:
            config[section] = values
    return config


@pytest.fixture
def jet_profile_path(tmp_path):
    return write_jet_profile(tmp_path / "jet_profile.dat")


@pytest.fixture
def run_config_dict(jet_profile_path, tmp_path):
    """Factory for run configurations on the jet profile"""
    def build(**overrides):
        return small_run_dict(jet_profile_path, tmp_path / "out", **overrides)
    return build


@pytest.fixture
def profile_writer():
    return write_jet_profile
