"""
Attenuation Perturbation

First-order correction of real modal wavenumbers for atmospheric
absorption:

    absorption_j = sum_i dz v_j(z_i)^2 (omega / c_T(z_i)) alpha(z_i) 2
    k_pert_j     = sqrt(k_j^2 + i absorption_j)

with c_T = sqrt(gamma P / rho). Mode shapes are assumed unchanged by
the (weak) absorption.
"""

import numpy as np

from src.common.constants import GAMMA_AIR

from .selection import SelectedModes


def modal_absorption(
    modes: SelectedModes,
    pressure: np.ndarray,
    density: np.ndarray,
    attenuation: np.ndarray,
    frequency: float,
) -> np.ndarray:
    """Absorption integral per mode, shape (m,)"""
    omega = 2.0 * np.pi * frequency
    c_t = np.sqrt(GAMMA_AIR * np.asarray(pressure) / np.asarray(density))
    weight = 2.0 * (omega / c_t) * np.asarray(attenuation)
    return modes.dz * (weight @ (modes.shapes ** 2))


def perturb_wavenumbers(
    modes: SelectedModes,
    pressure: np.ndarray,
    density: np.ndarray,
    attenuation: np.ndarray,
    frequency: float,
) -> np.ndarray:
    """
    Complex lossy wavenumbers.

    Args:
        modes: Selected modes
        pressure: P on the grid (Pa)
        density: rho on the grid (kg/m^3)
        attenuation: alpha on the grid (Np/m)
        frequency: Hz

    Returns:
        k_pert, complex, shape (m,); Im(k_pert) >= 0 for alpha >= 0
    """
    absorption = modal_absorption(modes, pressure, density, attenuation, frequency)
    return np.sqrt(modes.wavenumbers ** 2 + 1j * absorption)
