"""
Modal Trace Builder

Builds the diagonal of the discretized vertical operator for one
azimuth, applies the ground boundary term and computes the horizontal
wavenumber search interval [k_min, k_max].

The operator is the second-order centered difference of

    d^2 psi/dz^2 + (omega/c_eff(z))^2 psi = k^2 psi

with the ground admittance folded into the first diagonal entry and a
pressure-release condition at the top of the grid.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

import numpy as np

from src.common.constants import (
    WKB_INTEGRAL_THRESHOLD,
    WKB_MIN_STEP,
    WKB_SEARCH_STEPS,
)
from src.common.exceptions import ConfigurationError

from .grid import AltitudeGrid, AtmosphereColumn, AzimuthColumn

logger = logging.getLogger(__name__)


class Discretization(Enum):
    """Vertical operator formulations"""
    STANDARD = "modess"       # effective sound speed approximation
    WIDE_ANGLE = "wmod"       # linearized quadratic (wind-corrected) problem

    @classmethod
    def from_name(cls, name: str) -> 'Discretization':
        key = name.lower().strip()
        aliases = {
            'modess': cls.STANDARD,
            'standard': cls.STANDARD,
            'narrow': cls.STANDARD,
            'wmod': cls.WIDE_ANGLE,
            'wide_angle': cls.WIDE_ANGLE,
            'wide': cls.WIDE_ANGLE,
        }
        if key not in aliases:
            raise ConfigurationError(f"Unknown discretization: '{name}'")
        return aliases[key]


@dataclass
class ModalTrace:
    """
    Operator coefficients and wavenumber bounds for one azimuth.

    Attributes:
        grid: Altitude grid
        frequency: Hz
        admittance: Ground admittance used for the boundary term
        diag: (omega/c_eff)^2 with the boundary term on diag[0]
        k_min: Lower wavenumber bound (1/m)
        k_max: Upper wavenumber bound (1/m), possibly WKB-truncated
        k_max_full: omega / min(c_eff)
        c_eff_min: Minimum effective sound speed on the grid
        c_eff_max: Maximum effective sound speed on the grid
        kd: (omega/c0)^2 with the boundary term (wide-angle only)
        md: (wc/c0)^2 - 1 (wide-angle only)
        cd: -2 omega wc / c0^2 (wide-angle only)
    """
    grid: AltitudeGrid
    frequency: float
    admittance: float
    diag: np.ndarray
    k_min: float
    k_max: float
    k_max_full: float
    c_eff_min: float
    c_eff_max: float
    kd: Optional[np.ndarray] = None
    md: Optional[np.ndarray] = None
    cd: Optional[np.ndarray] = None

    @property
    def omega(self) -> float:
        return 2.0 * np.pi * self.frequency

    @property
    def is_wide_angle(self) -> bool:
        return self.kd is not None


def ground_admittance(
    model: str,
    lamb_wave_bc: bool,
    density_ground: float,
    density_gradient_ground: float,
) -> float:
    """
    Ground admittance for a boundary model.

    Args:
        model: Impedance model name; only 'rigid' is supported
        lamb_wave_bc: Use the Lamb-wave condition -rho'(z0)/rho(z0)/2
        density_ground: rho at the ground
        density_gradient_ground: d(rho)/dz at the ground

    Raises:
        ConfigurationError: For any model other than 'rigid'
    """
    if model.lower().strip() != 'rigid':
        raise ConfigurationError(
            f"Unsupported ground impedance model: '{model}' (supported: rigid)"
        )
    if lamb_wave_bc:
        return -density_gradient_ground / density_ground / 2.0
    return 0.0


def boundary_term(dz: float, admittance: float) -> float:
    """Ground term 1/((1 + dz*admittance) dz^2) added to the first diagonal entry"""
    return 1.0 / ((dz * admittance + 1.0) * dz ** 2)


def wkb_truncated_k_max(
    k_eff_sq: np.ndarray,
    dz: float,
    k_ground: float,
    k_max_full: float,
) -> float:
    """
    Largest wavenumber with non-negligible ground-to-ground energy.

    Trial k^2 values step from k_ground^2 toward k_max_full^2. For each
    trial, sqrt|k^2 - (omega/c_eff)^2| dz is summed upward from the
    ground until the term falls to the step size or below; the first
    trial whose tunneling integral reaches the threshold sets k_max.

    Args:
        k_eff_sq: (omega/c_eff)^2 per grid point (no boundary term)
        dz: Grid spacing (m)
        k_ground: omega / c_eff at the ground
        k_max_full: omega / min(c_eff)

    Returns:
        Truncated k_max. k_ground when the search interval is degenerate,
        k_max_full when no trial reaches the threshold.
    """
    kk_start = k_ground ** 2
    kk_end = k_max_full ** 2
    dkk = (kk_end - kk_start) / WKB_SEARCH_STEPS

    if dkk <= WKB_MIN_STEP:
        return k_ground

    for step in range(WKB_SEARCH_STEPS):
        kk = kk_start + step * dkk
        terms = np.abs(kk - k_eff_sq)

        below = np.nonzero(terms <= dkk)[0]
        last = below[0] if below.size else terms.size - 1
        integral = dz * np.sum(np.sqrt(terms[:last + 1]))

        if integral >= WKB_INTEGRAL_THRESHOLD:
            logger.info(
                f"WKB truncation: minimum phase speed {2 * np.pi / np.sqrt(kk):.2f}/f m/s, "
                f"k_max {np.sqrt(kk):.6e} (was {k_max_full:.6e})"
            )
            return float(np.sqrt(kk))

    return k_max_full


def build_modal_trace(
    grid: AltitudeGrid,
    atmosphere: AtmosphereColumn,
    azimuth: AzimuthColumn,
    frequency: float,
    admittance: float,
    discretization: Discretization = Discretization.STANDARD,
    use_wkb: bool = False,
    source_height: float = 0.0,
    receiver_height: float = 0.0,
) -> ModalTrace:
    """
    Build the operator diagonal(s) and wavenumber bounds.

    Args:
        grid: Altitude grid
        atmosphere: Azimuth-independent samples
        azimuth: Effective sound speed for this azimuth
        frequency: Hz
        admittance: Ground admittance
        discretization: Standard or wide-angle
        use_wkb: Allow WKB truncation of k_max
        source_height: Source height above ground (m)
        receiver_height: Receiver height above ground (m)

    Returns:
        ModalTrace for this azimuth
    """
    omega = 2.0 * np.pi * frequency
    dz = grid.dz
    c_eff = azimuth.effective_sound_speed
    bnd = boundary_term(dz, admittance)

    k_eff_sq = (omega / c_eff) ** 2
    diag = k_eff_sq.copy()
    diag[0] += bnd

    c_eff_min = float(min(c_eff[0], np.min(c_eff)))
    c_eff_max = float(max(c_eff[0], np.max(c_eff)))
    k_max_full = omega / c_eff_min

    if use_wkb and grid.at_ground(source_height) and grid.at_ground(receiver_height):
        k_max = wkb_truncated_k_max(k_eff_sq, dz, omega / c_eff[0], k_max_full)
    else:
        k_max = k_max_full

    n = grid.n
    top = min(n - n // 10 + 1, n - 1)
    k_min = omega / c_eff[top]

    kd = md = cd = None
    if discretization is Discretization.WIDE_ANGLE:
        c0 = atmosphere.sound_speed
        wc = azimuth.wind_component
        kd = (omega / c0) ** 2
        kd[0] += bnd
        md = (wc / c0) ** 2 - 1.0
        cd = -2.0 * omega * wc / c0 ** 2

    logger.debug(
        f"Trace az={azimuth.azimuth:.2f}: c_eff [{c_eff_min:.2f}, {c_eff_max:.2f}] m/s, "
        f"k [{k_min:.6e}, {k_max:.6e}]"
    )

    return ModalTrace(
        grid=grid,
        frequency=frequency,
        admittance=admittance,
        diag=diag,
        k_min=float(k_min),
        k_max=float(k_max),
        k_max_full=float(k_max_full),
        c_eff_min=c_eff_min,
        c_eff_max=c_eff_max,
        kd=kd,
        md=md,
        cd=cd,
    )


def apply_wavenumber_filter(trace: ModalTrace, c_min: float, c_max: float) -> ModalTrace:
    """Replace the bounds by k_min = omega/c_max, k_max = omega/c_min"""
    omega = trace.omega
    return replace(trace, k_min=omega / c_max, k_max=omega / c_min)
