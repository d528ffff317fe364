"""
Mode Selection

Keeps the converged pairs whose real wavenumber lies in [k_min, k_max]
and copies their shapes into a dense, contiguously indexed table.
Retention order is the order the pairs were returned in; it is not
re-sorted by wavenumber.
"""

import logging
from dataclasses import dataclass

import numpy as np

from src.common.constants import MAX_MODES
from src.common.exceptions import ModeCapacityError

from .assembler import ConvergedModes

logger = logging.getLogger(__name__)


@dataclass
class SelectedModes:
    """
    Physically valid modes for one azimuth.

    Attributes:
        wavenumbers: Real horizontal wavenumbers k_j (1/m), shape (m,)
        shapes: Mode shapes, shape (n, m)
        dz: Grid spacing (m)
    """
    wavenumbers: np.ndarray
    shapes: np.ndarray
    dz: float

    @property
    def count(self) -> int:
        return int(self.wavenumbers.size)

    def __len__(self) -> int:
        return self.count

    def norms(self) -> np.ndarray:
        """sum(v_j^2) dz per mode; 1 for normalized shapes"""
        return np.sum(self.shapes ** 2, axis=0) * self.dz

    def at_index(self, index: int) -> np.ndarray:
        """Mode amplitudes at one grid index, shape (m,)"""
        return self.shapes[index, :]


def select_modes(
    converged: ConvergedModes,
    k_min: float,
    k_max: float,
    dz: float,
    max_modes: int = MAX_MODES,
) -> SelectedModes:
    """
    Filter converged pairs to the wavenumber interval.

    Args:
        converged: Assembler output
        k_min: Lower bound (inclusive)
        k_max: Upper bound (inclusive)
        dz: Grid spacing (m)
        max_modes: Capacity of the mode table

    Returns:
        SelectedModes in solver return order

    Raises:
        ModeCapacityError: If more than max_modes modes are retained
    """
    k = converged.real_wavenumbers()
    keep = np.nonzero((k >= k_min) & (k <= k_max))[0]

    if keep.size > max_modes:
        raise ModeCapacityError(
            f"{keep.size} modes in [{k_min:.6e}, {k_max:.6e}] exceed the "
            f"mode table capacity of {max_modes}"
        )

    dropped = len(converged) - keep.size
    if dropped:
        logger.debug(f"Discarded {dropped} converged pairs outside [k_min, k_max]")

    return SelectedModes(
        wavenumbers=np.ascontiguousarray(k[keep], dtype=float),
        shapes=np.ascontiguousarray(converged.shapes[:, keep], dtype=float),
        dz=dz,
    )
