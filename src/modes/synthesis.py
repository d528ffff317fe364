"""
Field Synthesis from a Mode Set

Closed-form modal sums for transmission loss, the modal starter field,
and phase/group speeds. Everything here is a pure array computation;
writing files is left to src.modes.products.

The pressure modal sum saved as transmission loss is

    p(r) = 4 pi i exp(-i pi/4) / sqrt(8 pi r) * sum_j v_j(zs) v_j(zr) exp(i k_j r) / sqrt(k_j)

so that |p| is TL relative to the free-space field at 1 m.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from src.common.constants import (
    REFERENCE_SOUND_SPEED,
    TLOSS_2D_FALLBACK_STRIDE,
    TLOSS_2D_MAX_ROWS,
)

logger = logging.getLogger(__name__)

# 4 pi i exp(-i pi/4) / sqrt(8 pi)
EXP_OVER_8PI = 4.0 * np.pi * 1j * np.exp(-1j * np.pi * 0.25) / np.sqrt(8.0 * np.pi)


@dataclass
class TransmissionLoss1D:
    """
    Modal sums at fixed source/receiver heights.

    Attributes:
        ranges: r_i (m)
        coherent: Complex coherent sum with lossy k
        incoherent: Incoherent magnitude with lossy k
        coherent_lossless: Complex coherent sum with Re(k)
        incoherent_lossless: Incoherent magnitude with Re(k)
    """
    ranges: np.ndarray
    coherent: np.ndarray
    incoherent: np.ndarray
    coherent_lossless: np.ndarray
    incoherent_lossless: np.ndarray

    def tl_db(self, lossless: bool = False) -> np.ndarray:
        """Coherent transmission loss in dB re 1 m"""
        field = self.coherent_lossless if lossless else self.coherent
        with np.errstate(divide='ignore'):
            return 20.0 * np.log10(np.abs(field))


def _coherent_sum(amplitude: np.ndarray, k: np.ndarray, ranges: np.ndarray) -> np.ndarray:
    """sum_j amplitude_j exp(i k_j r) / sqrt(k_j) for every r, shape (..., n_r)"""
    phase = np.exp(1j * np.outer(k, ranges))
    return (amplitude / np.sqrt(k)) @ phase


def transmission_loss_1d(
    k_pert: np.ndarray,
    v_src: np.ndarray,
    v_rcv: np.ndarray,
    ranges: np.ndarray,
) -> TransmissionLoss1D:
    """
    Coherent and incoherent 1-D transmission loss, lossy and lossless.

    Args:
        k_pert: Complex wavenumbers, shape (m,)
        v_src: Mode amplitudes at the source index, shape (m,)
        v_rcv: Mode amplitudes at the receiver index, shape (m,)
        ranges: Ranges (m), shape (n_r,)

    Returns:
        TransmissionLoss1D
    """
    k = np.asarray(k_pert, dtype=complex)
    k_real = np.real(k)
    r = np.asarray(ranges, dtype=float)
    product = np.asarray(v_src) * np.asarray(v_rcv)

    coherent = EXP_OVER_8PI * _coherent_sum(product.astype(complex), k, r) / np.sqrt(r)
    coherent_ll = EXP_OVER_8PI * _coherent_sum(product.astype(complex), k_real.astype(complex), r) / np.sqrt(r)

    attenuation = np.exp(-2.0 * np.outer(np.imag(k), r))
    inc = (product ** 2 / np.abs(k)) @ attenuation
    inc_ll = (product ** 2 / k_real) @ np.ones_like(attenuation)

    scale = 4.0 * np.pi * np.sqrt(1.0 / (8.0 * np.pi * r))
    return TransmissionLoss1D(
        ranges=r,
        coherent=np.asarray(coherent, dtype=complex),
        incoherent=scale * np.sqrt(inc),
        coherent_lossless=np.asarray(coherent_ll, dtype=complex),
        incoherent_lossless=scale * np.sqrt(inc_ll),
    )


def tloss_2d_stride(n: int) -> int:
    """Altitude stride keeping the 2-D grid to about TLOSS_2D_MAX_ROWS rows"""
    stride = n // TLOSS_2D_MAX_ROWS
    return stride if stride > 0 else TLOSS_2D_FALLBACK_STRIDE


def transmission_loss_2d(
    k_pert: np.ndarray,
    shapes: np.ndarray,
    src_index: int,
    ranges: np.ndarray,
    stride: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Coherent modal sum on a range/altitude grid.

    Args:
        k_pert: Complex wavenumbers, shape (m,)
        shapes: Mode shapes, shape (n, m)
        src_index: Source grid index
        ranges: Ranges (m), shape (n_r,)
        stride: Altitude sampling stride

    Returns:
        (row_indices, field) with field shape (n_r, len(row_indices))
    """
    k = np.asarray(k_pert, dtype=complex)
    r = np.asarray(ranges, dtype=float)
    rows = np.arange(0, shapes.shape[0], stride)

    # amplitude[z, j] = v_j(zs) v_j(z) / sqrt(k_j)
    amplitude = shapes[rows, :] * shapes[src_index, :] / np.sqrt(k)
    phase = np.exp(1j * np.outer(k, r))
    field = EXP_OVER_8PI * (amplitude @ phase) / np.sqrt(r)
    return rows, np.asarray(field.T, dtype=complex)


def starter_stride(frequency: float, dz: float) -> int:
    """One tenth of the reference wavelength in grid steps (at least 1)"""
    return max(1, int((REFERENCE_SOUND_SPEED / frequency) / 10.0 / dz))


def modal_starter(
    k_pert: np.ndarray,
    shapes: np.ndarray,
    src_index: int,
    frequency: float,
    dz: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Modal starter field for a subsequent parabolic-equation run.

    psi(z) = pi sqrt(k0) sum_j v_j(zs) v_j(z) / sqrt(Re k_j), k0 = 2 pi f / 340

    Returns:
        (heights above ground in m, complex field)
    """
    k0 = 2.0 * np.pi * frequency / REFERENCE_SOUND_SPEED
    rows = np.arange(0, shapes.shape[0], starter_stride(frequency, dz))
    k_real = np.real(np.asarray(k_pert))

    field = (shapes[rows, :] * shapes[src_index, :]) @ (1.0 / np.sqrt(k_real))
    field = np.asarray(field, dtype=complex) * np.pi * np.sqrt(k0)
    return rows * dz, field


def phase_speeds(k_pert: np.ndarray, frequency: float) -> np.ndarray:
    """omega / Re(k_j)"""
    return 2.0 * np.pi * frequency / np.real(np.asarray(k_pert))


def group_speeds(
    k_pert: np.ndarray,
    shapes: np.ndarray,
    c_eff: np.ndarray,
    frequency: float,
    dz: float,
) -> np.ndarray:
    """1 / (v_phase sum_i dz v_j^2 / c_eff^2)"""
    v_phase = phase_speeds(k_pert, frequency)
    integral = (1.0 / np.asarray(c_eff) ** 2) @ (shapes ** 2) * dz
    return 1.0 / (v_phase * integral)


def normalization_check(shapes: np.ndarray, dz: float, threshold: float = 0.1) -> List[int]:
    """
    Indices of modes with |1 - sum(v^2) dz| > threshold.

    Advisory only: a warning is logged for each flagged mode.
    """
    norms = np.sum(shapes ** 2, axis=0) * dz
    flagged = [int(j) for j in np.nonzero(np.abs(1.0 - norms) > threshold)[0]]
    for j in flagged:
        logger.warning(f"Check if eigenfunction {j} is normalized (sum v^2 dz = {norms[j]:.4f})")
    return flagged
