"""
Sturm-Sequence Mode Counter

Counts eigenvalues of the tridiagonal finite-difference operator
(diagonal -2/dz^2 + diag[i], off-diagonal 1/dz^2) below a trial k^2
without computing eigenvectors.

The recurrence is carried in ratio form, q_i = p_i / p_{i+1}, which is
the three-term recurrence with each value normalized by its
predecessor; a negative ratio marks a sign change.
"""

import math

import numpy as np

_PIVMIN = np.finfo(float).tiny / np.finfo(float).eps


def sturm_count(diag: np.ndarray, dz: float, k: float) -> int:
    """
    Number of operator eigenvalues strictly below k^2.

    Args:
        diag: Operator diagonal (omega/c_eff)^2 with the boundary term
        dz: Grid spacing (m)
        k: Trial horizontal wavenumber (1/m)

    Returns:
        Eigenvalue count
    """
    d = np.asarray(diag, dtype=float)
    main = (-2.0 / dz ** 2 + d - k * k).tolist()
    off_sq = (1.0 / dz ** 2) ** 2
    pivmin = _PIVMIN * max(1.0, off_sq)

    count = 0
    q = 1.0
    # Top of the grid down to the ground
    for i in range(len(main) - 1, -1, -1):
        if i == len(main) - 1:
            q = main[i]
        else:
            q = main[i] - off_sq / q
        if q == 0.0:
            q = pivmin
        elif abs(q) < pivmin:
            q = math.copysign(pivmin, q)
        if q < 0.0:
            count += 1
    return count


def number_of_modes(diag: np.ndarray, dz: float, k_min: float, k_max: float) -> int:
    """
    Estimated number of modes with k_min <= k < k_max.

    An estimate only: it sizes the eigen-solver request and is never
    relied on as the returned count.
    """
    if k_max <= k_min:
        return 0
    return sturm_count(diag, dz, k_max) - sturm_count(diag, dz, k_min)
