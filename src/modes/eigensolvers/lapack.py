"""
Direct (LAPACK) Eigen-Solver

Symmetric problems use bisection spectrum slicing on the tridiagonal
(scipy.linalg.eigh_tridiagonal with select='v'), so every eigenvalue in
the interval is returned regardless of the requested count.

Generalized problems are solved densely with scipy.linalg.eig and the
pairs nearest the target are kept; intended for small grids.
"""

import logging
from typing import Tuple

import numpy as np
import scipy.linalg as la
import scipy.sparse as sp

from .base import BaseEigenSolver, EigenSolution

logger = logging.getLogger(__name__)


class LapackEigenSolver(BaseEigenSolver):
    """Direct solver backed by LAPACK (stebz/stein, ggev)"""

    def name(self) -> str:
        return "lapack"

    def solve_symmetric(
        self,
        matrix: sp.spmatrix,
        interval: Tuple[float, float],
        requested: int,
    ) -> EigenSolution:
        n = matrix.shape[0]
        lower, upper = interval
        if upper <= lower:
            return EigenSolution.empty(n, self._report(requested, 0))

        d = np.asarray(matrix.diagonal(0), dtype=float)
        e = np.asarray(matrix.diagonal(1), dtype=float)

        values, vectors = la.eigh_tridiagonal(
            d, e, select='v', select_range=(lower, upper), check_finite=False
        )
        logger.debug(f"eigh_tridiagonal: {values.size} eigenvalues in ({lower:.6e}, {upper:.6e}]")
        return EigenSolution(values, vectors, self._report(requested, values.size))

    def solve_generalized(
        self,
        a: sp.spmatrix,
        b: sp.spmatrix,
        target: float,
        requested: int,
    ) -> EigenSolution:
        n = a.shape[0]
        if requested <= 0:
            return EigenSolution.empty(n, self._report(requested, 0), dtype=complex)

        values, vectors = la.eig(a.toarray(), b.toarray(), check_finite=False)

        finite = np.isfinite(values)
        values = values[finite]
        vectors = vectors[:, finite]

        order = np.argsort(np.abs(values - target), kind='stable')[:requested]
        return EigenSolution(
            values[order].astype(complex),
            vectors[:, order].astype(complex),
            self._report(requested, order.size),
        )
