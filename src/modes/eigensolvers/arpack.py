"""
Shift-Invert Krylov (ARPACK) Eigen-Solver

Symmetric problems: scipy.sparse.linalg.eigsh in shift-invert mode about
the interval midpoint.

Generalized problems: the operator (A - sigma B)^-1 B is applied through
a sparse LU factorization and its largest-magnitude eigenvalues nu are
mapped back with lambda = sigma + 1/nu.

Non-convergence is not an error: whatever pairs ARPACK converged are
returned and the shortfall shows in the report.
"""

import logging
from typing import Tuple

import numpy as np
import scipy.sparse as sp
from scipy.sparse.linalg import (
    ArpackNoConvergence,
    LinearOperator,
    eigs,
    eigsh,
    splu,
)

from .base import BaseEigenSolver, EigenSolution

logger = logging.getLogger(__name__)


class ArpackEigenSolver(BaseEigenSolver):
    """Iterative solver backed by ARPACK"""

    def name(self) -> str:
        return "arpack"

    def solve_symmetric(
        self,
        matrix: sp.spmatrix,
        interval: Tuple[float, float],
        requested: int,
    ) -> EigenSolution:
        n = matrix.shape[0]
        k = min(requested, n - 1)
        if k <= 0:
            return EigenSolution.empty(n, self._report(requested, 0))

        lower, upper = interval
        sigma = 0.5 * (lower + upper)

        try:
            values, vectors = eigsh(
                matrix.tocsc(), k=k, sigma=sigma, which='LM',
                tol=self.tolerance, maxiter=self.max_iterations,
            )
        except ArpackNoConvergence as e:
            logger.warning(f"eigsh converged {len(e.eigenvalues)} of {k} eigenpairs")
            values, vectors = e.eigenvalues, e.eigenvectors

        values = np.real(values)
        vectors = np.real(vectors)
        return EigenSolution(values, vectors, self._report(requested, values.size))

    def solve_generalized(
        self,
        a: sp.spmatrix,
        b: sp.spmatrix,
        target: float,
        requested: int,
    ) -> EigenSolution:
        n = a.shape[0]
        k = min(requested, n - 2)
        if k <= 0:
            return EigenSolution.empty(n, self._report(requested, 0), dtype=complex)

        lu = splu((a - target * b).tocsc())
        b_csr = b.tocsr()

        op = LinearOperator(
            (n, n),
            matvec=lambda x: lu.solve(np.asarray(b_csr @ x)),
            dtype=float,
        )

        try:
            nu, vectors = eigs(op, k=k, which='LM', tol=self.tolerance,
                               maxiter=self.max_iterations)
        except ArpackNoConvergence as e:
            logger.warning(f"eigs converged {len(e.eigenvalues)} of {k} eigenpairs")
            nu, vectors = e.eigenvalues, e.eigenvectors

        nonzero = nu != 0
        values = target + 1.0 / nu[nonzero]
        vectors = vectors[:, nonzero]
        return EigenSolution(
            values.astype(complex),
            vectors.astype(complex),
            self._report(requested, values.size),
        )
