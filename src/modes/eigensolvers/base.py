"""
Base Classes for Eigen-Solver Services

Provides the abstract base class and result structures shared by the
eigen-decomposition backends used by the mode solver.

Two problem shapes are solved:

    A x = lambda x          (real symmetric tridiagonal, interval search)
    A x = lambda B x        (real non-symmetric pencil, target shift)

A solve never guarantees the requested number of pairs; a shortfall is
reported through SolveReport.converged and is not an error.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import scipy.sparse as sp

from src.common.constants import EIGEN_TOLERANCE


@dataclass
class SolveReport:
    """
    Convergence report for one eigen-solve.

    Attributes:
        requested: Number of eigenpairs asked for
        converged: Number of eigenpairs returned
        iterations: Iteration count when the backend reports one
        solver: Backend name
        tolerance: Convergence tolerance passed to the backend
    """
    requested: int
    converged: int
    solver: str
    tolerance: float
    iterations: Optional[int] = None

    @property
    def shortfall(self) -> int:
        """Requested pairs that did not converge"""
        return max(0, self.requested - self.converged)

    def __repr__(self) -> str:
        return (f"SolveReport(solver={self.solver}, requested={self.requested}, "
                f"converged={self.converged}, tol={self.tolerance:.1e})")


@dataclass
class EigenSolution:
    """
    Converged eigenpairs in backend return order.

    Attributes:
        values: Eigenvalues, shape (m,)
        vectors: Eigenvectors as columns, shape (n, m)
        report: Convergence report
    """
    values: np.ndarray
    vectors: np.ndarray
    report: SolveReport

    def __len__(self) -> int:
        return int(self.values.size)

    @classmethod
    def empty(cls, n: int, report: SolveReport, dtype=float) -> 'EigenSolution':
        return cls(
            values=np.zeros(0, dtype=dtype),
            vectors=np.zeros((n, 0), dtype=dtype),
            report=report,
        )


class BaseEigenSolver(ABC):
    """
    Abstract base class for eigen-solver backends.

    Subclasses must implement:
        - solve_symmetric(): eigenpairs of a symmetric matrix in an interval
        - solve_generalized(): eigenpairs of a pencil nearest a target
        - name(): backend name for logging

    Attributes:
        tolerance: Convergence tolerance (iterative backends)
        max_iterations: Iteration cap (None for backend default)

    Example:
        solver = create_eigensolver('arpack', tolerance=1e-10)
        solution = solver.solve_symmetric(matrix, (k_min**2, k_max**2), requested=40)
        print(solution.report.converged)
    """

    def __init__(self, tolerance: float = EIGEN_TOLERANCE, max_iterations: Optional[int] = None):
        """
        Initialize solver.

        Args:
            tolerance: Convergence tolerance
            max_iterations: Iteration cap, None for the backend default
        """
        self.tolerance = tolerance
        self.max_iterations = max_iterations

    @abstractmethod
    def solve_symmetric(
        self,
        matrix: sp.spmatrix,
        interval: Tuple[float, float],
        requested: int,
    ) -> EigenSolution:
        """
        Eigenpairs of a real symmetric matrix with eigenvalues in an interval.

        Args:
            matrix: Symmetric tridiagonal sparse matrix (n x n)
            interval: (lower, upper) eigenvalue bounds
            requested: Estimated number of eigenvalues in the interval

        Returns:
            EigenSolution; vectors have unit 2-norm
        """
        pass

    @abstractmethod
    def solve_generalized(
        self,
        a: sp.spmatrix,
        b: sp.spmatrix,
        target: float,
        requested: int,
    ) -> EigenSolution:
        """
        Eigenpairs of A x = lambda B x nearest a target.

        Args:
            a: Left matrix (n x n)
            b: Right matrix (n x n)
            target: Shift; eigenvalues closest in magnitude are returned
            requested: Number of eigenpairs to compute

        Returns:
            EigenSolution with complex values and vectors
        """
        pass

    @abstractmethod
    def name(self) -> str:
        """
        Return solver name for logging.

        Returns:
            Short backend name
        """
        pass

    def _report(self, requested: int, converged: int,
                iterations: Optional[int] = None) -> SolveReport:
        return SolveReport(
            requested=requested,
            converged=converged,
            solver=self.name(),
            tolerance=self.tolerance,
            iterations=iterations,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(tol={self.tolerance}, max_iter={self.max_iterations})"
