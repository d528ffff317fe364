"""
Eigensystem Assembler

Builds the sparse finite-difference operator for a ModalTrace and
delegates the eigen-decomposition to an eigen-solver backend.

Standard formulation (N x N, symmetric tridiagonal):

    main diagonal  -2/dz^2 + diag[i]
    off diagonals   1/dz^2
    eigenvalue      k^2, searched in [k_min^2, k_max^2]

Wide-angle formulation: the quadratic problem (M k^2 + C k + D) v = 0 is
linearized with u = k v into the 2N x 2N pencil

    | -D  0 | |v|     | C  M | |v|
    |       | | | = k |      | | |
    |  0  M | |u|     | M  0 | |u|

with D the tridiagonal Laplacian plus kd, M = diag(md), C = diag(cd).

Returned shapes satisfy sum(v^2) dz = 1.
"""

import logging
import time
from dataclasses import dataclass

import numpy as np
import scipy.sparse as sp

from .eigensolvers import BaseEigenSolver, SolveReport
from .trace import Discretization, ModalTrace

logger = logging.getLogger(__name__)


@dataclass
class ConvergedModes:
    """
    Converged eigenpairs with grid-normalized shapes.

    Attributes:
        discretization: Formulation that produced the pairs
        eigenvalues: k^2 (standard, real) or k (wide-angle, complex)
        shapes: Mode shapes as columns, shape (n, m), sum(v^2) dz = 1
        report: Eigen-solver report
        solve_seconds: Wall time spent in the backend
    """
    discretization: Discretization
    eigenvalues: np.ndarray
    shapes: np.ndarray
    report: SolveReport
    solve_seconds: float = 0.0

    def __len__(self) -> int:
        return int(self.eigenvalues.size)

    def real_wavenumbers(self) -> np.ndarray:
        """sqrt(lambda) for the standard problem, Re(lambda) for wide-angle"""
        if self.discretization is Discretization.STANDARD:
            with np.errstate(invalid='ignore'):
                return np.sqrt(np.real(self.eigenvalues))
        return np.real(self.eigenvalues)


def laplacian_stencil(n: int, dz: float, diagonal: np.ndarray) -> sp.csr_matrix:
    """Tridiagonal -2/dz^2 + diagonal on the main, 1/dz^2 off the main"""
    h2 = dz * dz
    off = np.full(n - 1, 1.0 / h2)
    main = -2.0 / h2 + np.asarray(diagonal, dtype=float)
    return sp.diags([off, main, off], [-1, 0, 1], format='csr')


def standard_operator(trace: ModalTrace) -> sp.csr_matrix:
    """Symmetric N x N operator whose eigenvalues are k^2"""
    return laplacian_stencil(trace.grid.n, trace.grid.dz, trace.diag)


def wide_angle_pencil(trace: ModalTrace):
    """
    Linearized 2N x 2N pencil (A, B) with eigenvalue k.

    Returns:
        (A, B) as CSR matrices
    """
    if not trace.is_wide_angle:
        raise ValueError("Trace has no wide-angle coefficients")

    n = trace.grid.n
    neg_d = -laplacian_stencil(n, trace.grid.dz, trace.kd)
    m = sp.diags(trace.md, 0, format='csr')
    c = sp.diags(trace.cd, 0, format='csr')

    a = sp.bmat([[neg_d, None], [None, m]], format='csr')
    b = sp.bmat([[c, m], [m, None]], format='csr')
    return a, b


def _upper_block_shapes(vectors: np.ndarray, n: int) -> np.ndarray:
    """Real, unit 2-norm upper blocks of complex pencil eigenvectors"""
    upper = vectors[:n, :]
    shapes = np.zeros(upper.shape, dtype=float)
    for j in range(upper.shape[1]):
        col = upper[:, j]
        pivot = col[np.argmax(np.abs(col))]
        if pivot == 0:
            continue
        real = np.real(col * np.conj(pivot) / np.abs(pivot))
        norm = np.linalg.norm(real)
        if norm > 0:
            shapes[:, j] = real / norm
    return shapes


def assemble_and_solve(
    trace: ModalTrace,
    solver: BaseEigenSolver,
    requested: int,
    discretization: Discretization = Discretization.STANDARD,
) -> ConvergedModes:
    """
    Build the operator for a trace and solve it.

    Args:
        trace: Operator coefficients and wavenumber bounds
        solver: Eigen-solver backend
        requested: Estimated mode count in [k_min, k_max]; the wide-angle
                   problem asks for twice this many pairs
        discretization: Formulation to assemble

    Returns:
        ConvergedModes, possibly fewer than requested (including none)
    """
    n = trace.grid.n
    sqrt_dz = np.sqrt(trace.grid.dz)
    start = time.perf_counter()

    if discretization is Discretization.STANDARD:
        matrix = standard_operator(trace)
        solution = solver.solve_symmetric(
            matrix, (trace.k_min ** 2, trace.k_max ** 2), requested
        )
        # Highest wavenumber first
        eigenvalues = solution.values[::-1].astype(float)
        shapes = solution.vectors[:, ::-1].astype(float) / sqrt_dz
    else:
        a, b = wide_angle_pencil(trace)
        sigma = 0.5 * (trace.k_min + trace.k_max)
        solution = solver.solve_generalized(a, b, sigma, 2 * requested)
        eigenvalues = solution.values.astype(complex)
        shapes = _upper_block_shapes(solution.vectors, n) / sqrt_dz

    elapsed = time.perf_counter() - start
    logger.debug(
        f"{discretization.name} solve: {solution.report.converged} of "
        f"{solution.report.requested} pairs in {elapsed:.3f}s ({solution.report.solver})"
    )

    return ConvergedModes(
        discretization=discretization,
        eigenvalues=eigenvalues,
        shapes=np.ascontiguousarray(shapes),
        report=solution.report,
        solve_seconds=elapsed,
    )
