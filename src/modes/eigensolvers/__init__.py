"""
Eigen-Solver Backends for the Mode Solver

Available Solvers:
- LapackEigenSolver: bisection spectrum slicing / dense generalized QZ
- ArpackEigenSolver: shift-invert Krylov (eigsh / eigs with sparse LU)
"""

from .base import (
    BaseEigenSolver,
    EigenSolution,
    SolveReport,
)
from .lapack import LapackEigenSolver
from .arpack import ArpackEigenSolver
from .factory import EigenSolverFactory, EigenSolverType, create_eigensolver

__all__ = [
    # Base classes
    'BaseEigenSolver',
    'EigenSolution',
    'SolveReport',
    # Solvers
    'LapackEigenSolver',
    'ArpackEigenSolver',
    # Factory
    'EigenSolverFactory',
    'EigenSolverType',
    'create_eigensolver',
]
