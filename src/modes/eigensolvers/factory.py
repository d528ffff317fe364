"""
Eigen-Solver Factory

Provides factory functions for creating eigen-solver backends by name or
configuration.

Example:
    # By name
    solver = create_eigensolver('arpack', tolerance=1e-10)

    # By enum
    solver = EigenSolverFactory.create(EigenSolverType.LAPACK)

    # 'auto' picks the backend per problem shape
    solver = create_eigensolver('auto', generalized=True)   # arpack
"""

from enum import Enum, auto
from typing import Dict, Optional, Type

from src.common.constants import EIGEN_TOLERANCE
from src.common.exceptions import ConfigurationError

from .base import BaseEigenSolver
from .lapack import LapackEigenSolver
from .arpack import ArpackEigenSolver


class EigenSolverType(Enum):
    """Available eigen-solver backends."""
    LAPACK = auto()
    ARPACK = auto()


# Mapping from type enum to class
_SOLVER_CLASSES: Dict[EigenSolverType, Type[BaseEigenSolver]] = {
    EigenSolverType.LAPACK: LapackEigenSolver,
    EigenSolverType.ARPACK: ArpackEigenSolver,
}

# Mapping from string names to type enum
_NAME_TO_TYPE: Dict[str, EigenSolverType] = {
    # Direct
    'lapack': EigenSolverType.LAPACK,
    'direct': EigenSolverType.LAPACK,
    'dense': EigenSolverType.LAPACK,
    'bisection': EigenSolverType.LAPACK,

    # Krylov shift-invert
    'arpack': EigenSolverType.ARPACK,
    'krylov': EigenSolverType.ARPACK,
    'shift_invert': EigenSolverType.ARPACK,
    'sinvert': EigenSolverType.ARPACK,
}

_CANONICAL: Dict[EigenSolverType, str] = {
    EigenSolverType.LAPACK: 'lapack',
    EigenSolverType.ARPACK: 'arpack',
}


class EigenSolverFactory:
    """
    Factory for creating eigen-solver backends.

    Supports creation by enum type or string name. String names are
    case-insensitive and support multiple aliases.
    """

    @staticmethod
    def create(solver_type: EigenSolverType, **kwargs) -> BaseEigenSolver:
        """
        Create solver by type enum.

        Args:
            solver_type: Backend to create
            **kwargs: Constructor arguments (tolerance, max_iterations)

        Raises:
            ConfigurationError: If the type is not recognized
        """
        if solver_type not in _SOLVER_CLASSES:
            raise ConfigurationError(f"Unknown eigen-solver type: {solver_type}")

        return _SOLVER_CLASSES[solver_type](**kwargs)

    @staticmethod
    def from_name(name: str, generalized: bool = False, **kwargs) -> BaseEigenSolver:
        """
        Create solver by string name.

        Args:
            name: Backend name (case-insensitive). Supported names:
                  - 'lapack', 'direct', 'dense', 'bisection'
                  - 'arpack', 'krylov', 'shift_invert', 'sinvert'
                  - 'auto': lapack for symmetric, arpack for generalized problems
            generalized: Problem shape used to resolve 'auto'
            **kwargs: Constructor arguments

        Raises:
            ConfigurationError: If name is not recognized
        """
        name_lower = name.lower().strip()

        if name_lower == 'auto':
            solver_type = EigenSolverType.ARPACK if generalized else EigenSolverType.LAPACK
            return EigenSolverFactory.create(solver_type, **kwargs)

        if name_lower not in _NAME_TO_TYPE:
            available = ', '.join(sorted(set(_NAME_TO_TYPE.keys()) | {'auto'}))
            raise ConfigurationError(
                f"Unknown eigen-solver name: '{name}'. "
                f"Available: {available}"
            )

        return EigenSolverFactory.create(_NAME_TO_TYPE[name_lower], **kwargs)

    @staticmethod
    def available() -> list:
        """
        List available backend names.

        Returns:
            List of canonical names
        """
        return ['lapack', 'arpack']

    @staticmethod
    def available_aliases() -> Dict[str, str]:
        """
        List all available names with their canonical form.

        Returns:
            Dict mapping alias -> canonical name
        """
        return {
            alias: _CANONICAL[stype]
            for alias, stype in _NAME_TO_TYPE.items()
        }

    @staticmethod
    def get_description(name: str) -> str:
        """
        Get description for a backend.

        Args:
            name: Backend name

        Returns:
            Human-readable description
        """
        descriptions = {
            'lapack': (
                "Direct LAPACK solver. Symmetric problems use bisection "
                "spectrum slicing over the wavenumber interval and return "
                "every mode in it. Generalized problems are solved densely, "
                "so keep grids small."
            ),
            'arpack': (
                "ARPACK implicitly restarted Arnoldi/Lanczos in shift-invert "
                "mode around the target. Scales to fine grids; may converge "
                "fewer pairs than requested."
            ),
        }

        name_lower = name.lower().strip()
        if name_lower in _NAME_TO_TYPE:
            return descriptions[_CANONICAL[_NAME_TO_TYPE[name_lower]]]

        return f"Unknown eigen-solver: {name}"


def create_eigensolver(
    name: str = 'auto',
    tolerance: float = EIGEN_TOLERANCE,
    max_iterations: Optional[int] = None,
    generalized: bool = False,
) -> BaseEigenSolver:
    """
    Convenience function to create an eigen-solver by name.

    Args:
        name: Backend name (see EigenSolverFactory.from_name)
        tolerance: Convergence tolerance
        max_iterations: Iteration cap
        generalized: Problem shape used to resolve 'auto'

    Returns:
        Configured solver instance
    """
    return EigenSolverFactory.from_name(
        name,
        generalized=generalized,
        tolerance=tolerance,
        max_iterations=max_iterations,
    )
