"""
Typed Errors for the Infrasound Mode Solver

Every error carries an ErrorKind so callers can tell a fatal
configuration problem from a recoverable lookup miss without string
matching.
"""

from enum import Enum


class ErrorKind(Enum):
    """Classification of solver errors."""
    FATAL_CONFIGURATION = "fatal_configuration"
    MISSING_DATA = "missing_data"
    CAPACITY = "capacity"


class InfraModesError(Exception):
    """Base class for all mode-solver errors."""

    kind: ErrorKind = ErrorKind.FATAL_CONFIGURATION

    @property
    def recoverable(self) -> bool:
        """Whether the caller may fall back to a default and continue."""
        return self.kind is ErrorKind.MISSING_DATA


class ConfigurationError(InfraModesError, ValueError):
    """Invalid or unsupported run configuration (aborts the pass)."""
    kind = ErrorKind.FATAL_CONFIGURATION


class ProfileLookupError(InfraModesError, KeyError):
    """A profile quantity is missing or outside the altitude basis."""
    kind = ErrorKind.MISSING_DATA

    def __str__(self) -> str:
        # KeyError quotes its argument; keep messages readable
        return str(self.args[0]) if self.args else ""


class UnitConversionError(ProfileLookupError):
    """No conversion is defined between the requested units."""


class ModeCapacityError(InfraModesError):
    """More modes were retained than the per-azimuth mode table holds."""
    kind = ErrorKind.CAPACITY
