"""
Centralized Configuration Management for the Infrasound Mode Solver

This module provides a unified interface for loading and accessing
run configuration from YAML files.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, asdict, fields
import numpy as np

from .constants import EIGEN_TOLERANCE
from .exceptions import ConfigurationError


@dataclass
class ModalGridConfig:
    """Configuration for the vertical finite-difference grid"""

    zground_km: Optional[float] = None  # None: take Z0 from the profile, else its lowest altitude
    maxheight_km: float = 150.0
    Nz_grid: int = 20000

    def validate(self) -> None:
        if self.Nz_grid < 3:
            raise ConfigurationError(f"Nz_grid must be at least 3, got {self.Nz_grid}")
        if self.zground_km is not None and self.maxheight_km <= self.zground_km:
            raise ConfigurationError(
                f"maxheight_km ({self.maxheight_km}) must exceed zground_km ({self.zground_km})"
            )


@dataclass
class SourceReceiverConfig:
    """Configuration for source/receiver geometry and range sampling"""

    sourceheight_km: float = 0.0    # above ground
    receiverheight_km: float = 0.0  # above ground
    maxrange_km: float = 1000.0
    Nrng_steps: int = 1000

    @property
    def range_step_m(self) -> float:
        """Range sampling interval in meters"""
        return self.maxrange_km * 1000.0 / self.Nrng_steps

    def get_ranges_m(self) -> np.ndarray:
        """Ranges r_i = (i+1)*dr in meters"""
        return (np.arange(self.Nrng_steps) + 1) * self.range_step_m

    def validate(self) -> None:
        if self.Nrng_steps < 1:
            raise ConfigurationError(f"Nrng_steps must be positive, got {self.Nrng_steps}")
        if self.maxrange_km <= 0:
            raise ConfigurationError(f"maxrange_km must be positive, got {self.maxrange_km}")
        if self.sourceheight_km < 0 or self.receiverheight_km < 0:
            raise ConfigurationError("Source and receiver heights must be non-negative")


@dataclass
class AzimuthConfig:
    """Configuration for the propagation azimuth(s)"""

    azimuth: float = 90.0  # degrees clockwise from north

    # N x 2D sweep
    Nby2Dprop: bool = False
    azimuth_start: float = 0.0
    azimuth_end: float = 360.0
    azimuth_step: float = 1.0

    @property
    def n_azimuths(self) -> int:
        """Number of azimuths in the pass"""
        if not self.Nby2Dprop:
            return 1
        return int((self.azimuth_end - self.azimuth_start) / self.azimuth_step) + 1

    def get_azimuths(self) -> np.ndarray:
        """Azimuths processed by the driver, in order"""
        if not self.Nby2Dprop:
            return np.array([self.azimuth], dtype=float)
        return self.azimuth_start + np.arange(self.n_azimuths) * self.azimuth_step

    def validate(self) -> None:
        if self.Nby2Dprop:
            if self.azimuth_step <= 0:
                raise ConfigurationError(
                    f"azimuth_step must be positive, got {self.azimuth_step}"
                )
            if self.azimuth_end < self.azimuth_start:
                raise ConfigurationError("azimuth_end must not precede azimuth_start")


@dataclass
class BoundaryConfig:
    """Configuration for the ground boundary condition"""

    ground_impedance_model: str = "rigid"
    Lamb_wave_BC: bool = False


@dataclass
class SpectrumConfig:
    """Configuration for horizontal wavenumber bounds"""

    wvnum_filter: bool = False
    c_min: float = 0.0  # m/s, used only with wvnum_filter
    c_max: float = 0.0  # m/s, used only with wvnum_filter
    turnoff_WKB: bool = False

    def validate(self) -> None:
        if self.wvnum_filter:
            if self.c_min <= 0 or self.c_max <= 0:
                raise ConfigurationError("wvnum_filter requires positive c_min and c_max")
            if self.c_min >= self.c_max:
                raise ConfigurationError(
                    f"c_min ({self.c_min}) must be below c_max ({self.c_max})"
                )


@dataclass
class SolverConfig:
    """Configuration for the discretization and eigen-solver service"""

    method: str = "modess"  # modess (standard) or wmod (wide-angle)
    eigensolver: str = "auto"  # auto, lapack or arpack
    tolerance: float = EIGEN_TOLERANCE
    max_iterations: Optional[int] = None

    def validate(self) -> None:
        if self.method.lower() not in ('modess', 'wmod', 'standard', 'wide_angle'):
            raise ConfigurationError(f"Unknown method: {self.method}")
        if self.tolerance <= 0:
            raise ConfigurationError(f"tolerance must be positive, got {self.tolerance}")


@dataclass
class OutputConfig:
    """Configuration for written products"""

    output_dir: str = "."
    write_1D_TLoss: bool = True
    write_2D_TLoss: bool = False
    write_phase_speeds: bool = False
    write_speeds: bool = False
    write_modes: bool = False
    write_dispersion: bool = False
    modal_starter_file: Optional[str] = None

    @property
    def forces_full_spectrum(self) -> bool:
        """Whether a requested product needs the untruncated mode set"""
        return (self.write_2D_TLoss or self.write_phase_speeds or self.write_speeds
                or self.write_modes or self.write_dispersion)


@dataclass
class ModalConfig:
    """Master configuration for a normal-mode run"""

    grid: ModalGridConfig = field(default_factory=ModalGridConfig)
    geometry: SourceReceiverConfig = field(default_factory=SourceReceiverConfig)
    azimuth: AzimuthConfig = field(default_factory=AzimuthConfig)
    boundary: BoundaryConfig = field(default_factory=BoundaryConfig)
    spectrum: SpectrumConfig = field(default_factory=SpectrumConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    atmosfile: str = ""
    use_attn_file: Optional[str] = None
    freq: float = 0.1  # Hz

    @property
    def wkb_enabled(self) -> bool:
        """WKB truncation is off if asked, or if any full-spectrum product is written"""
        return not (self.spectrum.turnoff_WKB or self.output.forces_full_spectrum)

    @property
    def output_path(self) -> Path:
        """Directory that receives the product files"""
        return Path(self.output.output_dir)

    def validate(self) -> 'ModalConfig':
        """Check the configuration, raising ConfigurationError on the first problem"""
        if self.freq <= 0:
            raise ConfigurationError(f"freq must be positive, got {self.freq}")
        self.grid.validate()
        self.geometry.validate()
        self.azimuth.validate()
        self.spectrum.validate()
        self.solver.validate()
        return self

    @classmethod
    def from_dict(cls, config_dict: Optional[Dict[str, Any]]) -> 'ModalConfig':
        """Build configuration from a nested dictionary"""
        config_dict = config_dict or {}
        sections = {
            'grid': ModalGridConfig,
            'geometry': SourceReceiverConfig,
            'azimuth': AzimuthConfig,
            'boundary': BoundaryConfig,
            'spectrum': SpectrumConfig,
            'solver': SolverConfig,
            'output': OutputConfig,
        }
        top_level = {f.name for f in fields(cls)} - set(sections)

        unknown = set(config_dict) - top_level - set(sections)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")

        kwargs: Dict[str, Any] = {}
        for name, section_cls in sections.items():
            try:
                kwargs[name] = section_cls(**(config_dict.get(name) or {}))
            except TypeError as e:
                raise ConfigurationError(f"Invalid '{name}' section: {e}") from e

        for name in top_level:
            if name in config_dict:
                kwargs[name] = config_dict[name]

        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'ModalConfig':
        """Load configuration from YAML file"""
        with open(yaml_path, 'r') as f:
            config_dict = yaml.safe_load(f)

        return cls.from_dict(config_dict).validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_yaml(self, yaml_path: str) -> None:
        """Save configuration to YAML file"""
        with open(yaml_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)


def get_config(config_path: Optional[str] = None) -> ModalConfig:
    """
    Get run configuration

    Priority:
    1. Provided config_path
    2. INFRAMODES_CONFIG environment variable
    3. config/modes.yml
    4. Default configuration
    """
    if config_path is None:
        config_path = os.getenv('INFRAMODES_CONFIG')

    if config_path is None:
        # Try default paths
        default_paths = [
            Path(__file__).parent.parent.parent / 'config' / 'modes.yml',
            Path('config/modes.yml')
        ]

        for path in default_paths:
            if path.exists():
                config_path = str(path)
                break

    if config_path and Path(config_path).exists():
        return ModalConfig.from_yaml(config_path)

    # Return default configuration
    return ModalConfig()
