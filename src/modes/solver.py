"""
Normal-Mode Solver Driver

Runs the modal pipeline for every requested azimuth, strictly in
sequence:

    azimuth column -> admittance -> trace -> wavenumber filter
        -> mode count -> eigen-solve -> selection -> perturbation -> products

The driver owns a private copy of the atmospheric profile converted to
SI units; the caller's profile is never modified.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from src.atmosphere.profile import AtmosphericProfile
from src.common.config import ModalConfig
from src.common.constants import KM_TO_M
from src.common.exceptions import ConfigurationError, ProfileLookupError
from src.common.logging_config import MetricsLogger, ServiceLogger

from .assembler import ConvergedModes, assemble_and_solve
from .eigensolvers import BaseEigenSolver, SolveReport, create_eigensolver
from .grid import AltitudeGrid, AtmosphereColumn, AzimuthColumn
from .perturbation import perturb_wavenumbers
from .products import ProductWriter
from .selection import SelectedModes, select_modes
from .sturm import number_of_modes
from .synthesis import (
    group_speeds,
    modal_starter,
    phase_speeds,
    tloss_2d_stride,
    transmission_loss_1d,
    transmission_loss_2d,
)
from .trace import (
    Discretization,
    ModalTrace,
    apply_wavenumber_filter,
    build_modal_trace,
    ground_admittance,
)

logger = logging.getLogger(__name__)

# Units the pipeline works in
SI_UNITS = (
    ('U', 'm/s'),
    ('V', 'm/s'),
    ('T', 'K'),
    ('P', 'Pa'),
    ('RHO', 'kg/m3'),
)

GROUND_ELEVATION_KEY = 'Z0'


@dataclass
class AzimuthResult:
    """
    Outcome of one azimuth pass.

    Attributes:
        azimuth: Degrees clockwise from north
        k_min: Lower wavenumber bound used for the solve (1/m)
        k_max: Upper wavenumber bound used for the solve (1/m)
        estimated_modes: Sturm estimate of the mode count in [k_min, k_max]
        report: Eigen-solver report
        wavenumbers: Selected real wavenumbers, shape (m,)
        k_pert: Perturbed complex wavenumbers, shape (m,)
        shapes: Mode shapes, shape (n, m)
    """
    azimuth: float
    k_min: float
    k_max: float
    estimated_modes: int
    report: SolveReport
    wavenumbers: np.ndarray
    k_pert: np.ndarray
    shapes: np.ndarray

    @property
    def mode_count(self) -> int:
        return int(self.wavenumbers.size)


class ModeSolver:
    """
    Modal propagation for one frequency over one or more azimuths
    """

    def __init__(self, config: ModalConfig, profile: AtmosphericProfile,
                 solver: Optional[BaseEigenSolver] = None):
        """
        Prepare the grid and the azimuth-independent atmosphere.

        Args:
            config: Validated run configuration
            profile: Atmospheric profile (any supported units)
            solver: Eigen-solver backend; built from config.solver when omitted

        Raises:
            ConfigurationError: Invalid grid, geometry or boundary model
            ProfileLookupError: Profile lacks a required quantity
        """
        self.config = config
        self.logger = ServiceLogger("inframodes", "solver", frequency=config.freq)
        self.metrics = MetricsLogger("inframodes", frequency=f"{config.freq:g}")

        self.discretization = Discretization.from_name(config.solver.method)
        self.profile = self._prepare_profile(profile)
        self.grid = self._build_grid()

        self.atmosphere = AtmosphereColumn.from_profile(
            self.profile, self.grid, config.freq, config.use_attn_file
        )

        self.source_height = config.geometry.sourceheight_km * KM_TO_M
        self.receiver_height = config.geometry.receiverheight_km * KM_TO_M
        self.source_index = self.grid.index_of(self.source_height)
        self.receiver_index = self.grid.index_of(self.receiver_height)
        self.ranges = config.geometry.get_ranges_m()

        self.eigensolver = solver or create_eigensolver(
            config.solver.eigensolver,
            tolerance=config.solver.tolerance,
            max_iterations=config.solver.max_iterations,
            generalized=self.is_wide_angle,
        )
        self.writer = ProductWriter(config.output_path, self.discretization)

        self.logger.info(
            f"Mode solver ready: {self.discretization.value}, f={config.freq:g} Hz, "
            f"grid {self.grid.n} pts [{self.grid.z_min:.1f}, {self.grid.z_max:.1f}] m "
            f"(dz={self.grid.dz:.3f} m), solver={self.eigensolver.name()}"
        )

    @property
    def is_wide_angle(self) -> bool:
        return self.discretization is Discretization.WIDE_ANGLE

    # ------------------------------------------------------------------
    # Preparation
    # ------------------------------------------------------------------

    def _prepare_profile(self, profile: AtmosphericProfile) -> AtmosphericProfile:
        local = profile.copy()
        local.convert_altitude_units('m')
        if local.contains_scalar(GROUND_ELEVATION_KEY):
            local.convert_units(GROUND_ELEVATION_KEY, 'm')
        for key, units in SI_UNITS:
            local.convert_units(key, units)
        return local

    def _ground_altitude(self) -> float:
        """Ground altitude (m): configured value, else Z0, else the profile bottom"""
        if self.config.grid.zground_km is not None:
            return self.config.grid.zground_km * KM_TO_M
        try:
            return float(self.profile.get(GROUND_ELEVATION_KEY))
        except ProfileLookupError as e:
            if not e.recoverable:
                raise
            z0 = self.profile.minimum_altitude()
            logger.info(f"No {GROUND_ELEVATION_KEY} in profile; ground set to {z0:.1f} m")
            return z0

    def _build_grid(self) -> AltitudeGrid:
        z_min = self._ground_altitude()
        if z_min < self.profile.minimum_altitude():
            raise ConfigurationError(
                f"Ground altitude {z_min:.1f} m is below the profile bottom "
                f"{self.profile.minimum_altitude():.1f} m"
            )

        z_max = self.config.grid.maxheight_km * KM_TO_M
        if z_max >= self.profile.maximum_altitude():
            z_max = self.profile.maximum_altitude() - 1e-6
            logger.info(f"maxheight adjusted to {z_max:.6f} m (top of profile)")

        return AltitudeGrid(z_min=z_min, z_max=z_max, n=self.config.grid.Nz_grid)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def run(self) -> List[AzimuthResult]:
        """Process every configured azimuth in order"""
        azimuths = self.config.azimuth.get_azimuths()
        results = []
        for i, azimuth in enumerate(azimuths):
            self.logger.info(
                f"Azimuth {i + 1}/{len(azimuths)}: {azimuth:.2f} deg",
                extra={'azimuth': float(azimuth)},
            )
            results.append(self.solve_azimuth(float(azimuth), index=i))
        return results

    def build_trace(self, azimuth: float) -> ModalTrace:
        """Operator coefficients and wavenumber bounds for one azimuth"""
        column = AzimuthColumn.from_atmosphere(self.atmosphere, azimuth)
        admittance = ground_admittance(
            self.config.boundary.ground_impedance_model,
            self.config.boundary.Lamb_wave_BC,
            self.atmosphere.density[0],
            self.atmosphere.density_gradient_ground,
        )
        trace = build_modal_trace(
            self.grid,
            self.atmosphere,
            column,
            self.config.freq,
            admittance,
            discretization=self.discretization,
            use_wkb=self.config.wkb_enabled,
            source_height=self.source_height,
            receiver_height=self.receiver_height,
        )

        spectrum = self.config.spectrum
        if spectrum.wvnum_filter:
            trace = apply_wavenumber_filter(trace, spectrum.c_min, spectrum.c_max)
        return trace

    def solve_azimuth(self, azimuth: float, index: int = 0) -> AzimuthResult:
        """
        Run the full pipeline for one azimuth and write its products.

        Args:
            azimuth: Degrees clockwise from north
            index: Position in the azimuth sweep (0 truncates N x 2D files)
        """
        log = self.logger.bind(azimuth=azimuth)
        trace = self.build_trace(azimuth)
        estimated = number_of_modes(trace.diag, self.grid.dz, trace.k_min, trace.k_max)
        log.info(f"k in [{trace.k_min:.6e}, {trace.k_max:.6e}] 1/m, {estimated} modes expected")

        converged = assemble_and_solve(trace, self.eigensolver, estimated, self.discretization)
        self._log_solve(log, azimuth, converged)

        modes = select_modes(converged, trace.k_min, trace.k_max, self.grid.dz)
        k_pert = perturb_wavenumbers(
            modes,
            self.atmosphere.pressure,
            self.atmosphere.density,
            self.atmosphere.attenuation,
            self.config.freq,
        )
        log.info(f"{modes.count} modes selected")
        self.metrics.log_gauge("modes_selected", modes.count,
                               labels={'azimuth': f"{azimuth:g}"})

        self.write_products(azimuth, index, modes, k_pert)
        self.metrics.log_counter("azimuths_processed")

        return AzimuthResult(
            azimuth=azimuth,
            k_min=trace.k_min,
            k_max=trace.k_max,
            estimated_modes=estimated,
            report=converged.report,
            wavenumbers=modes.wavenumbers,
            k_pert=k_pert,
            shapes=modes.shapes,
        )

    def _log_solve(self, log: ServiceLogger, azimuth: float,
                   converged: ConvergedModes) -> None:
        report = converged.report
        labels = {'azimuth': f"{azimuth:g}", 'solver': report.solver}
        self.metrics.log_duration("eigensolve", converged.solve_seconds, labels=labels)
        self.metrics.log_gauge("eigenpairs_converged", report.converged, labels=labels)
        if report.shortfall:
            log.warning(
                f"Eigen-solver converged {report.converged} of {report.requested} "
                f"requested pairs"
            )

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def write_products(self, azimuth: float, index: int,
                       modes: SelectedModes, k_pert: np.ndarray) -> None:
        """
        Write the configured products for one azimuth.

        An N x 2D sweep writes only the azimuth-tagged 1-D transmission
        loss; all other products belong to single-azimuth runs.
        """
        output = self.config.output
        v_src = modes.at_index(self.source_index)
        v_rcv = modes.at_index(self.receiver_index)
        tl = transmission_loss_1d(k_pert, v_src, v_rcv, self.ranges)

        if self.config.azimuth.Nby2Dprop:
            self.writer.write_tloss_nby2d(tl, azimuth, append=index > 0)
            return

        if output.write_1D_TLoss:
            self.writer.write_tloss_1d(tl)

        if output.modal_starter_file:
            heights, field = modal_starter(
                k_pert, modes.shapes, self.source_index, self.config.freq, self.grid.dz
            )
            self.writer.write_modal_starter(output.modal_starter_file, heights, field)

        if output.write_2D_TLoss:
            rows, field = transmission_loss_2d(
                k_pert, modes.shapes, self.source_index, self.ranges,
                tloss_2d_stride(self.grid.n),
            )
            self.writer.write_tloss_2d(self.ranges, rows * self.grid.dz, field)

        if output.write_phase_speeds:
            self.writer.write_phase_speeds(phase_speeds(k_pert, self.config.freq), k_pert)

        if output.write_modes:
            self.writer.write_modes(modes.shapes, self.grid.dz)

        if output.write_modes or output.write_speeds:
            c_eff = AzimuthColumn.from_atmosphere(self.atmosphere, azimuth).effective_sound_speed
            self.writer.write_speeds(
                phase_speeds(k_pert, self.config.freq),
                group_speeds(k_pert, modes.shapes, c_eff, self.config.freq, self.grid.dz),
                k_pert,
            )

        if output.write_dispersion:
            self.writer.write_dispersion(
                self.config.freq, k_pert, v_src, v_rcv,
                float(self.atmosphere.density[self.source_index]),
            )
