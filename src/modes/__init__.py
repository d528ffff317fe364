"""
Infrasound Normal-Mode Package

Long-range infrasound propagation in a stratified, moving atmosphere by
normal-mode decomposition of the vertical wave operator.

Core Components:
- build_modal_trace: Operator diagonal(s) and [k_min, k_max] for one azimuth
- number_of_modes: Sturm-sequence mode count
- assemble_and_solve: Sparse operator / pencil handed to an eigen-solver backend
- select_modes, perturb_wavenumbers: Valid modes and lossy wavenumbers
- transmission_loss_1d/2d, modal_starter: Field synthesis
- ProductWriter: .nm text products
- ModeSolver: Sequential azimuth driver

Two discretizations share the pipeline:
    modess  (d2/dz2 + (w/c_eff)^2) v = k^2 v
    wmod    (M k^2 + C k + D) v = 0, linearized to a 2N x 2N pencil
"""

__version__ = "0.1.0"
__author__ = "Infrasound Modes Project"

# Grid and sampled atmosphere
from .grid import (
    AltitudeGrid,
    AtmosphereColumn,
    AzimuthColumn,
)

# Trace builder
from .trace import (
    Discretization,
    ModalTrace,
    ground_admittance,
    boundary_term,
    wkb_truncated_k_max,
    build_modal_trace,
    apply_wavenumber_filter,
)

# Mode counting
from .sturm import sturm_count, number_of_modes

# Eigen-solver backends
from .eigensolvers import (
    BaseEigenSolver,
    EigenSolution,
    SolveReport,
    LapackEigenSolver,
    ArpackEigenSolver,
    EigenSolverFactory,
    EigenSolverType,
    create_eigensolver,
)

# Assembly, selection and perturbation
from .assembler import (
    ConvergedModes,
    laplacian_stencil,
    standard_operator,
    wide_angle_pencil,
    assemble_and_solve,
)
from .selection import SelectedModes, select_modes
from .perturbation import modal_absorption, perturb_wavenumbers

# Field synthesis and products
from .synthesis import (
    TransmissionLoss1D,
    transmission_loss_1d,
    transmission_loss_2d,
    tloss_2d_stride,
    modal_starter,
    phase_speeds,
    group_speeds,
    normalization_check,
)
from .products import ProductWriter

# Driver
from .solver import ModeSolver, AzimuthResult

__all__ = [
    # Grid
    'AltitudeGrid',
    'AtmosphereColumn',
    'AzimuthColumn',
    # Trace
    'Discretization',
    'ModalTrace',
    'ground_admittance',
    'boundary_term',
    'wkb_truncated_k_max',
    'build_modal_trace',
    'apply_wavenumber_filter',
    # Mode counting
    'sturm_count',
    'number_of_modes',
    # Eigen-solvers
    'BaseEigenSolver',
    'EigenSolution',
    'SolveReport',
    'LapackEigenSolver',
    'ArpackEigenSolver',
    'EigenSolverFactory',
    'EigenSolverType',
    'create_eigensolver',
    # Assembly
    'ConvergedModes',
    'laplacian_stencil',
    'standard_operator',
    'wide_angle_pencil',
    'assemble_and_solve',
    # Selection / perturbation
    'SelectedModes',
    'select_modes',
    'modal_absorption',
    'perturb_wavenumbers',
    # Synthesis
    'TransmissionLoss1D',
    'transmission_loss_1d',
    'transmission_loss_2d',
    'tloss_2d_stride',
    'modal_starter',
    'phase_speeds',
    'group_speeds',
    'normalization_check',
    'ProductWriter',
    # Driver
    'ModeSolver',
    'AzimuthResult',
]
