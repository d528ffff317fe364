"""
Physical and Numerical Constants for the Infrasound Mode Solver

This module contains the constants shared by the atmospheric profile
layer and the normal-mode engine.
"""

# Thermodynamics of air
GAMMA_AIR = 1.4  # Ratio of specific heats (dimensionless)
REFERENCE_SOUND_SPEED = 340.0  # Reference sound speed for starter fields (m/s)

# Sutherland viscosity law
REFERENCE_VISCOSITY = 18.192e-6  # Dynamic viscosity at T_ref (kg/(m*s))
REFERENCE_TEMPERATURE = 293.15  # K
SUTHERLAND_CONSTANT = 117.0  # K
PRANDTL_NUMBER = 0.71
ROTATIONAL_BULK_VISCOSITY_RATIO = 0.6  # mu_bulk / mu for O2/N2 rotation

# Lower-atmosphere mole fractions (O2, N2)
MOLE_FRACTION_O2 = 10.0 ** -0.67887
MOLE_FRACTION_N2 = 10.0 ** -0.10744

# Mode solver limits
MAX_MODES = 4000  # Hard cap on retained modes per azimuth
GROUND_HEIGHT_TOLERANCE = 1.0e-3  # Source/receiver "at the ground" (m)

# WKB high-wavenumber truncation
WKB_SEARCH_STEPS = 100  # Number of trial wavenumbers
WKB_INTEGRAL_THRESHOLD = 10.0  # Tunneling integral marking negligible ground energy
WKB_MIN_STEP = 1.0e-10  # Below this the search interval is degenerate

# 2-D output sampling
TLOSS_2D_MAX_ROWS = 500
TLOSS_2D_FALLBACK_STRIDE = 10

# Default eigen-solver tolerance
EIGEN_TOLERANCE = 1.0e-8

# Conversion factors
KM_TO_M = 1000.0
