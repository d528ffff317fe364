"""
Infrasound Mode Solver - Command Line Entry Point

Usage:
    python -m src.modes.main --config run.yml
    python -m src.modes.main --config run.yml --freq 0.5 --method wmod --output-dir out/
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from src.atmosphere.derived import add_derived_properties
from src.atmosphere.profile import AtmosphericProfile
from src.common.config import ModalConfig, get_config
from src.common.exceptions import ConfigurationError, InfraModesError
from src.common.logging_config import ServiceLogger, setup_logging
from src.modes.eigensolvers import EigenSolverFactory
from src.modes.solver import ModeSolver

EXIT_OK = 0
EXIT_RUN_ERROR = 1
EXIT_CONFIG_ERROR = 2


def eigensolver_help() -> str:
    """Help text naming each backend, its aliases and what it does"""
    aliases = EigenSolverFactory.available_aliases()
    lines = ["Eigen-solver backend (default: auto, lapack for modess and arpack for wmod)."]
    for name in EigenSolverFactory.available():
        others = sorted(a for a, canonical in aliases.items() if canonical == name and a != name)
        lines.append(f"{name} [{', '.join(others)}]: {EigenSolverFactory.get_description(name)}")
    return ' '.join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Infrasound normal-mode propagation (effective sound speed / wide-angle)'
    )
    parser.add_argument('--config', help='Path to YAML run configuration')
    parser.add_argument('--atmosfile', help='Atmospheric profile file (overrides config)')
    parser.add_argument('--freq', type=float, help='Frequency in Hz (overrides config)')
    parser.add_argument('--azimuth', type=float,
                        help='Propagation azimuth, degrees clockwise from north')
    parser.add_argument('--method', choices=['modess', 'wmod'],
                        help='Discretization: modess (standard) or wmod (wide-angle)')
    parser.add_argument('--eigensolver',
                        choices=['auto'] + sorted(EigenSolverFactory.available_aliases()),
                        metavar='NAME', help=eigensolver_help())
    parser.add_argument('--output-dir', help='Directory for the .nm products')
    parser.add_argument('--write-profile', metavar='PATH',
                        help='Also write the profile with derived quantities to PATH')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    parser.add_argument('--json-logs', action='store_true',
                        help='Emit JSON-formatted log lines')
    parser.add_argument('--log-file', help='Also write log lines to this file')
    return parser


def apply_overrides(config: ModalConfig, args: argparse.Namespace) -> ModalConfig:
    """Copy command-line overrides onto a configuration and re-validate it"""
    if args.atmosfile:
        config.atmosfile = args.atmosfile
    if args.freq is not None:
        config.freq = args.freq
    if args.azimuth is not None:
        config.azimuth.azimuth = args.azimuth
    if args.method:
        config.solver.method = args.method
    if args.eigensolver:
        config.solver.eigensolver = args.eigensolver
    if args.output_dir:
        config.output.output_dir = args.output_dir
    return config.validate()


def run(config: ModalConfig, write_profile: Optional[str] = None) -> int:
    logger = ServiceLogger("inframodes", "main")

    if not config.atmosfile:
        raise ConfigurationError("No atmospheric profile given (atmosfile)")
    if not Path(config.atmosfile).is_file():
        raise ConfigurationError(f"Atmospheric profile not found: {config.atmosfile}")

    profile = AtmosphericProfile.from_file(config.atmosfile)
    logger.info(f"Loaded {profile!r} from {config.atmosfile}")

    if write_profile:
        annotated = profile.copy()
        annotated.convert_altitude_units('km')
        for key, units in (('T', 'K'), ('P', 'Pa'), ('RHO', 'kg/m3'),
                           ('U', 'm/s'), ('V', 'm/s')):
            annotated.convert_units(key, units)
        add_derived_properties(annotated, config.freq)
        annotated.write_to_file(write_profile)
        logger.info(f"Profile with derived quantities written to {write_profile}")

    results = ModeSolver(config, profile).run()
    total = sum(result.mode_count for result in results)
    logger.info(f"Done: {len(results)} azimuth(s), {total} modes in total")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    setup_logging(
        service_name="inframodes",
        log_level=args.log_level,
        log_file=args.log_file,
        json_format=args.json_logs,
    )
    logger = ServiceLogger("inframodes", "main")

    try:
        if args.config and not Path(args.config).exists():
            raise ConfigurationError(f"Configuration file not found: {args.config}")
        config = apply_overrides(get_config(args.config), args)
        if args.config:
            logger.info(f"Using config: {args.config}")
        return run(config, args.write_profile)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR
    except InfraModesError as e:
        logger.error(f"{e.kind.name.lower()} error: {e}")
        return EXIT_RUN_ERROR


if __name__ == "__main__":
    sys.exit(main())
