"""
Unit Tests for the Mode Solver Driver

Tests cover:
- Grid preparation (ground altitude fallback, maxheight clamp)
- Profile isolation (the caller's profile is never converted in place)
- Per-azimuth pipeline results and wavenumber bounds
- Product branching for single runs and N x 2D sweeps
"""

import numpy as np
import pytest

from src.atmosphere.profile import AtmosphericProfile
from src.common.config import ModalConfig
from src.common.exceptions import ConfigurationError
from src.common.units import Units
from src.modes.eigensolvers import ArpackEigenSolver, LapackEigenSolver
from src.modes.solver import AzimuthResult, ModeSolver


def make_solver(config_dict, profile_path=None, profile=None):
    config = ModalConfig.from_dict(config_dict).validate()
    if profile is None:
        profile = AtmosphericProfile.from_file(profile_path or config.atmosfile)
    return ModeSolver(config, profile)


class TestPreparation:
    """Tests for grid and atmosphere preparation"""

    def test_ground_defaults_to_profile_bottom(self, run_config_dict):
        solver = make_solver(run_config_dict())
        assert solver.grid.z_min == 0.0
        assert solver.grid.z_max == 30000.0
        assert solver.grid.n == 300

    def test_ground_from_profile_scalar(self, run_config_dict, profile_writer, tmp_path):
        path = profile_writer(tmp_path / "with_z0.dat", ground_km=0.5)
        solver = make_solver(run_config_dict(), profile_path=path)
        assert solver.grid.z_min == pytest.approx(500.0)

    def test_configured_ground_wins(self, run_config_dict, profile_writer, tmp_path):
        path = profile_writer(tmp_path / "with_z0.dat", ground_km=0.5)
        solver = make_solver(run_config_dict(grid={'zground_km': 1.0}), profile_path=path)
        assert solver.grid.z_min == pytest.approx(1000.0)

    def test_ground_below_profile(self, run_config_dict, profile_writer, tmp_path):
        path = profile_writer(tmp_path / "low_z0.dat", ground_km=-1.0)
        with pytest.raises(ConfigurationError):
            make_solver(run_config_dict(), profile_path=path)

    def test_maxheight_clamped_to_profile(self, run_config_dict):
        solver = make_solver(run_config_dict(grid={'maxheight_km': 60.0, 'Nz_grid': 300}))
        assert solver.grid.z_max == pytest.approx(40000.0 - 1e-6, abs=1e-9)
        assert solver.grid.z_max < 40000.0

    def test_profile_not_modified(self, run_config_dict, jet_profile_path):
        profile = AtmosphericProfile.from_file(jet_profile_path)
        make_solver(run_config_dict(), profile=profile).run()

        assert profile.altitude_units is Units.DISTANCE_KILOMETERS
        assert profile.get_units('P') is Units.PRESSURE_MILLIBARS
        assert profile.get_units('RHO') is Units.DENSITY_GRAMS_PER_CUBIC_CENTIMETER
        assert set(profile.keys()) == {'T', 'U', 'V', 'RHO', 'P'}

    def test_source_index(self, run_config_dict):
        solver = make_solver(run_config_dict(geometry={'sourceheight_km': 1.0}))
        assert solver.source_index == int(np.ceil(1000.0 / solver.grid.dz))
        assert solver.receiver_index == 0

    def test_atmosphere_in_si_units(self, run_config_dict):
        solver = make_solver(run_config_dict())
        assert solver.atmosphere.pressure[0] == pytest.approx(101325.0, rel=1e-6)
        assert solver.atmosphere.density[0] == pytest.approx(101325.0 / (287.05 * 288.15),
                                                             rel=1e-6)
        assert np.all(solver.atmosphere.attenuation > 0)

    def test_default_backends(self, run_config_dict):
        standard = make_solver(run_config_dict())
        wide = make_solver(run_config_dict(solver={'method': 'wmod'}))
        assert isinstance(standard.eigensolver, LapackEigenSolver)
        assert isinstance(wide.eigensolver, ArpackEigenSolver)

    def test_unsupported_ground_model(self, run_config_dict):
        solver = make_solver(run_config_dict(boundary={'ground_impedance_model': 'soft'}))
        with pytest.raises(ConfigurationError):
            solver.run()


class TestPipeline:
    """Tests for one azimuth pass"""

    def test_single_azimuth(self, run_config_dict):
        results = make_solver(run_config_dict()).run()

        assert len(results) == 1
        result = results[0]
        assert isinstance(result, AzimuthResult)
        assert result.azimuth == 90.0
        assert result.mode_count > 0
        assert result.shapes.shape == (300, result.mode_count)
        assert np.all(result.wavenumbers >= result.k_min)
        assert np.all(result.wavenumbers <= result.k_max)
        assert np.all(np.diff(result.wavenumbers) < 0)
        assert np.all(result.k_pert.imag > 0)

    def test_modes_normalized(self, run_config_dict):
        solver = make_solver(run_config_dict())
        result = solver.run()[0]
        norms = np.sum(result.shapes ** 2, axis=0) * solver.grid.dz
        np.testing.assert_allclose(norms, 1.0, rtol=1e-8)

    def test_estimate_matches_selection(self, run_config_dict):
        result = make_solver(run_config_dict()).run()[0]
        assert result.report.converged == result.estimated_modes
        assert result.mode_count == result.estimated_modes

    def test_wavenumber_filter(self, run_config_dict):
        config = run_config_dict(spectrum={'wvnum_filter': True, 'c_min': 345.0, 'c_max': 380.0})
        result = make_solver(config).run()[0]
        omega = 2.0 * np.pi * 0.1

        assert result.k_min == pytest.approx(omega / 380.0)
        assert result.k_max == pytest.approx(omega / 345.0)
        assert np.all(result.wavenumbers <= omega / 345.0)
        assert np.all(result.wavenumbers >= omega / 380.0)

    def test_trace_bounds(self, run_config_dict):
        solver = make_solver(run_config_dict())
        trace = solver.build_trace(270.0)
        omega = 2.0 * np.pi * 0.1
        c_eff = solver.atmosphere.sound_speed - solver.atmosphere.zonal_wind

        assert trace.k_max_full == pytest.approx(omega / np.min(c_eff), rel=1e-12)
        assert trace.k_max <= trace.k_max_full
        top = solver.grid.n - solver.grid.n // 10 + 1
        assert trace.k_min == pytest.approx(omega / c_eff[top], rel=1e-12)


class TestProducts:
    """Tests for which files a run writes"""

    def test_default_products(self, run_config_dict, tmp_path):
        make_solver(run_config_dict()).run()
        out = tmp_path / "out"

        assert sorted(p.name for p in out.iterdir()) == ['tloss_1d.lossless.nm', 'tloss_1d.nm']
        assert len((out / 'tloss_1d.nm').read_text().splitlines()) == 100

    def test_all_single_run_products(self, run_config_dict, tmp_path):
        config = run_config_dict(output={
            'write_2D_TLoss': True,
            'write_phase_speeds': True,
            'write_modes': True,
            'write_dispersion': True,
            'modal_starter_file': 'starter.nm',
        })
        result = make_solver(config).run()[0]
        out = tmp_path / "out"
        names = {p.name for p in out.iterdir()}

        assert {'tloss_1d.nm', 'tloss_2d.nm', 'phasespeeds.nm', 'speeds.nm',
                'starter.nm', 'dispersion_%e.nm' % 0.1} <= names
        mode_files = [n for n in names if n.startswith('mode_')]
        assert len(mode_files) == result.mode_count
        assert len((out / 'speeds.nm').read_text().splitlines()) == result.mode_count

        dispersion = (out / ('dispersion_%e.nm' % 0.1)).read_text().split()
        assert int(dispersion[1]) == result.mode_count
        assert len(dispersion) == 3 + 4 * result.mode_count

    def test_speeds_without_modes(self, run_config_dict, tmp_path):
        make_solver(run_config_dict(output={'write_speeds': True})).run()
        names = {p.name for p in (tmp_path / "out").iterdir()}
        assert 'speeds.nm' in names
        assert not any(n.startswith('mode_') for n in names)

    def test_wide_angle_modes_include_speeds(self, run_config_dict, tmp_path):
        config = run_config_dict(solver={'method': 'wmod'}, output={'write_modes': True})
        result = make_solver(config).run()[0]
        names = {p.name for p in (tmp_path / "out").iterdir()}

        assert len([n for n in names if n.startswith('mode_')]) == result.mode_count
        assert 'speeds.nm' in names

    def test_full_spectrum_products_disable_wkb(self, run_config_dict):
        solver = make_solver(run_config_dict(output={'write_phase_speeds': True}))
        assert not solver.config.wkb_enabled
        trace = solver.build_trace(270.0)
        assert trace.k_max == trace.k_max_full

    def test_nby2d_sweep(self, run_config_dict, tmp_path):
        config = run_config_dict(azimuth={
            'Nby2Dprop': True, 'azimuth_start': 80.0, 'azimuth_end': 100.0, 'azimuth_step': 10.0,
        }, output={'write_2D_TLoss': True})
        results = make_solver(config).run()
        out = tmp_path / "out"

        assert [r.azimuth for r in results] == [80.0, 90.0, 100.0]
        names = {p.name for p in out.iterdir()}
        assert names == {'Nby2D_tloss_1d.nm', 'Nby2D_tloss_1d.lossless.nm'}

        lines = (out / 'Nby2D_tloss_1d.nm').read_text().splitlines()
        assert len(lines) == 3 * (100 + 1)
        azimuths = {float(line.split()[1]) for line in lines if line}
        assert azimuths == {80.0, 90.0, 100.0}
