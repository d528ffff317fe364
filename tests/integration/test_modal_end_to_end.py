"""
End-to-End Integration Tests for the Mode Solver

Tests the complete pipeline on a ducting atmosphere:
profile file -> configuration -> solver -> .nm products
"""

import numpy as np
import pytest

from src.atmosphere.profile import AtmosphericProfile
from src.common.config import ModalConfig
from src.modes import ModeSolver


def run(config_dict):
    config = ModalConfig.from_dict(config_dict).validate()
    profile = AtmosphericProfile.from_file(config.atmosfile)
    return ModeSolver(config, profile).run()


def read_tloss(path):
    """Columns: range (km), Re p, Im p, incoherent |p|"""
    return np.loadtxt(path, ndmin=2)


class TestStandardPipeline:
    """Effective sound speed formulation"""

    def test_downwind_duct(self, run_config_dict, tmp_path):
        results = run(run_config_dict())
        result = results[0]

        assert result.mode_count > 3
        table = read_tloss(tmp_path / "out" / "tloss_1d.nm")
        assert table.shape == (100, 4)
        np.testing.assert_allclose(table[:, 0], np.linspace(2.0, 200.0, 100))

        amplitude = np.hypot(table[:, 1], table[:, 2])
        assert np.all(np.isfinite(amplitude))
        assert np.all(amplitude > 0)
        assert np.all(table[:, 3] > 0)

    def test_lossless_matches_without_attenuation(self, run_config_dict, tmp_path):
        attn = tmp_path / "no_loss.dat"
        np.savetxt(attn, np.column_stack([np.linspace(0.0, 40.0, 5), np.zeros(5)]))

        run(run_config_dict(use_attn_file=str(attn)))

        out = tmp_path / "out"
        lossy = (out / "tloss_1d.nm").read_text()
        lossless = (out / "tloss_1d.lossless.nm").read_text()
        assert lossy == lossless

    def test_absorption_lowers_far_field(self, run_config_dict, tmp_path):
        run(run_config_dict(freq=0.5, grid={'maxheight_km': 30.0, 'Nz_grid': 600}))

        out = tmp_path / "out"
        lossy = read_tloss(out / "tloss_1d.nm")
        lossless = read_tloss(out / "tloss_1d.lossless.nm")
        assert np.all(lossy[:, 3] <= lossless[:, 3] * (1 + 1e-12))
        assert lossy[-1, 3] < lossless[-1, 3]


class TestWideAnglePipeline:
    """Linearized quadratic (wide-angle) formulation"""

    def test_matches_standard_leading_mode(self, run_config_dict, tmp_path):
        standard = run(run_config_dict())[0]
        wide = run(run_config_dict(solver={'method': 'wmod'}))[0]

        assert (tmp_path / "out" / "wtloss_1d.nm").exists()
        assert wide.report.solver == "arpack"
        assert wide.mode_count > 0
        assert np.max(wide.wavenumbers) == pytest.approx(np.max(standard.wavenumbers),
                                                         rel=2e-2)

        norms = np.sum(wide.shapes ** 2, axis=0) * (30000.0 / 299)
        np.testing.assert_allclose(norms, 1.0, rtol=1e-8)


class TestAzimuthSweep:
    """N x 2D runs"""

    def test_sweep_covers_both_directions(self, run_config_dict, tmp_path):
        config = run_config_dict(azimuth={
            'Nby2Dprop': True, 'azimuth_start': 0.0, 'azimuth_end': 270.0, 'azimuth_step': 90.0,
        })
        results = run(config)

        assert [r.azimuth for r in results] == [0.0, 90.0, 180.0, 270.0]
        lines = [line for line in
                 (tmp_path / "out" / "Nby2D_tloss_1d.nm").read_text().splitlines() if line]
        assert len(lines) == 4 * 100

        # The jet blows toward the east: the eastward pass carries the most ducted modes
        counts = {r.azimuth: r.mode_count for r in results}
        assert counts[90.0] == max(counts.values())
