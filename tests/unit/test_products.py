"""
Unit Tests for the .nm Product Writers

Row layouts are compared character for character.
"""

import numpy as np
import pytest

from src.modes.products import ProductWriter
from src.modes.synthesis import TransmissionLoss1D
from src.modes.trace import Discretization


def two_range_tl() -> TransmissionLoss1D:
    return TransmissionLoss1D(
        ranges=np.array([1000.0, 2000.0]),
        coherent=np.array([1.0 + 2.0j, -0.5 + 0.25j]),
        incoherent=np.array([3.0, 4.0]),
        coherent_lossless=np.array([1.5 + 2.5j, -1.0 + 0.5j]),
        incoherent_lossless=np.array([5.0, 6.0]),
    )


class TestTransmissionLossFiles:
    """Tests for transmission-loss products"""

    def test_tloss_1d(self, tmp_path):
        writer = ProductWriter(tmp_path)
        paths = writer.write_tloss_1d(two_range_tl())

        assert [p.name for p in paths] == ['tloss_1d.nm', 'tloss_1d.lossless.nm']
        lines = (tmp_path / 'tloss_1d.nm').read_text().splitlines()
        assert lines[0] == '%f %20.12e %20.12e %20.12e' % (1.0, 1.0, 2.0, 3.0)
        assert lines[1] == '%f %20.12e %20.12e %20.12e' % (2.0, -0.5, 0.25, 4.0)

        lossless = (tmp_path / 'tloss_1d.lossless.nm').read_text().splitlines()
        assert lossless[0] == '%f %20.12e %20.12e %20.12e' % (1.0, 1.5, 2.5, 5.0)

    def test_wide_angle_prefix(self, tmp_path):
        writer = ProductWriter(tmp_path, Discretization.WIDE_ANGLE)
        paths = writer.write_tloss_1d(two_range_tl())
        assert [p.name for p in paths] == ['wtloss_1d.nm', 'wtloss_1d.lossless.nm']

    def test_nby2d_truncates_then_appends(self, tmp_path):
        writer = ProductWriter(tmp_path)
        tl = two_range_tl()

        writer.write_tloss_nby2d(tl, 0.0, append=False)
        writer.write_tloss_nby2d(tl, 45.0, append=True)

        text = (tmp_path / 'Nby2D_tloss_1d.nm').read_text()
        blocks = text.split('\n\n')
        assert len([b for b in blocks if b.strip()]) == 2
        lines = text.splitlines()
        assert lines[0] == '%10.3f %8.3f %20.12e %20.12e %20.12e' % (1.0, 0.0, 1.0, 2.0, 3.0)
        assert lines[2] == ''
        assert lines[3] == '%10.3f %8.3f %20.12e %20.12e %20.12e' % (1.0, 45.0, 1.0, 2.0, 3.0)
        assert (tmp_path / 'Nby2D_tloss_1d.lossless.nm').exists()

        # A new sweep starts the file over
        writer.write_tloss_nby2d(tl, 0.0, append=False)
        assert len((tmp_path / 'Nby2D_tloss_1d.nm').read_text().splitlines()) == 3

    def test_nby2d_wide_angle_name(self, tmp_path):
        writer = ProductWriter(tmp_path, Discretization.WIDE_ANGLE)
        paths = writer.write_tloss_nby2d(two_range_tl(), 10.0, append=False)
        assert paths[0].name == 'Nby2D_wtloss_1d.nm'
        assert paths[1].name == 'Nby2D_wtloss_1d.lossless.nm'

    def test_tloss_2d(self, tmp_path):
        writer = ProductWriter(tmp_path)
        ranges = np.array([1000.0, 2000.0])
        heights = np.array([0.0, 500.0, 1000.0])
        field = np.arange(6, dtype=float).reshape(2, 3) + 1j

        writer.write_tloss_2d(ranges, heights, field)

        lines = (tmp_path / 'tloss_2d.nm').read_text().splitlines()
        assert len(lines) == 8  # 2 blocks of 3 rows, each followed by a blank line
        assert lines[0] == '%f %f %15.8e %15.8e' % (1.0, 0.0, 0.0, 1.0)
        assert lines[2] == '%f %f %15.8e %15.8e' % (1.0, 1.0, 2.0, 1.0)
        assert lines[3] == ''
        assert lines[4] == '%f %f %15.8e %15.8e' % (2.0, 0.0, 3.0, 1.0)
        assert lines[7] == ''


class TestModeTables:
    """Tests for speed, mode and dispersion products"""

    def test_phase_speeds(self, tmp_path):
        ProductWriter(tmp_path).write_phase_speeds(np.array([330.0, 335.5]),
                                                   np.array([0.019 + 1e-7j, 0.018 + 2e-7j]))
        lines = (tmp_path / 'phasespeeds.nm').read_text().splitlines()
        assert lines[0] == '%d %f %15.8e' % (0, 330.0, 1e-7)
        assert lines[1] == '%d %f %15.8e' % (1, 335.5, 2e-7)

    def test_speeds_are_one_based(self, tmp_path):
        ProductWriter(tmp_path).write_speeds(np.array([330.0]), np.array([320.25]),
                                             np.array([0.019 + 3e-7j]))
        lines = (tmp_path / 'speeds.nm').read_text().splitlines()
        assert lines == ['%4d %9.3f %9.3f %15.8e' % (1, 330.0, 320.25, 3e-7)]

    def test_mode_files(self, tmp_path):
        dz = 100.0
        shapes = np.column_stack([np.full(4, 0.05), np.full(4, -0.05)])
        paths = ProductWriter(tmp_path).write_modes(shapes, dz)

        assert [p.name for p in paths] == ['mode_0.nm', 'mode_1.nm']
        lines = (tmp_path / 'mode_1.nm').read_text().splitlines()
        assert lines[0] == '%f %15.8e' % (0.0, -0.05)
        assert lines[3] == '%f %15.8e' % (0.3, -0.05)

    def test_modal_starter(self, tmp_path):
        writer = ProductWriter(tmp_path)
        path = writer.write_modal_starter('starter.pe', np.array([0.0, 150.0]),
                                          np.array([1.5 + 0.0j, 0.25 + 0.0j]))

        assert path == tmp_path / 'starter.pe'
        text = path.read_text()
        assert text.endswith('\n\n')
        lines = text.splitlines()
        assert lines[0] == '%10.3f   %16.12e   %16.12e' % (0.0, 1.5, 0.0)
        assert lines[1] == '%10.3f   %16.12e   %16.12e' % (0.15, 0.25, 0.0)

    def test_dispersion(self, tmp_path):
        k_pert = np.array([0.019 + 1e-7j, 0.018 + 2e-7j])
        path = ProductWriter(tmp_path).write_dispersion(
            0.5, k_pert, np.array([0.1, 0.2]), np.array([0.3, 0.4]), 1.225,
        )

        assert path.name == 'dispersion_%e.nm' % 0.5
        expected = ('%.12e   %d    %.12e' % (0.5, 2, 1.225)
                    + '   %.12e   %.12e' % (0.019, 1e-7)
                    + '   %.12e   %.12e' % (0.1, 0.3)
                    + '   %.12e   %.12e' % (0.018, 2e-7)
                    + '   %.12e   %.12e' % (0.2, 0.4)
                    + '\n')
        assert path.read_text() == expected

    def test_creates_output_dir(self, tmp_path):
        target = tmp_path / 'nested' / 'out'
        writer = ProductWriter(target)
        assert target.is_dir()
        assert writer.prefix == ''
