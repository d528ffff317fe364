"""
Unit Tests for the Sturm-Sequence Mode Counter

The count is checked against dense eigenvalues of the same
finite-difference operator built by the assembler.
"""

import numpy as np
import pytest

from src.modes.assembler import laplacian_stencil
from src.modes.sturm import number_of_modes, sturm_count


def dense_eigenvalues(diag: np.ndarray, dz: float) -> np.ndarray:
    return np.linalg.eigvalsh(laplacian_stencil(len(diag), dz, diag).toarray())


class TestSturmCount:
    """Tests for sturm_count()"""

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_matches_dense_eigenvalues(self, seed):
        rng = np.random.default_rng(seed)
        n, dz = 60, 1.0
        diag = rng.uniform(0.0, 1.0, n)
        eigenvalues = dense_eigenvalues(diag, dz)

        for k in np.sqrt(np.linspace(0.05, 0.95, 7)):
            # Skip trial values that land on an eigenvalue
            if np.min(np.abs(eigenvalues - k * k)) < 1e-9:
                continue
            assert sturm_count(diag, dz, k) == np.sum(eigenvalues < k * k)

    def test_realistic_grid(self):
        """Acoustic-scale operator: 0.5 Hz, c_eff between 300 and 340 m/s"""
        n = 400
        dz = 50.0
        omega = 2.0 * np.pi * 0.5
        c_eff = 340.0 - 40.0 * np.sin(np.linspace(0.0, np.pi, n))
        diag = (omega / c_eff) ** 2
        diag[0] += 1.0 / dz ** 2
        eigenvalues = dense_eigenvalues(diag, dz)

        for k in np.linspace(omega / 340.0, omega / 300.0, 9):
            if np.min(np.abs(eigenvalues - k * k)) < 1e-14:
                continue
            assert sturm_count(diag, dz, k) == np.sum(eigenvalues < k * k)

    def test_monotonic_in_k(self):
        rng = np.random.default_rng(7)
        diag = rng.uniform(0.0, 2.0, 80)
        counts = [sturm_count(diag, 0.5, k) for k in np.linspace(0.0, 2.0, 50)]
        assert all(b >= a for a, b in zip(counts, counts[1:]))

    def test_uniform_ten_point_grid(self):
        """
        Uniform c_eff = 340 m/s at 1 Hz, no boundary term.

        Every eigenvalue of the discrete operator lies strictly below
        (omega/c)^2, so all ten are counted at k = omega/c.
        """
        k0 = 2.0 * np.pi / 340.0
        diag = np.full(10, k0 ** 2)

        assert sturm_count(diag, 100.0, k0) == 10
        # In-range form: no modes counted in the empty interval [k0, k0)
        assert number_of_modes(diag, 100.0, k0, k0) == 0

    def test_below_spectrum(self):
        """A weak diagonal leaves the whole spectrum below zero"""
        diag = np.full(20, 0.01)
        eigenvalues = dense_eigenvalues(diag, 1.0)

        assert np.all(eigenvalues < 0.0)
        assert sturm_count(diag, 1.0, 0.0) == 20


class TestNumberOfModes:
    """Tests for number_of_modes()"""

    def test_difference_of_counts(self):
        rng = np.random.default_rng(3)
        diag = rng.uniform(0.0, 1.0, 50)
        k_min, k_max = np.sqrt(0.2), np.sqrt(0.8)

        eigenvalues = dense_eigenvalues(diag, 1.0)
        expected = np.sum((eigenvalues >= k_min ** 2) & (eigenvalues < k_max ** 2))
        assert number_of_modes(diag, 1.0, k_min, k_max) == expected

    def test_empty_interval(self):
        diag = np.linspace(0.0, 1.0, 30)
        assert number_of_modes(diag, 1.0, 0.5, 0.5) == 0
