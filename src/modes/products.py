"""
Product Writers

Writes the ``.nm`` text products read by downstream tooling. Row layouts
are fixed; ranges and altitudes are written in km.

    tloss_1d.nm, tloss_1d.lossless.nm         r  Re(p)  Im(p)  |p|_incoherent
    Nby2D_tloss_1d.nm (+ .lossless)           r  az  Re(p)  Im(p)  |p|_incoherent
    tloss_2d.nm                               r  z  Re(p)  Im(p)
    phasespeeds.nm                            j  v_phase  Im(k)
    speeds.nm                                 j+1  v_phase  v_group  Im(k)
    mode_<j>.nm                               z  v_j(z)
    dispersion_<f>.nm                         f  m  rho_src  {Re k  Im k  v(zs)  v(zr)}...
    <modal starter file>                      z  Re(psi)  Im(psi)

Wide-angle runs prefix the transmission-loss file names with 'w'.
"""

import logging
from pathlib import Path
from typing import List, Union

import numpy as np

from .synthesis import TransmissionLoss1D, normalization_check
from .trace import Discretization

logger = logging.getLogger(__name__)

TLOSS_1D_FMT = '%f %20.12e %20.12e %20.12e'
TLOSS_NBY2D_FMT = '%10.3f %8.3f %20.12e %20.12e %20.12e'
TLOSS_2D_FMT = '%f %f %15.8e %15.8e'
PHASE_SPEEDS_FMT = '%d %f %15.8e'
SPEEDS_FMT = '%4d %9.3f %9.3f %15.8e'
MODE_FMT = '%f %15.8e'
STARTER_FMT = '%10.3f   %16.12e   %16.12e'


class ProductWriter:
    """
    Writes products for one run into an output directory.

    Attributes:
        output_dir: Directory receiving the files
        discretization: Selects the 'w' file-name prefix for wide-angle runs
    """

    def __init__(self, output_dir: Union[str, Path] = '.',
                 discretization: Discretization = Discretization.STANDARD):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.discretization = discretization

    @property
    def prefix(self) -> str:
        return 'w' if self.discretization is Discretization.WIDE_ANGLE else ''

    def path(self, name: str) -> Path:
        return self.output_dir / name

    def _created(self, path: Path) -> Path:
        logger.info(f"file {path} created")
        return path

    # ------------------------------------------------------------------
    # Transmission loss
    # ------------------------------------------------------------------

    def write_tloss_1d(self, tl: TransmissionLoss1D) -> List[Path]:
        """Lossy and lossless 1-D transmission loss"""
        lossy = self.path(f'{self.prefix}tloss_1d.nm')
        lossless = self.path(f'{self.prefix}tloss_1d.lossless.nm')
        r_km = tl.ranges / 1000.0

        np.savetxt(lossy, np.column_stack([
            r_km, tl.coherent.real, tl.coherent.imag, tl.incoherent,
        ]), fmt=TLOSS_1D_FMT)
        np.savetxt(lossless, np.column_stack([
            r_km, tl.coherent_lossless.real, tl.coherent_lossless.imag, tl.incoherent_lossless,
        ]), fmt=TLOSS_1D_FMT)
        return [self._created(lossy), self._created(lossless)]

    def write_tloss_nby2d(self, tl: TransmissionLoss1D, azimuth: float, append: bool) -> List[Path]:
        """
        One azimuth of the N x 2D sweep.

        The first azimuth truncates the files, later ones append; each
        block ends with a blank line.
        """
        lossy = self.path(f'Nby2D_{self.prefix}tloss_1d.nm')
        lossless = self.path(f'Nby2D_{self.prefix}tloss_1d.lossless.nm')
        mode = 'a' if append else 'w'
        r_km = tl.ranges / 1000.0
        az = np.full(r_km.shape, azimuth)

        blocks = (
            (lossy, tl.coherent, tl.incoherent),
            (lossless, tl.coherent_lossless, tl.incoherent_lossless),
        )
        for path, coherent, incoherent in blocks:
            with open(path, mode) as f:
                np.savetxt(f, np.column_stack([
                    r_km, az, coherent.real, coherent.imag, incoherent,
                ]), fmt=TLOSS_NBY2D_FMT)
                f.write('\n')
        return [lossy, lossless]

    def write_tloss_2d(self, ranges: np.ndarray, heights: np.ndarray, field: np.ndarray) -> Path:
        """
        2-D transmission loss.

        Args:
            ranges: r (m), shape (n_r,)
            heights: z above ground (m) of the sampled rows, shape (n_z,)
            field: Complex field, shape (n_r, n_z)
        """
        path = self.path(f'{self.prefix}tloss_2d.nm')
        z_km = np.asarray(heights) / 1000.0
        with open(path, 'w') as f:
            for i, r in enumerate(ranges):
                block = np.column_stack([
                    np.full(z_km.shape, r / 1000.0), z_km, field[i].real, field[i].imag,
                ])
                np.savetxt(f, block, fmt=TLOSS_2D_FMT)
                f.write('\n')
        return self._created(path)

    # ------------------------------------------------------------------
    # Mode tables
    # ------------------------------------------------------------------

    def write_phase_speeds(self, v_phase: np.ndarray, k_pert: np.ndarray) -> Path:
        path = self.path('phasespeeds.nm')
        index = np.arange(len(v_phase))
        np.savetxt(path, np.column_stack([index, v_phase, np.imag(k_pert)]),
                   fmt=PHASE_SPEEDS_FMT)
        return self._created(path)

    def write_speeds(self, v_phase: np.ndarray, v_group: np.ndarray, k_pert: np.ndarray) -> Path:
        path = self.path('speeds.nm')
        index = np.arange(1, len(v_phase) + 1)
        np.savetxt(path, np.column_stack([index, v_phase, v_group, np.imag(k_pert)]),
                   fmt=SPEEDS_FMT)
        return self._created(path)

    def write_modes(self, shapes: np.ndarray, dz: float) -> List[Path]:
        """One mode_<j>.nm file per mode, with an advisory normalization check"""
        z_km = np.arange(shapes.shape[0]) * dz / 1000.0
        paths = []
        for j in range(shapes.shape[1]):
            path = self.path(f'mode_{j}.nm')
            np.savetxt(path, np.column_stack([z_km, shapes[:, j]]), fmt=MODE_FMT)
            paths.append(path)
        normalization_check(shapes, dz)
        logger.info(f"files mode_<mode_number> created ({len(paths)} in total)")
        return paths

    def write_modal_starter(self, filename: Union[str, Path],
                            heights: np.ndarray, field: np.ndarray) -> Path:
        path = Path(filename)
        if not path.is_absolute():
            path = self.output_dir / path
        with open(path, 'w') as f:
            np.savetxt(f, np.column_stack([np.asarray(heights) / 1000.0, field.real, field.imag]),
                       fmt=STARTER_FMT)
            f.write('\n')
        return self._created(path)

    def write_dispersion(self, frequency: float, k_pert: np.ndarray,
                         v_src: np.ndarray, v_rcv: np.ndarray, rho_src: float) -> Path:
        """Single-line dispersion record for one frequency"""
        path = self.path('dispersion_%e.nm' % frequency)
        parts = ['%.12e   %d    %.12e' % (frequency, len(k_pert), rho_src)]
        for k, vs, vr in zip(k_pert, v_src, v_rcv):
            parts.append('   %.12e   %.12e' % (k.real, k.imag))
            parts.append('   %.12e   %.12e' % (vs, vr))
        with open(path, 'w') as f:
            f.write(''.join(parts) + '\n')
        return self._created(path)
