# -*- coding: utf-8 -*-
"""
Per-Pixel Sample Extractor - Snapshot ensembles and covariance matrices.

For an output pixel ``(bin, line)`` the neighborhood
``bin + bin_rng`` x ``line + line_rng`` of the 5-D cube
``(Nt, Nx, Na, Nb, Nc)`` is flattened into a ``(Nc, Nsnap)`` snapshot
ensemble. Neighborhood offsets that would read outside the cube are
dropped, so pixels near the cube edges get an asymmetric, smaller
neighborhood instead of an error.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-03

Modified
--------
2026-03-10
"""

# Standard library
from typing import Sequence

# Third-party
import numpy as np

from icearray.exceptions import ConfigError


def clip_range(center: int, rng: np.ndarray, extent: int) -> np.ndarray:
    """Offsets of *rng* that keep ``center + offset`` inside ``[0, extent)``.

    Parameters
    ----------
    center : int
        Zero-based center index.
    rng : np.ndarray
        Integer neighborhood offsets.
    extent : int
        Length of the indexed axis.

    Returns
    -------
    np.ndarray
        The retained offsets, in their original order.
    """
    rng = np.asarray(rng, dtype=int)
    idx = center + rng
    return rng[(idx >= 0) & (idx < extent)]


def extract_snapshots(
    cube: np.ndarray,
    bin_idx: int,
    line_idx: int,
    bin_rng: np.ndarray,
    line_rng: np.ndarray,
) -> np.ndarray:
    """Flattened snapshot ensemble around ``(bin_idx, line_idx)``.

    Returns
    -------
    np.ndarray
        Complex ensemble, shape ``(Nc, Nsnap)`` with
        ``Nsnap = |bins| * |lines| * Na * Nb`` after clipping.
    """
    Nt, Nx = cube.shape[:2]
    bins = bin_idx + clip_range(bin_idx, bin_rng, Nt)
    lines = line_idx + clip_range(line_idx, line_rng, Nx)
    block = cube[bins[:, None], lines[None, :]]
    return block.reshape(-1, cube.shape[-1]).T


def space_time_snapshots(
    cube: np.ndarray,
    bin_idx: int,
    line_idx: int,
    bin_rng: np.ndarray,
    line_rng: np.ndarray,
    n_subband: int,
) -> np.ndarray:
    """Stack ensembles over a window of adjacent fast-time offsets.

    Offsets run over ``-floor((n_subband-1)/2) .. floor((n_subband-1)/2)``.
    Neighborhood bins are clipped against the widest offset on each side
    so every offset contributes the same snapshots.

    Returns
    -------
    np.ndarray
        Complex ensemble, shape ``(Nc * W, Nsnap)`` ordered offset-major.
    """
    half = (n_subband - 1) // 2
    offsets = np.arange(-half, half + 1)
    Nt = cube.shape[0]
    rng = np.asarray(bin_rng, dtype=int)
    rng = rng[(bin_idx + rng + offsets[0] >= 0)
              & (bin_idx + rng + offsets[-1] < Nt)]
    blocks = [extract_snapshots(cube, bin_idx + w, line_idx, rng, line_rng)
              for w in offsets]
    return np.concatenate(blocks, axis=0)


def sample_covariance(snapshots: np.ndarray, diag_load: float = 0.0) -> np.ndarray:
    """Sample covariance ``X Xᴴ / Nsnap`` with optional diagonal loading.

    The loading added to the diagonal is
    ``diag_load * sqrt(mean(|R|²))``.
    """
    n_snap = snapshots.shape[1]
    Rxx = snapshots @ snapshots.conj().T / n_snap
    if diag_load:
        load = diag_load * np.sqrt(np.mean(np.abs(Rxx) ** 2))
        Rxx = Rxx + load * np.eye(Rxx.shape[0])
    return Rxx


def equalize_channels(cube: np.ndarray, chan_equal: Sequence[complex]) -> np.ndarray:
    """Divide each channel of *cube* by its equalization coefficient."""
    coeffs = np.asarray(chan_equal).ravel()
    if coeffs.size != cube.shape[-1]:
        raise ConfigError(
            f"chan_equal has {coeffs.size} entries for {cube.shape[-1]} channels"
        )
    return cube / coeffs
