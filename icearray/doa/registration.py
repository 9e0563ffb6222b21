# -*- coding: utf-8 -*-
"""
Channel Registration - Fractional-delay alignment of array channels.

Each channel is shifted by its relative delay toward a source with a
Hamming-tapered sinc interpolator evaluated at the integer taps
``reg_bins``. After registration a wideband source appears with a purely
narrowband phase across the channels, so pseudo-inverse weights built
from the carrier phase can separate the sources.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-06

Modified
--------
2026-03-11
"""

# Standard library
from typing import Sequence

# Third-party
import numpy as np
from scipy.signal import windows


def registration_kernel(delay: float, fs: float, reg_bins: np.ndarray) -> np.ndarray:
    """Sinc taps ``sinc(delay fs + reg_bins)`` with a Hamming taper.

    A negative delay (later arrival) puts the kernel peak at a positive
    tap.
    """
    reg_bins = np.asarray(reg_bins, dtype=float)
    taper = windows.hamming(reg_bins.size, sym=True)
    return np.sinc(delay * fs + reg_bins) * taper


def register_channels(
    cube: np.ndarray,
    bin_idx: int,
    line_idx: int,
    bin_rng: np.ndarray,
    line_rng: np.ndarray,
    delays: np.ndarray,
    fs: float,
    reg_bins: Sequence[int],
) -> np.ndarray:
    """Registered snapshot ensemble of one source.

    Parameters
    ----------
    cube : np.ndarray
        Data cube ``(Nt, Nx, Na, Nb, Nc)``.
    bin_idx, line_idx : int
        Pixel center.
    bin_rng, line_rng : np.ndarray
        Neighborhood offsets; offsets whose taps leave the cube are
        dropped.
    delays : np.ndarray
        Per-channel delay toward the source (s), shape ``(Nc,)``.
    fs : float
        Fast-time sample rate (Hz).
    reg_bins : Sequence[int]
        Interpolator taps.

    Returns
    -------
    np.ndarray
        Shape ``(Nc, Nsnap)``.
    """
    Nt, Nx = cube.shape[:2]
    Nc = cube.shape[-1]
    reg_bins = np.asarray(reg_bins, dtype=int)
    bins = bin_idx + np.asarray(bin_rng, dtype=int)
    bins = bins[(bins + reg_bins.min() >= 0) & (bins + reg_bins.max() < Nt)]
    lines = line_idx + np.asarray(line_rng, dtype=int)
    lines = lines[(lines >= 0) & (lines < Nx)]

    kernels = np.stack([registration_kernel(delays[ch], fs, reg_bins)
                        for ch in range(Nc)])
    blocks = []
    for b in bins:
        taps = cube[(b + reg_bins)[:, None], lines[None, :]]
        taps = taps.reshape(reg_bins.size, -1, Nc)
        blocks.append(np.einsum('tsc,ct->cs', taps, kernels))
    if not blocks:
        return np.zeros((Nc, 0), dtype=complex)
    return np.concatenate(blocks, axis=1)


def registered_power(
    cube: np.ndarray,
    bin_idx: int,
    line_idx: int,
    bin_rng: np.ndarray,
    line_rng: np.ndarray,
    A: np.ndarray,
    delays: np.ndarray,
    fs: float,
    reg_bins: Sequence[int],
) -> np.ndarray:
    """Per-source power after registering the channels to each source.

    Source ``k`` uses row ``k`` of ``pinv(A)`` applied to the data
    registered with ``delays[:, k]``.

    Returns
    -------
    np.ndarray
        Shape ``(Nsrc,)``; NaN for sources with no complete taps.
    """
    W = np.linalg.pinv(A)
    power = np.full(A.shape[1], np.nan)
    for src in range(A.shape[1]):
        data = register_channels(cube, bin_idx, line_idx, bin_rng, line_rng,
                                 delays[:, src], fs, reg_bins)
        if data.shape[1]:
            power[src] = np.mean(np.abs(W[src] @ data) ** 2)
    return power
