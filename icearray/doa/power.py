# -*- coding: utf-8 -*-
"""
Source Power - Pseudo-inverse beamforming of resolved angles.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-05

Modified
--------
2026-03-05
"""

# Third-party
import numpy as np


def pseudo_inverse_power(A: np.ndarray, snapshots: np.ndarray) -> np.ndarray:
    """Per-source power ``mean |W x|²`` with ``W = (AᴴA)⁻¹Aᴴ``.

    Parameters
    ----------
    A : np.ndarray
        Steering columns of the resolved angles, ``(Nc, Nsrc)``.
    snapshots : np.ndarray
        Ensemble ``(Nc, Nsnap)``.

    Returns
    -------
    np.ndarray
        Shape ``(Nsrc,)``.
    """
    W = np.linalg.pinv(A)
    return np.mean(np.abs(W @ snapshots) ** 2, axis=1)
