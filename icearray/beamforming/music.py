# -*- coding: utf-8 -*-
"""
MUSIC Beamformer - Noise-subspace pseudo-spectrum.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-04

Modified
--------
2026-03-04
"""

# Third-party
import numpy as np

from icearray.beamforming.base import Beamformer
from icearray.config import ArrayConfig
from icearray.pixel import MultilookSamples
from icearray.vocabulary import ArrayMethod


def noise_subspace(Rxx: np.ndarray, n_src: int) -> np.ndarray:
    """Eigenvectors of *Rxx* excluding the *n_src* largest eigenvalues.

    ``numpy.linalg.eigh`` returns eigenvalues in ascending order, so the
    noise subspace is the leading ``Nc - n_src`` columns.
    """
    _, vecs = np.linalg.eigh(Rxx)
    return vecs[:, :max(Rxx.shape[0] - n_src, 0)]


class MUSIC(Beamformer):
    """``0.5 / mean_k |svᴴ v_k|²`` over noise eigenvectors ``v_k``."""

    method = ArrayMethod.MUSIC

    def _accumulate(self, group: MultilookSamples, cfg: ArrayConfig) -> np.ndarray:
        noise = noise_subspace(group.covariance(cfg.diag_load), cfg.Nsrc)
        proj = group.steering.sv.conj().T @ noise
        return np.mean(np.abs(proj) ** 2, axis=1)

    def _finalize(self, mean: np.ndarray) -> np.ndarray:
        with np.errstate(divide='ignore'):
            return 0.5 / mean
