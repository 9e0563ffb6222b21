# -*- coding: utf-8 -*-
"""
MVDR Beamformers - Minimum-variance distortionless response spectra.

``MVDR`` is the Capon estimator ``1 / (svᴴ Rxx⁻¹ sv)`` with optional
diagonal loading of ``diag_load * sqrt(mean(|Rxx|²))``. When the
covariance neighborhood differs from the multilook neighborhood the
weight ``w = svᴴ Rxx⁻¹`` is applied to the separately sampled multilook
ensemble and normalized by the look-direction gain ``|w sv|²``; both
paths give the same power when the neighborhoods coincide.

``RobustMVDR`` takes, per angle, the dominant eigenvector of
``Rxx (sv svᴴ - 0.12 ‖sv svᴴ‖_F I)`` as the weight vector, which is more
tolerant of steering-vector mismatch.

A singular ``Rxx`` with ``diag_load=0`` is inverted as is; the resulting
Inf/NaN powers mark unreliable pixels.

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
2026-03-10
"""

# Third-party
import numpy as np

from icearray.beamforming.base import Beamformer
from icearray.config import ArrayConfig
from icearray.pixel import MultilookSamples, Pixel
from icearray.vocabulary import ArrayMethod

#: Fraction of the Frobenius norm removed from the steering outer product.
ROBUST_SHRINK = 0.12


def _inverse(Rxx: np.ndarray) -> np.ndarray:
    with np.errstate(all='ignore'):
        try:
            return np.linalg.inv(Rxx)
        except np.linalg.LinAlgError:
            return np.full_like(Rxx, np.inf)


def _weighted_power(weights: np.ndarray, group: MultilookSamples) -> np.ndarray:
    """``mean|w x|² / |w sv|²`` for row weights ``(Nangles, Nc)``."""
    out = weights @ group.snapshots
    gain = np.sum(weights * group.steering.sv.T, axis=1)
    with np.errstate(divide='ignore', invalid='ignore'):
        return np.mean(np.abs(out) ** 2, axis=1) / np.abs(gain) ** 2


class MVDR(Beamformer):
    """Capon beamformer."""

    method = ArrayMethod.MVDR

    def estimate(self, pixel: Pixel) -> np.ndarray:
        cfg = pixel.cfg
        if cfg.dcm_ml_match:
            return super().estimate(pixel)
        powers = [self._distinct_power(group, cfg) for group in pixel.groups]
        return np.mean(powers, axis=0)

    def _accumulate(self, group: MultilookSamples, cfg: ArrayConfig) -> np.ndarray:
        Rinv = _inverse(group.covariance(cfg.diag_load))
        sv = group.steering.sv
        return np.real(np.einsum('ia,ij,ja->a', sv.conj(), Rinv, sv))

    def _finalize(self, mean: np.ndarray) -> np.ndarray:
        with np.errstate(divide='ignore'):
            return 1.0 / mean

    def _distinct_power(self, group: MultilookSamples, cfg: ArrayConfig) -> np.ndarray:
        Rinv = _inverse(group.covariance(cfg.diag_load))
        return _weighted_power(group.steering.sv.conj().T @ Rinv, group)


class RobustMVDR(Beamformer):
    """Eigenvector-weighted MVDR with a shrunk steering outer product."""

    method = ArrayMethod.MVDR_ROBUST

    def __init__(self, shrink: float = ROBUST_SHRINK) -> None:
        self.shrink = shrink

    def _accumulate(self, group: MultilookSamples, cfg: ArrayConfig) -> np.ndarray:
        Rxx = group.covariance()
        sv = group.steering.sv
        Nc = sv.shape[0]
        weights = np.empty((sv.shape[1], Nc), dtype=complex)
        for idx in range(sv.shape[1]):
            outer = np.outer(sv[:, idx], sv[:, idx].conj())
            outer -= self.shrink * np.linalg.norm(outer, 'fro') * np.eye(Nc)
            vals, vecs = np.linalg.eig(Rxx @ outer)
            weights[idx] = vecs[:, np.argmax(np.abs(vals))].conj()
        return _weighted_power(weights, group)

    def __repr__(self) -> str:
        return f"RobustMVDR(shrink={self.shrink!r})"
