# -*- coding: utf-8 -*-
"""
Output Assembler - Per-method output tensors and their 2D reductions.

Beamformer spectra are reduced to the strongest angle inside the
method's angle-of-interest range (the angle nearest the range center
when no tabulated angle falls inside it). DOA estimates are reduced to
one source per pixel: the strongest inside the range (``output_mode=1``)
or the in-range one nearest the range center (``output_mode=2``).

Every tensor starts as NaN; pixels never processed or with no source
stay NaN.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-08

Modified
--------
2026-03-12
"""

# Standard library
from typing import Dict, Optional, Tuple

# Third-party
import numpy as np

# icearray internal
from icearray.config import ArrayConfig
from icearray.doa.base import DoaEstimate, MoeVotes
from icearray.models import ArrayResult, MethodOutput, MoeDiagnostics, TomoOutput
from icearray.vocabulary import ArrayMethod, MoeMode


def _nan(shape, dtype) -> np.ndarray:
    return np.full(shape, np.nan, dtype=dtype)


def reduce_spectrum(
    theta: np.ndarray,
    spectrum: np.ndarray,
    theta_rng: Tuple[float, float],
) -> Tuple[float, float]:
    """Peak ``(power, angle)`` of *spectrum* inside *theta_rng*.

    Falls back to the angle nearest the range center when no tabulated
    angle lies inside the range. All-NaN candidates give NaNs.
    """
    lo, hi = theta_rng
    inside = np.flatnonzero((theta >= lo) & (theta <= hi))
    if inside.size == 0:
        inside = np.array([np.argmin(np.abs(theta - 0.5 * (lo + hi)))])
    values = spectrum[inside]
    if np.all(np.isnan(values)):
        return np.nan, np.nan
    best = inside[np.nanargmax(values)]
    return float(spectrum[best]), float(theta[best])


def select_source(
    estimate: DoaEstimate,
    theta_rng: Tuple[float, float],
    output_mode: int = 1,
) -> Optional[int]:
    """Slot index reported in the 2D products, or ``None``.

    Both modes only consider finite angles inside *theta_rng*. Mode 1
    picks the largest power among them; mode 2 the angle nearest the
    range center.
    """
    lo, hi = theta_rng
    finite = np.flatnonzero(np.isfinite(estimate.doa))
    inside = finite[(estimate.doa[finite] >= lo) & (estimate.doa[finite] <= hi)]
    if inside.size == 0:
        return None
    if output_mode == 2:
        center = 0.5 * (lo + hi)
        return int(inside[np.argmin(np.abs(estimate.doa[inside] - center))])
    power = np.where(np.isnan(estimate.power[inside]), -np.inf,
                     estimate.power[inside])
    return int(inside[np.argmax(power)])


class OutputAssembler:
    """Collects per-pixel results into NaN-initialized output arrays.

    Parameters
    ----------
    cfg : ArrayConfig
        Normalized configuration.
    dtype : numpy dtype
        Floating type of the outputs.
    """

    def __init__(self, cfg: ArrayConfig, dtype=np.float32) -> None:
        self.cfg = cfg
        self.dtype = dtype
        Nbins, Nlines = cfg.bins.size, cfg.lines.size
        shape2 = (Nbins, Nlines)
        self._img: Dict[ArrayMethod, np.ndarray] = {}
        self._theta: Dict[ArrayMethod, np.ndarray] = {}
        self._tomo: Dict[ArrayMethod, TomoOutput] = {}

        for method in cfg.methods:
            self._img[method] = _nan(shape2, dtype)
            self._theta[method] = _nan(shape2, dtype)
        if cfg.tomo_en:
            for method in cfg.beam_methods:
                self._tomo[method] = TomoOutput(
                    img=_nan((Nbins, cfg.Nsv, Nlines), dtype),
                    theta=_nan(cfg.Nsv, dtype),
                )
        for method in cfg.doa_methods:
            shape3 = (Nbins, cfg.Nsrc, Nlines)
            self._tomo[method] = TomoOutput(
                img=_nan(shape3, dtype), theta=_nan(shape3, dtype),
                cost=_nan(shape2, dtype), hessian=_nan(shape3, dtype),
            )

        self.moe: Optional[MoeDiagnostics] = None
        if cfg.moe_diagnostics:
            self.moe = MoeDiagnostics(
                order={c: _nan(shape2, dtype) for c in cfg.moe_methods},
                doa=({c: _nan((Nbins, cfg.Nsrc, Nlines), dtype)
                      for c in cfg.moe_methods}
                     if cfg.moe_mode is MoeMode.OPTIMAL else {}),
            )
            if cfg.moe_classifier is not None:
                self.moe.classifier_order = _nan(shape2, dtype)
                self.moe.classifier_prob = _nan(shape2, dtype)

    def add_spectrum(
        self,
        method: ArrayMethod,
        bin_idx: int,
        line_idx: int,
        theta: np.ndarray,
        spectrum: np.ndarray,
    ) -> None:
        """Store one beamformer spectrum."""
        power, angle = reduce_spectrum(theta, spectrum,
                                       self.cfg.theta_rng_for(method))
        self._img[method][bin_idx, line_idx] = power
        self._theta[method][bin_idx, line_idx] = angle
        tomo = self._tomo.get(method)
        if tomo is not None:
            tomo.img[bin_idx, :, line_idx] = spectrum
            tomo.theta[:] = theta

    def add_doa(
        self,
        method: ArrayMethod,
        bin_idx: int,
        line_idx: int,
        estimate: DoaEstimate,
    ) -> None:
        """Store one DOA estimate and its selected source."""
        tomo = self._tomo[method]
        tomo.theta[bin_idx, :, line_idx] = estimate.doa
        tomo.img[bin_idx, :, line_idx] = estimate.power
        tomo.hessian[bin_idx, :, line_idx] = estimate.hessian
        tomo.cost[bin_idx, line_idx] = estimate.cost
        slot = select_source(estimate, self.cfg.theta_rng_for(method),
                             self.cfg.output_mode)
        if slot is not None:
            self._img[method][bin_idx, line_idx] = estimate.power[slot]
            self._theta[method][bin_idx, line_idx] = estimate.doa[slot]

    def add_moe(self, bin_idx: int, line_idx: int, votes: MoeVotes) -> None:
        """Store model-order diagnostics of one pixel."""
        if self.moe is None:
            return
        for criterion, order in votes.order.items():
            self.moe.order[criterion][bin_idx, line_idx] = order
        for criterion, doa in votes.doa.items():
            self.moe.doa[criterion][bin_idx, :, line_idx] = doa
        if self.moe.classifier_order is not None and votes.classifier_order is not None:
            self.moe.classifier_order[bin_idx, line_idx] = votes.classifier_order
            self.moe.classifier_prob[bin_idx, line_idx] = votes.classifier_prob

    def result(self) -> ArrayResult:
        """Assemble the final ``ArrayResult``."""
        outputs = {
            method: MethodOutput(method=method, img=self._img[method],
                                 theta=self._theta[method],
                                 tomo=self._tomo.get(method))
            for method in self.cfg.methods
        }
        return ArrayResult(outputs=outputs, bins=self.cfg.bins.copy(),
                           lines=self.cfg.lines.copy(), moe=self.moe)
