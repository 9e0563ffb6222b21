# -*- coding: utf-8 -*-
"""
Wideband DCM Estimator - Space-time covariance fitting.

Snapshots from ``Nsubband`` adjacent fast-time offsets are stacked into a
space-time data covariance matrix (DCM). The angles minimize the
least-squares misfit between the DCM and a span of modeled per-source
space-time covariances, which account for the fast-time delay of the
pulse across the array. The pulse autocorrelation is a sinc of the
sample rate or, when available, that of the measured impulse response.
Source powers come from sinc-registered channels rather than a plain
pseudo-inverse.

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
2026-03-12
"""

# Standard library
from functools import partial
from typing import Optional

# Third-party
import numpy as np

from icearray.doa.base import DoaEstimator, DoaResult, constraint_window
from icearray.doa.cost import impulse_correlation, sinc_correlation, wideband_cost
from icearray.doa.registration import registered_power
from icearray.exceptions import ConfigError
from icearray.models import ImpulseResponse
from icearray.pixel import Pixel
from icearray.snapshots import sample_covariance, space_time_snapshots
from icearray.vocabulary import ArrayMethod


class WidebandDCM(DoaEstimator):
    """Wideband subspace-fit DOA estimator.

    Parameters
    ----------
    imp_resp : ImpulseResponse, optional
        Measured system impulse response. Without it the pulse is modeled
        as band-limited to the sample rate.
    """

    method = ArrayMethod.DCM

    def __init__(self, imp_resp: Optional[ImpulseResponse] = None) -> None:
        self.imp_resp = imp_resp

    def _correlation(self, fs: float):
        if self.imp_resp is not None:
            return impulse_correlation(self.imp_resp.time, self.imp_resp.vals)
        return sinc_correlation(fs)

    def estimate(self, pixel: Pixel, tracker=None) -> DoaResult:
        cfg = pixel.cfg
        if pixel.fs is None or not pixel.fs > 0:
            raise ConfigError("The dcm method requires a positive sample rate fs")
        group = pixel.primary
        X = space_time_snapshots(group.cube, pixel.bin, pixel.line,
                                 cfg.dcm_bin_rng, cfg.dcm_line_rng, cfg.Nsubband)
        dcm = sample_covariance(X)
        n_offsets = X.shape[0] // cfg.Nc
        cost = partial(wideband_cost, dcm=dcm, model=group.model,
                       n_offsets=n_offsets, fs=pixel.fs,
                       corr=self._correlation(pixel.fs))
        window = constraint_window(pixel, cfg.Nsrc)
        outcome, result = self._solve(cost, window, pixel)
        return DoaResult(outcome, self._package(pixel, outcome, result))

    def _power(self, pixel: Pixel, doa: np.ndarray) -> np.ndarray:
        cfg = pixel.cfg
        group = pixel.primary
        return registered_power(
            group.cube, pixel.bin, pixel.line, cfg.bin_rng, cfg.line_rng,
            A=group.model(doa), delays=group.model.delays(doa),
            fs=pixel.fs, reg_bins=cfg.reg_bins,
        )

    def __repr__(self) -> str:
        return f"WidebandDCM(imp_resp={'yes' if self.imp_resp else 'no'})"
