# -*- coding: utf-8 -*-
"""
MUSIC-DOA - Parametric MUSIC with bounded optimization.

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
2026-03-10
"""

# Standard library
from functools import partial

from icearray.beamforming.music import noise_subspace
from icearray.doa.base import DoaEstimator, DoaResult, constraint_window
from icearray.doa.cost import music_cost
from icearray.pixel import Pixel
from icearray.vocabulary import ArrayMethod


class MusicDOA(DoaEstimator):
    """Minimize the noise-subspace projection of ``Nsrc`` steering columns."""

    method = ArrayMethod.MUSIC_DOA

    def estimate(self, pixel: Pixel, tracker=None) -> DoaResult:
        cfg = pixel.cfg
        noise = noise_subspace(pixel.covariance(), cfg.Nsrc)
        cost = partial(music_cost, noise=noise, model=pixel.primary.model)
        window = constraint_window(pixel, cfg.Nsrc)
        outcome, result = self._solve(cost, window, pixel)
        return DoaResult(outcome, self._package(pixel, outcome, result))
