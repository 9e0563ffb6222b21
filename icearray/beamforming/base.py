# -*- coding: utf-8 -*-
"""
Beamformer Base - Template-method base class for spectral estimators.

``Beamformer.estimate(pixel)`` returns a power-versus-angle spectrum over
the per-line steering table. Multilook groups are combined by averaging a
per-group accumulator and converting the mean once:

1. ``_accumulate(group, cfg)`` (abstract hook) returns a per-angle
   quantity for one multilook group.
2. The quantities are averaged over the groups.
3. ``_finalize(mean)`` converts the mean into power (identity by
   default; reciprocal for the inverse-quadratic estimators).

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
2026-03-09
"""

# Standard library
from abc import ABC, abstractmethod

# Third-party
import numpy as np

from icearray.config import ArrayConfig
from icearray.pixel import MultilookSamples, Pixel
from icearray.vocabulary import ArrayMethod


class Beamformer(ABC):
    """Abstract power-versus-angle estimator."""

    #: Method tag this estimator implements.
    method: ArrayMethod

    def estimate(self, pixel: Pixel) -> np.ndarray:
        """Power at every angle of the steering table.

        Returns
        -------
        np.ndarray
            Real power spectrum, shape ``(Nangles,)``.
        """
        acc = None
        for group in pixel.groups:
            value = self._accumulate(group, pixel.cfg)
            acc = value if acc is None else acc + value
        return self._finalize(acc / len(pixel.groups))

    @abstractmethod
    def _accumulate(self, group: MultilookSamples, cfg: ArrayConfig) -> np.ndarray:
        """Per-angle quantity for one multilook group."""
        ...

    def _finalize(self, mean: np.ndarray) -> np.ndarray:
        return mean

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
