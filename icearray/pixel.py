# -*- coding: utf-8 -*-
"""
Pixel Context - Everything an estimator sees for one output pixel.

The array processor builds one ``Pixel`` per output ``(bin, line)``:
the snapshot ensembles of each multilook group, the per-line steering
table and steering model, and the range/layer information used by DOA
constraints and the sequential tracker. Estimators are pure functions of
a ``Pixel`` (and, for tracked MLE, of the tracker state).

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

# Standard library
from dataclasses import dataclass, field
from typing import List, Optional

# Third-party
import numpy as np

from icearray.config import ArrayConfig
from icearray.snapshots import sample_covariance
from icearray.steering import SteeringModel, SteeringTable


@dataclass(eq=False)
class MultilookSamples:
    """Snapshots of one multilook group at one pixel.

    Attributes
    ----------
    snapshots : np.ndarray
        Multilook-neighborhood ensemble ``(Nc, Nsnap)``.
    dcm_snapshots : np.ndarray
        Covariance-neighborhood ensemble. The same object as
        ``snapshots`` when the two neighborhoods match.
    steering : SteeringTable
        Per-line steering table of this group.
    model : SteeringModel
        Steering model of this group at the current line.
    cube : np.ndarray
        The (equalized) data cube of this group.
    """

    snapshots: np.ndarray
    dcm_snapshots: np.ndarray
    steering: SteeringTable
    model: SteeringModel
    cube: np.ndarray

    def covariance(self, diag_load: float = 0.0) -> np.ndarray:
        """Covariance of the covariance-neighborhood ensemble."""
        return sample_covariance(self.dcm_snapshots, diag_load)


@dataclass(eq=False)
class Pixel:
    """One output pixel.

    Attributes
    ----------
    bin, line : int
        Zero-based cube indices of the pixel center.
    groups : List[MultilookSamples]
        One entry per multilook group; DOA estimators use the first.
    cfg : ArrayConfig
        Normalized configuration.
    time : float
        Fast-time of ``bin`` (s), NaN when unknown.
    surface, layer : float
        Surface and layer two-way travel time at ``line`` (s), NaN when
        unknown.
    fs : float, optional
        Fast-time sample rate (Hz).
    """

    bin: int
    line: int
    groups: List[MultilookSamples]
    cfg: ArrayConfig
    time: float = np.nan
    surface: float = np.nan
    layer: float = np.nan
    fs: Optional[float] = None
    _cov: dict = field(default_factory=dict, repr=False)

    @property
    def primary(self) -> MultilookSamples:
        return self.groups[0]

    def covariance(self, diag_load: float = 0.0) -> np.ndarray:
        """Cached covariance of the first group's covariance neighborhood."""
        if diag_load not in self._cov:
            self._cov[diag_load] = self.primary.covariance(diag_load)
        return self._cov[diag_load]
