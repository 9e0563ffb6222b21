# -*- coding: utf-8 -*-
"""
Periodogram Beamformer - Windowed delay-and-sum power spectrum.

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


class Periodogram(Beamformer):
    """Mean over snapshots of ``|svᴴ (w ⊙ x)|²``.

    The channel taper ``w`` has unit mean, so a unit-amplitude plane wave
    matching a tabulated angle yields power ``Nc`` at that angle.
    """

    method = ArrayMethod.STANDARD

    def _accumulate(self, group: MultilookSamples, cfg: ArrayConfig) -> np.ndarray:
        tapered = cfg.window[:, None] * group.snapshots
        beams = group.steering.sv.conj().T @ tapered
        return np.mean(np.abs(beams) ** 2, axis=1)
