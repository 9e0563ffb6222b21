# -*- coding: utf-8 -*-
"""
Beamforming - Power-versus-angle estimators.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.
"""

from icearray.beamforming.base import Beamformer
from icearray.beamforming.periodogram import Periodogram
from icearray.beamforming.mvdr import MVDR, RobustMVDR
from icearray.beamforming.music import MUSIC, noise_subspace

__all__ = [
    'Beamformer',
    'Periodogram',
    'MVDR',
    'RobustMVDR',
    'MUSIC',
    'noise_subspace',
]
