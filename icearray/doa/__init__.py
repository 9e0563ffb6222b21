# -*- coding: utf-8 -*-
"""
Parametric DOA Estimation - Bounded-optimization estimators.

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
2026-03-12
"""

from icearray.doa.base import (
    DoaEstimate,
    DoaEstimator,
    DoaResult,
    MoeVotes,
    SearchWindow,
    assign_slots,
    constraint_window,
)
from icearray.doa.dcm import WidebandDCM
from icearray.doa.mle import MLE
from icearray.doa.music_doa import MusicDOA

__all__ = [
    'DoaEstimate',
    'DoaEstimator',
    'DoaResult',
    'MLE',
    'MoeVotes',
    'MusicDOA',
    'SearchWindow',
    'WidebandDCM',
    'assign_slots',
    'constraint_window',
]
