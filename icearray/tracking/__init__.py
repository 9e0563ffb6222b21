# -*- coding: utf-8 -*-
"""
Sequential Tracking - S-MAP state machine and search-bound policies.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-07

Modified
--------
2026-03-12
"""

from icearray.tracking.bounds import (
    BoundPolicy,
    BoundRequest,
    ContinuousCompressedBounds,
    FixedWideBounds,
    GeometryBounds,
    SearchBounds,
    ThresholdRelaxedBounds,
    clamp_bounds,
    make_bound_policy,
)
from icearray.tracking.smap import (
    SequentialTracker,
    predict_branches,
    search_grid_size,
    slant_range,
)
from icearray.tracking.state import TrackerState

__all__ = [
    'BoundPolicy',
    'BoundRequest',
    'ContinuousCompressedBounds',
    'FixedWideBounds',
    'GeometryBounds',
    'SearchBounds',
    'SequentialTracker',
    'ThresholdRelaxedBounds',
    'TrackerState',
    'clamp_bounds',
    'make_bound_policy',
    'predict_branches',
    'search_grid_size',
    'slant_range',
]
