# -*- coding: utf-8 -*-
"""
Physical and numerical constants shared across the array engine.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-02

Modified
--------
2026-03-02
"""

import numpy as np

#: Speed of light in vacuum (m/s), matching the radar toolbox value.
SPEED_OF_LIGHT = 2.997924580003452e8

#: Default relative permittivity of glacial ice.
ER_ICE = 3.15

#: Minimum usable width of a tracker search window (radians).
MIN_BOUND_WIDTH = np.deg2rad(0.08)

#: Margin kept between each tracked branch and the reference angle (radians).
REF_DOA_MARGIN = np.deg2rad(0.5)

#: Bins after the seed bin that use the start-of-line expansion factor.
KK_START_BINS = 10

#: Bins searched for a seed when the line start comes from a layer pick.
SEED_SEARCH_BINS = 10
