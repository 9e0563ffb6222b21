# -*- coding: utf-8 -*-
"""
Tracker State - Per range-line accumulator of the sequential tracker.

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
2026-03-10
"""

# Standard library
from dataclasses import dataclass, field
from typing import Optional

# Third-party
import numpy as np

from icearray.vocabulary import TrackerPhase


def _nan_pair() -> np.ndarray:
    return np.full(2, np.nan)


@dataclass
class TrackerState:
    """Mutable state threaded through one range line's bin loop.

    Slot 0 is the left branch (angles below ``ref_doa``), slot 1 the
    right branch.

    Attributes
    ----------
    phase : TrackerPhase
        Current state-machine phase.
    seed_bin : int, optional
        Bin at which the tracker was seeded.
    h_air : float
        Range (m) of the seed bin; the aircraft height above the
        reflecting surface used by the geometry bound policy.
    first_active_doa : np.ndarray
        Seed angles with a missing branch mirrored.
    prev_doa, prev_bin, prev_range
        Angles, bin and range the next prediction starts from.
    active_doa, active_bin, active_range
        Most recent angles and where they were observed; used to predict
        branches the optimizer leaves NaN.
    stopped : bool
        Set when the bounds collapsed while tracking; the rest of the
        line is skipped.
    """

    phase: TrackerPhase = TrackerPhase.UNSEEDED
    seed_bin: Optional[int] = None
    h_air: float = np.nan
    first_active_doa: np.ndarray = field(default_factory=_nan_pair)
    prev_doa: np.ndarray = field(default_factory=_nan_pair)
    prev_bin: Optional[int] = None
    prev_range: float = np.nan
    active_doa: np.ndarray = field(default_factory=_nan_pair)
    active_bin: Optional[int] = None
    active_range: float = np.nan
    stopped: bool = False

    @property
    def seeded(self) -> bool:
        return self.phase is not TrackerPhase.UNSEEDED

    @property
    def has_first_active(self) -> bool:
        return bool(np.any(np.isfinite(self.first_active_doa)))
