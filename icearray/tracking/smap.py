# -*- coding: utf-8 -*-
"""
Sequential Tracker - Left/right reflector tracking along a range line.

The tracker follows two reflector branches (left and right of
``ref_doa``) from bin to bin in increasing range:

- ``UNSEEDED``: the search uses the configured initialization limits,
  split at ``ref_doa`` with a 0.5 deg margin, no prior, and the
  separation guard. The first bin giving at least one finite angle seeds
  the tracker; a missing branch is mirrored from the other.
- ``SEEDED`` / ``TRACKING``: each branch is predicted from the previous
  bin with the flat-surface relation
  ``mu = ±acos((R_prev / R_curr) cos θ_prev)``, a ``BoundPolicy`` sets
  the box bounds and prior width, and ``clamp_bounds`` keeps the branches
  apart. Branches the optimizer leaves empty are predicted from the last
  active angles so the next bin always has a starting point.

Collapsed bounds after seeding stop the tracker for the rest of the
line.

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

# Standard library
import logging
from typing import Optional

# Third-party
import numpy as np

from icearray.config import ArrayConfig
from icearray.constants import (
    KK_START_BINS,
    REF_DOA_MARGIN,
    SPEED_OF_LIGHT,
)
from icearray.doa.base import SearchWindow
from icearray.doa.constraints import constraint_midpoints
from icearray.tracking.bounds import (
    BoundPolicy,
    BoundRequest,
    clamp_bounds,
    make_bound_policy,
)
from icearray.tracking.state import TrackerState
from icearray.vocabulary import EstimationOutcome, PriorPdf, TrackerPhase

logger = logging.getLogger(__name__)

#: Points per branch of the seed-bin initialization grid.
SEED_GRID_SIZE = 5

#: Prior standard deviation (radians) used with a uniform prior.
UNIFORM_PRIOR_STD = np.deg2rad(90.0)


def slant_range(time: float) -> float:
    """One-way range (m) of two-way travel time *time*."""
    return SPEED_OF_LIGHT * time / 2.0


def predict_branches(
    doa: np.ndarray,
    range_from: float,
    range_to: float,
) -> np.ndarray:
    """Flat-surface prediction of the (left, right) pair at *range_to*."""
    ratio = range_from / range_to
    cos_l = np.clip(ratio * np.cos(doa[0]), -1.0, 1.0)
    cos_r = np.clip(ratio * np.cos(doa[1]), -1.0, 1.0)
    return np.array([-np.arccos(cos_l), np.arccos(cos_r)])


def search_grid_size(lower: np.ndarray, upper: np.ndarray, Nc: int) -> int:
    """Initialization points per branch for a tracked bin.

    Shrinks from ``2 floor(4 Nc / 2)`` to a single point as the widest
    branch narrows below 10, 5 and 1 deg.
    """
    n_full = 2 * int(np.floor(4 * Nc / 2))
    search_rng = float(np.max(np.abs(np.abs(upper) - np.abs(lower))))
    if search_rng >= np.deg2rad(10.0):
        return n_full
    if search_rng >= np.deg2rad(5.0):
        return int(np.ceil(n_full / 2))
    if search_rng > np.deg2rad(1.0):
        return 5
    return 1


class SequentialTracker:
    """Per range-line state machine of the sequential MAP estimator.

    Parameters
    ----------
    cfg : ArrayConfig
        Normalized configuration; ``Nsrc`` must be 2.
    policy : BoundPolicy, optional
        Bound policy; defaults to ``cfg.bound_policy``.
    """

    def __init__(self, cfg: ArrayConfig, policy: Optional[BoundPolicy] = None) -> None:
        self.cfg = cfg
        self.policy = policy if policy is not None else make_bound_policy(cfg.bound_policy)
        self.state = TrackerState()

    def reset(self) -> None:
        """Start a new range line."""
        self.state = TrackerState()

    @property
    def phase(self) -> TrackerPhase:
        return self.state.phase

    @property
    def stopped(self) -> bool:
        return self.state.stopped

    def force_order(self, order: int) -> int:
        """Model order to use at the current bin.

        Any detection while unseeded becomes two sources, one per branch.
        """
        if not self.state.seeded and order > 0:
            return 2
        return order

    def expansion(self, bin_idx: int) -> float:
        """Bound expansion factor ``kk`` for *bin_idx*."""
        if bin_idx <= self.state.seed_bin + KK_START_BINS:
            return self.cfg.kk_start
        return self.cfg.kk_end

    def _limits(self):
        left, right = self.cfg.doa_constraints[:2]
        return left.src_limits, right.src_limits

    # -----------------------------------------------------------------
    # Windows
    # -----------------------------------------------------------------

    def window(self, pixel) -> SearchWindow:
        """Search window of *pixel* for the current phase."""
        if self.state.seeded:
            return self.track_window(pixel)
        return self.seed_window(pixel)

    def seed_window(self, pixel) -> SearchWindow:
        """Initialization limits split at ``ref_doa``, no prior."""
        cfg = self.cfg
        constraints = cfg.doa_constraints[:2]
        mid = constraint_midpoints(constraints, pixel.time, pixel.surface,
                                   pixel.layer, cfg.er_ice)
        lower = mid + np.array([c.init_src_limits[0] for c in constraints])
        upper = mid + np.array([c.init_src_limits[1] for c in constraints])
        if upper[0] > cfg.ref_doa:
            upper[0] = cfg.ref_doa - REF_DOA_MARGIN
        if lower[1] < cfg.ref_doa:
            lower[1] = cfg.ref_doa + REF_DOA_MARGIN
        return SearchWindow(
            lower=lower, upper=upper,
            init_lower=lower.copy(), init_upper=upper.copy(),
            limit_lower=lower.copy(), limit_upper=upper.copy(),
            guard=True, grid_size=SEED_GRID_SIZE,
        )

    def track_window(self, pixel) -> SearchWindow:
        """Predicted bounds and prior for a bin after the seed."""
        cfg = self.cfg
        st = self.state
        mu = predict_branches(st.prev_doa, st.prev_range, slant_range(pixel.time))
        gaussian = cfg.prior_pdf is PriorPdf.GAUSSIAN
        request = BoundRequest(
            mu=(float(mu[0]), float(mu[1])),
            prev=(float(st.prev_doa[0]), float(st.prev_doa[1])),
            kk=self.expansion(pixel.bin),
            kk_std=cfg.kk_std,
            h_air=st.h_air,
            er_ice=cfg.er_ice,
            ice_thickness=cfg.ice_thickness,
            gaussian=gaussian,
        )
        limit_left, limit_right = self._limits()
        bounds = clamp_bounds(self.policy.compute_bounds(request),
                              cfg.ref_doa, limit_left, limit_right)
        std = bounds.std if gaussian else np.full(2, UNIFORM_PRIOR_STD)
        return SearchWindow(
            lower=bounds.lower, upper=bounds.upper,
            init_lower=bounds.lower.copy(), init_upper=bounds.upper.copy(),
            limit_lower=np.array([limit_left[0], limit_right[0]]),
            limit_upper=np.array([limit_left[1], limit_right[1]]),
            prior_mean=mu, prior_var=np.asarray(std) ** 2,
            guard=False,
            grid_size=search_grid_size(bounds.lower, bounds.upper, cfg.Nc),
        )

    # -----------------------------------------------------------------
    # Update
    # -----------------------------------------------------------------

    def update(self, pixel, outcome: EstimationOutcome, doa: np.ndarray) -> None:
        """Advance the state machine with the (left, right) result of *pixel*."""
        st = self.state
        rng = slant_range(pixel.time)
        doa = np.array(doa, dtype=float)

        if not st.seeded:
            if outcome is not EstimationOutcome.RESOLVED or not np.any(np.isfinite(doa)):
                return
            missing = np.isnan(doa)
            if np.any(missing):
                doa[missing] = 2 * self.cfg.ref_doa - doa[~missing]
            st.phase = TrackerPhase.SEEDED
            st.seed_bin = pixel.bin
            st.h_air = rng
            st.first_active_doa = doa.copy()
            self._advance(doa, pixel.bin, rng)
            logger.debug("Tracker seeded at bin %d line %d: %s",
                         pixel.bin, pixel.line, np.rad2deg(doa))
            return

        if outcome is EstimationOutcome.BOUNDS_COLLAPSED:
            if st.has_first_active:
                st.stopped = True
                logger.debug("Tracker bounds collapsed at bin %d line %d; "
                             "stopping line", pixel.bin, pixel.line)
            return

        missing = np.isnan(doa)
        if np.any(missing):
            predicted = predict_branches(st.active_doa, st.active_range, rng)
            doa[missing] = predicted[missing]
        st.phase = TrackerPhase.TRACKING
        self._advance(doa, pixel.bin, rng)

    def _advance(self, doa: np.ndarray, bin_idx: int, rng: float) -> None:
        st = self.state
        st.prev_doa = doa.copy()
        st.prev_bin = bin_idx
        st.prev_range = rng
        st.active_doa = doa.copy()
        st.active_bin = bin_idx
        st.active_range = rng

    def __repr__(self) -> str:
        return (f"SequentialTracker(policy={self.policy!r}, "
                f"phase={self.state.phase.value})")
