# -*- coding: utf-8 -*-
"""
DOA Estimator Base - Shared pipeline of the parametric estimators.

Every parametric estimator follows the same steps for one pixel:

1. Build a correlation matrix from the snapshot ensemble.
2. Center a search window on each source slot's constraint midpoint.
3. Pick a starting point by grid search or alternating projection.
4. Minimize a cost over the angle vector inside box bounds, with a
   minimum-separation constraint between sources.
5. Estimate per-source power from the optimized angles.

``DoaEstimator`` implements steps 2-4 in ``_solve`` and leaves the
correlation statistic, the cost, and the power estimate to subclasses.
The result of ``estimate`` is a ``DoaResult`` whose ``outcome`` tells the
caller whether the pixel was resolved; NaN remains the serialized form of
"no source" in the ``DoaEstimate`` arrays.

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

# Standard library
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence, Tuple

# Third-party
import numpy as np

from icearray.constants import MIN_BOUND_WIDTH
from icearray.doa.constraints import constraint_midpoints
from icearray.doa.initialization import initial_doa, initialization_grid
from icearray.doa.optimizer import OptimizeOutcome, minimize_doa
from icearray.doa.power import pseudo_inverse_power
from icearray.pixel import Pixel
from icearray.vocabulary import ArrayMethod, EstimationOutcome, MoeCriterion

logger = logging.getLogger(__name__)


# =====================================================================
# Result types
# =====================================================================

@dataclass(eq=False)
class DoaEstimate:
    """Per source-slot estimates of one pixel.

    ``doa``, ``power`` and ``hessian`` have one entry per slot (``Nsrc``);
    unused slots are NaN.
    """

    doa: np.ndarray
    power: np.ndarray
    hessian: np.ndarray
    cost: float = np.nan

    @classmethod
    def empty(cls, n_slots: int) -> 'DoaEstimate':
        return cls(doa=np.full(n_slots, np.nan),
                   power=np.full(n_slots, np.nan),
                   hessian=np.full(n_slots, np.nan))

    @property
    def n_sources(self) -> int:
        """Number of slots holding a finite angle."""
        return int(np.count_nonzero(np.isfinite(self.doa)))


@dataclass(eq=False)
class MoeVotes:
    """Model-order decisions made while estimating one pixel."""

    order: Dict[MoeCriterion, int] = field(default_factory=dict)
    doa: Dict[MoeCriterion, np.ndarray] = field(default_factory=dict)
    classifier_order: Optional[int] = None
    classifier_prob: float = np.nan


@dataclass(eq=False)
class DoaResult:
    """Outcome plus estimate of one pixel."""

    outcome: EstimationOutcome
    estimate: DoaEstimate
    moe: Optional[MoeVotes] = None

    @property
    def resolved(self) -> bool:
        return self.outcome is EstimationOutcome.RESOLVED


# =====================================================================
# Search window
# =====================================================================

@dataclass(eq=False)
class SearchWindow:
    """Box bounds, initialization limits and prior for one solve.

    Attributes
    ----------
    lower, upper : np.ndarray
        Optimizer box bounds (radians), one entry per source.
    init_lower, init_upper : np.ndarray
        Initialization search limits (radians).
    limit_lower, limit_upper : np.ndarray
        Absolute limits the box must stay within.
    prior_mean, prior_var : np.ndarray, optional
        Gaussian prior on the angles. ``None`` means no prior.
    guard : bool
        Whether the minimum-separation constraint applies.
    grid_size : int, optional
        Points per source of the initialization grid; ``None`` uses the
        estimator's default grid.
    """

    lower: np.ndarray
    upper: np.ndarray
    init_lower: np.ndarray
    init_upper: np.ndarray
    limit_lower: np.ndarray
    limit_upper: np.ndarray
    prior_mean: Optional[np.ndarray] = None
    prior_var: Optional[np.ndarray] = None
    guard: bool = True
    grid_size: Optional[int] = None

    @property
    def collapsed(self) -> bool:
        """Bounds outside the limits, non-finite, or narrower than 0.08 deg."""
        if not (np.all(np.isfinite(self.lower)) and np.all(np.isfinite(self.upper))):
            return True
        if np.max(self.upper) > np.max(self.limit_upper) + 1e-12:
            return True
        if np.min(self.lower) < np.min(self.limit_lower) - 1e-12:
            return True
        return bool(np.min(self.upper - self.lower) < MIN_BOUND_WIDTH)

    def select(self, idx: Sequence[int]) -> 'SearchWindow':
        """Window restricted to the source indices *idx*."""
        idx = list(idx)

        def pick(arr):
            return None if arr is None else np.asarray(arr)[idx]

        return SearchWindow(
            lower=pick(self.lower), upper=pick(self.upper),
            init_lower=pick(self.init_lower), init_upper=pick(self.init_upper),
            limit_lower=pick(self.limit_lower), limit_upper=pick(self.limit_upper),
            prior_mean=pick(self.prior_mean), prior_var=pick(self.prior_var),
            guard=self.guard, grid_size=self.grid_size,
        )


def constraint_window(pixel: Pixel, n_src: int) -> SearchWindow:
    """Search window from the configured DOA constraints.

    Bounds are ``mid + src_limits`` and the initialization limits are
    ``mid + init_src_limits`` for the first *n_src* constraints.
    """
    cfg = pixel.cfg
    constraints = cfg.doa_constraints[:n_src]
    mid = constraint_midpoints(constraints, pixel.time, pixel.surface,
                               pixel.layer, cfg.er_ice)
    lower = mid + np.array([c.src_limits[0] for c in constraints])
    upper = mid + np.array([c.src_limits[1] for c in constraints])
    return SearchWindow(
        lower=lower, upper=upper,
        init_lower=mid + np.array([c.init_src_limits[0] for c in constraints]),
        init_upper=mid + np.array([c.init_src_limits[1] for c in constraints]),
        limit_lower=lower.copy(), limit_upper=upper.copy(),
    )


def assign_slots(doa: np.ndarray, n_slots: int, ref_doa: float = 0.0) -> np.ndarray:
    """Slot index of each angle in *doa* (ascending order assumed).

    A full set fills the slots in order. A single angle with two slots
    goes left (slot 0) when it is at or below *ref_doa*, else right.
    """
    doa = np.asarray(doa)
    if doa.size == n_slots or n_slots != 2:
        return np.arange(doa.size)
    return np.array([0 if d <= ref_doa else 1 for d in doa])


# =====================================================================
# Estimator base
# =====================================================================

CostFunction = Callable[[np.ndarray], float]


class DoaEstimator(ABC):
    """Abstract parametric DOA estimator."""

    #: Method tag this estimator implements.
    method: ArrayMethod

    @abstractmethod
    def estimate(self, pixel: Pixel, tracker=None) -> DoaResult:
        """Estimate the source angles and powers of *pixel*."""
        ...

    def _solve(
        self,
        cost: CostFunction,
        window: SearchWindow,
        pixel: Pixel,
        grid: Optional[np.ndarray] = None,
    ) -> Tuple[EstimationOutcome, Optional[OptimizeOutcome]]:
        """Initialize and optimize *cost* inside *window*."""
        if window.collapsed:
            return EstimationOutcome.BOUNDS_COLLAPSED, None
        cfg = pixel.cfg
        if grid is None:
            grid = initialization_grid(pixel)
        guard = cfg.doa_theta_guard if window.guard else 0.0
        theta0 = initial_doa(cost, window, grid, guard, cfg.doa_init)
        result = minimize_doa(cost, theta0, window.lower, window.upper,
                              guard=guard)
        if not result.success:
            logger.debug("Optimizer failed at bin %d line %d: %s",
                         pixel.bin, pixel.line, result.message)
            return EstimationOutcome.OPTIMIZER_FAILED, result
        return EstimationOutcome.RESOLVED, result

    def _power(self, pixel: Pixel, doa: np.ndarray) -> np.ndarray:
        """Per-source power of the resolved angles *doa*."""
        group = pixel.primary
        return pseudo_inverse_power(group.model(doa), group.snapshots)

    def _package(
        self,
        pixel: Pixel,
        outcome: EstimationOutcome,
        result: Optional[OptimizeOutcome],
        slots: Optional[Sequence[int]] = None,
    ) -> DoaEstimate:
        """Sort the optimized angles into the ``Nsrc`` source slots.

        Angles are ascending; *slots* overrides the default assignment
        from ``assign_slots``.
        """
        cfg = pixel.cfg
        est = DoaEstimate.empty(cfg.Nsrc)
        if outcome is not EstimationOutcome.RESOLVED or result is None:
            return est
        order = np.argsort(result.x)
        doa = result.x[order]
        if slots is None:
            slots = assign_slots(doa, cfg.Nsrc, cfg.ref_doa)
        slots = np.asarray(slots, dtype=int)
        est.doa[slots] = doa
        est.power[slots] = self._power(pixel, doa)
        est.hessian[slots] = result.hessian[order]
        est.cost = result.fun
        return est

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
