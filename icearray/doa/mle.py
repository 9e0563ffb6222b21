# -*- coding: utf-8 -*-
"""
Maximum-Likelihood DOA Estimator - With model-order estimation and S-MAP.

Without tracking the deterministic ML cost is minimized inside the
configured constraint windows. The number of sources comes from
``Nsrc`` or, when model-order estimation is enabled, from:

1. the classifier, when one is configured;
2. otherwise the first listed criterion in optimal mode (every order
   ``0 .. Nsrc`` is fitted and the criteria compare the concentrated
   likelihoods);
3. otherwise the largest order voted by the suboptimal criteria.

The order is capped at ``Nsrc``; order 0 reports no source.

With a ``SequentialTracker`` the cost becomes the MAP cost with the
tracker's Gaussian prior and the windows come from the tracker. Any
detection before the tracker is seeded is fitted with two sources. A
single source while tracking is fitted on each branch separately and the
lower cost wins.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-06

Modified
--------
2026-03-12
"""

# Standard library
import logging
from functools import partial
from typing import Dict, Optional, Tuple

# Third-party
import numpy as np

# icearray internal
from icearray.doa.base import (
    DoaEstimate,
    DoaEstimator,
    DoaResult,
    MoeVotes,
    assign_slots,
    constraint_window,
)
from icearray.doa.cost import concentrated_nll, map_cost, mle_cost
from icearray.doa.optimizer import OptimizeOutcome
from icearray.moe.criteria import (
    optimal_orders,
    sorted_eigenvalues,
    suboptimal_orders,
)
from icearray.pixel import Pixel
from icearray.vocabulary import ArrayMethod, EstimationOutcome, MoeMode

logger = logging.getLogger(__name__)

_Fit = Tuple[EstimationOutcome, Optional[OptimizeOutcome]]


class MLE(DoaEstimator):
    """Deterministic maximum-likelihood DOA estimator."""

    method = ArrayMethod.MLE

    def estimate(self, pixel: Pixel, tracker=None) -> DoaResult:
        cfg = pixel.cfg
        Rxx = pixel.covariance()
        n_snap = pixel.primary.dcm_snapshots.shape[1]
        fits: Dict[int, _Fit] = {}

        votes = None
        order = cfg.Nsrc
        if cfg.moe_en:
            votes, order = self.model_order(pixel, Rxx, n_snap, fits)
        if tracker is not None:
            order = tracker.force_order(order)
        if order == 0:
            if tracker is not None:
                tracker.update(pixel, EstimationOutcome.NO_SOURCE_DETECTED,
                               np.full(2, np.nan))
            return DoaResult(EstimationOutcome.NO_SOURCE_DETECTED,
                             DoaEstimate.empty(cfg.Nsrc), votes)

        if tracker is not None:
            return self._tracked(pixel, Rxx, n_snap, order, tracker, votes)

        if order not in fits:
            fits[order] = self._fit(pixel, Rxx, order)
        outcome, result = fits[order]
        return DoaResult(outcome, self._package(pixel, outcome, result), votes)

    def _fit(self, pixel: Pixel, Rxx: np.ndarray, n_src: int) -> _Fit:
        """Untracked ML fit of *n_src* sources."""
        cost = partial(mle_cost, Rxx=Rxx, model=pixel.primary.model)
        return self._solve(cost, constraint_window(pixel, n_src), pixel)

    # -----------------------------------------------------------------
    # Model order
    # -----------------------------------------------------------------

    def model_order(
        self,
        pixel: Pixel,
        Rxx: np.ndarray,
        n_snap: int,
        fits: Dict[int, _Fit],
    ) -> Tuple[MoeVotes, int]:
        """Estimated number of sources and the votes behind it.

        Optimal-mode fits are stored in *fits* by order for reuse.
        """
        cfg = pixel.cfg
        votes = MoeVotes()
        eigvals = sorted_eigenvalues(Rxx)
        order = None

        if cfg.moe_classifier is not None:
            k, prob = cfg.moe_classifier(eigvals)
            votes.classifier_order = int(k)
            votes.classifier_prob = float(prob)
            order = int(k)

        if cfg.moe_methods:
            if cfg.moe_mode is MoeMode.OPTIMAL:
                model = pixel.primary.model

                def solve(k: int):
                    if k == 0:
                        return np.empty(0), concentrated_nll(np.empty(0), Rxx, model, n_snap)
                    fits[k] = self._fit(pixel, Rxx, k)
                    outcome, result = fits[k]
                    if outcome is not EstimationOutcome.RESOLVED:
                        return np.full(k, np.nan), np.inf
                    return result.x, concentrated_nll(result.x, Rxx, model, n_snap)

                max_order = min(cfg.Nsrc, cfg.Nc - 1)
                orders, solutions = optimal_orders(
                    solve, max_order, cfg.Nc, n_snap, cfg.moe_methods,
                    cfg.penalty_nt)
                votes.order = orders
                for criterion, k in orders.items():
                    votes.doa[criterion] = _slotted(solutions[k], cfg.Nsrc, cfg.ref_doa)
                primary = orders[cfg.moe_methods[0]]
            else:
                orders = suboptimal_orders(eigvals, n_snap, cfg.moe_methods,
                                           cfg.penalty_nt)
                votes.order = orders
                primary = max(orders.values())
            if order is None:
                order = primary

        if order is None:
            order = cfg.Nsrc
        return votes, min(max(order, 0), cfg.Nsrc)

    # -----------------------------------------------------------------
    # Sequential tracking
    # -----------------------------------------------------------------

    def _tracked(
        self,
        pixel: Pixel,
        Rxx: np.ndarray,
        n_snap: int,
        order: int,
        tracker,
        votes: Optional[MoeVotes],
    ) -> DoaResult:
        cfg = pixel.cfg
        model = pixel.primary.model
        window = tracker.window(pixel)
        if window.collapsed:
            tracker.update(pixel, EstimationOutcome.BOUNDS_COLLAPSED,
                           np.full(2, np.nan))
            return DoaResult(EstimationOutcome.BOUNDS_COLLAPSED,
                             DoaEstimate.empty(cfg.Nsrc), votes)

        def cost_for(win):
            return partial(map_cost, Rxx=Rxx, model=model, n_snap=n_snap,
                           prior_mean=win.prior_mean, prior_var=win.prior_var)

        if order >= 2 or not tracker.state.seeded:
            outcome, result = self._solve(cost_for(window), window, pixel)
            est = self._package(pixel, outcome, result, slots=[0, 1])
        else:
            best = None
            for branch in (0, 1):
                sub = window.select([branch])
                outcome, result = self._solve(cost_for(sub), sub, pixel)
                if outcome is EstimationOutcome.RESOLVED and (
                        best is None or result.fun < best[2].fun):
                    best = (branch, outcome, result)
            if best is None:
                est = DoaEstimate.empty(cfg.Nsrc)
            else:
                branch, outcome, result = best
                est = self._package(pixel, outcome, result, slots=[branch])

        tracker.update(pixel, outcome, est.doa)
        return DoaResult(outcome, est, votes)


def _slotted(doa: np.ndarray, n_slots: int, ref_doa: float) -> np.ndarray:
    """Angles of one candidate order laid out in ``n_slots`` slots."""
    out = np.full(n_slots, np.nan)
    doa = np.sort(np.asarray(doa, dtype=float))
    if doa.size == 0 or np.all(np.isnan(doa)):
        return out
    out[assign_slots(doa, n_slots, ref_doa)] = doa
    return out
