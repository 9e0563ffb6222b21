# -*- coding: utf-8 -*-
"""
DOA Initialization - Starting points for the bounded optimizer.

Two strategies are provided:

- ``grid``: exhaustive search over the candidate grid of every source
  (all pairs for two sources), skipping combinations closer than the
  separation guard.
- ``ap``: alternating projection; each source in turn is moved to its
  best grid point with the others held fixed, for a few sweeps. Used for
  ``doa_init='ap'`` and for more than two sources.

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
2026-03-11
"""

# Standard library
import itertools
from typing import Callable, List

# Third-party
import numpy as np

#: Number of alternating-projection sweeps.
AP_SWEEPS = 3


def initialization_grid(pixel) -> np.ndarray:
    """Candidate angles for the initialization search of *pixel*.

    The per-line steering-table angles are used when the configured grid
    has more than one angle; otherwise ``2*floor(4*Nc/2)`` angles uniform
    in sine.
    """
    cfg = pixel.cfg
    if cfg.theta is not None or cfg.Nsv > 1:
        return np.sort(pixel.primary.steering.theta)
    n = 2 * int(np.floor(4 * cfg.Nc / 2))
    u = (np.arange(n) - n // 2) * (2.0 / n)
    return np.arcsin(u)


def source_candidates(window, grid: np.ndarray) -> List[np.ndarray]:
    """Grid points of each source inside its initialization limits.

    Limits are intersected with the optimizer box. When the window
    requests an explicit ``grid_size`` the limits are sampled uniformly
    instead. Empty candidate sets fall back to the limits' midpoint.
    """
    out = []
    for idx in range(np.size(window.lower)):
        lo = max(window.init_lower[idx], window.lower[idx])
        hi = min(window.init_upper[idx], window.upper[idx])
        if lo > hi:
            lo, hi = window.lower[idx], window.upper[idx]
        if window.grid_size is not None:
            cand = np.linspace(lo, hi, window.grid_size)
        else:
            cand = grid[(grid >= lo) & (grid <= hi)]
        if cand.size == 0:
            cand = np.array([0.5 * (lo + hi)])
        out.append(cand)
    return out


def _feasible(theta: np.ndarray, guard: float) -> bool:
    if guard <= 0 or theta.size < 2:
        return True
    i, j = np.triu_indices(theta.size, k=1)
    return bool(np.all(np.abs(theta[i] - theta[j]) >= guard))


def grid_search(
    cost: Callable[[np.ndarray], float],
    candidates: List[np.ndarray],
    guard: float,
) -> np.ndarray:
    """Best feasible combination of candidate angles.

    Returns NaNs when no combination satisfies the guard.
    """
    best, best_cost = None, np.inf
    for combo in itertools.product(*candidates):
        theta = np.asarray(combo, dtype=float)
        if not _feasible(theta, guard):
            continue
        value = cost(theta)
        if value < best_cost:
            best, best_cost = theta, value
    if best is None:
        return np.full(len(candidates), np.nan)
    return best


def alternating_projection(
    cost: Callable[[np.ndarray], float],
    candidates: List[np.ndarray],
    guard: float,
    sweeps: int = AP_SWEEPS,
) -> np.ndarray:
    """Coordinate-wise grid search starting from the candidate midpoints."""
    theta = np.array([c[c.size // 2] for c in candidates], dtype=float)
    for _ in range(sweeps):
        changed = False
        for idx, cand in enumerate(candidates):
            best_val, best_cost = theta[idx], np.inf
            for value in cand:
                trial = theta.copy()
                trial[idx] = value
                if not _feasible(trial, guard):
                    continue
                c = cost(trial)
                if c < best_cost:
                    best_val, best_cost = value, c
            if best_val != theta[idx]:
                theta[idx] = best_val
                changed = True
        if not changed:
            break
    return theta


def initial_doa(
    cost: Callable[[np.ndarray], float],
    window,
    grid: np.ndarray,
    guard: float,
    mode: str = 'grid',
) -> np.ndarray:
    """Starting angles for *window*, always inside its box bounds.

    Angles that end up outside the box (or NaN) are replaced by the box
    midpoint.
    """
    candidates = source_candidates(window, grid)
    if mode == 'ap' or len(candidates) > 2:
        theta0 = alternating_projection(cost, candidates, guard)
    else:
        theta0 = grid_search(cost, candidates, guard)
        if np.any(np.isnan(theta0)):
            theta0 = alternating_projection(cost, candidates, guard)
    mid = 0.5 * (window.lower + window.upper)
    outside = ~((theta0 >= window.lower) & (theta0 <= window.upper))
    theta0[outside] = mid[outside]
    return theta0
