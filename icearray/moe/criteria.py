# -*- coding: utf-8 -*-
"""
Model-Order Criteria - Penalized likelihood source-count estimates.

Each criterion picks the order ``k`` minimizing ``NLL(k) + penalty(k)``.
Two likelihood flavors are supported:

- Suboptimal: uses only the eigenvalue spectrum of the covariance,
  ``NLL(k) = N (Nc - k) log(arith / geo mean of the Nc - k smallest
  eigenvalues)``.
- Optimal: uses the concentrated likelihood of the MLE solution found
  for each candidate order, ``NLL(k) = N Nc log(residual noise power)``.

Penalties use the number of free parameters ``p = k (2 Nc - k)`` of a
rank-``k`` signal covariance:

=======  ========================================
NT       ``penalty_nt * k``
AIC      ``p``
HQ       ``p log(log N)``
MDL      ``p log(N) / 2``
AICc     ``p N / (N - p - 1)``
KICvc    ``1.5 p N / (N - p - 2)``
WIC      ``(AICc + MDL) / 2``
=======  ========================================

A non-positive denominator gives an infinite penalty so the order is
never selected.

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
from typing import Callable, Dict, Sequence, Tuple

# Third-party
import numpy as np

from icearray.vocabulary import MoeCriterion


def free_parameters(k: int, Nc: int) -> int:
    """Real parameters of a rank-*k* Hermitian signal covariance."""
    return k * (2 * Nc - k)


def _ratio(p: float, N: int, offset: int, scale: float = 1.0) -> float:
    if p == 0:
        return 0.0
    denom = N - p - offset
    if denom <= 0:
        return np.inf
    return scale * p * N / denom


def penalty(
    criterion: MoeCriterion,
    k: int,
    Nc: int,
    N: int,
    penalty_nt: float = 0.0,
) -> float:
    """Penalty term of *criterion* for order *k*.

    Parameters
    ----------
    criterion : MoeCriterion
        Penalty formula.
    k : int
        Candidate number of sources.
    Nc : int
        Number of channels.
    N : int
        Number of snapshots.
    penalty_nt : float
        Per-source penalty of the NT criterion.
    """
    p = free_parameters(k, Nc)
    if criterion is MoeCriterion.NT:
        return penalty_nt * k
    if criterion is MoeCriterion.AIC:
        return float(p)
    if criterion is MoeCriterion.HQ:
        return p * np.log(np.log(N)) if N > np.e else 0.0
    if criterion is MoeCriterion.MDL:
        return 0.5 * p * np.log(N)
    if criterion is MoeCriterion.AICC:
        return _ratio(p, N, 1)
    if criterion is MoeCriterion.KICVC:
        return _ratio(p, N, 2, scale=1.5)
    if criterion is MoeCriterion.WIC:
        return 0.5 * (_ratio(p, N, 1) + 0.5 * p * np.log(N))
    raise ValueError(f"Unsupported MOE criterion: {criterion}")


def sorted_eigenvalues(Rxx: np.ndarray) -> np.ndarray:
    """Real eigenvalues of Hermitian *Rxx* in descending order."""
    return np.sort(np.linalg.eigvalsh(Rxx))[::-1]


def suboptimal_nll(eigvals: np.ndarray, N: int) -> np.ndarray:
    """Eigenvalue-only negative log-likelihood for ``k = 0 .. Nc-1``."""
    lam = np.maximum(np.asarray(eigvals, dtype=float), 1e-300)
    Nc = lam.size
    nll = np.empty(Nc)
    for k in range(Nc):
        tail = lam[k:]
        arith = np.mean(tail)
        geo = np.exp(np.mean(np.log(tail)))
        nll[k] = N * (Nc - k) * np.log(arith / geo)
    return nll


def select_order(
    nll: Sequence[float],
    criterion: MoeCriterion,
    Nc: int,
    N: int,
    penalty_nt: float = 0.0,
) -> int:
    """Order minimizing ``nll[k] + penalty(k)``; ties go to the lower order."""
    scores = [nll[k] + penalty(criterion, k, Nc, N, penalty_nt)
              for k in range(len(nll))]
    return int(np.argmin(scores))


def suboptimal_orders(
    eigvals: np.ndarray,
    N: int,
    criteria: Sequence[MoeCriterion],
    penalty_nt: float = 0.0,
) -> Dict[MoeCriterion, int]:
    """Order selected by each criterion from the eigenvalue spectrum."""
    nll = suboptimal_nll(eigvals, N)
    Nc = np.size(eigvals)
    return {c: select_order(nll, c, Nc, N, penalty_nt) for c in criteria}


def optimal_orders(
    solve: Callable[[int], Tuple[np.ndarray, float]],
    max_order: int,
    Nc: int,
    N: int,
    criteria: Sequence[MoeCriterion],
    penalty_nt: float = 0.0,
) -> Tuple[Dict[MoeCriterion, int], Dict[int, np.ndarray]]:
    """Order selected by each criterion from per-order MLE solutions.

    Parameters
    ----------
    solve : Callable[[int], Tuple[np.ndarray, float]]
        Returns the angles and the concentrated negative log-likelihood
        of the best solution with the given number of sources. Called once
        per order ``0 .. max_order``.
    max_order : int
        Largest candidate order.

    Returns
    -------
    orders : Dict[MoeCriterion, int]
    solutions : Dict[int, np.ndarray]
        Angles of each candidate order.
    """
    nll = []
    solutions = {}
    for k in range(max_order + 1):
        theta, value = solve(k)
        solutions[k] = theta
        nll.append(value if np.isfinite(value) else np.inf)
    orders = {c: select_order(nll, c, Nc, N, penalty_nt) for c in criteria}
    return orders, solutions
