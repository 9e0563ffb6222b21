# -*- coding: utf-8 -*-
"""
Bounded DOA Optimizer - SLSQP wrapper with a curvature estimate.

``minimize_doa`` runs ``scipy.optimize.minimize`` with the SLSQP method
inside box bounds, optionally with the minimum-separation inequality,
and returns the optimum together with the diagonal of the cost Hessian
(central finite differences) as a per-source uncertainty proxy.

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
from dataclasses import dataclass
from typing import Callable

# Third-party
import numpy as np
from scipy.optimize import minimize

from icearray.doa.cost import guard_constraint

#: Step (radians) of the finite-difference Hessian.
HESSIAN_STEP = 1e-4

#: Tolerance (radians) on the separation guard of the returned point.
GUARD_TOL = 1e-6


@dataclass(eq=False)
class OptimizeOutcome:
    """Optimizer result.

    Attributes
    ----------
    x : np.ndarray
        Optimized angles (radians).
    fun : float
        Cost at ``x``.
    hessian : np.ndarray
        Diagonal of the cost Hessian at ``x``; NaN where not finite.
    success : bool
        Whether a finite point inside the bounds that honors the
        separation guard was found.
    message : str
        Optimizer message.
    """

    x: np.ndarray
    fun: float
    hessian: np.ndarray
    success: bool
    message: str = ''


def hessian_diagonal(
    cost: Callable[[np.ndarray], float],
    x: np.ndarray,
    step: float = HESSIAN_STEP,
) -> np.ndarray:
    """Central-difference second derivatives of *cost* along each axis."""
    f0 = cost(x)
    diag = np.empty(x.size)
    for idx in range(x.size):
        dx = np.zeros(x.size)
        dx[idx] = step
        diag[idx] = (cost(x + dx) - 2.0 * f0 + cost(x - dx)) / step ** 2
    diag[~np.isfinite(diag)] = np.nan
    return diag


def minimize_doa(
    cost: Callable[[np.ndarray], float],
    x0: np.ndarray,
    lower: np.ndarray,
    upper: np.ndarray,
    guard: float = 0.0,
    ftol: float = 1e-12,
    maxiter: int = 200,
) -> OptimizeOutcome:
    """Minimize *cost* over angles inside ``[lower, upper]``.

    Parameters
    ----------
    cost : Callable
        Objective of the angle vector.
    x0 : np.ndarray
        Starting angles, inside the bounds.
    lower, upper : np.ndarray
        Box bounds (radians).
    guard : float
        Minimum pairwise separation (radians); 0 disables it.

    Returns
    -------
    OptimizeOutcome
    """
    x0 = np.asarray(x0, dtype=float)
    n = x0.size
    constraints = []
    if guard > 0 and n > 1:
        constraints.append({'type': 'ineq',
                            'fun': lambda x: guard_constraint(x, guard)})
    try:
        res = minimize(cost, x0, method='SLSQP',
                       bounds=list(zip(lower, upper)),
                       constraints=constraints,
                       options={'ftol': ftol, 'maxiter': maxiter})
    except (ValueError, np.linalg.LinAlgError) as exc:
        return OptimizeOutcome(x=np.full(n, np.nan), fun=np.nan,
                               hessian=np.full(n, np.nan), success=False,
                               message=str(exc))

    x = np.clip(res.x, lower, upper)
    fun = float(res.fun)
    if not (np.all(np.isfinite(x)) and np.isfinite(fun)):
        return OptimizeOutcome(x=np.full(n, np.nan), fun=np.nan,
                               hessian=np.full(n, np.nan), success=False,
                               message=str(res.message))
    if guard > 0 and n > 1 and np.any(guard_constraint(x, guard) < -GUARD_TOL):
        return OptimizeOutcome(x=np.full(n, np.nan), fun=np.nan,
                               hessian=np.full(n, np.nan), success=False,
                               message=f"Separation guard violated: {res.message}")
    return OptimizeOutcome(x=x, fun=fun, hessian=hessian_diagonal(cost, x),
                           success=True, message=str(res.message))
