# -*- coding: utf-8 -*-
"""
Tracking Bounds - Interchangeable search-bound policies for S-MAP.

For a tracked bin the left and right branch predictions ``mu`` come from
the flat-surface transition model. A ``BoundPolicy`` turns the
predictions, the previous angles and the expansion factor ``kk`` into
box bounds plus the standard deviation of the Gaussian prior:

- ``FixedWideBounds``: 5 deg margins around the prediction/previous pair.
- ``ThresholdRelaxedBounds``: inner bound just past the previous angle,
  outer bound one step past the prediction; steps at or below 0.5 deg are
  relaxed three-fold.
- ``ContinuousCompressedBounds``: like the threshold policy with the
  relaxation replaced by a sigmoid-compressed step curve.
- ``GeometryBounds`` (default): step from the angular extent of a 20 m
  height deviation over a flat air/ice stack, as a function of the
  incidence angle.

``clamp_bounds`` then keeps each branch on its side of ``ref_doa`` and
inside the constraint limits, with ``LB <= UB``.

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
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple

# Third-party
import numpy as np

from icearray.constants import ER_ICE, REF_DOA_MARGIN
from icearray.exceptions import ConfigError
from icearray.vocabulary import BoundPolicyKind

#: Height deviation (m) of the geometry bound model.
GEOMETRY_HEIGHT_DEVIATION = 20.0

#: Incidence angles (radians) tabulated by the geometry bound model.
GEOMETRY_THETA = np.deg2rad(np.linspace(0.0, 89.0, 101))

#: Steps at or below this (radians) are relaxed by the threshold policies.
RELAX_THRESHOLD = np.deg2rad(0.5)

#: Margin (radians) of the fixed wide policy.
WIDE_MARGIN = np.deg2rad(5.0)


@dataclass(frozen=True)
class BoundRequest:
    """Inputs of one bound computation.

    ``mu`` and ``prev`` hold the (left, right) predicted and previous
    angles in radians.
    """

    mu: Tuple[float, float]
    prev: Tuple[float, float]
    kk: float = 1.0
    kk_std: float = 1.0
    h_air: float = np.nan
    er_ice: float = ER_ICE
    ice_thickness: float = 2000.0
    gaussian: bool = True

    @property
    def step(self) -> np.ndarray:
        """Predicted angle change of each branch."""
        return np.abs(np.asarray(self.mu) - np.asarray(self.prev))


@dataclass(frozen=True, eq=False)
class SearchBounds:
    """Box bounds and prior standard deviation of both branches."""

    lower: np.ndarray
    upper: np.ndarray
    std: np.ndarray


class BoundPolicy(ABC):
    """Abstract search-bound policy."""

    kind: BoundPolicyKind

    @abstractmethod
    def compute_bounds(self, request: BoundRequest) -> SearchBounds:
        """Bounds for the left and right branch."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class FixedWideBounds(BoundPolicy):
    """Previous/predicted angle pair widened by 5 deg."""

    kind = BoundPolicyKind.FIXED_WIDE

    def compute_bounds(self, request: BoundRequest) -> SearchBounds:
        mu_l, mu_r = request.mu
        prev_l, prev_r = request.prev
        lower = np.array([mu_l, prev_r]) - WIDE_MARGIN
        upper = np.array([prev_l, mu_r]) + WIDE_MARGIN
        return SearchBounds(lower=lower, upper=upper,
                            std=np.full(2, WIDE_MARGIN))


def _relaxed(a2, step, request: BoundRequest) -> SearchBounds:
    """Inner bound 0.1 step past the previous angle, outer past ``mu``."""
    mu = np.asarray(request.mu, dtype=float)
    prev = np.asarray(request.prev, dtype=float)
    a1 = 0.1
    kk = request.kk if request.gaussian else 1.0
    lower = np.array([mu[0] - kk * a2[0] * step[0],
                      prev[1] + a1 * step[1]])
    upper = np.array([prev[0] - a1 * step[0],
                      mu[1] + kk * a2[1] * step[1]])
    return SearchBounds(lower=lower, upper=upper,
                        std=np.asarray(a2) * step)


class ThresholdRelaxedBounds(BoundPolicy):
    """Outer bound relaxed three-fold when the step is small."""

    kind = BoundPolicyKind.THRESHOLD_RELAXED

    def compute_bounds(self, request: BoundRequest) -> SearchBounds:
        step = request.step
        a2 = np.where(step <= RELAX_THRESHOLD, 3.0, 1.0)
        return _relaxed(a2, step, request)


class ContinuousCompressedBounds(BoundPolicy):
    """Small steps mapped through a sigmoid-compressed curve.

    ``bound(t) = t (1 + (C - 1) / (1 + exp((t - 0.9) * 3.5)))`` in degrees
    with ``C = 4``, tabulated on ``t = 0 .. 2`` deg.
    """

    kind = BoundPolicyKind.CONTINUOUS_COMPRESSED

    compression = 4.0
    transition = 0.9
    speed = 3.5

    def __init__(self) -> None:
        t = np.linspace(0.0, 2.0, 101)
        self._change = np.deg2rad(t)
        self._bound = np.deg2rad(
            t * (1 + (self.compression - 1)
                 / (1 + np.exp((t - self.transition) * self.speed))))

    def compressed_step(self, step: float) -> float:
        """Curve value at the tabulated change nearest *step*."""
        if step > RELAX_THRESHOLD:
            return float(step)
        return float(self._bound[np.argmin(np.abs(self._change - step))])

    def compute_bounds(self, request: BoundRequest) -> SearchBounds:
        step = np.array([self.compressed_step(s) for s in request.step])
        return _relaxed(np.ones(2), step, request)


class GeometryBounds(BoundPolicy):
    """Step from a flat air/ice geometry with a 20 m height deviation.

    For incidence angle ``θ`` with refracted angle
    ``θi = asin(sin θ / sqrt(er))`` and slant range
    ``R = H / cos θ + T / cos θi``, the step is
    ``π/2 - θi - asin((R - h / cos θi) / R * cos θi)``. ``T`` is the ice
    thickness (0 for ``er == 1``) and ``H`` the seed-bin range.
    """

    kind = BoundPolicyKind.GEOMETRY

    def step_curve(self, request: BoundRequest) -> np.ndarray:
        """Step at every tabulated incidence angle."""
        theta = GEOMETRY_THETA
        h = GEOMETRY_HEIGHT_DEVIATION
        T = 0.0 if request.er_ice == 1 else request.ice_thickness
        theta_i = np.arcsin(np.sin(theta) / np.sqrt(request.er_ice))
        R = request.h_air / np.cos(theta) + T / np.cos(theta_i)
        arg = np.clip((R - h / np.cos(theta_i)) / R * np.cos(theta_i), -1.0, 1.0)
        return np.pi / 2 - theta_i - np.arcsin(arg)

    def compute_bounds(self, request: BoundRequest) -> SearchBounds:
        curve = self.step_curve(request)
        mu = np.asarray(request.mu, dtype=float)
        idx = [int(np.argmin(np.abs(GEOMETRY_THETA - abs(m)))) for m in mu]
        step = curve[idx]
        return SearchBounds(lower=mu - request.kk * step,
                            upper=mu + request.kk * step,
                            std=request.kk_std * step)


def clamp_bounds(
    bounds: SearchBounds,
    ref_doa: float,
    limit_left: Tuple[float, float],
    limit_right: Tuple[float, float],
) -> SearchBounds:
    """Keep each branch on its side of *ref_doa* and inside its limits.

    The left upper bound moves to ``ref_doa - 0.5 deg`` when it crosses
    ``ref_doa`` (mirrored for the right lower bound). All four bounds are
    then cut at the branch limits, and each lower bound is capped by its
    upper bound.
    """
    lower = np.array(bounds.lower, dtype=float)
    upper = np.array(bounds.upper, dtype=float)
    if upper[0] > ref_doa:
        upper[0] = ref_doa - REF_DOA_MARGIN
    if lower[1] < ref_doa:
        lower[1] = ref_doa + REF_DOA_MARGIN
    lower[0] = max(lower[0], limit_left[0])
    upper[0] = min(upper[0], limit_left[1])
    lower[1] = max(lower[1], limit_right[0])
    upper[1] = min(upper[1], limit_right[1])
    lower[0] = min(lower[0], upper[0])
    upper[1] = max(upper[1], lower[1])
    return SearchBounds(lower=lower, upper=upper, std=bounds.std)


_POLICIES = {
    BoundPolicyKind.FIXED_WIDE: FixedWideBounds,
    BoundPolicyKind.THRESHOLD_RELAXED: ThresholdRelaxedBounds,
    BoundPolicyKind.CONTINUOUS_COMPRESSED: ContinuousCompressedBounds,
    BoundPolicyKind.GEOMETRY: GeometryBounds,
}


def make_bound_policy(kind) -> BoundPolicy:
    """Instantiate the policy named by *kind*."""
    try:
        kind = BoundPolicyKind(kind)
    except ValueError:
        raise ConfigError(
            f"Unknown bound policy {kind!r}; expected one of "
            f"{[k.value for k in BoundPolicyKind]}"
        ) from None
    return _POLICIES[kind]()
